from typing import Any, Dict, List, Optional

from simulation.base_agent import BaseAgent
from simulation.config import GameVariant, ANALYSIS_MODEL, ANALYSIS_TEMPERATURE
from simulation.errors import GenerationError, UpstreamUnavailable
from simulation.prompts.game_prompts import analysis_prompt


class PerformanceAgent(BaseAgent):
    """Plain-text review of a finished trading run"""

    def __init__(self, variant: GameVariant, client: Optional[Any] = None, **kwargs):
        super().__init__(client=client, **kwargs)
        self.variant = variant

    @property
    def agent_type(self) -> str:
        return "analysis"

    @property
    def model_name(self) -> str:
        return ANALYSIS_MODEL

    async def analyze_performance(
        self,
        log: List[Any],
        portfolio: Dict[str, Any],
        budget: float
    ) -> str:
        prompt = analysis_prompt(self.variant, log, portfolio, budget)
        try:
            analysis = await self.call_llm(prompt, temperature=ANALYSIS_TEMPERATURE)
        except UpstreamUnavailable as e:
            raise GenerationError(f"Failed to analyze performance: {e}") from e

        if not analysis:
            raise GenerationError("Failed to analyze performance: empty response")
        return analysis
