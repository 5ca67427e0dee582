from typing import Any, List, Optional

from simulation.base_agent import BaseAgent
from simulation.config import GameVariant, STOCK_MODEL, STOCK_TEMPERATURE
from simulation.errors import GenerationError
from simulation.models.schemas import Stock
from simulation.prompts.game_prompts import stock_catalog_prompt
from simulation.tools.validation import validate_stocks


class StockCatalogAgent(BaseAgent):
    """
    Generates the initial set of fictional stocks

    There is no local fallback for the catalog: if the LLM output fails
    validation the request fails with GenerationError.
    """

    def __init__(self, variant: GameVariant, client: Optional[Any] = None, **kwargs):
        super().__init__(client=client, **kwargs)
        self.variant = variant

    @property
    def agent_type(self) -> str:
        return "stocks"

    @property
    def model_name(self) -> str:
        return STOCK_MODEL

    async def generate_stocks(self) -> List[Stock]:
        """
        Request `stock_count` stocks and validate them

        Returns:
            Validated stocks with priceChange recomputed

        Raises:
            GenerationError: If the LLM is unavailable or nothing valid came back
        """
        result = await self.run_pipeline(
            stock_catalog_prompt(self.variant),
            lambda text: validate_stocks(
                text,
                volatility_range=self.variant.volatility_range,
                require_sector_and_tidbit=self.variant.include_sector_and_tidbit,
            ),
            temperature=STOCK_TEMPERATURE,
        )
        if not result.ok:
            raise GenerationError(f"Failed to generate stocks: {result.error}")

        self.logger.info(f"Generated {len(result.data)} stocks")
        return result.data
