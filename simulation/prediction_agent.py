import random
from typing import Any, Optional, Sequence

from simulation.base_agent import BaseAgent
from simulation.config import GameVariant, PREDICTION_MODEL, PREDICTION_TEMPERATURE, PREDICTION_HORIZON_DAYS
from simulation.errors import GenerationError
from simulation.models.schemas import Stock, Prediction
from simulation.prompts.game_prompts import prediction_prompt
from simulation.tools.fallback import fallback_prediction
from simulation.tools.validation import validate_prediction


class PredictionAgent(BaseAgent):
    """Produces one near-term rise/fall prediction, with a random fallback"""

    def __init__(
        self,
        variant: GameVariant,
        rng: Optional[random.Random] = None,
        client: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(client=client, **kwargs)
        self.variant = variant
        self.rng = rng or random.Random()

    @property
    def agent_type(self) -> str:
        return "prediction"

    @property
    def model_name(self) -> str:
        return PREDICTION_MODEL

    async def predict_news(self, stocks: Sequence[Stock], current_day: int) -> Prediction:
        """
        Predict a move for one stock within the next 7 days

        Raises:
            GenerationError: If the LLM is unreachable or times out
        """
        tickers = [stock.ticker for stock in stocks]
        result = await self.run_pipeline(
            prediction_prompt(self.variant, [stock.to_wire() for stock in stocks], current_day),
            lambda text: validate_prediction(
                text, current_day + 1, current_day + PREDICTION_HORIZON_DAYS, tickers
            ),
            temperature=PREDICTION_TEMPERATURE,
        )

        if result.ok:
            return result.data
        if result.status == "validation_failed":
            self.logger.warning(f"Using fallback prediction: {result.error}")
            return fallback_prediction(stocks, current_day, rng=self.rng)
        raise GenerationError(f"Failed to generate prediction: {result.error}")
