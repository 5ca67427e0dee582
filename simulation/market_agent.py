import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from simulation.base_agent import BaseAgent
from simulation.config import GameVariant, SIMULATION_MODEL, SIMULATION_TEMPERATURE, PRICE_FLOOR
from simulation.errors import GenerationError
from simulation.models.schemas import (
    Stock,
    TickCandidate,
    SimulationTick,
    Prediction,
    EconEvent,
    SimulationResult
)
from simulation.prompts.game_prompts import simulation_prompt
from simulation.tools.econ_scheduler import EconEventScheduler
from simulation.tools.fallback import fallback_simulate, fallback_tick
from simulation.tools.validation import validate_ticks, percent_change

logger = logging.getLogger(__name__)


def chain_ticks(
    candidates: Sequence[TickCandidate],
    stocks: Sequence[Stock],
    current_day: int,
    days: int,
    rng: Optional[random.Random] = None,
    scale_volatility: bool = True
) -> List[SimulationTick]:
    """
    Turn validated LLM ticks into a complete, consistent price chain

    Every stock gets exactly one tick per day in current_day+1 ..
    current_day+days. previous_day_price is taken from the prior tick (the
    stock's current price for the first one). LLM prices are floored and
    priceChange is recomputed. The first tick seen for a (ticker, day) pair
    wins, and days the LLM skipped are filled with a random-walk step.

    Args:
        candidates: Ticks that passed schema validation
        stocks: Stocks being simulated, in output order
        current_day: Last completed day
        days: Number of days simulated
        rng: Random source for filled-in days
        scale_volatility: Passed to the random-walk step

    Returns:
        Ticks ordered by stock, then day
    """
    rng = rng or random.Random()
    by_ticker: Dict[str, Dict[int, TickCandidate]] = {}
    for candidate in candidates:
        by_ticker.setdefault(candidate.ticker, {}).setdefault(candidate.day, candidate)

    ticks: List[SimulationTick] = []
    filled = 0
    for stock in stocks:
        per_day = by_ticker.get(stock.ticker, {})
        prev_price = stock.price
        for day in range(current_day + 1, current_day + days + 1):
            candidate = per_day.get(day)
            if candidate is None:
                tick = fallback_tick(stock, day, prev_price, rng, scale_volatility)
                filled += 1
            else:
                price = max(PRICE_FLOOR, candidate.price)
                tick = SimulationTick(
                    ticker=stock.ticker,
                    day=day,
                    price=price,
                    previous_day_price=prev_price,
                    price_change=percent_change(price, prev_price),
                    volatility=candidate.volatility if candidate.volatility is not None else stock.volatility,
                    headline=candidate.headline,
                    description=candidate.description,
                )
            ticks.append(tick)
            prev_price = tick.price

    if filled:
        logger.warning(f"Filled {filled} missing tick(s) with random-walk steps")
    return ticks


class MarketSimulationAgent(BaseAgent):
    """
    Advances the market by a batch of days

    Combines:
    - Econ event promotion/scheduling (at most one new event per batch)
    - LLM tick generation with schema validation and repair
    - Random-walk fallback when the LLM output is unusable
    """

    def __init__(
        self,
        variant: GameVariant,
        scheduler: Optional[EconEventScheduler] = None,
        rng: Optional[random.Random] = None,
        client: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(client=client, **kwargs)
        self.variant = variant
        self.scheduler = scheduler or EconEventScheduler()
        self.rng = rng or random.Random()

    @property
    def agent_type(self) -> str:
        return "simulation"

    @property
    def model_name(self) -> str:
        return SIMULATION_MODEL

    async def simulate_days(
        self,
        stocks: Sequence[Stock],
        days: int,
        predictions: Sequence[Prediction],
        current_day: int,
        active_effects: Sequence[EconEvent]
    ) -> SimulationResult:
        """
        Simulate days current_day+1 .. current_day+days

        Args:
            stocks: Non-empty list of stocks at their current prices
            days: Number of days to advance (>= 1)
            predictions: Caller-held news predictions
            current_day: Last completed day (>= 0)
            active_effects: Caller-held active econ effects

        Returns:
            SimulationResult with ticks and any newly started econ events

        Raises:
            GenerationError: If the LLM is unreachable
        """
        first_day, last_day = current_day + 1, current_day + days
        known_tickers = [stock.ticker for stock in stocks]
        prompt = simulation_prompt(
            self.variant,
            [stock.to_wire() for stock in stocks],
            [prediction.to_wire() for prediction in predictions],
            current_day,
            days,
        )

        result = await self.run_pipeline(
            prompt,
            lambda text: validate_ticks(text, first_day, last_day, known_tickers),
            temperature=SIMULATION_TEMPERATURE,
        )

        if result.ok:
            ticks = chain_ticks(
                result.data,
                stocks,
                current_day,
                days,
                rng=self.rng,
                scale_volatility=self.variant.scale_fallback_volatility,
            )
        elif result.status in ("validation_failed", "timed_out"):
            self.logger.warning(
                f"Using fallback simulation for days {first_day}-{last_day} ({result.status}: {result.error})"
            )
            ticks = fallback_simulate(
                stocks,
                current_day,
                days,
                rng=self.rng,
                scale_volatility=self.variant.scale_fallback_volatility,
            )
        else:
            raise GenerationError(f"Failed to simulate days: {result.error}")

        # Only a batch that produced ticks may consume the predicted event
        new_events: List[EconEvent] = []
        if self.variant.econ_events_enabled:
            new_events = self.scheduler.events_for_batch(active_effects, current_day, days)

        return SimulationResult(simulated=ticks, new_econ_events=new_events)
