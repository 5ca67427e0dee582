import logging
import random
from typing import Any, List, Optional

import ollama

from caching.response_cache import ResponseCache, make_cache_key
from simulation.config import GameVariant, OLLAMA_HOST, LLM_TIMEOUT, CACHE_TTL_SECONDS, CACHE_MAX_ENTRIES
from simulation.analysis_agent import PerformanceAgent
from simulation.market_agent import MarketSimulationAgent
from simulation.prediction_agent import PredictionAgent
from simulation.stock_agent import StockCatalogAgent
from simulation.tools.econ_scheduler import EconEventScheduler
from simulation.models.schemas import (
    Stock,
    Prediction,
    PredictedEconEvent,
    SimulationResult,
    SimulateDaysRequest,
    PredictNewsRequest,
    PredictEconEventRequest,
    AnalyzePerformanceRequest
)

logger = logging.getLogger(__name__)


class GameWorkflow:
    """
    One parameterized game engine per variant

    Manages:
    - Agent initialization with a shared LLM client
    - The econ event scheduler (owner of the predicted-event slot)
    - Response caching with single-flight de-duplication
    """

    def __init__(
        self,
        variant: GameVariant,
        client: Optional[Any] = None,
        rng: Optional[random.Random] = None,
        cache: Optional[ResponseCache] = None,
        timeout: Optional[float] = LLM_TIMEOUT
    ):
        """
        Initialize all agents

        Args:
            variant: Game constants (stock count, volatility range, ...)
            client: Async LLM client shared by every agent
            rng: Random source for fallbacks and econ events
            cache: Response cache (a fresh one if omitted)
            timeout: Per-call LLM timeout in seconds
        """
        logger.info(f"Initializing {variant.name} game workflow...")

        self.variant = variant
        self.rng = rng or random.Random()
        self.cache = cache or ResponseCache(ttl_seconds=CACHE_TTL_SECONDS, maxsize=CACHE_MAX_ENTRIES)
        self.scheduler = EconEventScheduler(rng=self.rng)
        client = client or ollama.AsyncClient(host=OLLAMA_HOST)

        self.stock_agent = StockCatalogAgent(variant, client=client, timeout=timeout)
        self.market_agent = MarketSimulationAgent(
            variant, scheduler=self.scheduler, rng=self.rng, client=client, timeout=timeout
        )
        self.prediction_agent = PredictionAgent(variant, rng=self.rng, client=client, timeout=timeout)
        self.performance_agent = PerformanceAgent(variant, client=client, timeout=timeout)

    def _key(self, operation: str, payload: Any) -> str:
        return make_cache_key(f"{self.variant.name}:{operation}", payload)

    async def get_stocks(self) -> List[Stock]:
        """Stock catalog, shared by all callers for the cache TTL"""
        return await self.cache.get_or_compute(
            self._key("stocks", None), self.stock_agent.generate_stocks
        )

    async def simulate_days(self, request: SimulateDaysRequest) -> SimulationResult:
        """Advance the market; identical requests within the TTL reuse the result"""
        key = self._key("simulateDays", request.model_dump(mode="json"))

        async def compute() -> SimulationResult:
            return await self.market_agent.simulate_days(
                request.stocks,
                request.days,
                request.predictions,
                request.current_day,
                request.active_econ_effects,
            )

        return await self.cache.get_or_compute(key, compute)

    async def predict_news(self, request: PredictNewsRequest) -> Prediction:
        key = self._key("predictNews", request.model_dump(mode="json"))

        async def compute() -> Prediction:
            return await self.prediction_agent.predict_news(request.stocks, request.current_day)

        return await self.cache.get_or_compute(key, compute)

    def predict_econ_event(self, request: PredictEconEventRequest) -> PredictedEconEvent:
        """Not cached: the scheduler's slot already makes repeated reads idempotent"""
        return self.scheduler.predict_econ_event(request.active_econ_effects, request.current_day)

    async def analyze_performance(self, request: AnalyzePerformanceRequest) -> str:
        key = self._key("analyzePerformance", request.model_dump(mode="json"))

        async def compute() -> str:
            return await self.performance_agent.analyze_performance(
                request.log, request.portfolio, request.budget
            )

        return await self.cache.get_or_compute(key, compute)
