import argparse
import asyncio
import contextlib
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from simulation.config import (
    GAME_VARIANT,
    HOST,
    PORT,
    LOG_LEVEL,
    LOG_FORMAT,
    CACHE_SWEEP_SECONDS,
    GameVariant,
    get_game_variant
)
from simulation.errors import GameError
from simulation.game_workflow import GameWorkflow
from simulation.models.schemas import (
    SimulateDaysRequest,
    PredictNewsRequest,
    PredictEconEventRequest,
    AnalyzePerformanceRequest,
    AnalysisResult
)

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

INVALID_INPUT = "Invalid input"

# Client-facing messages; internal details stay in the logs
ROUTE_ERRORS = {
    "/stocks": "Failed to generate stocks. Please try again later.",
    "/simulateDays": "Failed to simulate days",
    "/predictNews": "Failed to generate prediction",
    "/predictEconEvent": "Failed to generate economic event prediction",
    "/analyzePerformance": "Failed to analyze performance",
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _sweep_periodically(workflow: GameWorkflow, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        workflow.cache.sweep()


def create_app(
    variant: Optional[GameVariant] = None,
    workflow: Optional[GameWorkflow] = None,
    sweep_seconds: float = CACHE_SWEEP_SECONDS
) -> FastAPI:
    """
    Build the HTTP surface for one game variant

    Args:
        variant: Game variant (GAME_VARIANT from the environment if omitted)
        workflow: Pre-built engine, e.g. with a fake LLM client in tests
        sweep_seconds: Cache sweep interval; 0 disables the background sweep

    Returns:
        Configured FastAPI application
    """
    if workflow is None:
        workflow = GameWorkflow(variant or get_game_variant(GAME_VARIANT))
    variant = workflow.variant

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = None
        if sweep_seconds > 0:
            sweeper = asyncio.create_task(_sweep_periodically(workflow, sweep_seconds))
        logger.info(f"{variant.name.capitalize()} game service started")
        yield
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title=f"Stock Game Simulation ({variant.name})", lifespan=lifespan)
    app.state.workflow = workflow

    #ERROR HANDLING

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid input on {request.url.path}: {len(exc.errors())} error(s)")
        return _error_response(400, INVALID_INPUT)

    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, exc: GameError):
        logger.error(f"Error in {request.url.path}: {exc}")
        return _error_response(500, ROUTE_ERRORS.get(request.url.path, "Internal server error"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"Unexpected error in {request.url.path}: {exc}", exc_info=True)
        return _error_response(500, ROUTE_ERRORS.get(request.url.path, "Internal server error"))

    #ROUTES

    @app.get("/")
    async def service_info():
        return {
            "variant": variant.name,
            "stockCount": variant.stock_count,
            "startingBudget": variant.starting_budget,
            "econEvents": variant.econ_events_enabled,
        }

    @app.get("/stocks")
    async def get_stocks():
        stocks = await workflow.get_stocks()
        return [stock.to_wire() for stock in stocks]

    @app.post("/simulateDays")
    async def simulate_days(body: SimulateDaysRequest):
        result = await workflow.simulate_days(body)
        if variant.wrap_simulation_response:
            return result.to_wire()
        return [tick.to_wire() for tick in result.simulated]

    @app.post("/predictNews")
    async def predict_news(body: PredictNewsRequest):
        prediction = await workflow.predict_news(body)
        return prediction.to_wire()

    if variant.econ_events_enabled:
        @app.post("/predictEconEvent")
        async def predict_econ_event(body: PredictEconEventRequest):
            return workflow.predict_econ_event(body).to_wire()

    @app.post("/analyzePerformance")
    async def analyze_performance(body: AnalyzePerformanceRequest):
        analysis = await workflow.analyze_performance(body)
        return AnalysisResult(analysis=analysis).to_wire()

    return app


app = create_app()


def main():
    parser = argparse.ArgumentParser(description="Stock game simulation service")
    parser.add_argument("--variant", default=GAME_VARIANT, help="Game variant (expert or casual)")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=None, help="Defaults to the variant's port")
    args = parser.parse_args()

    variant = get_game_variant(args.variant)
    uvicorn.run(create_app(variant), host=args.host, port=args.port or PORT or variant.port)


if __name__ == "__main__":
    main()
