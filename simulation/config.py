import os
from dataclasses import dataclass
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv()

#OLLAMA MODEL CONFIGURATION

# Stock catalog generation
STOCK_MODEL = os.getenv("STOCK_MODEL", "llama3.1:8b")

# Day-by-day market simulation
SIMULATION_MODEL = os.getenv("SIMULATION_MODEL", "llama3.1:8b")

# Per-stock news predictions
PREDICTION_MODEL = os.getenv("PREDICTION_MODEL", "llama3.1:8b")

# End-of-game performance analysis
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "llama3.1:8b")

#OLLAMA CONNECTION
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))

#SAMPLING
STOCK_TEMPERATURE = float(os.getenv("STOCK_TEMPERATURE", "0.7"))
SIMULATION_TEMPERATURE = float(os.getenv("SIMULATION_TEMPERATURE", "0.9"))
PREDICTION_TEMPERATURE = float(os.getenv("PREDICTION_TEMPERATURE", "0.9"))
ANALYSIS_TEMPERATURE = float(os.getenv("ANALYSIS_TEMPERATURE", "0.7"))

#CACHE
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "300"))
CACHE_SWEEP_SECONDS = float(os.getenv("CACHE_SWEEP_SECONDS", "60"))
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "256"))

#SERVER
HOST = os.getenv("HOST", "0.0.0.0")
# 0 means use the variant port
PORT = int(os.getenv("PORT", "0"))
GAME_VARIANT = os.getenv("GAME_VARIANT", "expert")

#LOGGING
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

#MARKET RULES
SECTORS = ["Technology", "Healthcare", "Finance", "Energy", "Consumer Goods", "Utilities"]

EARNINGS_INTERVAL = 10          # every 10th day is an earnings call
EARNINGS_MOVE = 0.20            # fixed +/-20% move on earnings days
PRICE_FLOOR = 0.1
MAX_PREVIOUS_PRICE_DRIFT = 0.10  # previousDayPrice within +/-10% of price at creation
PREDICTION_HORIZON_DAYS = 7

# Econ event cadence
ECON_MIN_GAP_DAYS = 6
ECON_FORCED_GAP_DAYS = 10
ECON_EVENT_PROBABILITY = 0.5
ECON_EVENT_DURATIONS = (3, 4)


#GAME VARIANTS

@dataclass(frozen=True)
class GameVariant:
    """Constants that distinguish one game mode from another"""
    name: str
    stock_count: int
    volatility_range: Tuple[float, float]
    starting_budget: float
    include_sector_and_tidbit: bool
    econ_events_enabled: bool
    scale_fallback_volatility: bool
    wrap_simulation_response: bool
    detailed_ticks: bool
    prompt_examples: bool
    volatility_hint: str = ""
    analysis_length_hint: str = "though make it a bit short"
    port: int = 5000


GAME_VARIANTS: Dict[str, GameVariant] = {
    "expert": GameVariant(
        name="expert",
        stock_count=8,
        volatility_range=(1, 20),
        starting_budget=8000,
        include_sector_and_tidbit=True,
        econ_events_enabled=True,
        scale_fallback_volatility=True,
        wrap_simulation_response=True,
        detailed_ticks=True,
        prompt_examples=False,
        volatility_hint=", allow high-volatility stocks",
        analysis_length_hint="though make it a bit short but informative",
        port=5000,
    ),
    "casual": GameVariant(
        name="casual",
        stock_count=4,
        volatility_range=(1, 5),
        starting_budget=1000,
        include_sector_and_tidbit=False,
        econ_events_enabled=False,
        scale_fallback_volatility=False,
        wrap_simulation_response=False,
        detailed_ticks=False,
        prompt_examples=True,
        port=4000,
    ),
}


def get_game_variant(name: str) -> GameVariant:
    """Look up a game variant by name"""
    try:
        return GAME_VARIANTS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown game variant '{name}'. Available: {', '.join(GAME_VARIANTS)}"
        ) from None
