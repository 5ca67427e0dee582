from .stock_agent import StockCatalogAgent
from .market_agent import MarketSimulationAgent
from .prediction_agent import PredictionAgent
from .analysis_agent import PerformanceAgent
from .game_workflow import GameWorkflow

__all__ = [
    'StockCatalogAgent',
    'MarketSimulationAgent',
    'PredictionAgent',
    'PerformanceAgent',
    'GameWorkflow'
]
