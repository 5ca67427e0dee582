from simulation.models.schemas import (
    # Market data
    Stock,
    TickCandidate,
    SimulationTick,
    Prediction,

    # Economic events
    EconEvent,
    PredictedEconEvent,

    # Requests
    SimulateDaysRequest,
    PredictNewsRequest,
    PredictEconEventRequest,
    AnalyzePerformanceRequest,

    # Responses
    SimulationResult,
    AnalysisResult,

    # Pipeline
    StageResult
)

__all__ = [
    'Stock',
    'TickCandidate',
    'SimulationTick',
    'Prediction',
    'EconEvent',
    'PredictedEconEvent',
    'SimulateDaysRequest',
    'PredictNewsRequest',
    'PredictEconEventRequest',
    'AnalyzePerformanceRequest',
    'SimulationResult',
    'AnalysisResult',
    'StageResult'
]
