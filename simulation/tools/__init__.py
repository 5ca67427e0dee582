from simulation.tools.validation import (
    strip_code_fences,
    parse_json,
    percent_change,
    validate_stocks,
    validate_ticks,
    validate_prediction
)
from simulation.tools.fallback import fallback_simulate, fallback_tick, fallback_prediction, earnings_quarter
from simulation.tools.econ_scheduler import EconEventScheduler

__all__ = [
    'strip_code_fences',
    'parse_json',
    'percent_change',
    'validate_stocks',
    'validate_ticks',
    'validate_prediction',
    'fallback_simulate',
    'fallback_tick',
    'fallback_prediction',
    'earnings_quarter',
    'EconEventScheduler'
]
