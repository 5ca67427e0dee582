"""
Schema Validation: untrusted LLM JSON -> typed market data

Every validator follows the same policy: elements that fail any check are
dropped individually, and the call only fails when nothing survives.
"""

import json
import logging
import re
from typing import Any, Callable, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from simulation.config import MAX_PREVIOUS_PRICE_DRIFT
from simulation.errors import SchemaValidationError
from simulation.models.schemas import Stock, TickCandidate, Prediction

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the body of a ```json ... ``` block, or the text unchanged"""
    match = FENCE_PATTERN.search(text)
    return (match.group(1) if match else text).strip()


def parse_json(value: Any) -> Any:
    """
    Decode LLM output, tolerating markdown code fences

    Args:
        value: Raw response text, or an already-decoded JSON value

    Returns:
        Decoded JSON value

    Raises:
        SchemaValidationError: If the text is not valid JSON
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(strip_code_fences(value))
    except json.JSONDecodeError as e:
        raise SchemaValidationError(f"Response is not valid JSON: {e.msg}") from None


def percent_change(price: float, previous_price: float) -> float:
    """Percent move from previous_price to price"""
    return (price - previous_price) / previous_price * 100


def _filter_elements(
    elements: Iterable[Any],
    model: Type[ModelT],
    check: Optional[Callable[[ModelT], Optional[str]]] = None
) -> Tuple[List[ModelT], int]:
    """Validate each element against model, dropping the ones that fail"""
    kept: List[ModelT] = []
    dropped = 0
    for index, element in enumerate(elements):
        if not isinstance(element, dict):
            logger.debug(f"Dropping element {index}: not an object")
            dropped += 1
            continue
        try:
            item = model.model_validate(element)
        except ValidationError as e:
            logger.debug(f"Dropping element {index}: {e.error_count()} schema error(s)")
            dropped += 1
            continue
        reason = check(item) if check else None
        if reason:
            logger.debug(f"Dropping element {index}: {reason}")
            dropped += 1
            continue
        kept.append(item)
    return kept, dropped


def _require_array(value: Any, what: str) -> List[Any]:
    data = parse_json(value)
    if not isinstance(data, list):
        raise SchemaValidationError(f"{what} response is not an array")
    return data


def _finish(kept: List[ModelT], dropped: int, what: str) -> List[ModelT]:
    if not kept:
        raise SchemaValidationError(f"No valid {what} returned", dropped=dropped)
    if dropped:
        logger.warning(f"Partial {what} data: kept {len(kept)}, dropped {dropped}")
    return kept


def validate_stocks(
    value: Any,
    volatility_range: Optional[Tuple[float, float]] = None,
    require_sector_and_tidbit: bool = False
) -> List[Stock]:
    """
    Validate a generated stock catalog

    Stocks are dropped when a field is missing or mistyped, the ticker
    repeats an earlier one, previousDayPrice is more than 10% away from
    price, or volatility falls outside volatility_range. priceChange is
    recomputed from the two prices on every kept stock.

    Args:
        value: LLM text or decoded JSON
        volatility_range: Inclusive (low, high) percent bounds, if enforced
        require_sector_and_tidbit: Whether sector and tidbit are mandatory

    Returns:
        Stocks in their original order

    Raises:
        SchemaValidationError: If the input is not an array or nothing survives
    """
    elements = _require_array(value, "Stocks")
    seen_tickers = set()

    def check(stock: Stock) -> Optional[str]:
        if require_sector_and_tidbit and (stock.sector is None or stock.tidbit is None):
            return "missing sector or tidbit"
        if volatility_range is not None:
            low, high = volatility_range
            if not low <= stock.volatility <= high:
                return f"volatility {stock.volatility} outside {low}-{high}"
        if abs(stock.previous_day_price - stock.price) > MAX_PREVIOUS_PRICE_DRIFT * stock.price:
            return "previousDayPrice not within 10% of price"
        if stock.ticker in seen_tickers:
            return f"duplicate ticker {stock.ticker}"
        seen_tickers.add(stock.ticker)
        return None

    kept, dropped = _filter_elements(elements, Stock, check)
    repaired = [
        stock.model_copy(update={"price_change": percent_change(stock.price, stock.previous_day_price)})
        for stock in kept
    ]
    return _finish(repaired, dropped, "stocks")


def validate_ticks(
    value: Any,
    day_low: int,
    day_high: int,
    known_tickers: Optional[Iterable[str]] = None
) -> List[TickCandidate]:
    """
    Validate simulated ticks against an inclusive day range

    Args:
        value: LLM text or decoded JSON
        day_low: First simulated day
        day_high: Last simulated day
        known_tickers: If given, ticks for other tickers are dropped

    Returns:
        Surviving ticks in their original order
    """
    elements = _require_array(value, "Simulation")
    tickers = set(known_tickers) if known_tickers is not None else None

    def check(tick: TickCandidate) -> Optional[str]:
        if not day_low <= tick.day <= day_high:
            return f"day {tick.day} outside {day_low}-{day_high}"
        if tickers is not None and tick.ticker not in tickers:
            return f"unknown ticker {tick.ticker}"
        return None

    kept, dropped = _filter_elements(elements, TickCandidate, check)
    return _finish(kept, dropped, "simulation")


def validate_prediction(
    value: Any,
    day_low: int,
    day_high: int,
    known_tickers: Iterable[str]
) -> Prediction:
    """
    Validate a single news prediction

    Raises:
        SchemaValidationError: If the value is not an object, is mistyped,
            names an unknown ticker, or falls outside the day range
    """
    data = parse_json(value)
    if not isinstance(data, dict):
        raise SchemaValidationError("Prediction response is not an object")
    tickers = set(known_tickers)

    def check(prediction: Prediction) -> Optional[str]:
        if prediction.ticker not in tickers:
            return "Prediction ticker does not match any stock"
        if not day_low <= prediction.day <= day_high:
            return "Prediction day out of range"
        return None

    kept, _ = _filter_elements([data], Prediction, check)
    if not kept:
        raise SchemaValidationError("Invalid prediction format", dropped=1)
    return kept[0]
