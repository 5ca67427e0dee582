"""
Local fallbacks used when LLM output fails validation

Both generators are pure given the injected random source, so a seeded
random.Random reproduces a run exactly.
"""

import random
from typing import List, Optional, Sequence

from simulation.config import (
    EARNINGS_INTERVAL,
    EARNINGS_MOVE,
    PRICE_FLOOR,
    PREDICTION_HORIZON_DAYS,
)
from simulation.models.schemas import Stock, SimulationTick, Prediction
from simulation.tools.validation import percent_change


def is_earnings_day(day: int) -> bool:
    return day % EARNINGS_INTERVAL == 0


def earnings_quarter(day: int) -> str:
    """Quarter label for an earnings day: day 10 -> Q1, day 20 -> Q2"""
    return f"Q{day // EARNINGS_INTERVAL}"


def fallback_tick(
    stock: Stock,
    day: int,
    prev_price: float,
    rng: random.Random,
    scale_volatility: bool = True
) -> SimulationTick:
    """
    One random-walk step for a stock, starting from prev_price

    Earnings days move the price by a fixed 20% in a random direction;
    other days take a zero-mean step scaled by the day's volatility.
    """
    if scale_volatility:
        daily_volatility = stock.volatility * (0.5 + rng.random())
    else:
        daily_volatility = stock.volatility

    if is_earnings_day(day):
        performance = "positive" if rng.random() > 0.5 else "negative"
        change = EARNINGS_MOVE if performance == "positive" else -EARNINGS_MOVE
        headline = f"{earnings_quarter(day)} Earnings Call"
        if performance == "positive":
            description = f"{stock.name} reports strong revenue growth"
        else:
            description = f"{stock.name} misses earnings expectations"
    else:
        change = (rng.random() - 0.5) * (daily_volatility / 100)
        headline = f"Update for {stock.name}"
        description = f"Price changed on day {day}"

    price = max(PRICE_FLOOR, prev_price * (1 + change))
    return SimulationTick(
        ticker=stock.ticker,
        day=day,
        price=price,
        previous_day_price=prev_price,
        price_change=percent_change(price, prev_price),
        volatility=daily_volatility,
        headline=headline,
        description=description,
    )


def fallback_simulate(
    stocks: Sequence[Stock],
    current_day: int,
    days: int,
    rng: Optional[random.Random] = None,
    scale_volatility: bool = True
) -> List[SimulationTick]:
    """
    Random-walk simulation of days current_day+1 .. current_day+days

    Prices chain per stock starting from the stock's current price, so each
    tick's previous_day_price is the prior tick's price.

    Args:
        stocks: Stocks to simulate
        current_day: Last completed day
        days: Number of days to simulate
        rng: Random source (a fresh random.Random if omitted)
        scale_volatility: Multiply base volatility by U[0.5, 1.5) each day

    Returns:
        Ticks ordered by stock, then day
    """
    rng = rng or random.Random()
    ticks: List[SimulationTick] = []

    for stock in stocks:
        prev_price = stock.price
        for day in range(current_day + 1, current_day + days + 1):
            tick = fallback_tick(stock, day, prev_price, rng, scale_volatility)
            ticks.append(tick)
            prev_price = tick.price

    return ticks


def fallback_prediction(
    stocks: Sequence[Stock],
    current_day: int,
    rng: Optional[random.Random] = None
) -> Prediction:
    """Uniformly random stock, day in (current_day, current_day+7] and direction"""
    rng = rng or random.Random()
    stock = rng.choice(list(stocks))
    return Prediction(
        ticker=stock.ticker,
        day=current_day + rng.randint(1, PREDICTION_HORIZON_DAYS),
        direction="rise" if rng.random() > 0.5 else "fall",
    )
