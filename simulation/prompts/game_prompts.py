import json
from typing import List, Dict, Any

from simulation.config import GameVariant, SECTORS, PREDICTION_HORIZON_DAYS


def _dump(value: Any) -> str:
    """Compact JSON for embedding request data in a prompt"""
    return json.dumps(value, separators=(",", ":"))


def _range_label(low: float, high: float) -> str:
    return f"{low:g} and {high:g}"


#STOCK CATALOG
def stock_catalog_prompt(variant: GameVariant) -> str:
    """Prompt for the initial set of fictional stocks"""
    low, high = variant.volatility_range
    sector_lines = ""
    if variant.include_sector_and_tidbit:
        sector_names = ", ".join(f'"{s}"' for s in SECTORS[:-1])
        sector_lines = f"""
  - sector (short text either {sector_names}, or "{SECTORS[-1]}")
  - tidbit (1-2 sentence description of the company and what it makes)"""

    return f"""
Generate {variant.stock_count} fictional stocks as JSON ONLY.
Each stock must include:
  - ticker (3-4 uppercase letters)
  - name (fictional company)
  - price (number between 1 and 500)
  - previousDayPrice (within ±10% of today's price)
  - priceChange (percentage change from previousDayPrice to price)
  - volatility (random % between {_range_label(low, high)}{variant.volatility_hint}){sector_lines}
Return a valid JSON array. Do not include markdown, code blocks, or any text outside the JSON array
"""


#MARKET SIMULATION
def simulation_prompt(
    variant: GameVariant,
    stocks: List[Dict[str, Any]],
    predictions: List[Dict[str, Any]],
    current_day: int,
    days: int
) -> str:
    """Prompt asking for one tick per stock per day in (current_day, current_day + days]"""
    first_day = current_day + 1
    last_day = current_day + days

    detail_fields = ""
    if variant.detailed_ticks:
        detail_fields = """
- previousDayPrice: number
- priceChange: percentage change
- volatility: daily volatility used"""

    example = ""
    if variant.prompt_examples:
        example = (
            f'\nExample: [{{"ticker":"XYZT","day":{first_day},"price":150,'
            f'"headline":"Market Update","description":"Price changed"}}]'
        )

    return f"""
Current day: {current_day}
Simulate {days} day(s) for these stocks:
{_dump(stocks)}

Predictions:
{_dump(predictions)}

For each stock, generate exactly one entry per day from day {first_day} to day {last_day}.
If a prediction exists for a stock on a given day:
- Bias price in that direction (e.g., increase for "rise", decrease for "fall")
- Not guaranteed; include randomness
- Ignore predictions for days <= {current_day}

On days that are multiples of 10 (e.g., 10, 20, 30):
- Generate an earnings call news item for each stock
- Headline: e.g., "Q1 Earnings Call" (use appropriate quarter, e.g., Q1 for day 10, Q2 for day 20, Q3 for day 30)
- Description: Indicate performance (e.g., "Reports strong revenue growth" or "Misses earnings expectations")
- Bias price significantly (e.g., ±20% for positive/negative earnings) but include randomness

For other days:
- Generate regular news with headline and description
- Price change: ±10% random change based on previous price

Return a JSON array with objects containing:
- ticker: matches stock ticker
- day: integer from {first_day} to {last_day}
- price: number, based on previous price and influenced by predictions or earnings{detail_fields}
- headline: short string (e.g., "Tech Boom" or "Q1 Earnings Call")
- description: brief string (e.g., "New product announced" or "Reports strong revenue"){example}

Output JSON ONLY, no markdown, code blocks, or extra text.
"""


#NEWS PREDICTION
def prediction_prompt(variant: GameVariant, stocks: List[Dict[str, Any]], current_day: int) -> str:
    """Prompt for a single rise/fall prediction within the next week"""
    example = ""
    if variant.prompt_examples:
        example = f'\nExample: {{"ticker":"XYZT","day":{current_day + 3},"direction":"rise"}}'

    return f"""
From these stocks:
{_dump(stocks)}

Generate 1 prediction as JSON:
- ticker: must match one stock's ticker
- day: integer between {current_day + 1} and {current_day + PREDICTION_HORIZON_DAYS}
- direction: "rise" or "fall"{example}

Return JSON ONLY, no markdown, code blocks, or extra text.
"""


#PERFORMANCE ANALYSIS
def analysis_prompt(
    variant: GameVariant,
    log: List[Any],
    portfolio: Dict[str, Any],
    budget: float
) -> str:
    """Free-text review of a finished trading run"""
    start = f"${variant.starting_budget:g}"
    return f"""
You are given the following trading run data:
Activity log (JSON array): {_dump(log)}
Portfolio: {_dump(portfolio)}
Final budget: {budget:.2f}

Provide a brief, casual analysis of the player's performance in plain text, {variant.analysis_length_hint}. Mention any good or bad trades, overall strategy, and suggestions for improvement. The player started with {start}, so having more than {start} at the end is a good sign.
"""
