"""
Shared fixtures: a scripted stand-in for ollama.AsyncClient, deterministic
random sources and sample stocks.
"""

import asyncio
import json
import random

import pytest

from simulation.config import get_game_variant
from simulation.models.schemas import Stock


class FakeLLMClient:
    """
    Async chat client returning scripted replies

    Replies are consumed in order; the last one repeats. If `error` is set
    every call raises it.
    """

    def __init__(self, responses=None, error=None, delay=0.0):
        self.responses = list(responses or [""])
        self.error = error
        self.delay = delay
        self.calls = []

    async def chat(self, model, messages, options=None):
        self.calls.append({"model": model, "prompt": messages[-1]["content"], "options": options})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return {"message": {"content": content}}


class ConstantRandom(random.Random):
    """random() always returns the same value; other draws derive from it"""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def make_stock(ticker="ABC", price=100.0, volatility=5.0, **overrides):
    data = {
        "ticker": ticker,
        "name": f"{ticker} Holdings",
        "price": price,
        "previous_day_price": price,
        "price_change": 0.0,
        "volatility": volatility,
    }
    data.update(overrides)
    return Stock(**data)


def stock_json(ticker="ABC", price=100.0, previous=98.0, volatility=5.0, **extra):
    data = {
        "ticker": ticker,
        "name": f"{ticker} Industries",
        "price": price,
        "previousDayPrice": previous,
        "priceChange": 0.0,
        "volatility": volatility,
    }
    data.update(extra)
    return data


def tick_json(ticker, day, price, headline="Market Update", description="Price changed"):
    return {"ticker": ticker, "day": day, "price": price, "headline": headline, "description": description}


@pytest.fixture
def expert():
    return get_game_variant("expert")


@pytest.fixture
def casual():
    return get_game_variant("casual")


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def stocks():
    return [
        make_stock("ABC", price=100.0, volatility=5.0, sector="Technology", tidbit="Makes chips."),
        make_stock("XYZT", price=42.5, volatility=12.0, sector="Energy", tidbit="Drills wells."),
    ]


@pytest.fixture
def fence():
    """Wrap a JSON value in a markdown code fence, as chat models tend to"""
    def _fence(value):
        return f"```json\n{json.dumps(value)}\n```"
    return _fence
