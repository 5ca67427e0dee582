"""
HTTP tests for the game service, driven through FastAPI's TestClient

The LLM is replaced by FakeLLMClient so every route can be exercised
without an Ollama server.
"""

import json
import random

import pytest
from fastapi.testclient import TestClient

from app import create_app
from simulation.game_workflow import GameWorkflow
from conftest import FakeLLMClient, stock_json, tick_json


def make_client(variant, responses=None, error=None, seed=0):
    fake = FakeLLMClient(responses, error=error)
    workflow = GameWorkflow(variant, client=fake, rng=random.Random(seed))
    client = TestClient(create_app(workflow=workflow, sweep_seconds=0), raise_server_exceptions=False)
    return client, fake


@pytest.fixture
def wire_stocks():
    return [
        stock_json("ABC", price=100.0, previous=100.0, sector="Technology", tidbit="Makes chips."),
        stock_json("XYZT", price=42.5, previous=42.5, volatility=12.0, sector="Energy", tidbit="Drills wells."),
    ]


#SERVICE INFO

def test_service_info(expert):
    client, _ = make_client(expert)
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"variant": "expert", "stockCount": 8, "startingBudget": 8000, "econEvents": True}


#STOCKS

def test_get_stocks(expert):
    reply = json.dumps([
        stock_json("ABC", sector="Technology", tidbit="Chips."),
        stock_json("DEF", sector="Finance", tidbit="Loans."),
    ])
    client, fake = make_client(expert, [reply])

    response = client.get("/stocks")
    assert response.status_code == 200
    body = response.json()
    assert [s["ticker"] for s in body] == ["ABC", "DEF"]
    assert set(body[0]) == {"ticker", "name", "price", "previousDayPrice", "priceChange", "volatility", "sector", "tidbit"}

    # Catalog is cached for the TTL
    assert client.get("/stocks").json() == body
    assert len(fake.calls) == 1


def test_get_stocks_failure_message(expert):
    client, _ = make_client(expert, ["I can't do that"])
    response = client.get("/stocks")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate stocks. Please try again later."}


def test_upstream_details_are_not_leaked(expert):
    client, _ = make_client(expert, error=RuntimeError("auth failed for key sk-secret-123"))
    response = client.get("/stocks")

    assert response.status_code == 500
    assert "sk-secret" not in response.text


#SIMULATE DAYS

def test_simulate_earnings_day_with_garbage_llm_reply(expert, wire_stocks):
    client, _ = make_client(expert, ["Sure! The market went up."])
    response = client.post("/simulateDays", json={"stocks": wire_stocks, "days": 1, "currentDay": 9})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"simulated", "newEconEvents"}
    assert len(body["simulated"]) == 2
    for tick, stock in zip(body["simulated"], wire_stocks):
        assert tick["ticker"] == stock["ticker"]
        assert tick["day"] == 10
        assert tick["headline"] == "Q1 Earnings Call"
        assert tick["previousDayPrice"] == stock["price"]
        assert abs(tick["priceChange"]) == pytest.approx(20.0)


def test_simulate_with_llm_ticks(expert, wire_stocks, fence):
    reply = fence([tick_json("ABC", 1, 101.0), tick_json("XYZT", 1, 41.0)])
    client, _ = make_client(expert, [reply])
    response = client.post("/simulateDays", json={"stocks": wire_stocks, "days": 1, "currentDay": 0})

    ticks = response.json()["simulated"]
    assert [(t["ticker"], t["price"]) for t in ticks] == [("ABC", 101.0), ("XYZT", 41.0)]
    assert ticks[0]["priceChange"] == pytest.approx(1.0)


def test_casual_simulation_returns_bare_array(casual, wire_stocks):
    client, _ = make_client(casual, ["nope"])
    response = client.post("/simulateDays", json={"stocks": wire_stocks, "days": 2, "currentDay": 0})

    assert response.status_code == 200
    body = response.json()
    assert isinstance(body, list)
    assert len(body) == 4
    # Casual fallback uses the stock's own volatility
    assert {t["volatility"] for t in body} == {5.0, 12.0}


def test_identical_simulation_requests_reuse_result(expert, wire_stocks):
    client, fake = make_client(expert, ["garbage"])
    payload = {"stocks": wire_stocks, "days": 3, "currentDay": 2, "predictions": []}

    first = client.post("/simulateDays", json=payload).json()
    second = client.post("/simulateDays", json=payload).json()

    assert first == second
    assert len(fake.calls) == 1


def test_simulation_upstream_failure(expert, wire_stocks):
    client, _ = make_client(expert, error=ConnectionError("refused"))
    response = client.post("/simulateDays", json={"stocks": wire_stocks, "days": 1, "currentDay": 0})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to simulate days"}


@pytest.mark.parametrize("payload", [
    {"days": 1, "currentDay": 0},
    {"stocks": [], "days": 1, "currentDay": 0},
    {"stocks": "STOCKS", "days": 1, "currentDay": 0},
    {"stocks": "VALID", "days": 0, "currentDay": 0},
    {"stocks": "VALID", "days": 1, "currentDay": -1},
    {"stocks": "VALID", "days": "3", "currentDay": 0},
    {"stocks": "VALID", "days": 1},
    {"stocks": "VALID", "days": 1, "currentDay": 0, "predictions": [{"ticker": "ABC", "day": 2, "direction": "sideways"}]},
])
def test_simulate_invalid_input(expert, wire_stocks, payload):
    payload = dict(payload)
    if payload.get("stocks") == "VALID":
        payload["stocks"] = wire_stocks
    client, fake = make_client(expert)
    response = client.post("/simulateDays", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid input"}
    assert fake.calls == []


def test_simulate_invalid_stock_fields(expert, wire_stocks):
    bad = dict(wire_stocks[0], ticker="abc")
    client, _ = make_client(expert)
    response = client.post("/simulateDays", json={"stocks": [bad], "days": 1, "currentDay": 0})
    assert response.status_code == 400


def test_simulate_body_not_json(expert):
    client, _ = make_client(expert)
    response = client.post("/simulateDays", content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid input"}


#PREDICTIONS

def test_predict_news(expert, wire_stocks):
    client, _ = make_client(expert, ['{"ticker": "ABC", "day": 4, "direction": "rise"}'])
    response = client.post("/predictNews", json={"stocks": wire_stocks, "currentDay": 1})

    assert response.status_code == 200
    assert response.json() == {"ticker": "ABC", "day": 4, "direction": "rise"}


def test_predict_news_failure(expert, wire_stocks):
    client, _ = make_client(expert, error=TimeoutError("slow"))
    response = client.post("/predictNews", json={"stocks": wire_stocks, "currentDay": 1})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate prediction"}


def test_predict_econ_event_is_stable(expert):
    client, fake = make_client(expert)
    first = client.post("/predictEconEvent", json={"currentDay": 0})
    second = client.post("/predictEconEvent", json={"currentDay": 0, "activeEconEffects": []})

    assert first.status_code == 200
    assert first.json() == second.json()
    event = first.json()
    assert set(event) == {"sector", "headline", "daysLeft", "direction", "day"}
    assert 6 <= event["day"] <= 10
    assert fake.calls == []


def test_predicted_econ_event_starts_during_simulation(expert, wire_stocks):
    client, _ = make_client(expert, ["[]"])
    predicted = client.post("/predictEconEvent", json={"currentDay": 0}).json()

    response = client.post(
        "/simulateDays",
        json={"stocks": wire_stocks, "days": 1, "currentDay": predicted["day"] - 1},
    )
    events = response.json()["newEconEvents"]
    assert events == [{
        "sector": predicted["sector"],
        "headline": predicted["headline"],
        "daysLeft": predicted["daysLeft"],
        "startDay": predicted["day"],
        "direction": predicted["direction"],
    }]


def test_predict_econ_event_invalid_input(expert):
    client, _ = make_client(expert)
    assert client.post("/predictEconEvent", json={}).status_code == 400


def test_casual_has_no_econ_events(casual):
    client, _ = make_client(casual)
    assert client.post("/predictEconEvent", json={"currentDay": 0}).status_code == 404


#PERFORMANCE ANALYSIS

def test_analyze_performance_accepts_string_or_array_log(expert):
    client, fake = make_client(expert, ["Solid run. Diversify next time."])
    log = [{"day": 1, "action": "buy", "ticker": "ABC", "shares": 2}]

    as_array = client.post("/analyzePerformance", json={"log": log, "portfolio": {"ABC": 2}, "budget": 8200})
    as_string = client.post(
        "/analyzePerformance", json={"log": json.dumps(log), "portfolio": {"ABC": 2}, "budget": 8200}
    )

    assert as_array.status_code == 200
    assert as_array.json() == {"analysis": "Solid run. Diversify next time."}
    assert as_string.json() == as_array.json()
    # Both forms decode to the same request, so the second is served from cache
    assert len(fake.calls) == 1


@pytest.mark.parametrize("payload", [
    {"log": "[{broken", "portfolio": {}, "budget": 10},
    {"log": [], "portfolio": {}},
    {"log": [], "portfolio": [], "budget": 10},
])
def test_analyze_performance_invalid_input(expert, payload):
    client, fake = make_client(expert, ["unused"])
    response = client.post("/analyzePerformance", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid input"}
    assert fake.calls == []


def test_analyze_performance_failure(casual):
    client, _ = make_client(casual, error=OSError("down"))
    response = client.post("/analyzePerformance", json={"log": [], "portfolio": {}, "budget": 900})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to analyze performance"}
