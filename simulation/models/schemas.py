import json
from typing import Optional, List, Dict, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from simulation.config import PRICE_FLOOR
from simulation.errors import InputError


Sector = Literal["Technology", "Healthcare", "Finance", "Energy", "Consumer Goods", "Utilities"]
NewsDirection = Literal["rise", "fall"]
EconDirection = Literal["positive", "negative"]


class WireModel(BaseModel):
    """
    Base for everything that crosses the HTTP or LLM boundary

    Fields are snake_case in Python and camelCase on the wire. Strict mode
    keeps strings and numbers apart, and non-finite floats are rejected.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        allow_inf_nan=False,
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


#MARKET DATA

class Stock(WireModel):
    """One fictional listed company"""
    ticker: str = Field(..., pattern=r"^[A-Z]{3,4}$", description="3-4 uppercase letters")
    name: str = Field(..., min_length=1, description="Fictional company name")
    price: float = Field(..., gt=0, description="Today's price")
    previous_day_price: float = Field(..., gt=0, description="Yesterday's price")
    price_change: float = Field(..., description="Percent change from previous_day_price to price")
    volatility: float = Field(..., ge=0, description="Base daily volatility in percent")
    sector: Optional[Sector] = Field(None, description="Industry sector")
    tidbit: Optional[str] = Field(None, description="1-2 sentence company description")


class TickCandidate(WireModel):
    """Simulation tick as the LLM is allowed to return it"""
    ticker: str
    day: int
    price: float = Field(..., ge=0)
    headline: str
    description: str
    previous_day_price: Optional[float] = None
    price_change: Optional[float] = None
    volatility: Optional[float] = None


class SimulationTick(WireModel):
    """One stock's state on one simulated day"""
    ticker: str
    day: int
    price: float = Field(..., ge=PRICE_FLOOR)
    previous_day_price: float
    price_change: float
    volatility: float
    headline: str
    description: str


class Prediction(WireModel):
    """Near-term news bias for a single stock"""
    ticker: str
    day: int
    direction: NewsDirection


#ECONOMIC EVENTS

class EconEvent(WireModel):
    """Sector-wide multi-day price-bias effect"""
    sector: Sector
    headline: str
    days_left: int = Field(..., ge=0)
    start_day: Optional[int] = Field(None, description="Day the effect became active")
    direction: EconDirection


class PredictedEconEvent(EconEvent):
    """Econ event announced ahead of time, triggering on `day`"""
    day: int

    def activate(self) -> EconEvent:
        """Convert into an active event starting on its trigger day"""
        return EconEvent(
            sector=self.sector,
            headline=self.headline,
            days_left=self.days_left,
            start_day=self.day,
            direction=self.direction,
        )


#REQUESTS

class SimulateDaysRequest(WireModel):
    """POST /simulateDays body"""
    stocks: List[Stock] = Field(..., min_length=1)
    days: int = Field(..., ge=1)
    predictions: List[Prediction] = Field(default_factory=list)
    current_day: int = Field(..., ge=0)
    active_econ_effects: List[EconEvent] = Field(default_factory=list)


class PredictNewsRequest(WireModel):
    """POST /predictNews body"""
    stocks: List[Stock] = Field(..., min_length=1)
    current_day: int = Field(..., ge=0)


class PredictEconEventRequest(WireModel):
    """POST /predictEconEvent body"""
    current_day: int = Field(..., ge=0)
    active_econ_effects: List[EconEvent] = Field(default_factory=list)


class AnalyzePerformanceRequest(WireModel):
    """POST /analyzePerformance body; `log` may arrive JSON-encoded"""
    log: List[Any]
    portfolio: Dict[str, Any]
    budget: float

    @field_validator("log", mode="before")
    @classmethod
    def parse_log_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise InputError(f"log is not valid JSON: {e.msg}") from None
        return value


#RESPONSES

class SimulationResult(WireModel):
    """Authoritative multi-day tick result"""
    simulated: List[SimulationTick]
    new_econ_events: List[EconEvent] = Field(default_factory=list)


class AnalysisResult(WireModel):
    """POST /analyzePerformance response"""
    analysis: str


#PIPELINE

class StageResult(BaseModel):
    """Tagged outcome of the prompt -> parse -> validate pipeline"""
    status: Literal["ok", "validation_failed", "upstream_failed", "timed_out"] = Field(
        ..., description="Which stage ended the pipeline"
    )
    data: Any = Field(None, description="Validated data when status is ok")
    error: Optional[str] = Field(None, description="Error message if failed")
    dropped: int = Field(default=0, description="Elements discarded by schema filtering")

    @property
    def ok(self) -> bool:
        return self.status == "ok"
