"""Air quality schemas."""

from datetime import datetime
from pydantic import BaseModel, Field


class PollutantReading(BaseModel):
    """Concentration of one pollutant."""

    value: float
    unit: str
    level: str = Field(..., description="Good, Moderate, Poor or Very Poor")


class ForecastDay(BaseModel):
    """Forecast AQI for one future day."""

    date: str = Field(..., description="ISO date")
    aqi: int
    category: str


class Coordinates(BaseModel):
    lat: float
    lon: float


class AirQualityReading(BaseModel):
    """Synthesized air quality reading. Recomputed on every query."""

    city: str
    state: str = ""
    aqi: int = Field(..., ge=0)
    category: str
    color: str
    description: str
    pollutants: dict[str, PollutantReading]
    timestamp: datetime
    coordinates: Coordinates | None = None
    forecast: list[ForecastDay]
    health_advice: str
    recommendations: list[str]
    asthma_advice: list[str]


class CitySuggestion(BaseModel):
    """A city offered while typing a search."""

    key: str
    name: str
    state: str
