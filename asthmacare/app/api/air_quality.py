"""Air quality API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from asthmacare.app.schemas.air_quality import AirQualityReading, CitySuggestion
from asthmacare.app.services.air_quality import suggest_cities
from asthmacare.app.services.app_state import AppState, get_app_state

router = APIRouter(prefix="/air-quality", tags=["air-quality"])


@router.get("", response_model=AirQualityReading)
async def get_air_quality(
    city: str = Query(..., description="City name"),
    state: AppState = Depends(get_app_state),
) -> AirQualityReading:
    """Simulated air quality for a city. Unknown cities use the default baseline."""
    try:
        return await state.air_quality.get_reading(city)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/coordinates", response_model=AirQualityReading)
async def get_air_quality_by_coordinates(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    state: AppState = Depends(get_app_state),
) -> AirQualityReading:
    """Simulated air quality at a position, labelled with the nearest known city."""
    return await state.air_quality.get_reading_by_coordinates(lat, lon)


@router.get("/cities", response_model=list[CitySuggestion])
async def get_city_suggestions(q: str = Query(default="")) -> list[CitySuggestion]:
    """City suggestions for a partial name (at least two characters)."""
    return suggest_cities(q)
