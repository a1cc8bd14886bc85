"""
Air quality simulator.

Synthesizes an air quality reading for a city from a per-city baseline AQI
plus random variation, derives pollutant concentrations from the AQI, and
classifies the result into health bands with advice for people with
asthma. No sensor or external API is queried.
"""

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from asthmacare.app.core.config import settings
from asthmacare.app.schemas.air_quality import (
    AirQualityReading,
    CitySuggestion,
    Coordinates,
    ForecastDay,
    PollutantReading,
)

logger = logging.getLogger(__name__)


DEFAULT_BASELINE_AQI = 125
AQI_VARIATION = 20
FORECAST_VARIATION = 25
NEAREST_CITY_RADIUS_KM = 50.0
MAX_SUGGESTIONS = 8


@dataclass(frozen=True)
class City:
    name: str
    state: str
    lat: float
    lon: float
    baseline_aqi: int = DEFAULT_BASELINE_AQI


_DELHI = City("Delhi", "Delhi", 28.7041, 77.1025, 180)
_BANGALORE = City("Bangalore", "Karnataka", 12.9716, 77.5946, 110)
_GURUGRAM = City("Gurugram", "Haryana", 28.4595, 77.0266, 175)
_PRAYAGRAJ = City("Prayagraj", "Uttar Pradesh", 25.4358, 81.8463)
_MYSURU = City("Mysuru", "Karnataka", 12.2958, 76.6394)
_KOCHI = City("Kochi", "Kerala", 9.9312, 76.2673)

# Lower-case search key -> city. Several keys may share one city.
CITIES: dict[str, City] = {
    "delhi": _DELHI,
    "new delhi": City("New Delhi", "Delhi", 28.7041, 77.1025, 180),
    "mumbai": City("Mumbai", "Maharashtra", 19.0760, 72.8777, 120),
    "bangalore": _BANGALORE,
    "bengaluru": City("Bengaluru", "Karnataka", 12.9716, 77.5946, 110),
    "hyderabad": City("Hyderabad", "Telangana", 17.3850, 78.4867, 130),
    "ahmedabad": City("Ahmedabad", "Gujarat", 23.0225, 72.5714, 150),
    "chennai": City("Chennai", "Tamil Nadu", 13.0827, 80.2707, 90),
    "kolkata": City("Kolkata", "West Bengal", 22.5726, 88.3639, 140),
    "surat": City("Surat", "Gujarat", 21.1702, 72.8311, 115),
    "pune": City("Pune", "Maharashtra", 18.5204, 73.8567, 125),
    "jaipur": City("Jaipur", "Rajasthan", 26.9124, 75.7873, 170),
    "lucknow": City("Lucknow", "Uttar Pradesh", 26.8467, 80.9462, 185),
    "kanpur": City("Kanpur", "Uttar Pradesh", 26.4499, 80.3319, 200),
    "nagpur": City("Nagpur", "Maharashtra", 21.1458, 79.0882, 135),
    "indore": City("Indore", "Madhya Pradesh", 22.7196, 75.8577, 140),
    "thane": City("Thane", "Maharashtra", 19.2183, 72.9781),
    "bhopal": City("Bhopal", "Madhya Pradesh", 23.2599, 77.4126),
    "visakhapatnam": City("Visakhapatnam", "Andhra Pradesh", 17.6868, 83.2185),
    "patna": City("Patna", "Bihar", 25.5941, 85.1376, 220),
    "vadodara": City("Vadodara", "Gujarat", 22.3072, 73.1812, 125),
    "ludhiana": City("Ludhiana", "Punjab", 30.9010, 75.8573),
    "agra": City("Agra", "Uttar Pradesh", 27.1767, 78.0081),
    "nashik": City("Nashik", "Maharashtra", 19.9975, 73.7898),
    "faridabad": City("Faridabad", "Haryana", 28.4089, 77.3178, 168),
    "meerut": City("Meerut", "Uttar Pradesh", 28.9845, 77.7064),
    "rajkot": City("Rajkot", "Gujarat", 22.3039, 70.8022, 130),
    "varanasi": City("Varanasi", "Uttar Pradesh", 25.3176, 82.9739),
    "srinagar": City("Srinagar", "Jammu and Kashmir", 34.0837, 74.7973),
    "amritsar": City("Amritsar", "Punjab", 31.6340, 74.8723),
    "navi mumbai": City("Navi Mumbai", "Maharashtra", 19.0330, 73.0297),
    "allahabad": _PRAYAGRAJ,
    "prayagraj": _PRAYAGRAJ,
    "ranchi": City("Ranchi", "Jharkhand", 23.3441, 85.3096),
    "coimbatore": City("Coimbatore", "Tamil Nadu", 11.0168, 76.9558),
    "guwahati": City("Guwahati", "Assam", 26.1445, 91.7362),
    "chandigarh": City("Chandigarh", "Chandigarh", 30.7333, 76.7794),
    "mysore": _MYSURU,
    "mysuru": _MYSURU,
    "gurgaon": _GURUGRAM,
    "gurugram": _GURUGRAM,
    "noida": City("Noida", "Uttar Pradesh", 28.5355, 77.3910, 170),
    "bhubaneswar": City("Bhubaneswar", "Odisha", 20.2961, 85.8245),
    "thiruvananthapuram": City("Thiruvananthapuram", "Kerala", 8.5241, 76.9366),
    "kochi": _KOCHI,
    "cochin": _KOCHI,
    "dehradun": City("Dehradun", "Uttarakhand", 30.3165, 78.0322),
    "jammu": City("Jammu", "Jammu and Kashmir", 32.7266, 74.8570),
    "udaipur": City("Udaipur", "Rajasthan", 24.5854, 73.7125),
}


@dataclass(frozen=True)
class AqiBand:
    """
    One row of an AQI band table.

    ``upper`` is inclusive; None means unbounded. Bands of a table are
    ascending, contiguous and start at 0, so every non-negative integer
    falls in exactly one band.
    """

    key: str
    lower: int
    upper: int | None
    label: str
    color: str
    description: str
    health_advice: str
    recommendations: tuple[str, ...]
    asthma_advice: tuple[str, ...]

    def contains(self, aqi: int) -> bool:
        return aqi >= self.lower and (self.upper is None or aqi <= self.upper)


INDIA_BANDS: tuple[AqiBand, ...] = (
    AqiBand(
        key="good", lower=0, upper=50, label="Good", color="green",
        description="Air quality is satisfactory, and air pollution poses little or no risk.",
        health_advice="Enjoy your usual outdoor activities.",
        recommendations=(
            "Perfect day for outdoor activities and exercise",
            "Great time for morning walks, jogging, or cycling",
            "Windows can be kept open for natural ventilation",
            "All outdoor sports and activities are safe",
        ),
        asthma_advice=(
            "Safe for people with asthma - enjoy outdoor activities",
            "Good time for outdoor exercise and fresh air",
            "Regular medication routine is sufficient",
            "No additional precautions needed",
        ),
    ),
    AqiBand(
        key="satisfactory", lower=51, upper=100, label="Satisfactory", color="lime",
        description=(
            "Air quality is acceptable. However, there may be a risk for some people, "
            "particularly those who are unusually sensitive to air pollution."
        ),
        health_advice="Unusually sensitive people should consider limiting prolonged outdoor exertion.",
        recommendations=(
            "Outdoor activities are generally safe for most people",
            "Sensitive individuals should monitor their health",
            "Good day for moderate outdoor exercise",
            "Air quality is acceptable for most activities",
        ),
        asthma_advice=(
            "Generally safe for most people with asthma",
            "Monitor symptoms during outdoor activities",
            "Keep rescue inhaler handy during exercise",
            "Watch for any unusual symptoms",
        ),
    ),
    AqiBand(
        key="moderate", lower=101, upper=200, label="Moderate", color="yellow",
        description=(
            "Members of sensitive groups may experience health effects. "
            "The general public is less likely to be affected."
        ),
        health_advice="People with respiratory disease should limit outdoor exertion.",
        recommendations=(
            "Limit prolonged outdoor activities, especially vigorous exercise",
            "Sensitive groups should reduce outdoor exertion",
            "Consider indoor exercises if you have respiratory conditions",
            "Keep windows closed during peak pollution hours",
        ),
        asthma_advice=(
            "Reduce prolonged outdoor activities",
            "Keep rescue inhaler easily accessible",
            "Consider indoor alternatives for exercise",
            "Monitor symptoms closely",
        ),
    ),
    AqiBand(
        key="poor", lower=201, upper=300, label="Poor", color="orange",
        description=(
            "Some members of the general public may experience health effects; members of "
            "sensitive groups may experience more serious health effects."
        ),
        health_advice=(
            "People with heart or lung disease, older adults, and children should avoid "
            "prolonged or heavy outdoor exertion."
        ),
        recommendations=(
            "Avoid prolonged outdoor activities",
            "Wear a mask (N95 or equivalent) when going outside",
            "Keep windows closed and use air purifiers if available",
            "Reduce outdoor exercise and activities",
        ),
        asthma_advice=(
            "Avoid outdoor activities - stay indoors",
            "Have rescue medication readily available",
            "Use air purifier if possible",
            "Contact doctor if symptoms worsen",
        ),
    ),
    AqiBand(
        key="very_poor", lower=301, upper=400, label="Very Poor", color="red",
        description="Health alert: The risk of health effects is increased for everyone.",
        health_advice=(
            "People with heart or lung disease, older adults, and children should avoid all "
            "outdoor exertion."
        ),
        recommendations=(
            "Avoid all outdoor activities",
            "Stay indoors with air purifiers running",
            "Wear N95 masks if you must go outside",
            "Seal gaps around windows and doors",
        ),
        asthma_advice=(
            "Emergency level for people with asthma",
            "Stay indoors with air purification",
            "Have emergency medication ready",
            "Seek immediate medical help for any breathing difficulty",
        ),
    ),
    AqiBand(
        key="severe", lower=401, upper=None, label="Severe", color="maroon",
        description="Health warning of emergency conditions: everyone is more likely to be affected.",
        health_advice="Everyone should avoid all outdoor exertion.",
        recommendations=(
            "Emergency conditions - stay indoors at all times",
            "Use N95 or P100 masks even for brief outdoor exposure",
            "Run air purifiers continuously",
            "Seek immediate medical attention for any breathing difficulties",
        ),
        asthma_advice=(
            "Extremely hazardous for people with asthma",
            "Remain indoors with sealed windows",
            "Keep emergency medications accessible",
            "Contact healthcare provider immediately if symptoms develop",
        ),
    ),
)

US_EPA_BANDS: tuple[AqiBand, ...] = (
    AqiBand(
        key="good", lower=0, upper=50, label="Good", color="#00E400",
        description="Air quality is satisfactory for most people",
        health_advice="Enjoy your usual outdoor activities.",
        recommendations=("Air quality is satisfactory for most people", "All outdoor activities are safe"),
        asthma_advice=("Good day for outdoor activities",),
    ),
    AqiBand(
        key="moderate", lower=51, upper=100, label="Moderate", color="#FFFF00",
        description="Air quality is acceptable for most people",
        health_advice="Unusually sensitive people should consider limiting prolonged outdoor exertion.",
        recommendations=("Air quality is acceptable for most people", "Outdoor activities are generally safe"),
        asthma_advice=("Sensitive individuals should limit prolonged outdoor exertion",),
    ),
    AqiBand(
        key="unhealthy_sensitive", lower=101, upper=150, label="Unhealthy for Sensitive Groups",
        color="#FF7E00",
        description="Members of sensitive groups may experience health effects",
        health_advice="People with respiratory disease should limit outdoor exertion.",
        recommendations=(
            "Members of sensitive groups may experience health effects",
            "Reduce prolonged or heavy outdoor exertion",
        ),
        asthma_advice=("People with asthma should limit outdoor activities",),
    ),
    AqiBand(
        key="unhealthy", lower=151, upper=200, label="Unhealthy", color="#FF0000",
        description="Everyone may begin to experience health effects",
        health_advice="Everyone should reduce prolonged outdoor exertion.",
        recommendations=("Everyone may begin to experience health effects", "Avoid prolonged outdoor exertion"),
        asthma_advice=("People with asthma should avoid outdoor activities",),
    ),
    AqiBand(
        key="very_unhealthy", lower=201, upper=300, label="Very Unhealthy", color="#8F3F97",
        description="Health warnings of emergency conditions",
        health_advice="Everyone should avoid outdoor exertion.",
        recommendations=("Health warnings of emergency conditions", "Avoid all outdoor activities"),
        asthma_advice=("Stay indoors and use air purifiers",),
    ),
    AqiBand(
        key="hazardous", lower=301, upper=None, label="Hazardous", color="#7E0023",
        description="Health alert: everyone may experience serious health effects",
        health_advice="Everyone should avoid all outdoor exertion.",
        recommendations=(
            "Health alert: everyone may experience serious health effects",
            "Avoid all outdoor activities - health emergency",
        ),
        asthma_advice=("Emergency conditions - stay indoors with air purification",),
    ),
)

AQI_SCALES: dict[str, tuple[AqiBand, ...]] = {
    "india": INDIA_BANDS,
    "us_epa": US_EPA_BANDS,
}

# Pollutant -> (unit, good/moderate/poor upper limits)
POLLUTANT_LIMITS: dict[str, tuple[str, tuple[float, float, float]]] = {
    "PM2.5": ("μg/m³", (30, 60, 90)),
    "PM10": ("μg/m³", (50, 100, 150)),
    "NO₂": ("μg/m³", (40, 80, 120)),
    "SO₂": ("μg/m³", (50, 150, 250)),
    "CO": ("mg/m³", (1.0, 2.0, 10.0)),
    "O₃": ("μg/m³", (50, 100, 150)),
}


def classify_aqi(aqi: int, scale: str = "india") -> AqiBand:
    """
    Map an AQI to its band.

    Args:
        aqi: Non-negative AQI value
        scale: Band table name

    Returns:
        The single band containing the value

    Raises:
        ValueError: If aqi is negative or the scale is unknown
    """
    if aqi < 0:
        raise ValueError(f"AQI must be non-negative, got {aqi}")
    try:
        bands = AQI_SCALES[scale]
    except KeyError:
        raise ValueError(f"Unknown AQI scale: {scale}") from None
    for band in bands:
        if band.contains(aqi):
            return band
    # Unreachable while the last band is unbounded
    return bands[-1]


def classify_pollutant(name: str, value: float) -> str:
    """Classify a pollutant concentration as Good, Moderate, Poor or Very Poor."""
    _, (good, moderate, poor) = POLLUTANT_LIMITS.get(name, ("", (50, 100, 150)))
    if value <= good:
        return "Good"
    if value <= moderate:
        return "Moderate"
    if value <= poor:
        return "Poor"
    return "Very Poor"


def lookup_city(name: str) -> City | None:
    """Find a known city by case-insensitive name or alias."""
    return CITIES.get(name.strip().lower())


def suggest_cities(query: str, limit: int = MAX_SUGGESTIONS) -> list[CitySuggestion]:
    """
    Suggest cities while the user types.

    Queries shorter than two characters return nothing. A city matches when
    the query occurs in its search key, display name or state.
    """
    q = query.strip().lower()
    if len(q) < 2:
        return []
    suggestions = []
    for key, city in CITIES.items():
        if q in key or q in city.name.lower() or q in city.state.lower():
            suggestions.append(CitySuggestion(key=key, name=city.name, state=city.state))
            if len(suggestions) >= limit:
                break
    return suggestions


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    r = 6371.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * r * math.asin(math.sqrt(a))


def nearest_city(lat: float, lon: float, radius_km: float = NEAREST_CITY_RADIUS_KM) -> City | None:
    """Closest known city within ``radius_km``, if any."""
    best: City | None = None
    best_distance = radius_km
    for city in CITIES.values():
        distance = haversine_km(lat, lon, city.lat, city.lon)
        if distance <= radius_km and (best is None or distance < best_distance):
            best, best_distance = city, distance
    return best


class AirQualitySimulator:
    """
    Generates simulated air quality readings.

    Randomness comes from an injectable ``random.Random`` so tests can seed it.
    """

    def __init__(
        self,
        delay_seconds: float | None = None,
        scale: str | None = None,
        forecast_days: int | None = None,
        rng: random.Random | None = None,
    ):
        self.delay_seconds = (
            settings.air_quality_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.scale = scale or settings.aqi_scale
        if self.scale not in AQI_SCALES:
            raise ValueError(f"Unknown AQI scale: {self.scale}")
        self.forecast_days = forecast_days or settings.forecast_days
        self.rng = rng or random.Random()

    def _jitter(self, spread: float) -> float:
        """Uniform value in [-spread/2, spread/2]."""
        return (self.rng.random() - 0.5) * spread

    def current_aqi(self, baseline: int) -> int:
        """Baseline perturbed by +-AQI_VARIATION, clamped to a non-negative integer."""
        return max(0, round(baseline + self.rng.uniform(-AQI_VARIATION, AQI_VARIATION)))

    def pollutants(self, aqi: int) -> dict[str, PollutantReading]:
        """Derive pollutant concentrations from the AQI plus independent jitter."""
        pm25 = max(0, round(aqi * 0.6 + self._jitter(20)))
        values: dict[str, float] = {
            "PM2.5": pm25,
            "PM10": max(0, round(pm25 * 1.8 + self._jitter(30))),
            "NO₂": max(0, round(aqi * 0.3 + self._jitter(15))),
            "SO₂": max(0, round(aqi * 0.1 + self.rng.random() * 10)),
            "CO": max(0.0, round(aqi * 0.01 + self.rng.random() * 0.5, 1)),
            "O₃": max(0, round(aqi * 0.4 + self._jitter(20))),
        }
        return {
            name: PollutantReading(
                value=value,
                unit=POLLUTANT_LIMITS[name][0],
                level=classify_pollutant(name, value),
            )
            for name, value in values.items()
        }

    def forecast(self, aqi: int, today: date | None = None) -> list[ForecastDay]:
        """Forecast the next days by perturbing the current AQI independently per day."""
        today = today or date.today()
        days = []
        for offset in range(1, self.forecast_days + 1):
            forecast_aqi = max(0, round(aqi + self.rng.uniform(-FORECAST_VARIATION, FORECAST_VARIATION)))
            days.append(
                ForecastDay(
                    date=(today + timedelta(days=offset)).isoformat(),
                    aqi=forecast_aqi,
                    category=classify_aqi(forecast_aqi, self.scale).label,
                )
            )
        return days

    def build_reading(
        self,
        label: str,
        state: str,
        baseline: int,
        coordinates: Coordinates | None = None,
    ) -> AirQualityReading:
        """Assemble a full reading around a baseline AQI."""
        aqi = self.current_aqi(baseline)
        band = classify_aqi(aqi, self.scale)
        return AirQualityReading(
            city=label,
            state=state,
            aqi=aqi,
            category=band.label,
            color=band.color,
            description=band.description,
            pollutants=self.pollutants(aqi),
            timestamp=datetime.utcnow(),
            coordinates=coordinates,
            forecast=self.forecast(aqi),
            health_advice=band.health_advice,
            recommendations=list(band.recommendations),
            asthma_advice=list(band.asthma_advice),
        )

    async def get_reading(self, city: str) -> AirQualityReading:
        """
        Simulate a reading for a city.

        Unknown cities use the default baseline instead of failing.

        Raises:
            ValueError: If the city name is blank
        """
        if not city or not city.strip():
            raise ValueError("Please enter a city name.")
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        known = lookup_city(city)
        if known:
            reading = self.build_reading(
                known.name, known.state, known.baseline_aqi, Coordinates(lat=known.lat, lon=known.lon)
            )
        else:
            reading = self.build_reading(city.strip(), "", DEFAULT_BASELINE_AQI)
        logger.info(f"[AIR] {reading.city}: AQI {reading.aqi} ({reading.category})")
        return reading

    async def get_reading_by_coordinates(self, lat: float, lon: float) -> AirQualityReading:
        """Simulate a reading for a position, using the nearest known city when close enough."""
        if not -90 <= lat <= 90 or not -180 <= lon <= 180:
            raise ValueError("Coordinates are out of range.")
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        coordinates = Coordinates(lat=lat, lon=lon)
        city = nearest_city(lat, lon)
        if city:
            reading = self.build_reading(city.name, city.state, city.baseline_aqi, coordinates)
        else:
            reading = self.build_reading(
                f"Lat: {lat:.2f}, Lon: {lon:.2f}", "", DEFAULT_BASELINE_AQI, coordinates
            )
        logger.info(f"[AIR] ({lat:.2f}, {lon:.2f}) -> {reading.city}: AQI {reading.aqi}")
        return reading
