"""Unit tests for the air quality simulator."""

import random
from datetime import date, timedelta

import pytest

from asthmacare.app.services.air_quality import (
    AQI_VARIATION,
    DEFAULT_BASELINE_AQI,
    FORECAST_VARIATION,
    INDIA_BANDS,
    MAX_SUGGESTIONS,
    US_EPA_BANDS,
    AirQualitySimulator,
    classify_aqi,
    classify_pollutant,
    haversine_km,
    lookup_city,
    nearest_city,
    suggest_cities,
)


@pytest.fixture
def simulator():
    return AirQualitySimulator(delay_seconds=0, scale="india", forecast_days=3, rng=random.Random(1))


class TestClassification:
    """Test cases for AQI band classification."""

    @pytest.mark.parametrize(
        "aqi,label",
        [
            (0, "Good"),
            (50, "Good"),
            (51, "Satisfactory"),
            (100, "Satisfactory"),
            (101, "Moderate"),
            (200, "Moderate"),
            (201, "Poor"),
            (300, "Poor"),
            (301, "Very Poor"),
            (400, "Very Poor"),
            (401, "Severe"),
            (5000, "Severe"),
        ],
    )
    def test_india_band_boundaries(self, aqi, label):
        assert classify_aqi(aqi, "india").label == label

    @pytest.mark.parametrize(
        "aqi,label",
        [
            (50, "Good"),
            (100, "Moderate"),
            (150, "Unhealthy for Sensitive Groups"),
            (200, "Unhealthy"),
            (300, "Very Unhealthy"),
            (301, "Hazardous"),
        ],
    )
    def test_us_epa_band_boundaries(self, aqi, label):
        assert classify_aqi(aqi, "us_epa").label == label

    @pytest.mark.parametrize("bands", [INDIA_BANDS, US_EPA_BANDS])
    def test_every_value_falls_in_exactly_one_band(self, bands):
        for aqi in range(0, 1001):
            assert sum(1 for band in bands if band.contains(aqi)) == 1

    def test_negative_aqi_rejected(self):
        with pytest.raises(ValueError):
            classify_aqi(-1)

    def test_unknown_scale_rejected(self):
        with pytest.raises(ValueError, match="Unknown AQI scale"):
            classify_aqi(10, "metric")

    def test_bands_carry_advice(self):
        for band in INDIA_BANDS:
            assert len(band.recommendations) == 4
            assert len(band.asthma_advice) == 4

    @pytest.mark.parametrize(
        "name,value,level",
        [
            ("PM2.5", 30, "Good"),
            ("PM2.5", 31, "Moderate"),
            ("PM10", 150, "Poor"),
            ("SO₂", 251, "Very Poor"),
            ("CO", 1.5, "Moderate"),
            ("O₃", 10, "Good"),
        ],
    )
    def test_pollutant_levels(self, name, value, level):
        assert classify_pollutant(name, value) == level


class TestCityLookup:
    """Test cases for city lookup and suggestions."""

    def test_lookup_is_case_insensitive(self):
        assert lookup_city("  MUMBAI ").name == "Mumbai"

    def test_aliases_share_baseline(self):
        assert lookup_city("gurgaon") is lookup_city("Gurugram")
        assert lookup_city("bengaluru").baseline_aqi == lookup_city("bangalore").baseline_aqi

    def test_unknown_city(self):
        assert lookup_city("Atlantis") is None

    def test_suggestions_need_two_characters(self):
        assert suggest_cities("d") == []
        assert suggest_cities("") == []

    def test_suggestions_match_name_and_state(self):
        keys = [s.key for s in suggest_cities("kerala")]
        assert "kochi" in keys
        assert "thiruvananthapuram" in keys

    def test_suggestions_are_capped(self):
        assert len(suggest_cities("an")) <= MAX_SUGGESTIONS

    def test_nearest_city_within_radius(self):
        assert nearest_city(19.07, 72.88).name == "Mumbai"

    def test_nearest_city_outside_radius(self):
        assert nearest_city(0.0, 0.0) is None

    def test_haversine_known_distance(self):
        # Delhi to Mumbai is roughly 1150 km
        distance = haversine_km(28.7041, 77.1025, 19.0760, 72.8777)
        assert 1100 < distance < 1200


class TestSimulator:
    """Test cases for AirQualitySimulator."""

    @pytest.mark.asyncio
    async def test_known_city_reading(self, simulator):
        reading = await simulator.get_reading("Delhi")

        assert reading.city == "Delhi"
        assert reading.state == "Delhi"
        assert 180 - AQI_VARIATION <= reading.aqi <= 180 + AQI_VARIATION
        assert reading.category == classify_aqi(reading.aqi).label
        assert reading.coordinates.lat == pytest.approx(28.7041)
        assert set(reading.pollutants) == {"PM2.5", "PM10", "NO₂", "SO₂", "CO", "O₃"}
        assert reading.pollutants["CO"].unit == "mg/m³"
        assert all(p.value >= 0 for p in reading.pollutants.values())
        assert len(reading.recommendations) == 4
        assert len(reading.asthma_advice) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scale", ["india", "us_epa"])
    @pytest.mark.parametrize("seed", [0, 1, 7, 42, 1234, 99999])
    async def test_delhi_is_never_good(self, scale, seed):
        """Test Delhi's baseline keeps every reading and forecast day out of the Good band."""
        simulator = AirQualitySimulator(
            delay_seconds=0, scale=scale, forecast_days=3, rng=random.Random(seed)
        )

        reading = await simulator.get_reading("Delhi")

        assert reading.category != "Good"
        assert all(day.category != "Good" for day in reading.forecast)

    @pytest.mark.asyncio
    async def test_unknown_city_uses_default_baseline(self, simulator):
        reading = await simulator.get_reading("Springfield")

        assert reading.city == "Springfield"
        assert reading.coordinates is None
        assert DEFAULT_BASELINE_AQI - AQI_VARIATION <= reading.aqi <= DEFAULT_BASELINE_AQI + AQI_VARIATION

    @pytest.mark.asyncio
    async def test_blank_city_rejected(self, simulator):
        with pytest.raises(ValueError, match="city name"):
            await simulator.get_reading("   ")

    @pytest.mark.asyncio
    async def test_same_seed_same_reading(self):
        first = await AirQualitySimulator(delay_seconds=0, rng=random.Random(9)).get_reading("Pune")
        second = await AirQualitySimulator(delay_seconds=0, rng=random.Random(9)).get_reading("Pune")

        assert first.aqi == second.aqi
        assert first.pollutants == second.pollutants

    def test_current_aqi_is_clamped(self, simulator):
        for _ in range(200):
            assert simulator.current_aqi(0) >= 0

    def test_forecast_days_and_range(self, simulator):
        today = date(2024, 1, 31)
        forecast = simulator.forecast(100, today=today)

        assert [day.date for day in forecast] == [
            (today + timedelta(days=i)).isoformat() for i in (1, 2, 3)
        ]
        for day in forecast:
            assert 100 - FORECAST_VARIATION <= day.aqi <= 100 + FORECAST_VARIATION
            assert day.category == classify_aqi(day.aqi).label

    def test_forecast_length_follows_setting(self):
        simulator = AirQualitySimulator(delay_seconds=0, forecast_days=2, rng=random.Random(3))
        assert len(simulator.forecast(80)) == 2

    def test_us_epa_scale(self):
        simulator = AirQualitySimulator(delay_seconds=0, scale="us_epa", rng=random.Random(5))
        reading = simulator.build_reading("Kanpur", "Uttar Pradesh", 200)

        assert reading.category == classify_aqi(reading.aqi, "us_epa").label
        assert reading.color.startswith("#")

    @pytest.mark.asyncio
    async def test_reading_by_coordinates_near_city(self, simulator):
        reading = await simulator.get_reading_by_coordinates(12.97, 77.59)

        assert reading.city == "Bangalore"
        assert reading.coordinates.lat == pytest.approx(12.97)

    @pytest.mark.asyncio
    async def test_reading_by_coordinates_far_away(self, simulator):
        reading = await simulator.get_reading_by_coordinates(-33.87, 151.21)

        assert reading.city == "Lat: -33.87, Lon: 151.21"
        assert DEFAULT_BASELINE_AQI - AQI_VARIATION <= reading.aqi <= DEFAULT_BASELINE_AQI + AQI_VARIATION

    @pytest.mark.asyncio
    async def test_reading_by_coordinates_out_of_range(self, simulator):
        with pytest.raises(ValueError):
            await simulator.get_reading_by_coordinates(95, 0)
