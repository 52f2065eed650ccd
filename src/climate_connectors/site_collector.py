"""
Site Data Collector

Assembles a Measurement for a location from the live connectors. Any source
that fails is replaced by defaults or simulated values; scoring always gets a
complete record.
"""

import logging
from typing import Dict, Optional

from risk_scoring.extraction import extract_numeric, feature_location, haversine_distance
from risk_scoring.models import Measurement
from .climate_platform_connector import (
    ClimatePlatformConnector,
    LAYER_BIOTOPE_CARBON,
    LAYER_BIOTOPE_CLASS,
    LAYER_COOLING_SHELTERS,
    LAYER_DEBRIS_BARRIERS,
    LAYER_FLOOD_VULNERABLE_FACILITIES,
    LAYER_LANDSLIDE_HISTORY,
    LAYER_SMALL_RIVERS,
    LAYER_SOIL_CARBON,
    LAYER_VEGETATION,
)
from .kma_weather_connector import KMAWeatherConnector
from .mock_data import MockDataGenerator

logger = logging.getLogger(__name__)

CARBON_KEYS = ["carbon", "탄소"]


class SiteDataCollector:
    """Gather weather, air and land readings for one point"""

    def __init__(
        self,
        weather: Optional[KMAWeatherConnector] = None,
        platform: Optional[ClimatePlatformConnector] = None,
        mock: Optional[MockDataGenerator] = None
    ):
        self.weather = weather or KMAWeatherConnector()
        self.platform = platform or ClimatePlatformConnector()
        self.mock = mock or MockDataGenerator()
        self.sources = {}

    def _weather_readings(self, latitude: float, longitude: float) -> Dict[str, float]:
        conditions = self.weather.get_weather_conditions(latitude, longitude)
        if conditions:
            self.sources["weather"] = "kma"
            return conditions
        logger.debug("No live weather, using defaults")
        self.sources["weather"] = "default"
        return {}

    def _air_readings(self, latitude: float, longitude: float) -> Dict[str, float]:
        # No live air quality source yet; simulated values keep scoring going
        self.sources["air_quality"] = "mock"
        air = self.mock.generate_air_quality(latitude, longitude)
        return {"pm25": air["pm25"], "pm10": air["pm10"], "ozone": air["ozone"]}

    def _facility_counts(self, latitude: float, longitude: float) -> Dict[str, int]:
        count = self.platform.count_features_near
        return {
            "landslide_history_count": count(LAYER_LANDSLIDE_HISTORY, latitude, longitude, 0.02, 10),
            "debris_barrier_count": count(LAYER_DEBRIS_BARRIERS, latitude, longitude, 0.01, 5),
            "cooling_shelter_count": count(LAYER_COOLING_SHELTERS, latitude, longitude, 0.05, 20),
            "vulnerable_facility_count": count(LAYER_FLOOD_VULNERABLE_FACILITIES, latitude, longitude, 0.01, 10),
            "vegetation_feature_count": count(LAYER_VEGETATION, latitude, longitude, 0.01, 20),
            "biotope_feature_count": count(LAYER_BIOTOPE_CLASS, latitude, longitude, 0.01, 10),
        }

    def _land_readings(self, latitude: float, longitude: float) -> Dict[str, float]:
        soil = self.platform.first_properties(LAYER_SOIL_CARBON, latitude, longitude)
        absorption = self.platform.first_properties(LAYER_BIOTOPE_CARBON, latitude, longitude)
        return {
            "soil_carbon": extract_numeric(soil, CARBON_KEYS, 0.0),
            "carbon_absorption": extract_numeric(absorption, CARBON_KEYS, 0.0),
        }

    def water_proximity(self, latitude: float, longitude: float) -> Optional[float]:
        """Distance in km to the nearest mapped small river, if any"""
        features = self.platform.get_features_near(LAYER_SMALL_RIVERS, latitude, longitude, 0.02, 5)
        locations = [loc for loc in map(feature_location, features) if loc is not None]
        if not locations:
            return None

        distances = haversine_distance(
            latitude, longitude,
            [loc[0] for loc in locations], [loc[1] for loc in locations]
        )
        return float(min(distances))

    def collect(self, latitude: float, longitude: float) -> Measurement:
        """
        Build a Measurement for a point

        Returns:
            Measurement with defaults wherever a source failed
        """
        logger.info(f"Collecting site data for ({latitude}, {longitude})")
        self.sources = {}

        readings = {}
        readings.update(self._weather_readings(latitude, longitude))
        readings.update(self._air_readings(latitude, longitude))
        readings.update(self._facility_counts(latitude, longitude))
        readings.update(self._land_readings(latitude, longitude))

        distance = self.water_proximity(latitude, longitude)
        if distance is not None:
            readings["water_proximity_km"] = distance

        return Measurement(**readings)
