"""
Mock Data Generator

Simulated readings for when no live source is reachable. The random source is
injected so callers and tests control reproducibility.
"""

import math
import random
from datetime import datetime, timedelta
from typing import Dict, Optional

import pandas as pd

from risk_scoring.hazards import air_quality_grade, air_quality_map_score


class MockDataGenerator:
    """Generate plausible air quality and weather readings"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_air_quality(self, latitude: float, longitude: float) -> Dict[str, float]:
        """Air quality with a small location-dependent offset"""
        lat_variation = (latitude % 1) * 10
        lng_variation = (longitude % 1) * 10

        return {
            "pm25": 25 + lat_variation + self.rng.random() * 10,
            "pm10": 50 + lng_variation + self.rng.random() * 15,
            "ozone": 0.08 + self.rng.random() * 0.02,
            "temperature": 20 + self.rng.random() * 5,
        }

    def generate_air_quality_grid(
        self,
        center_lat: float,
        center_lng: float,
        grid_size: int = 5,
        radius: float = 0.1
    ) -> pd.DataFrame:
        step = radius * 2 / grid_size
        records = []
        for i in range(grid_size):
            for j in range(grid_size):
                lat = center_lat - radius + i * step
                lng = center_lng - radius + j * step
                air = self.generate_air_quality(lat, lng)
                records.append({
                    "latitude": lat,
                    "longitude": lng,
                    **air,
                    "quality": air_quality_grade(air["pm25"], air["pm10"], air["ozone"]),
                    "score": air_quality_map_score(air["pm25"], air["pm10"], air["ozone"]),
                })
        return pd.DataFrame(records)

    def generate_weather_forecast(
        self,
        hours: int = 48,
        start: Optional[datetime] = None
    ) -> pd.DataFrame:
        """Hourly forecast following a daily sine cycle with random noise"""
        start = start or datetime.now()
        records = []

        for i in range(hours):
            forecast_time = start + timedelta(hours=i)
            hour = forecast_time.hour
            cycle = math.sin(hour / 24 * math.pi * 2)

            records.append({
                "forecast_time": forecast_time,
                "wind_speed": 5 + cycle * 5 + self.rng.random() * 3,
                "wind_direction": (hour * 15 + self.rng.random() * 30) % 360,
                "precipitation": self.rng.random() * 5 if self.rng.random() < 0.2 else 0.0,
                "cloud_cover": 30 + cycle * 20 + self.rng.random() * 20,
                "temperature": 20 + cycle * 5 + self.rng.random() * 3,
                "humidity": 60 + cycle * 15 + self.rng.random() * 10,
                "pressure": 1013 + self.rng.random() * 5,
                "crosswind": 3 + self.rng.random() * 4,
            })

        return pd.DataFrame(records)
