"""
API Connectors for the Climate Risk Platform

This package contains connectors for the external data sources:
- KMA: Current weather and village forecasts
- Climate platform WFS: Facilities, hazard history, land cover
- Groq: LLM narrative analysis
"""

from .cache import TTLCache, RateLimiter
from .kma_weather_connector import KMAWeatherConnector
from .climate_platform_connector import ClimatePlatformConnector
from .groq_connector import GroqConnector
from .mock_data import MockDataGenerator
from .site_collector import SiteDataCollector

__all__ = [
    "TTLCache",
    "RateLimiter",
    "KMAWeatherConnector",
    "ClimatePlatformConnector",
    "GroqConnector",
    "MockDataGenerator",
    "SiteDataCollector",
]
