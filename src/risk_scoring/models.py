"""
Risk Scoring Data Models

Plain pydantic records passed into and out of the scoring engine.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .extraction import parse_number

logger = logging.getLogger(__name__)

HazardLevel = Literal["low", "medium", "high", "critical"]
AirQualityLevel = Literal["good", "moderate", "poor"]
CompositeLevel = Literal["safe", "low", "medium", "high", "critical"]


class Measurement(BaseModel):
    """Environmental readings for one location at one time"""

    # Weather
    precipitation: float = 0.0        # mm/h
    elevation: float = 50.0           # m
    temperature: float = 20.0         # °C
    humidity: float = 60.0            # %
    wind_speed: float = 5.0           # m/s
    wind_direction: float = 0.0       # deg
    cloud_cover: float = 30.0         # %
    pressure: float = 1013.0          # hPa
    crosswind: float = 3.0            # m/s

    # Air quality
    pm25: float = 0.0                 # µg/m³
    pm10: float = 0.0                 # µg/m³
    ozone: float = 0.0                # ppm

    # Hydrology; None means derive
    soil_moisture: Optional[float] = None       # %, defaults to humidity * 0.8
    drainage_capacity: Optional[float] = None   # mm/h, defaults to 20

    # Nearby facilities and history; counts are never negative
    landslide_history_count: int = Field(default=0, ge=0)
    debris_barrier_count: int = Field(default=0, ge=0)
    cooling_shelter_count: int = Field(default=0, ge=0)
    vulnerable_facility_count: int = Field(default=0, ge=0)

    # Land cover
    soil_carbon: float = 0.0
    vegetation_feature_count: int = Field(default=0, ge=0)
    biotope_feature_count: int = Field(default=0, ge=0)
    carbon_absorption: float = 0.0

    # Site context for launch-window analysis
    flood_risk_index: float = 0.0
    landslide_grade: float = 0.0
    air_regulation_index: float = 50.0
    soil_erosion: float = 3.0
    vegetation_cover: float = 50.0
    water_proximity_km: float = 5.0

    @model_validator(mode="before")
    @classmethod
    def _substitute_defaults(cls, data: Any) -> Any:
        """Drop missing or unparsable readings so field defaults apply"""
        if not isinstance(data, dict):
            return data

        cleaned = {}
        for key, value in data.items():
            if key not in cls.model_fields:
                cleaned[key] = value
                continue
            number = parse_number(value)
            if number is None:
                if value is not None:
                    logger.debug(f"Unparsable reading {key}={value!r}, using default")
                continue
            annotation = cls.model_fields[key].annotation
            cleaned[key] = int(number) if annotation is int else number
        return cleaned


class HazardScore(BaseModel):
    """Score for one hazard: 0-100, higher is more severe"""

    hazard: str
    score: float = Field(ge=0, le=100)
    risk_level: str
    factors: List[str] = []
    details: Dict[str, float] = {}


class FloodAssessment(HazardScore):
    """Hydrological flood score plus derived depth and timing"""

    hazard: str = "flood"
    precipitation_factor: float
    elevation_factor: float
    saturation_factor: float
    drainage_factor: float
    predicted_depth_m: float
    time_to_flood_minutes: int
    confidence: float
    recommendations: List[str] = []
    peak_time: Optional[datetime] = None
    ai_analysis: Optional[str] = None


class HealthIndicator(BaseModel):
    """0-100 health indicator (higher is healthier); risk is the inverse"""

    indicator: str
    value: float = Field(ge=0, le=100)
    risk: float = Field(ge=0, le=100)
    details: Dict[str, float] = {}


class RiskLevel(BaseModel):
    level: CompositeLevel
    label: str
    color: str


class RiskPredictions(BaseModel):
    method: str = "linear_placeholder"
    next_24h: Dict[str, float]
    next_7d: Dict[str, float]


class CompositeRiskAnalysis(BaseModel):
    """Weighted roll-up of every hazard for one location"""

    location: Optional[Dict[str, float]] = None
    timestamp: datetime
    scores: Dict[str, float]
    risk_level: RiskLevel
    predictions: RiskPredictions
    recommendations: List[str]
    insights: str
    details: Dict[str, Dict[str, Any]] = {}


class LaunchCriteria(BaseModel):
    """Thresholds a launch window must satisfy"""

    min_wind_speed: float = 0.0
    max_wind_speed: float = 15.0
    max_precipitation: float = 0.0
    max_cloud_cover: float = 30.0
    max_crosswind: float = 10.0
    min_overall_score: float = 70.0


class LaunchAssessment(BaseModel):
    """Launch-site suitability for one set of conditions"""

    weather: Dict[str, float]
    risks: Dict[str, str]
    environment: Dict[str, float]
    weather_score: float
    risk_score: float
    environment_score: float
    overall_score: float
    launch_feasibility: Literal["excellent", "good", "moderate", "poor", "critical"]
    blocking_factors: List[str]
    recommendations: List[str]


class LaunchWindow(BaseModel):
    start_time: datetime
    end_time: datetime
    overall_score: float
    launch_feasibility: str
    assessment: LaunchAssessment
