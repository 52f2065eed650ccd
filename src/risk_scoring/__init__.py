"""
Risk Scoring Module

Per-hazard climate risk scores and their weighted composite.
"""

from .models import (
    Measurement,
    HazardScore,
    FloodAssessment,
    HealthIndicator,
    CompositeRiskAnalysis,
    LaunchCriteria,
    LaunchAssessment,
    LaunchWindow,
)
from .hazards import (
    score_flood,
    predict_flood,
    predict_flood_batch,
    score_landslide,
    score_heatwave,
    score_air_quality,
    soil_indicator,
    vegetation_indicator,
    heat_index,
    air_quality_grade,
    air_quality_map_score,
)
from .risk_scorer import RiskScorer, predict_future_risk, get_risk_level
from .launch_window import assess_launch_environment, predict_launch_windows
from .grid import lat_lng_to_grid
from .extraction import extract_numeric, calculate_centroid, haversine_distance
from .climate_shift import (
    analyze_climate_shift,
    generate_historical_weather,
    yearly_summary,
    detect_extreme_events,
    predict_future_trend,
)

__all__ = [
    "Measurement",
    "HazardScore",
    "FloodAssessment",
    "HealthIndicator",
    "CompositeRiskAnalysis",
    "LaunchCriteria",
    "LaunchAssessment",
    "LaunchWindow",
    "score_flood",
    "predict_flood",
    "predict_flood_batch",
    "score_landslide",
    "score_heatwave",
    "score_air_quality",
    "soil_indicator",
    "vegetation_indicator",
    "heat_index",
    "air_quality_grade",
    "air_quality_map_score",
    "RiskScorer",
    "predict_future_risk",
    "get_risk_level",
    "assess_launch_environment",
    "predict_launch_windows",
    "lat_lng_to_grid",
    "extract_numeric",
    "calculate_centroid",
    "haversine_distance",
    "analyze_climate_shift",
    "generate_historical_weather",
    "yearly_summary",
    "detect_extreme_events",
    "predict_future_trend",
]
