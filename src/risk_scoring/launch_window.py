"""
Launch Window Analysis

Scores a site's suitability for a rocket launch from weather, hazard and
environment sub-scores, and screens a 48 hour horizon for launch windows.
"""

import math
import random
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .hazards import clamp
from .models import LaunchAssessment, LaunchCriteria, LaunchWindow, Measurement

logger = logging.getLogger(__name__)

SCORE_WEIGHTS = {
    "weather": 0.40,
    "risk": 0.35,
    "environment": 0.25,
}


def launch_hazard_levels(m: Measurement) -> Tuple[str, str, str, str]:
    """
    Three-tier launch hazard levels

    Returns:
        (flood, landslide, heat, air_quality)
    """
    flood = "low"
    if m.flood_risk_index > 70 or m.precipitation > 70:
        flood = "high"
    elif m.flood_risk_index > 40 or m.precipitation > 40:
        flood = "medium"

    landslide = "low"
    if m.landslide_grade >= 3:
        landslide = "high"
    elif m.landslide_grade >= 2:
        landslide = "medium"

    heat = "low"
    if m.temperature > 35:
        heat = "high"
    elif m.temperature > 30:
        heat = "medium"

    # Higher regulation index means cleaner air
    air = "good"
    if m.air_regulation_index < 30:
        air = "poor"
    elif m.air_regulation_index < 60:
        air = "moderate"

    return flood, landslide, heat, air


def calculate_weather_score(m: Measurement) -> float:
    score = 100.0

    # 0-15 m/s usable, 7.5 ideal
    if m.wind_speed < 0 or m.wind_speed > 20:
        score -= 40
    elif m.wind_speed > 15:
        score -= 30
    else:
        score -= abs(m.wind_speed - 7.5) * 2

    if m.precipitation > 0:
        score -= 50

    if m.cloud_cover > 50:
        score -= 20
    else:
        score -= (m.cloud_cover / 50) * 15

    if m.crosswind > 10:
        score -= 30
    else:
        score -= (m.crosswind / 10) * 20

    # 22.5°C ideal
    if m.temperature < 0 or m.temperature > 40:
        score -= 25
    else:
        score -= abs(m.temperature - 22.5)

    return clamp(score)


def calculate_risk_score(flood: str, landslide: str, heat: str, air_quality: str) -> float:
    score = 100.0

    if flood == "high":
        score -= 40
    elif flood == "medium":
        score -= 20

    if landslide == "high":
        score -= 35
    elif landslide == "medium":
        score -= 15

    if heat == "high":
        score -= 25
    elif heat == "medium":
        score -= 10

    if air_quality == "poor":
        score -= 20
    elif air_quality == "moderate":
        score -= 10

    return clamp(score)


def water_proximity_points(distance_km: float) -> float:
    if distance_km < 0.5:
        return 0.0
    elif distance_km < 1:
        return 30.0
    elif distance_km < 2:
        return 60.0
    return 100.0


def calculate_environment_score(
    soil_stability: float,
    vegetation_cover: float,
    water_proximity_km: float
) -> float:
    """Soil 40%, vegetation 30% (boosted 1.2x, capped), river distance 30%"""
    score = soil_stability * 0.4
    score += min(100, vegetation_cover * 1.2) * 0.3
    score += water_proximity_points(water_proximity_km) * 0.3
    return clamp(score)


def launch_feasibility(overall_score: float) -> str:
    if overall_score >= 85:
        return "excellent"
    elif overall_score >= 70:
        return "good"
    elif overall_score >= 55:
        return "moderate"
    elif overall_score >= 40:
        return "poor"
    return "critical"


def assess_launch_environment(m: Measurement) -> LaunchAssessment:
    """Full launch-site assessment for one set of conditions"""
    flood, landslide, heat, air = launch_hazard_levels(m)
    soil_stability = clamp(100 - m.soil_erosion * 10)
    vegetation_cover = clamp(m.vegetation_cover)

    weather_score = calculate_weather_score(m)
    risk_score = calculate_risk_score(flood, landslide, heat, air)
    environment_score = calculate_environment_score(
        soil_stability, vegetation_cover, m.water_proximity_km
    )

    overall = (
        weather_score * SCORE_WEIGHTS["weather"] +
        risk_score * SCORE_WEIGHTS["risk"] +
        environment_score * SCORE_WEIGHTS["environment"]
    )

    blocking_factors = []
    recommendations = []

    if m.precipitation > 0:
        blocking_factors.append("Precipitation in progress")
        recommendations.append("Wait until precipitation stops")
    if m.wind_speed > 15:
        blocking_factors.append("Wind speed too high")
        recommendations.append("Wait for wind to drop below 15 m/s")
    if flood == "high":
        blocking_factors.append("High flood risk")
        recommendations.append("Consider a site with lower flood risk")
    if landslide == "high":
        blocking_factors.append("High landslide risk")
        recommendations.append("Consider a site with lower landslide risk")
    if heat == "high":
        blocking_factors.append("Heatwave warning")
        recommendations.append("Inspect equipment cooling systems")
    if air == "poor":
        blocking_factors.append("Poor air quality")
        recommendations.append("Wait for air quality to improve or inspect filtration systems")
    if m.water_proximity_km < 1:
        blocking_factors.append("Too close to a river")
        recommendations.append("Keep at least 1 km from the nearest river")

    if not blocking_factors:
        recommendations.append("Launch possible under current conditions")

    return LaunchAssessment(
        weather={
            "wind_speed": m.wind_speed,
            "wind_direction": m.wind_direction,
            "precipitation": m.precipitation,
            "cloud_cover": m.cloud_cover,
            "temperature": m.temperature,
            "humidity": m.humidity,
            "crosswind": m.crosswind,
        },
        risks={
            "flood": flood,
            "landslide": landslide,
            "heat": heat,
            "air_quality": air,
        },
        environment={
            "soil_stability": soil_stability,
            "vegetation_cover": vegetation_cover,
            "water_proximity_km": m.water_proximity_km,
            "elevation": m.elevation,
        },
        weather_score=weather_score,
        risk_score=risk_score,
        environment_score=environment_score,
        overall_score=overall,
        launch_feasibility=launch_feasibility(overall),
        blocking_factors=blocking_factors,
        recommendations=recommendations,
    )


def meets_criteria(assessment: LaunchAssessment, criteria: LaunchCriteria) -> bool:
    weather = assessment.weather
    return (
        criteria.min_wind_speed <= weather["wind_speed"] <= criteria.max_wind_speed
        and weather["precipitation"] <= criteria.max_precipitation
        and weather["cloud_cover"] <= criteria.max_cloud_cover
        and weather["crosswind"] <= criteria.max_crosswind
        and assessment.overall_score >= criteria.min_overall_score
    )


def simulate_conditions(m: Measurement, hour: int, rng: random.Random) -> Measurement:
    """
    Simulated conditions `hour` hours ahead

    A sinusoidal nudge on wind and cloud plus random showers; stands in for
    real forecast data.
    """
    variation = math.sin(hour / 12) * 0.1
    precipitation = rng.random() * 3 if rng.random() < 0.15 else 0.0
    return m.model_copy(update={
        "wind_speed": m.wind_speed + variation * 3,
        "precipitation": precipitation,
        "cloud_cover": m.cloud_cover + variation * 10,
    })


def predict_launch_windows(
    m: Measurement,
    criteria: Optional[LaunchCriteria] = None,
    start: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    hours: int = 48,
    step_hours: int = 2
) -> List[LaunchWindow]:
    """
    Screen the next `hours` hours for launch windows

    Args:
        m: Current conditions
        criteria: Window thresholds (defaults to LaunchCriteria())
        start: Horizon start; defaults to now
        rng: Random source for simulated showers; pass a seeded
            random.Random for reproducible output
        hours: Horizon length
        step_hours: Window length

    Returns:
        Qualifying windows, best score first
    """
    criteria = criteria or LaunchCriteria()
    start = start or datetime.now()
    rng = rng or random.Random()

    windows = []
    for hour in range(0, hours, step_hours):
        window_start = start + timedelta(hours=hour)
        assessment = assess_launch_environment(simulate_conditions(m, hour, rng))

        if meets_criteria(assessment, criteria):
            windows.append(LaunchWindow(
                start_time=window_start,
                end_time=window_start + timedelta(hours=step_hours),
                overall_score=assessment.overall_score,
                launch_feasibility=assessment.launch_feasibility,
                assessment=assessment,
            ))

    logger.info(f"Found {len(windows)} launch windows in the next {hours}h")
    return sorted(windows, key=lambda w: w.overall_score, reverse=True)
