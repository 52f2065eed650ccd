"""
Hazard Scoring Functions

Pure, deterministic scorers mapping a Measurement to a 0-100 hazard score.
Each hazard keeps its own level thresholds; see LEVEL_THRESHOLDS.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .models import FloodAssessment, HazardScore, HealthIndicator, Measurement

DEFAULT_DRAINAGE_CAPACITY = 20.0  # mm/h

# (critical, high, medium) lower bounds per hazard
LEVEL_THRESHOLDS = {
    "flood": (80, 60, 40),
    "landslide": (70, 50, 30),
    "heatwave": (70, 50, 30),
}

# (poor, moderate) lower bounds
AIR_QUALITY_THRESHOLDS = (50, 25)

FLOOD_WEIGHTS = {
    "precipitation": 0.40,
    "elevation": 0.25,
    "saturation": 0.20,
    "drainage": 0.15,
}

TIME_TO_FLOOD_MINUTES = {
    "critical": 15,
    "high": 30,
    "medium": 60,
    "low": 120,
}

FLOOD_LEVEL_RECOMMENDATIONS = {
    "critical": [
        "Evacuate immediately and keep away from low ground and rivers",
        "Be ready to call emergency services",
        "Switch off the main breaker and close the gas valve",
    ],
    "high": [
        "Check evacuation routes and prepare to move",
        "Watch for emergency alert messages",
        "Move vehicles to higher ground",
    ],
    "medium": [
        "Avoid going out and keep monitoring the weather",
        "Check emergency supplies",
    ],
    "low": [
        "Flood risk is currently low",
        "Check the forecast regularly",
    ],
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def hazard_level(score: float, thresholds: Tuple[float, float, float]) -> str:
    """Four-band step function: low / medium / high / critical"""
    critical, high, medium = thresholds
    if score >= critical:
        return "critical"
    elif score >= high:
        return "high"
    elif score >= medium:
        return "medium"
    return "low"


def air_quality_level(score: float) -> str:
    """Three-band step function: good / moderate / poor"""
    poor, moderate = AIR_QUALITY_THRESHOLDS
    if score >= poor:
        return "poor"
    elif score >= moderate:
        return "moderate"
    return "good"


# Flood

def precipitation_factor(precipitation: float) -> float:
    if precipitation >= 80:
        return 100.0
    elif precipitation >= 50:
        return 85.0
    elif precipitation >= 30:
        return 70.0
    elif precipitation >= 15:
        return 50.0
    elif precipitation >= 5:
        return 25.0
    return max(0.0, precipitation * 5)


def elevation_factor(elevation: float) -> float:
    if elevation <= 5:
        return 100.0
    elif elevation <= 10:
        return 85.0
    elif elevation <= 30:
        return 60.0
    elif elevation <= 100:
        return 30.0
    return max(0.0, 20 - (elevation - 100) / 50)


def saturation_factor(soil_moisture: float) -> float:
    if soil_moisture >= 90:
        return 100.0
    elif soil_moisture >= 70:
        return 70.0
    elif soil_moisture >= 50:
        return 40.0
    return max(0.0, soil_moisture * 0.5)


def drainage_factor(precipitation: float, capacity: float) -> float:
    if precipitation > capacity * 2:
        return 100.0
    elif precipitation > capacity:
        return 70.0
    elif precipitation > capacity * 0.5:
        return 40.0
    return 20.0


def _flood_recommendations(
    level: str,
    m: Measurement,
    elevation_f: float,
    saturation_f: float,
    drainage_f: float
) -> List[str]:
    recommendations = list(FLOOD_LEVEL_RECOMMENDATIONS[level])

    if elevation_f >= 70:
        recommendations.append("Low-lying location: locate the nearest high-ground shelter")
    if saturation_f >= 70:
        recommendations.append("Soil is saturated: watch slopes for landslides")
    if m.precipitation >= 50 and drainage_f >= 70:
        recommendations.append("Drainage capacity exceeded: beware of road flooding and manhole backflow")
    if m.wind_speed >= 10:
        recommendations.append("Strong wind: close windows and secure outdoor structures")

    return recommendations


def _flood_confidence(m: Measurement) -> float:
    # Confidence grows with each optional input actually observed
    confidence = 0.85
    supplied = m.model_fields_set
    if "soil_moisture" in supplied and m.soil_moisture is not None:
        confidence += 0.05
    if "drainage_capacity" in supplied and m.drainage_capacity is not None:
        confidence += 0.05
    if "pressure" in supplied:
        confidence += 0.03
    return round(min(0.98, confidence), 2)


def score_flood(m: Measurement) -> FloodAssessment:
    """
    Hydrological flood score

    Weighted sum of precipitation, elevation, soil saturation and drainage
    factors, plus a predicted flood depth and a time-to-flood lookup.
    """
    soil_moisture = m.soil_moisture if m.soil_moisture is not None else m.humidity * 0.8
    capacity = m.drainage_capacity if m.drainage_capacity is not None else DEFAULT_DRAINAGE_CAPACITY

    precip_f = precipitation_factor(m.precipitation)
    elev_f = elevation_factor(m.elevation)
    sat_f = saturation_factor(soil_moisture)
    drain_f = drainage_factor(m.precipitation, capacity)

    score = clamp(round_half_up(
        precip_f * FLOOD_WEIGHTS["precipitation"] +
        elev_f * FLOOD_WEIGHTS["elevation"] +
        sat_f * FLOOD_WEIGHTS["saturation"] +
        drain_f * FLOOD_WEIGHTS["drainage"]
    ))
    level = hazard_level(score, LEVEL_THRESHOLDS["flood"])

    excess_rain = max(0.0, m.precipitation - capacity)
    depth_factor = (100 - m.elevation) / 100
    depth = min(3.0, (excess_rain / 100) * (1 + depth_factor) * (sat_f / 50))
    depth = max(0.0, depth)

    factors = []
    if precip_f >= 50:
        factors.append(f"Heavy rainfall ({m.precipitation:g} mm/h)")
    if elev_f >= 60:
        factors.append(f"Low elevation ({m.elevation:g} m)")
    if sat_f >= 70:
        factors.append("Saturated soil")
    if drain_f >= 70:
        factors.append(f"Rainfall exceeds drainage capacity ({capacity:g} mm/h)")
    if m.vulnerable_facility_count > 0:
        factors.append(f"{m.vulnerable_facility_count} flood-vulnerable facilities nearby")

    return FloodAssessment(
        score=score,
        risk_level=level,
        factors=factors,
        details={
            "soil_moisture": soil_moisture,
            "drainage_capacity": capacity,
            "nearby_facilities": m.vulnerable_facility_count,
        },
        precipitation_factor=precip_f,
        elevation_factor=elev_f,
        saturation_factor=sat_f,
        drainage_factor=drain_f,
        predicted_depth_m=round(depth, 2),
        time_to_flood_minutes=TIME_TO_FLOOD_MINUTES[level],
        confidence=_flood_confidence(m),
        recommendations=_flood_recommendations(level, m, elev_f, sat_f, drain_f),
    )


def predict_flood(m: Measurement, now: Optional[datetime] = None) -> FloodAssessment:
    """Flood score with the expected peak time filled in"""
    if now is None:
        now = datetime.now()
    assessment = score_flood(m)
    assessment.peak_time = now + timedelta(minutes=assessment.time_to_flood_minutes)
    return assessment


def predict_flood_batch(
    measurements: Iterable[Measurement],
    now: Optional[datetime] = None
) -> List[FloodAssessment]:
    if now is None:
        now = datetime.now()
    return [predict_flood(m, now=now) for m in measurements]


# Landslide

def score_landslide(m: Measurement) -> HazardScore:
    score = 0.0
    factors = []

    if m.landslide_history_count > 0:
        score += min(40, m.landslide_history_count * 10)
        factors.append(f"{m.landslide_history_count} past landslides nearby")

    if m.debris_barrier_count > 0:
        score -= 20
        factors.append("Check dam installed")

    if m.precipitation > 30:
        score += 30
        factors.append("Heavy rainfall raises landslide risk")

    score = clamp(score)

    return HazardScore(
        hazard="landslide",
        score=score,
        risk_level=hazard_level(score, LEVEL_THRESHOLDS["landslide"]),
        factors=factors,
        details={"history_count": m.landslide_history_count},
    )


# Heatwave

def heat_index(temperature: float, humidity: float) -> float:
    """
    NWS heat index; computed in °F, returned in °C

    Steadman's simple formula, averaged with the air temperature, decides
    the regime: below 80°F that average is the index, otherwise the
    Rothfusz regression applies with the NWS low and high humidity
    adjustments.
    """
    t = temperature * 9 / 5 + 32
    h = humidity

    simple = 0.5 * (t + 61.0 + (t - 68.0) * 1.2 + h * 0.094)
    hi = (simple + t) / 2
    if hi < 80:
        return (hi - 32) * 5 / 9

    hi = (
        -42.379
        + 2.04901523 * t
        + 10.14333127 * h
        - 0.22475541 * t * h
        - 6.83783e-3 * t * t
        - 5.481717e-2 * h * h
        + 1.22874e-3 * t * t * h
        + 8.5282e-4 * t * h * h
        - 1.99e-6 * t * t * h * h
    )

    if h < 13 and 80 <= t <= 112:
        hi -= ((13 - h) / 4) * math.sqrt((17 - abs(t - 95)) / 17)
    elif h > 85 and 80 <= t <= 87:
        hi += ((h - 85) / 10) * ((87 - t) / 5)

    return (hi - 32) * 5 / 9


def score_heatwave(m: Measurement) -> HazardScore:
    index = heat_index(m.temperature, m.humidity)
    score = 0.0
    factors = []

    if m.temperature >= 35:
        score += 40
    elif m.temperature >= 30:
        score += 25
    elif m.temperature >= 25:
        score += 10
    if m.temperature >= 25:
        factors.append(f"High temperature ({m.temperature:g}°C)")

    if index >= 40:
        score += 30
    elif index >= 35:
        score += 20
    elif index >= 30:
        score += 10
    if index >= 30:
        factors.append(f"Heat index {index:.1f}°C")

    if m.cooling_shelter_count > 0:
        score -= min(20, m.cooling_shelter_count * 2)
        factors.append(f"{m.cooling_shelter_count} cooling shelters nearby")

    score = clamp(score)

    return HazardScore(
        hazard="heatwave",
        score=score,
        risk_level=hazard_level(score, LEVEL_THRESHOLDS["heatwave"]),
        factors=factors,
        details={
            "current_temp": m.temperature,
            "heat_index": index,
            "shelters": m.cooling_shelter_count,
        },
    )


# Air quality

def score_air_quality(m: Measurement) -> HazardScore:
    score = 0.0
    factors = []

    if m.pm25 >= 75:
        score += 40
    elif m.pm25 >= 50:
        score += 25
    elif m.pm25 >= 35:
        score += 15
    if m.pm25 >= 35:
        factors.append(f"PM2.5 {m.pm25:g} µg/m³")

    if m.pm10 >= 150:
        score += 30
    elif m.pm10 >= 100:
        score += 20
    elif m.pm10 >= 80:
        score += 10
    if m.pm10 >= 80:
        factors.append(f"PM10 {m.pm10:g} µg/m³")

    if m.ozone >= 0.12:
        score += 30
    elif m.ozone >= 0.09:
        score += 20
    if m.ozone >= 0.09:
        factors.append(f"Ozone {m.ozone:g} ppm")

    score = clamp(score)

    return HazardScore(
        hazard="air_quality",
        score=score,
        risk_level=air_quality_level(score),
        factors=factors,
        details={"pm25": m.pm25, "pm10": m.pm10, "ozone": m.ozone},
    )


def air_quality_grade(pm25: float, pm10: float, ozone: float) -> str:
    """Map grade from the worst pollutant: good / moderate / unhealthy / very-unhealthy"""
    if pm25 > 75 or pm10 > 150 or ozone > 0.12:
        return "very-unhealthy"
    elif pm25 > 35 or pm10 > 80 or ozone > 0.09:
        return "unhealthy"
    elif pm25 > 15 or pm10 > 30 or ozone > 0.06:
        return "moderate"
    return "good"


def air_quality_map_score(pm25: float, pm10: float, ozone: float) -> float:
    """0-100 map score, higher is cleaner"""
    score = 100.0

    if pm25 > 75:
        score -= 40
    elif pm25 > 35:
        score -= 25
    elif pm25 > 15:
        score -= 10

    if pm10 > 150:
        score -= 30
    elif pm10 > 80:
        score -= 20
    elif pm10 > 30:
        score -= 10

    if ozone > 0.12:
        score -= 20
    elif ozone > 0.09:
        score -= 10

    return clamp(score)


# Soil and vegetation health

def soil_indicator(m: Measurement) -> HealthIndicator:
    """Soil stability rises with stored carbon; erosion falls with vegetation"""
    stability = clamp(50 + m.soil_carbon / 10)
    erosion_risk = max(0, 100 - m.vegetation_feature_count * 10)

    return HealthIndicator(
        indicator="soil",
        value=stability,
        risk=100 - stability,
        details={
            "stability": stability,
            "carbon_storage": m.soil_carbon,
            "erosion_risk": erosion_risk,
        },
    )


def vegetation_indicator(m: Measurement) -> HealthIndicator:
    coverage = clamp(m.vegetation_feature_count * 5)
    biodiversity = clamp(m.biotope_feature_count * 10)

    return HealthIndicator(
        indicator="vegetation",
        value=coverage,
        risk=100 - coverage,
        details={
            "coverage": coverage,
            "biodiversity": biodiversity,
            "carbon_absorption": m.carbon_absorption,
        },
    )


HAZARD_SCORERS = {
    "flood": score_flood,
    "landslide": score_landslide,
    "heatwave": score_heatwave,
    "air_quality": score_air_quality,
    "soil": soil_indicator,
    "vegetation": vegetation_indicator,
}


def level_for(hazard: str, score: float) -> Optional[str]:
    """Level on the hazard's own ladder; None for health indicators"""
    if hazard == "air_quality":
        return air_quality_level(score)
    if hazard in LEVEL_THRESHOLDS:
        return hazard_level(score, LEVEL_THRESHOLDS[hazard])
    return None


def is_elevated(level: Optional[str]) -> bool:
    return level in ("high", "critical", "poor")
