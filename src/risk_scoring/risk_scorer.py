"""
Risk Scoring Module

Calculates composite climate risk scores for a location from per-hazard scores.
"""

import numpy as np
from typing import Dict, Mapping, Optional, Union
from datetime import datetime
import logging

from .hazards import (
    HAZARD_SCORERS,
    clamp,
    is_elevated,
    level_for,
    round_half_up,
)
from .models import (
    CompositeRiskAnalysis,
    HazardScore,
    HealthIndicator,
    Measurement,
    RiskLevel,
    RiskPredictions,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ScoreInput = Union[HazardScore, HealthIndicator, float, int]

# Placeholder trend assumptions (-1 improving, 0 flat, +1 worsening).
# A fixed linear nudge, not a forecast model.
TRENDS_24H = {
    "overall": 0,
    "flood": 0,
    "landslide": 0,
    "heatwave": 0,
    "air_quality": 0,
    "soil": 0,
    "vegetation": 0,
}
TRENDS_7D = {
    "overall": 1,
    "flood": 1,
    "landslide": 1,
    "heatwave": 1,
    "air_quality": 1,
    "soil": 0,
    "vegetation": -1,
}

HAZARD_RECOMMENDATIONS = {
    "flood": [
        "Prepare flood emergency supplies",
        "Avoid basements and low-lying areas",
        "Follow real-time weather updates",
    ],
    "landslide": [
        "Prepare to evacuate when a landslide warning is issued",
        "Stay indoors during heavy rain",
    ],
    "heatwave": [
        "Drink plenty of water",
        "Use a cooling shelter",
        "Limit outdoor activity",
    ],
    "air_quality": [
        "Wear a mask outdoors",
        "Keep windows closed",
        "Run an air purifier",
    ],
    "vegetation": [
        "Plan green-space expansion",
        "Join a tree-planting campaign",
    ],
}
DEFAULT_RECOMMENDATION = "Maintain current precautions"

LOW_VEGETATION_COVERAGE = 30


def predict_future_risk(current_score: float, trend: int) -> float:
    """Linear placeholder projection: 10 points per trend step, clamped"""
    return clamp(current_score + trend * 10)


def get_risk_level(score: float) -> RiskLevel:
    """Five-band composite ladder (adds 'safe' below 'low')"""
    if score >= 80:
        return RiskLevel(level="critical", label="Critical", color="#d32f2f")
    elif score >= 60:
        return RiskLevel(level="high", label="High", color="#f57c00")
    elif score >= 40:
        return RiskLevel(level="medium", label="Medium", color="#fbc02d")
    elif score >= 20:
        return RiskLevel(level="low", label="Low", color="#388e3c")
    return RiskLevel(level="safe", label="Safe", color="#1976d2")


class RiskScorer:
    """Calculate composite climate risk scores"""

    # Default weights for each hazard type (must sum to 1.0)
    DEFAULT_WEIGHTS = {
        "flood": 0.25,
        "landslide": 0.20,
        "heatwave": 0.20,
        "air_quality": 0.15,
        "soil": 0.10,
        "vegetation": 0.10
    }

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        """
        Initialize risk scorer

        Args:
            weights: Custom weights for each hazard type. If None, uses defaults.
        """
        self.weights = dict(weights) if weights is not None else dict(self.DEFAULT_WEIGHTS)

        # Validate weights sum to 1.0
        total_weight = sum(self.weights.values())
        if not np.isclose(total_weight, 1.0):
            logger.warning(f"Weights sum to {total_weight:.2f}, normalizing to 1.0")
            self.weights = {k: v/total_weight for k, v in self.weights.items()}

    def score_all(self, measurement: Measurement) -> Dict[str, Union[HazardScore, HealthIndicator]]:
        """Run every hazard scorer against one measurement"""
        return {hazard: scorer(measurement) for hazard, scorer in HAZARD_SCORERS.items()}

    @staticmethod
    def _risk_value(item: ScoreInput) -> float:
        if isinstance(item, HealthIndicator):
            return item.risk
        if isinstance(item, HazardScore):
            return item.score
        return clamp(float(item))

    @staticmethod
    def _level(hazard: str, item: ScoreInput, risk: float) -> Optional[str]:
        if isinstance(item, HazardScore):
            return item.risk_level
        return level_for(hazard, risk)

    def calculate_composite_risk(self, risks: Mapping[str, float]) -> int:
        """
        Weighted composite of per-hazard risk values

        Hazards absent from `risks` count as zero.
        """
        composite = sum(
            weight * risks.get(hazard, 0.0)
            for hazard, weight in sorted(self.weights.items())
        )
        return int(clamp(round_half_up(composite)))

    def aggregate(
        self,
        scores: Mapping[str, ScoreInput],
        location: Optional[Dict[str, float]] = None,
        timestamp: Optional[datetime] = None
    ) -> CompositeRiskAnalysis:
        """
        Combine per-hazard scores into one CompositeRiskAnalysis

        Args:
            scores: Hazard name -> HazardScore, HealthIndicator, or a bare
                risk value (0-100, higher = more risk)
            location: Optional {"lat": .., "lng": ..}
            timestamp: Analysis time; defaults to now

        Returns:
            CompositeRiskAnalysis
        """

        unknown = set(scores) - set(self.weights)
        if unknown:
            logger.warning(f"Ignoring unknown hazards: {sorted(unknown)}")

        risks = {}
        levels = {}
        for hazard in self.weights:
            item = scores.get(hazard)
            if item is None:
                logger.debug(f"No score for {hazard}, counting as 0")
                item = 0.0
            risks[hazard] = self._risk_value(item)
            levels[hazard] = self._level(hazard, item, risks[hazard])

        overall = self.calculate_composite_risk(risks)

        score_map = {"overall": float(overall), **risks}
        predictions = RiskPredictions(
            next_24h={k: predict_future_risk(v, TRENDS_24H.get(k, 0)) for k, v in score_map.items()},
            next_7d={k: predict_future_risk(v, TRENDS_7D.get(k, 0)) for k, v in score_map.items()},
        )

        details = {}
        for hazard, item in scores.items():
            if hazard in self.weights and isinstance(item, (HazardScore, HealthIndicator)):
                details[hazard] = item.model_dump(exclude_none=True)

        return CompositeRiskAnalysis(
            location=location,
            timestamp=timestamp or datetime.now(),
            scores=score_map,
            risk_level=get_risk_level(overall),
            predictions=predictions,
            recommendations=self.generate_recommendations(risks, levels),
            insights=self.generate_insights(overall, scores, risks, levels),
            details=details,
        )

    def analyze(
        self,
        measurement: Measurement,
        location: Optional[Dict[str, float]] = None,
        timestamp: Optional[datetime] = None
    ) -> CompositeRiskAnalysis:
        """Score every hazard for a measurement and aggregate"""
        analysis = self.aggregate(self.score_all(measurement), location=location, timestamp=timestamp)
        logger.info(
            f"Climate risk analysis complete: overall {analysis.scores['overall']:.0f} "
            f"({analysis.risk_level.label})"
        )
        return analysis

    @staticmethod
    def generate_recommendations(
        risks: Mapping[str, float],
        levels: Mapping[str, Optional[str]]
    ) -> list:
        """Canned advice for each elevated hazard, deduplicated in order"""
        recommendations = []

        for hazard in ("flood", "landslide", "heatwave", "air_quality"):
            if is_elevated(levels.get(hazard)):
                recommendations.extend(HAZARD_RECOMMENDATIONS[hazard])

        if 100 - risks.get("vegetation", 0.0) < LOW_VEGETATION_COVERAGE:
            recommendations.extend(HAZARD_RECOMMENDATIONS["vegetation"])

        if not recommendations:
            recommendations.append(DEFAULT_RECOMMENDATION)

        return list(dict.fromkeys(recommendations))

    @staticmethod
    def generate_insights(
        overall: float,
        scores: Mapping[str, ScoreInput],
        risks: Mapping[str, float],
        levels: Mapping[str, Optional[str]]
    ) -> str:
        """Short narrative summary of the elevated hazards"""
        insights = []

        if overall >= 70:
            insights.append("Overall climate risk for this area is very high; act now.")

        flood = scores.get("flood")
        if is_elevated(levels.get("flood")):
            factors = ", ".join(flood.factors) if isinstance(flood, HazardScore) else ""
            insights.append(f"Flood risk is high. {factors}".strip())

        landslide = scores.get("landslide")
        if is_elevated(levels.get("landslide")):
            count = landslide.details.get("history_count", 0) if isinstance(landslide, HazardScore) else 0
            insights.append(f"Landslide risk is high; {count:.0f} past events recorded nearby.")

        heatwave = scores.get("heatwave")
        if is_elevated(levels.get("heatwave")) and isinstance(heatwave, HazardScore):
            insights.append(f"Heatwave risk is high; heat index {heatwave.details['heat_index']:.1f}°C.")
            shelters = heatwave.details.get("shelters", 0)
            if shelters > 0:
                insights.append(f"{shelters:.0f} cooling shelters are nearby.")
        elif is_elevated(levels.get("heatwave")):
            insights.append("Heatwave risk is high.")

        air = scores.get("air_quality")
        if levels.get("air_quality") == "poor":
            if isinstance(air, HazardScore):
                insights.append(f"Air quality is poor; PM2.5 {air.details['pm25']:g} µg/m³.")
            else:
                insights.append("Air quality is poor.")

        coverage = 100 - risks.get("vegetation", 0.0)
        if coverage < LOW_VEGETATION_COVERAGE:
            insights.append(f"Vegetation coverage is low ({coverage:.0f}%); expanding green space is advised.")

        if not insights:
            insights.append("This area is generally safe at the moment.")

        return " ".join(insights)


if __name__ == "__main__":
    # Test the risk scorer
    print("\n" + "="*60)
    print("CLIMATE RISK SCORING TEST")
    print("="*60 + "\n")

    scorer = RiskScorer()

    # Suwon, summer storm
    measurement = Measurement(
        precipitation=42,
        elevation=25,
        temperature=31,
        humidity=85,
        pm25=38,
        pm10=70,
        landslide_history_count=2,
        cooling_shelter_count=3,
        vegetation_feature_count=4,
    )

    analysis = scorer.analyze(measurement, location={"lat": 37.2636, "lng": 127.0286})

    print(f"\nIndividual Hazard Scores:")
    for hazard, value in analysis.scores.items():
        print(f"  {hazard:<12} {value:5.1f}/100")

    print(f"\nComposite Risk Assessment:")
    print(f"  Risk Level:   {analysis.risk_level.label}")
    print(f"  7-day trend:  {analysis.predictions.next_7d['overall']:.0f}/100")
    print(f"\nRecommendations:")
    for rec in analysis.recommendations:
        print(f"  - {rec}")

    print("\n" + "="*60)
    print("TEST COMPLETE")
    print("="*60)
