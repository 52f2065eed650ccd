"""
FastAPI REST API for the Climate Risk Platform

Provides RESTful endpoints for climate risk assessment queries.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional, Dict
from datetime import datetime
import random
import sys
import os

# Add src directory to path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from climate_connectors import (
    ClimatePlatformConnector,
    GroqConnector,
    KMAWeatherConnector,
    MockDataGenerator,
    SiteDataCollector,
)
from risk_scoring import (
    CompositeRiskAnalysis,
    FloodAssessment,
    LaunchAssessment,
    LaunchCriteria,
    LaunchWindow,
    Measurement,
    RiskScorer,
    analyze_climate_shift,
    assess_launch_environment,
    lat_lng_to_grid,
    predict_flood,
    predict_flood_batch,
    predict_launch_windows,
)

app = FastAPI(
    title="Climate Risk Intelligence API",
    description="Multi-hazard climate risk scoring for locations",
    version="1.0.0"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize connectors
kma_connector = KMAWeatherConnector()
platform_connector = ClimatePlatformConnector()
groq_connector = GroqConnector()
mock_generator = MockDataGenerator()
site_collector = SiteDataCollector(kma_connector, platform_connector, mock_generator)
risk_scorer = RiskScorer()


# Pydantic models
class LocationInput(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, description="Latitude (-90 to 90)")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude (-180 to 180)")


class PropertyInput(BaseModel):
    properties: List[LocationInput]


class PortfolioResponse(BaseModel):
    total_properties: int
    average_overall_score: float
    risk_distribution: Dict[str, int]
    highest_risk_properties: List[Dict]
    timestamp: datetime


class AggregateInput(BaseModel):
    scores: Dict[str, float]
    location: Optional[Dict[str, float]] = None


class FloodInput(BaseModel):
    measurement: Measurement = Field(default_factory=Measurement)
    enable_ai: bool = False


class LaunchWindowInput(BaseModel):
    measurement: Measurement = Field(default_factory=Measurement)
    criteria: LaunchCriteria = Field(default_factory=LaunchCriteria)
    seed: Optional[int] = None


# API Endpoints

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Climate Risk Intelligence API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "risk_assessment": "/api/v1/risk/location",
            "portfolio_analysis": "/api/v1/risk/portfolio",
            "measurement_analysis": "/api/v1/risk/measurement",
            "aggregate": "/api/v1/risk/aggregate",
            "flood_prediction": "/api/v1/flood/predict",
            "flood_batch": "/api/v1/flood/batch",
            "launch_assessment": "/api/v1/launch/assess",
            "launch_windows": "/api/v1/launch/windows",
            "grid": "/api/v1/grid",
            "forecast": "/api/v1/data/forecast",
            "air_quality": "/api/v1/data/air-quality",
            "climate_shift": "/api/v1/climate/shift"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "services": {
            "kma_api": "configured" if kma_connector.has_api_key else "defaults",
            "climate_platform_wfs": "configured" if platform_connector.api_key else "unauthenticated",
            "groq_api": "configured" if groq_connector.has_api_key else "disabled"
        }
    }


@app.post("/api/v1/risk/location", response_model=CompositeRiskAnalysis)
async def assess_location_risk(location: LocationInput):
    """
    Assess climate risk for a specific location

    Collects live readings (falling back to defaults) and returns the
    composite analysis.
    """
    try:
        measurement = site_collector.collect(location.latitude, location.longitude)

        return risk_scorer.analyze(
            measurement,
            location={"lat": location.latitude, "lng": location.longitude}
        )

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error assessing risk: {str(e)}")


@app.post("/api/v1/risk/portfolio", response_model=PortfolioResponse)
async def assess_portfolio_risk(portfolio: PropertyInput):
    """
    Assess risk across a portfolio of locations

    Returns aggregate metrics and highest-risk locations.
    """
    try:
        if not portfolio.properties:
            raise HTTPException(status_code=400, detail="No properties provided")

        property_risks = []

        for prop in portfolio.properties:
            result = await assess_location_risk(prop)
            property_risks.append({
                "latitude": prop.latitude,
                "longitude": prop.longitude,
                "overall_score": result.scores["overall"],
                "risk_level": result.risk_level.level
            })

        scores = [p["overall_score"] for p in property_risks]
        avg_score = sum(scores) / len(scores)

        risk_distribution = {
            level: sum(1 for p in property_risks if p["risk_level"] == level)
            for level in ("critical", "high", "medium", "low", "safe")
        }

        highest_risk = sorted(
            property_risks,
            key=lambda x: x["overall_score"],
            reverse=True
        )[:5]

        return PortfolioResponse(
            total_properties=len(portfolio.properties),
            average_overall_score=round(avg_score, 1),
            risk_distribution=risk_distribution,
            highest_risk_properties=highest_risk,
            timestamp=datetime.now()
        )

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error assessing portfolio: {str(e)}")


@app.post("/api/v1/risk/measurement", response_model=CompositeRiskAnalysis)
async def assess_measurement_risk(measurement: Measurement):
    """Composite analysis for caller-supplied readings"""
    try:
        return risk_scorer.analyze(measurement)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/risk/aggregate", response_model=CompositeRiskAnalysis)
async def aggregate_scores(payload: AggregateInput):
    """Weighted composite of precomputed hazard risk values (0-100)"""
    try:
        return risk_scorer.aggregate(payload.scores, location=payload.location)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/flood/predict", response_model=FloodAssessment)
async def flood_prediction(payload: FloodInput):
    """Rule-based flood prediction, optionally annotated by the LLM"""
    try:
        assessment = predict_flood(payload.measurement)
        if payload.enable_ai:
            assessment = groq_connector.enrich_flood_assessment(assessment, payload.measurement)
        return assessment
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/flood/batch", response_model=List[FloodAssessment])
async def flood_prediction_batch(measurements: List[Measurement]):
    """Flood predictions for several readings, in input order"""
    try:
        return predict_flood_batch(measurements)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/launch/assess", response_model=LaunchAssessment)
async def launch_assessment(measurement: Measurement):
    """Launch-site suitability for current conditions"""
    try:
        return assess_launch_environment(measurement)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/launch/windows", response_model=List[LaunchWindow])
async def launch_windows(payload: LaunchWindowInput):
    """Simulated 48 hour launch windows meeting the criteria"""
    try:
        rng = random.Random(payload.seed) if payload.seed is not None else None
        return predict_launch_windows(payload.measurement, payload.criteria, rng=rng)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/grid")
async def get_grid_cell(
    latitude: float = Query(..., gt=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180)
):
    """KMA forecast grid cell for a location"""
    try:
        nx, ny = lat_lng_to_grid(latitude, longitude)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"latitude": latitude, "longitude": longitude, "nx": nx, "ny": ny}


@app.get("/api/v1/data/forecast")
async def get_forecast(
    latitude: float = Query(..., gt=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    hours: int = Query(48, ge=1, le=72)
):
    """Village forecast for a location (simulated when KMA is unavailable)"""
    try:
        df = kma_connector.get_forecast(latitude, longitude)
        source = "kma"

        if df.empty:
            df = mock_generator.generate_weather_forecast(hours=hours)
            source = "mock"

        df = df.head(hours).copy()
        df["forecast_time"] = df["forecast_time"].astype(str)

        return {
            "source": source,
            "count": len(df),
            "forecast": df.to_dict(orient="records")
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/air-quality")
async def get_air_quality_grid(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    grid_size: int = Query(5, ge=1, le=20),
    radius_deg: float = Query(0.1, gt=0, le=1)
):
    """Simulated air quality grid around a location"""
    try:
        df = mock_generator.generate_air_quality_grid(latitude, longitude, grid_size, radius_deg)
        return {
            "source": "mock",
            "count": len(df),
            "points": df.to_dict(orient="records")
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


MAX_CLIMATE_SHIFT_YEARS = 50


def _records(df) -> List[Dict]:
    """JSON-safe records: dates as strings, missing values as None"""
    df = df.copy()
    if "date" in df.columns:
        df["date"] = df["date"].astype(str)
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


@app.get("/api/v1/climate/shift")
async def get_climate_shift(
    start_year: int = Query(2014, ge=1900, le=2100),
    end_year: int = Query(2023, ge=1900, le=2100),
    base_temperature: float = Query(20.0, ge=-30, le=40),
    years_ahead: int = Query(5, ge=1, le=20),
    seed: Optional[int] = None,
    max_temperature: float = Query(35.0),
    min_temperature: float = Query(-15.0),
    max_precipitation: float = Query(50.0),
    max_wind_speed: float = Query(15.0)
):
    """Simulated climate history with yearly summary, extreme events and trend"""
    if end_year < start_year:
        raise HTTPException(status_code=400, detail="end_year must not be before start_year")
    if end_year - start_year + 1 > MAX_CLIMATE_SHIFT_YEARS:
        raise HTTPException(
            status_code=400,
            detail=f"At most {MAX_CLIMATE_SHIFT_YEARS} years can be analysed"
        )

    try:
        rng = random.Random(seed) if seed is not None else None
        result = analyze_climate_shift(
            start_year,
            end_year,
            base_temperature=base_temperature,
            thresholds={
                "max_temperature": max_temperature,
                "min_temperature": min_temperature,
                "max_precipitation": max_precipitation,
                "max_wind_speed": max_wind_speed,
            },
            years_ahead=years_ahead,
            rng=rng
        )

        return {
            "source": "simulated",
            "start_year": start_year,
            "end_year": end_year,
            "days": len(result["history"]),
            "summary": _records(result["summary"]),
            "event_count": len(result["events"]),
            "events": _records(result["events"]),
            "event_frequency": _records(result["event_frequency"]),
            "monthly_comparison": _records(result["monthly_comparison"]),
            "trend": _records(result["trend"])
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
