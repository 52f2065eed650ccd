"""
Climate Shift Analysis

Daily weather history, yearly summaries, extreme-event detection and a linear
temperature / precipitation trend. History is simulated (seasonal sine, a
0.05°C/year warming trend and random noise) until an archive source exists.
"""

import math
import operator
import random
import logging
from datetime import date
from typing import Dict, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

WARMING_PER_YEAR = 0.05  # °C

# Yearly summary day-count thresholds
EXTREME_HEAT_C = 35.0      # days above
EXTREME_COLD_C = -15.0     # days below
HEAVY_RAIN_MM = 50.0       # days at or above

DEFAULT_EVENT_THRESHOLDS = {
    "max_temperature": 35.0,
    "min_temperature": -15.0,
    "max_precipitation": 50.0,
    "max_wind_speed": 15.0,
}

SUMMER_MONTHS = (6, 7, 8, 9)
HAZE_MONTHS = (12, 1, 2, 3)

EVENT_COLUMNS = ["date", "type", "value", "threshold"]


def generate_historical_weather(
    start_year: int,
    end_year: int,
    base_temperature: float = 20.0,
    rng: Optional[random.Random] = None
) -> pd.DataFrame:
    """
    Simulated daily weather from Jan 1 of start_year to Dec 31 of end_year

    Args:
        start_year: First year
        end_year: Last year (inclusive)
        base_temperature: Mean temperature of the first year (°C)
        rng: Random source; pass a seeded random.Random for reproducible data

    Returns:
        DataFrame with date, temperature, precipitation, humidity,
        wind_speed, pm25
    """
    if end_year < start_year:
        raise ValueError(f"end_year {end_year} is before start_year {start_year}")

    rng = rng or random.Random()
    records = []

    for day in pd.date_range(date(start_year, 1, 1), date(end_year, 12, 31), freq="D"):
        seasonal = math.sin((day.dayofyear - 1) / 365 * math.pi * 2) * 10
        trend = base_temperature + (day.year - start_year) * WARMING_PER_YEAR

        temperature = trend + seasonal + (rng.random() - 0.5) * 8

        summer = day.month in SUMMER_MONTHS
        rain_probability = 0.3 if summer else 0.1
        precipitation = rng.random() * (50 if summer else 20) if rng.random() < rain_probability else 0.0

        humidity = 50 + seasonal * 0.5 + (rng.random() - 0.5) * 20
        wind_speed = 3 + rng.random() * 5 + abs(seasonal) * 0.2

        if day.month in HAZE_MONTHS:
            pm25 = 30 + rng.random() * 40
        else:
            pm25 = 15 + rng.random() * 25

        records.append({
            "date": day,
            "temperature": round(temperature, 1),
            "precipitation": round(precipitation, 1),
            "humidity": round(humidity, 1),
            "wind_speed": round(wind_speed, 1),
            "pm25": round(pm25, 1),
        })

    logger.info(f"Simulated {len(records)} days of weather for {start_year}-{end_year}")
    return pd.DataFrame(records)


def yearly_summary(history: pd.DataFrame) -> pd.DataFrame:
    """Per-year averages, precipitation total and extreme-day counts, sorted by year"""
    if history.empty:
        return pd.DataFrame()

    df = history.assign(
        year=pd.to_datetime(history["date"]).dt.year,
        heat_day=history["temperature"] > EXTREME_HEAT_C,
        cold_day=history["temperature"] < EXTREME_COLD_C,
        rain_day=history["precipitation"] >= HEAVY_RAIN_MM,
    )

    summary = df.groupby("year").agg(
        avg_temperature=("temperature", "mean"),
        total_precipitation=("precipitation", "sum"),
        avg_humidity=("humidity", "mean"),
        avg_wind_speed=("wind_speed", "mean"),
        extreme_heat_days=("heat_day", "sum"),
        extreme_cold_days=("cold_day", "sum"),
        heavy_rain_days=("rain_day", "sum"),
    ).reset_index().sort_values("year")

    rounded = ["avg_temperature", "total_precipitation", "avg_humidity", "avg_wind_speed"]
    summary[rounded] = summary[rounded].round(1)
    counts = ["extreme_heat_days", "extreme_cold_days", "heavy_rain_days"]
    summary[counts] = summary[counts].astype(int)

    return summary.reset_index(drop=True)


def detect_extreme_events(
    history: pd.DataFrame,
    max_temperature: Optional[float] = None,
    min_temperature: Optional[float] = None,
    max_precipitation: Optional[float] = None,
    max_wind_speed: Optional[float] = None
) -> pd.DataFrame:
    """
    Days beyond the given thresholds, oldest first

    A threshold left as None is not checked. Each breach is one row:
    date, type (heat / cold / heavy_rain / high_wind), value, threshold.
    """
    checks = [
        ("heat", "temperature", max_temperature, operator.gt),
        ("cold", "temperature", min_temperature, operator.lt),
        ("heavy_rain", "precipitation", max_precipitation, operator.gt),
        ("high_wind", "wind_speed", max_wind_speed, operator.gt),
    ]

    frames = []
    for event_type, column, threshold, compare in checks:
        if threshold is None:
            continue
        hits = history.loc[compare(history[column], threshold), ["date", column]]
        frames.append(pd.DataFrame({
            "date": hits["date"],
            "type": event_type,
            "value": hits[column],
            "threshold": threshold,
        }))

    if not frames:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    events = pd.concat(frames, ignore_index=True)
    return events.sort_values("date", kind="stable").reset_index(drop=True)


def event_frequency(events: pd.DataFrame) -> pd.DataFrame:
    """Event counts per year and type"""
    if events.empty:
        return pd.DataFrame()

    years = pd.to_datetime(events["date"]).dt.year.rename("year")
    table = pd.crosstab(years, events["type"])
    return table.reset_index().rename_axis(None, axis=1)


def monthly_comparison(history: pd.DataFrame, base_year: int, compare_year: int) -> pd.DataFrame:
    """Monthly mean temperature and mean precipitation of two years side by side"""
    dates = pd.to_datetime(history["date"])
    df = history.assign(year=dates.dt.year, month=dates.dt.month)
    df = df[df["year"].isin([base_year, compare_year])]

    means = df.groupby(["month", "year"])[["temperature", "precipitation"]].mean().round(1).unstack("year")
    means.columns = [f"{column}_{year}" for column, year in means.columns]
    return means.reindex(pd.Index(range(1, 13), name="month")).reset_index()


def predict_future_trend(summary: pd.DataFrame, years_ahead: int = 5) -> pd.DataFrame:
    """
    Least-squares linear trend of yearly temperature and precipitation

    Returns:
        DataFrame of year, predicted_temperature, predicted_precipitation for
        the years after the last summarised one; empty with fewer than two years
    """
    if len(summary) < 2:
        return pd.DataFrame(columns=["year", "predicted_temperature", "predicted_precipitation"])

    years = summary["year"].to_numpy(dtype=float)
    temp_slope, temp_intercept = np.polyfit(years, summary["avg_temperature"].to_numpy(dtype=float), 1)
    precip_slope, precip_intercept = np.polyfit(years, summary["total_precipitation"].to_numpy(dtype=float), 1)

    last_year = int(summary["year"].max())
    future = np.arange(last_year + 1, last_year + years_ahead + 1)

    return pd.DataFrame({
        "year": future,
        "predicted_temperature": np.round(temp_slope * future + temp_intercept, 1),
        "predicted_precipitation": np.round(precip_slope * future + precip_intercept, 1),
    })


def analyze_climate_shift(
    start_year: int,
    end_year: int,
    base_temperature: float = 20.0,
    thresholds: Optional[Dict[str, float]] = None,
    years_ahead: int = 5,
    rng: Optional[random.Random] = None
) -> Dict[str, pd.DataFrame]:
    """Simulated history plus every climate-shift view over it"""
    history = generate_historical_weather(start_year, end_year, base_temperature, rng=rng)
    summary = yearly_summary(history)
    events = detect_extreme_events(history, **(thresholds or DEFAULT_EVENT_THRESHOLDS))

    return {
        "history": history,
        "summary": summary,
        "events": events,
        "event_frequency": event_frequency(events),
        "monthly_comparison": monthly_comparison(history, start_year, end_year),
        "trend": predict_future_trend(summary, years_ahead),
    }
