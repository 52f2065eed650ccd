"""
KMA Weather API Connector

Fetches current conditions and short-term forecasts from the Korea
Meteorological Administration village forecast service.
API Documentation: https://www.data.go.kr/data/15084084/openapi.do
"""

import os
import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

import requests
import pandas as pd

from risk_scoring.grid import lat_lng_to_grid
from .cache import TTLCache, location_key

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

KST = timezone(timedelta(hours=9))

# Observation / forecast category codes
CATEGORY_TEMPERATURE = "T1H"      # °C
CATEGORY_RAIN_1H = "RN1"          # mm
CATEGORY_WIND_U = "UUU"           # east-west component, m/s
CATEGORY_HUMIDITY = "REH"         # %
CATEGORY_PRECIP_TYPE = "PTY"      # code
CATEGORY_WIND_DIRECTION = "VEC"   # deg
CATEGORY_WIND_SPEED = "WSD"       # m/s
CATEGORY_SKY = "SKY"              # code

NO_RAIN = "강수없음"

VILLAGE_FORECAST_HOURS = (2, 5, 8, 11, 14, 17, 20, 23)

PRECIPITATION_TYPES = {
    "0": "none",
    "1": "rain",
    "2": "rain/snow",
    "3": "snow",
    "4": "shower",
    "5": "drizzle",
    "6": "drizzle/snow flurries",
    "7": "snow flurries",
}


def ultra_short_base_time(now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Base date/time for the ultra-short nowcast

    Observations publish around half past the hour; step back 40 minutes
    so the requested hour is already available.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    kst = now.astimezone(KST) - timedelta(minutes=40)
    return kst.strftime("%Y%m%d"), kst.strftime("%H00")


def village_forecast_base_time(now: Optional[datetime] = None) -> Tuple[str, str]:
    """Latest village forecast issue (02, 05, ... 23h KST, 10 minutes after issue)"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    kst = now.astimezone(KST)

    for hour in reversed(VILLAGE_FORECAST_HOURS):
        if kst.hour > hour or (kst.hour == hour and kst.minute >= 10):
            return kst.strftime("%Y%m%d"), f"{hour:02d}00"

    yesterday = kst - timedelta(days=1)
    return yesterday.strftime("%Y%m%d"), "2300"


def sky_code_to_cloud_cover(sky_code: str) -> float:
    """SKY code to cloud cover % (1 clear, 3 mostly cloudy, 4 overcast)"""
    return {"1": 0.0, "3": 50.0, "4": 90.0}.get(str(sky_code), 30.0)


def precipitation_type(pty_code: str) -> str:
    return PRECIPITATION_TYPES.get(str(pty_code), "none")


class KMAWeatherConnector:
    """Connector for the KMA village forecast API"""

    BASE_URL = "https://apis.data.go.kr/1360000/VilageFcstInfoService_2.0"

    MAX_RETRIES = 2
    CACHE_MAX_ENTRIES = 500

    def __init__(
        self,
        service_key: Optional[str] = None,
        cache: Optional[TTLCache] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize KMA connector

        Args:
            service_key: data.go.kr service key. If None, reads KMA_API_KEY
            cache: Cache for parsed conditions (5 minute TTL, 500 entries if None)
            sleep: Used for backoff between retries
        """
        self.service_key = service_key if service_key is not None else os.getenv("KMA_API_KEY", "")
        self.cache = cache if cache is not None else TTLCache(
            ttl_seconds=5 * 60, max_entries=self.CACHE_MAX_ENTRIES
        )
        self.sleep = sleep
        self.session = requests.Session()

        if not self.service_key:
            logger.warning("KMA_API_KEY not set - weather lookups will fall back to defaults")

    @property
    def has_api_key(self) -> bool:
        return bool(self.service_key and self.service_key.strip())

    def _params(self, latitude: float, longitude: float, base: Tuple[str, str], rows: int) -> Dict:
        nx, ny = lat_lng_to_grid(latitude, longitude)
        return {
            "serviceKey": self.service_key,
            "pageNo": 1,
            "numOfRows": rows,
            "dataType": "JSON",
            "base_date": base[0],
            "base_time": base[1],
            "nx": nx,
            "ny": ny,
        }

    @staticmethod
    def _items(data: Dict) -> Optional[list]:
        """Items of a KMA response, or None on an API-level error"""
        header = data.get("response", {}).get("header", {})
        code = header.get("resultCode")

        if code != "00":
            if code in ("03", "05"):
                logger.info(f"KMA API key error (code {code}), using defaults")
            else:
                logger.debug(f"KMA API error (code {code}): {header.get('resultMsg')}")
            return None

        body = data["response"].get("body") or {}
        return (body.get("items") or {}).get("item")

    def get_current_conditions(
        self,
        latitude: float,
        longitude: float,
        now: Optional[datetime] = None
    ) -> Optional[Dict[str, str]]:
        """
        Ultra-short nowcast for a point

        Retries HTTP 429 with exponential backoff (2s, 4s).

        Returns:
            Category code -> observed value, or None
        """
        if not self.has_api_key:
            return None

        url = f"{self.BASE_URL}/getUltraSrtNcst"
        try:
            params = self._params(latitude, longitude, ultra_short_base_time(now), rows=10)
        except ValueError as e:
            logger.warning(f"No KMA grid cell for ({latitude}, {longitude}): {e}")
            return None

        for attempt in range(self.MAX_RETRIES + 1):
            try:
                response = self.session.get(url, params=params, timeout=10)

                if response.status_code == 429:
                    if attempt < self.MAX_RETRIES:
                        wait = 2 ** (attempt + 1)
                        logger.warning(
                            f"KMA API rate limited, retrying in {wait}s ({attempt + 1}/{self.MAX_RETRIES})"
                        )
                        self.sleep(wait)
                        continue
                    logger.warning("KMA API call quota exceeded; use cached data or retry later")
                    return None

                response.raise_for_status()
                items = self._items(response.json())
                if not items:
                    return None

                observations = {
                    item["category"]: item["obsrValue"]
                    for item in items
                    if item.get("obsrValue") not in (None, "")
                }
                if observations:
                    logger.info(f"Retrieved {len(observations)} KMA observations")
                return observations

            except (requests.exceptions.RequestException, ValueError) as e:
                if attempt == self.MAX_RETRIES:
                    logger.error(f"Error fetching KMA nowcast: {e}")
                    return None
                logger.debug(f"KMA nowcast attempt {attempt + 1} failed: {e}")

        return None

    def get_weather_conditions(
        self,
        latitude: float,
        longitude: float,
        now: Optional[datetime] = None
    ) -> Optional[Dict[str, float]]:
        """
        Current conditions as Measurement-ready readings

        Crosswind is taken as the magnitude of the east-west wind component.
        Cloud cover and pressure are not observed by the nowcast.
        """
        cache_key = location_key("weather", latitude, longitude)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Weather conditions served from cache")
            return cached

        observations = self.get_current_conditions(latitude, longitude, now=now)
        if not observations:
            return None

        def value(category: str, default: str) -> float:
            try:
                return float(observations.get(category, default))
            except ValueError:
                return float(default)

        rain = observations.get(CATEGORY_RAIN_1H, "0")
        precipitation = 0.0 if rain == NO_RAIN else value(CATEGORY_RAIN_1H, "0")

        conditions = {
            "wind_speed": value(CATEGORY_WIND_SPEED, "5"),
            "wind_direction": value(CATEGORY_WIND_DIRECTION, "0"),
            "temperature": value(CATEGORY_TEMPERATURE, "20"),
            "humidity": value(CATEGORY_HUMIDITY, "60"),
            "precipitation": precipitation,
            "crosswind": abs(value(CATEGORY_WIND_U, "0")),
        }

        self.cache.set(cache_key, conditions)
        return conditions

    def get_forecast(
        self,
        latitude: float,
        longitude: float,
        now: Optional[datetime] = None
    ) -> pd.DataFrame:
        """
        Village forecast (about 48 hours) for a point

        Returns:
            DataFrame with one row per forecast time, one column per category
        """
        if not self.has_api_key:
            return pd.DataFrame()

        url = f"{self.BASE_URL}/getVilageFcst"

        try:
            params = self._params(latitude, longitude, village_forecast_base_time(now), rows=1000)
            logger.info(f"Fetching KMA village forecast for ({latitude}, {longitude})")
            response = self.session.get(url, params=params, timeout=30)

            if response.status_code == 401:
                logger.info("KMA API key invalid or expired, using defaults")
                return pd.DataFrame()
            response.raise_for_status()

            items = self._items(response.json())
            if not items:
                return pd.DataFrame()

            df = pd.DataFrame(items)
            df["forecast_time"] = pd.to_datetime(df["fcstDate"] + df["fcstTime"], format="%Y%m%d%H%M")
            df = df.pivot_table(
                index="forecast_time",
                columns="category",
                values="fcstValue",
                aggfunc="first"
            ).reset_index()
            df.columns.name = None
            # Not every category is forecast for every hour
            df = df.fillna("")

            if CATEGORY_SKY in df.columns:
                df["cloud_cover"] = df[CATEGORY_SKY].map(sky_code_to_cloud_cover)
            if CATEGORY_PRECIP_TYPE in df.columns:
                df["precipitation_type"] = df[CATEGORY_PRECIP_TYPE].map(precipitation_type)

            logger.info(f"Retrieved {len(df)} forecast periods")
            return df

        except (requests.exceptions.RequestException, ValueError, KeyError) as e:
            logger.error(f"Error fetching forecast: {e}")
            return pd.DataFrame()


if __name__ == "__main__":
    print("\n" + "="*60)
    print("KMA WEATHER CONNECTOR TEST")
    print("="*60 + "\n")

    connector = KMAWeatherConnector()

    print("Test 1: Grid cell for Seoul City Hall...")
    print(f"  {lat_lng_to_grid(37.5665, 126.9780)}")

    print("\nTest 2: Current conditions for Suwon...")
    conditions = connector.get_weather_conditions(37.2636, 127.0286)
    if conditions:
        for key, value in conditions.items():
            print(f"  {key}: {value}")
    else:
        print("✗ Could not retrieve conditions")

    print("\n" + "="*60)
    print("TEST COMPLETE")
    print("="*60)
