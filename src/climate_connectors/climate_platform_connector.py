"""
Climate Platform WFS Connector

Fetches geographic features (facilities, hazard history, land cover) from the
Gyeonggi climate platform GeoServer WFS.
API Documentation: https://climate.gg.go.kr/ols/api
"""

import os
import logging
from typing import Any, Dict, List, Optional

import requests
import pandas as pd

from risk_scoring.extraction import feature_location

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# WFS layer type names
LAYER_FLOOD_VULNERABLE_FACILITIES = "spggcee:flod_weak_fclt"
LAYER_FLOOD_TRACES = "spggcee:tm_fldn_trce"
LAYER_SMALL_RIVERS = "spggcee:lsmd_cont_uj301_41"
LAYER_LANDSLIDE_HISTORY = "spggcee:ldsld_ocrn_prst"
LAYER_DEBRIS_BARRIERS = "spggcee:debarr"
LAYER_COOLING_SHELTERS = "spggcee:swtr_rstar"
LAYER_SOIL_CARBON = "spggcee:soil_cbn_strgat"
LAYER_VEGETATION = "spggcee:vgmap"
LAYER_BIOTOPE_CARBON = "spggcee:biotop_cbn_abpvl"
LAYER_BIOTOPE_CLASS = "spggcee:biotop_lclsf"


def bounding_box(latitude: float, longitude: float, radius_deg: float) -> str:
    """WFS 1.1.0 bbox string (lat/lng order, as the platform expects)"""
    return (
        f"{latitude - radius_deg},{longitude - radius_deg},"
        f"{latitude + radius_deg},{longitude + radius_deg}"
    )


class ClimatePlatformConnector:
    """Connector for the climate platform GeoServer WFS"""

    BASE_URL = "https://climate.gg.go.kr/ols/api/geoserver"

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize climate platform connector

        Args:
            api_key: Platform API key. If None, reads CLIMATE_PLATFORM_API_KEY
        """
        self.api_key = api_key if api_key is not None else os.getenv("CLIMATE_PLATFORM_API_KEY", "")

        if not self.api_key:
            logger.warning("CLIMATE_PLATFORM_API_KEY not set - WFS requests may be rejected")

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def get_features(
        self,
        type_name: str,
        bbox: Optional[str] = None,
        max_features: int = 1000,
        property_name: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        WFS GetFeature as GeoJSON

        Args:
            type_name: Layer type name (e.g. "spggcee:vgmap")
            bbox: "minlat,minlng,maxlat,maxlng"
            max_features: Feature limit
            property_name: Restrict returned properties

        Returns:
            GeoJSON FeatureCollection dict, or None on failure
        """
        if not type_name or not type_name.strip():
            logger.debug("Layer has no WFS type name")
            return None

        params = {
            "apiKey": self.api_key,
            "service": "WFS",
            "version": "1.1.0",
            "request": "GetFeature",
            "typeName": type_name,
            "outputFormat": "application/json",
        }
        if bbox:
            params["bbox"] = bbox
        if max_features:
            params["maxFeatures"] = max_features
        if property_name:
            params["propertyName"] = property_name

        try:
            response = self.session.get(f"{self.BASE_URL}/wfs", params=params, timeout=30)
            response.raise_for_status()

            content_type = response.headers.get("content-type", "")
            if "json" not in content_type:
                # GeoServer reports errors as XML exception documents
                logger.error(f"Unexpected WFS response for {type_name}: {response.text[:200]}")
                return None

            return response.json()

        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error fetching WFS layer {type_name}: {e}")
            return None

    def get_features_near(
        self,
        type_name: str,
        latitude: float,
        longitude: float,
        radius_deg: float = 0.01,
        max_features: int = 10
    ) -> List[Dict[str, Any]]:
        data = self.get_features(
            type_name,
            bbox=bounding_box(latitude, longitude, radius_deg),
            max_features=max_features,
        )
        if not data:
            return []
        return data.get("features") or []

    def count_features_near(
        self,
        type_name: str,
        latitude: float,
        longitude: float,
        radius_deg: float = 0.01,
        max_features: int = 10
    ) -> int:
        """Number of features of a layer around a point (0 on failure)"""
        return len(self.get_features_near(type_name, latitude, longitude, radius_deg, max_features))

    def first_properties(
        self,
        type_name: str,
        latitude: float,
        longitude: float,
        radius_deg: float = 0.01,
        max_features: int = 5
    ) -> Dict[str, Any]:
        """Property bag of the first feature near a point, or {}"""
        features = self.get_features_near(type_name, latitude, longitude, radius_deg, max_features)
        if not features:
            return {}
        return features[0].get("properties") or {}

    @staticmethod
    def features_to_frame(features: List[Dict[str, Any]]) -> pd.DataFrame:
        """
        Flatten GeoJSON features into a DataFrame

        Columns: id, latitude, longitude (point or polygon centroid), plus
        every property.
        """
        if not features:
            return pd.DataFrame()

        records = []
        for feature in features:
            location = feature_location(feature)
            record = {
                "id": feature.get("id"),
                "latitude": location[0] if location else None,
                "longitude": location[1] if location else None,
            }
            record.update(feature.get("properties") or {})
            records.append(record)

        return pd.DataFrame(records)


if __name__ == "__main__":
    print("\n" + "="*60)
    print("CLIMATE PLATFORM CONNECTOR TEST")
    print("="*60 + "\n")

    connector = ClimatePlatformConnector()

    print("Fetching cooling shelters near Suwon...")
    features = connector.get_features_near(LAYER_COOLING_SHELTERS, 37.2636, 127.0286, radius_deg=0.05, max_features=20)
    df = connector.features_to_frame(features)

    if not df.empty:
        print(f"\n✓ Retrieved {len(df)} shelters")
        print(df[["id", "latitude", "longitude"]].head())
    else:
        print("✗ No shelters retrieved")
