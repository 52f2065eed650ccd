"""
Property Extraction Helpers

Pull numeric readings and locations out of loosely-typed GeoJSON features.
"""

import re
import math
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Fallback point used when a geometry has no usable vertices (Gyeonggi centre)
DEFAULT_CENTROID = (127.0, 37.5)

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse the leading number of a value the way feature properties need it

    "12.5mm" -> 12.5, "" -> None, "n/a" -> None, True -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return None
        number = float(match.group(0))

    if not math.isfinite(number):
        return None
    return number


def extract_numeric(
    props: Dict[str, Any],
    keys: Iterable[str],
    default: Optional[float] = None
) -> Optional[float]:
    """
    Extract a numeric value from a property bag by candidate key names

    Matching order:
    1. Exact key match (case-insensitive), in candidate order
    2. Partial match (candidate inside key or key inside candidate)
    3. default

    Args:
        props: Feature properties
        keys: Candidate key spellings, most specific first
        default: Returned when nothing parses

    Returns:
        Parsed number or default
    """
    if not props:
        return default

    keys = list(keys)
    lowered = {str(k).lower(): k for k in props}

    for key in keys:
        actual = lowered.get(key.lower())
        if actual is None:
            continue
        number = parse_number(props[actual])
        if number is not None:
            logger.debug(f"Exact property match: {actual} = {number}")
            return number

    for key in keys:
        needle = key.lower()
        for low, actual in lowered.items():
            if low == needle:
                continue
            if needle in low or low in needle:
                number = parse_number(props[actual])
                if number is not None:
                    logger.debug(f"Partial property match: {actual} = {number}")
                    return number

    return default


def calculate_centroid(coords: Any, geometry_type: str) -> Tuple[float, float]:
    """Average of outer-ring vertices as (lng, lat)"""
    points = []

    if geometry_type == "Polygon" and coords:
        points = list(coords[0])
    elif geometry_type == "MultiPolygon" and coords:
        for polygon in coords:
            if polygon:
                points.extend(polygon[0])

    if not points:
        return DEFAULT_CENTROID

    sum_lng = sum(p[0] for p in points)
    sum_lat = sum(p[1] for p in points)
    return (sum_lng / len(points), sum_lat / len(points))


def feature_location(feature: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """(lat, lng) of a GeoJSON feature: the point itself, or its centroid"""
    geometry = feature.get("geometry") or {}
    coords = geometry.get("coordinates")
    if not coords:
        return None

    if geometry.get("type") == "Point":
        return (coords[1], coords[0])

    lng, lat = calculate_centroid(coords, geometry.get("type", ""))
    return (lat, lng)


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Great circle distance in km (Haversine formula)

    Accepts scalars or numpy arrays for the second point.
    """
    R = 6371  # Earth's radius in km

    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = np.sin(dlat/2)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon/2)**2
    c = 2 * np.arcsin(np.sqrt(a))

    return R * c
