"""
KMA Weather Grid Transform

Lambert Conformal Conic projection from WGS84 lat/lng to the integer
(nx, ny) cells of the Korea Meteorological Administration 5 km grid.
"""

import math
from typing import Tuple

RE = 6371.00877   # Earth radius (km)
GRID = 5.0        # Grid spacing (km)
SLAT1 = 30.0      # Standard parallel 1 (deg)
SLAT2 = 60.0      # Standard parallel 2 (deg)
OLON = 126.0      # Origin longitude (deg)
OLAT = 38.0       # Origin latitude (deg)
XO = 43           # Origin x (grid)
YO = 136          # Origin y (grid)

DEGRAD = math.pi / 180.0


def lat_lng_to_grid(lat: float, lng: float) -> Tuple[int, int]:
    """
    Convert a latitude/longitude to KMA grid indices

    Must stay bit-compatible with the KMA reference formula; cell
    boundaries are defined by it.

    Raises:
        ValueError: at the south pole, the singular point of the projection

    Returns:
        (nx, ny)
    """
    if lat <= -90:
        raise ValueError(f"Latitude {lat} is outside the KMA grid projection")

    re = RE / GRID
    slat1 = SLAT1 * DEGRAD
    slat2 = SLAT2 * DEGRAD
    olon = OLON * DEGRAD
    olat = OLAT * DEGRAD

    sn = math.tan(math.pi * 0.25 + slat2 * 0.5) / math.tan(math.pi * 0.25 + slat1 * 0.5)
    sn = math.log(math.cos(slat1) / math.cos(slat2)) / math.log(sn)
    sf = math.tan(math.pi * 0.25 + slat1 * 0.5)
    sf = math.pow(sf, sn) * math.cos(slat1) / sn
    ro = math.tan(math.pi * 0.25 + olat * 0.5)
    ro = re * sf / math.pow(ro, sn)

    ra = math.tan(math.pi * 0.25 + lat * DEGRAD * 0.5)
    ra = re * sf / math.pow(ra, sn)
    theta = lng * DEGRAD - olon
    if theta > math.pi:
        theta -= 2.0 * math.pi
    if theta < -math.pi:
        theta += 2.0 * math.pi
    theta *= sn

    nx = math.floor(ra * math.sin(theta) + XO + 0.5)
    ny = math.floor(ro - ra * math.cos(theta) + YO + 0.5)

    return nx, ny
