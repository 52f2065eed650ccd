import math

import numpy as np
import pytest

from risk_scoring.extraction import (
    DEFAULT_CENTROID,
    calculate_centroid,
    extract_numeric,
    feature_location,
    haversine_distance,
    parse_number,
)
from risk_scoring.grid import OLAT, OLON, XO, YO, lat_lng_to_grid


def test_grid_seoul_city_hall():
    assert lat_lng_to_grid(37.5665, 126.9780) == (60, 127)


def test_grid_origin_maps_to_origin_cell():
    assert lat_lng_to_grid(OLAT, OLON) == (XO, YO)


def test_grid_axes_increase_east_and_north():
    base = lat_lng_to_grid(37.0, 127.0)
    east = lat_lng_to_grid(37.0, 128.0)
    north = lat_lng_to_grid(38.0, 127.0)

    assert east[0] > base[0]
    assert north[1] > base[1]


@pytest.mark.parametrize('lat', [-90, -91.5])
def test_grid_rejects_south_pole_and_beyond(lat):
    with pytest.raises(ValueError):
        lat_lng_to_grid(lat, 127.0)


@pytest.mark.parametrize('value,expected', [
    (12, 12.0),
    ('12.5mm', 12.5),
    (' -3.2 ', -3.2),
    ('1e2', 100.0),
    ('', None),
    ('n/a', None),
    (None, None),
    (True, None),
    (float('nan'), None),
])
def test_parse_number(value, expected):
    assert parse_number(value) == expected


def test_extract_numeric_exact_match_is_case_insensitive():
    assert extract_numeric({'SOIL_Carbon': '12.5'}, ['soil_carbon']) == 12.5


def test_extract_numeric_prefers_exact_over_partial():
    props = {'carbon_total': 1, 'Carbon': 2}

    assert extract_numeric(props, ['carbon']) == 2


def test_extract_numeric_partial_match_both_directions():
    assert extract_numeric({'tot_carbon_storage': 3}, ['carbon']) == 3
    assert extract_numeric({'cbn': 4}, ['cbn_strgat']) == 4


def test_extract_numeric_skips_unparsable_and_falls_back():
    assert extract_numeric({'carbon': 'unknown'}, ['carbon'], default=0.0) == 0.0
    assert extract_numeric({}, ['carbon'], default=7.0) == 7.0
    assert extract_numeric(None, ['carbon']) is None


def test_centroid_polygon_outer_ring():
    ring = [[0, 0], [2, 0], [2, 2], [0, 2]]
    hole = [[0.5, 0.5], [0.6, 0.5], [0.6, 0.6]]

    assert calculate_centroid([ring, hole], 'Polygon') == (1.0, 1.0)


def test_centroid_multipolygon_concatenates_outer_rings():
    first = [[[0, 0], [2, 0], [2, 2], [0, 2]]]
    second = [[[10, 10], [12, 10], [12, 12], [10, 12]]]

    assert calculate_centroid([first, second], 'MultiPolygon') == (6.0, 6.0)


def test_centroid_falls_back_to_default():
    assert calculate_centroid([], 'Polygon') == DEFAULT_CENTROID
    assert calculate_centroid([[0, 0]], 'LineString') == DEFAULT_CENTROID


def test_feature_location_point_and_polygon():
    point = {'geometry': {'type': 'Point', 'coordinates': [127.0, 37.2]}}
    polygon = {'geometry': {'type': 'Polygon', 'coordinates': [[[127, 37], [127.2, 37], [127.2, 37.2], [127, 37.2]]]}}

    assert feature_location(point) == (37.2, 127.0)
    lat, lng = feature_location(polygon)
    assert lat == pytest.approx(37.1)
    assert lng == pytest.approx(127.1)
    assert feature_location({'geometry': None}) is None


def test_haversine_distance_one_degree_latitude():
    assert haversine_distance(37.0, 127.0, 37.0, 127.0) == 0
    assert haversine_distance(37.0, 127.0, 38.0, 127.0) == pytest.approx(111.19, abs=0.01)


def test_haversine_distance_vectorized():
    distances = haversine_distance(37.0, 127.0, np.array([37.0, 38.0]), np.array([127.0, 127.0]))

    assert distances.shape == (2,)
    assert math.isclose(distances[0], 0.0, abs_tol=1e-9)
