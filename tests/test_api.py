import pandas as pd
import pytest
from fastapi.testclient import TestClient

import main
from risk_scoring.models import Measurement

HAZARDS = ['flood', 'landslide', 'heatwave', 'air_quality', 'soil', 'vegetation']


class StubCollector:
    def __init__(self, measurement):
        self.measurement = measurement
        self.requested = []

    def collect(self, latitude, longitude):
        self.requested.append((latitude, longitude))
        return self.measurement


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, 'site_collector', StubCollector(Measurement()))
    monkeypatch.setattr(main.kma_connector, 'get_forecast', lambda lat, lng: pd.DataFrame())
    return TestClient(main.app)


def test_root_lists_endpoints(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.json()['endpoints']['flood_prediction'] == '/api/v1/flood/predict'
    assert response.json()['endpoints']['climate_shift'] == '/api/v1/climate/shift'


def test_health(client):
    body = client.get('/health').json()

    assert body['status'] == 'healthy'
    assert set(body['services']) == {'kma_api', 'climate_platform_wfs', 'groq_api'}


def test_location_risk_uses_collected_measurement(client):
    response = client.post('/api/v1/risk/location', json={'latitude': 37.2636, 'longitude': 127.0286})

    assert response.status_code == 200
    body = response.json()
    assert body['scores']['overall'] == 19
    assert body['risk_level']['level'] == 'safe'
    assert body['location'] == {'lat': 37.2636, 'lng': 127.0286}
    assert main.site_collector.requested == [(37.2636, 127.0286)]


def test_location_rejects_out_of_range_latitude(client):
    response = client.post('/api/v1/risk/location', json={'latitude': 100, 'longitude': 127.0})

    assert response.status_code == 422


def test_portfolio_summary(client):
    payload = {'properties': [{'latitude': 37.1, 'longitude': 127.1}, {'latitude': 37.2, 'longitude': 127.2}]}

    body = client.post('/api/v1/risk/portfolio', json=payload).json()

    assert body['total_properties'] == 2
    assert body['average_overall_score'] == 19
    assert body['risk_distribution']['safe'] == 2


def test_empty_portfolio_rejected(client):
    response = client.post('/api/v1/risk/portfolio', json={'properties': []})

    assert response.status_code == 400


def test_measurement_endpoint_fills_defaults(client):
    body = client.post('/api/v1/risk/measurement', json={'precipitation': None, 'temperature': 'n/a'}).json()

    assert body['scores']['overall'] == 19
    assert body['predictions']['method'] == 'linear_placeholder'


def test_aggregate_endpoint(client):
    body = client.post('/api/v1/risk/aggregate', json={'scores': {h: 100 for h in HAZARDS}}).json()

    assert body['scores']['overall'] == 100
    assert body['risk_level']['level'] == 'critical'


def test_flood_predict(client):
    body = client.post('/api/v1/flood/predict', json={'measurement': {'precipitation': 90, 'elevation': 3}}).json()

    assert body['score'] == 85
    assert body['risk_level'] == 'critical'
    assert body['peak_time'] is not None
    assert body['ai_analysis'] is None


def test_flood_batch_keeps_order(client):
    body = client.post('/api/v1/flood/batch', json=[
        {'precipitation': 90, 'elevation': 3},
        {'precipitation': 0, 'elevation': 200},
    ]).json()

    assert [item['risk_level'] for item in body] == ['critical', 'low']


def test_launch_assess(client):
    body = client.post('/api/v1/launch/assess', json={}).json()

    assert body['launch_feasibility'] == 'good'
    assert body['blocking_factors'] == []


def test_launch_windows_seeded(client):
    payload = {'measurement': {'cloud_cover': 10}, 'seed': 11}

    first = client.post('/api/v1/launch/windows', json=payload).json()
    second = client.post('/api/v1/launch/windows', json=payload).json()

    assert [w['overall_score'] for w in first] == [w['overall_score'] for w in second]


def test_grid_cell(client):
    body = client.get('/api/v1/grid', params={'latitude': 37.5665, 'longitude': 126.9780}).json()

    assert (body['nx'], body['ny']) == (60, 127)


def test_forecast_falls_back_to_mock(client):
    body = client.get('/api/v1/data/forecast', params={'latitude': 37.5, 'longitude': 127.0, 'hours': 6}).json()

    assert body['source'] == 'mock'
    assert body['count'] == 6
    assert isinstance(body['forecast'][0]['forecast_time'], str)


def test_air_quality_grid(client):
    body = client.get('/api/v1/data/air-quality', params={'latitude': 37.5, 'longitude': 127.0, 'grid_size': 3}).json()

    assert body['count'] == 9
    assert {'latitude', 'longitude', 'pm25', 'pm10', 'ozone'} <= set(body['points'][0])
    assert {'quality', 'score'} <= set(body['points'][0])


def test_grid_rejects_south_pole(client):
    response = client.get('/api/v1/grid', params={'latitude': -90, 'longitude': 127.0})

    assert response.status_code == 422


def test_measurement_endpoint_rejects_negative_counts(client):
    response = client.post('/api/v1/risk/measurement', json={'vegetation_feature_count': -5})

    assert response.status_code == 422


def test_climate_shift_seeded_is_reproducible(client):
    params = {'start_year': 2015, 'end_year': 2020, 'seed': 11, 'years_ahead': 3}

    first = client.get('/api/v1/climate/shift', params=params)
    second = client.get('/api/v1/climate/shift', params=params)

    assert first.status_code == 200
    body = first.json()
    assert body == second.json()
    assert body['days'] == 2192
    assert [row['year'] for row in body['summary']] == list(range(2015, 2021))
    assert [row['year'] for row in body['trend']] == [2021, 2022, 2023]
    assert len(body['monthly_comparison']) == 12
    assert body['event_count'] == len(body['events'])
    assert all(isinstance(event['date'], str) for event in body['events'])


def test_climate_shift_rejects_reversed_and_long_ranges(client):
    reversed_range = client.get('/api/v1/climate/shift', params={'start_year': 2020, 'end_year': 2010})
    too_long = client.get('/api/v1/climate/shift', params={'start_year': 1950, 'end_year': 2020})

    assert reversed_range.status_code == 400
    assert too_long.status_code == 400
