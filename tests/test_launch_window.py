import random
from datetime import datetime, timedelta

import pytest

from risk_scoring import launch_window as launch
from risk_scoring.models import LaunchCriteria, Measurement


def test_default_conditions_are_good():
    result = launch.assess_launch_environment(Measurement())

    assert result.weather_score == pytest.approx(77.5)
    assert result.risk_score == 90  # moderate air regulation
    assert result.environment_score == pytest.approx(76)
    assert result.overall_score == pytest.approx(81.5)
    assert result.launch_feasibility == 'good'
    assert result.blocking_factors == []
    assert result.recommendations == ['Launch possible under current conditions']


def test_blocking_factors_listed():
    m = Measurement(precipitation=5, wind_speed=18, water_proximity_km=0.3, landslide_grade=3)

    result = launch.assess_launch_environment(m)

    assert 'Precipitation in progress' in result.blocking_factors
    assert 'Wind speed too high' in result.blocking_factors
    assert 'Too close to a river' in result.blocking_factors
    assert 'High landslide risk' in result.blocking_factors
    assert result.risks['landslide'] == 'high'
    assert 'Launch possible under current conditions' not in result.recommendations


def test_launch_hazard_levels():
    levels = launch.launch_hazard_levels(
        Measurement(flood_risk_index=50, temperature=36, air_regulation_index=20)
    )

    assert levels == ('medium', 'low', 'high', 'poor')


def test_environment_score_components():
    assert launch.calculate_environment_score(100, 100, 5) == 100
    assert launch.calculate_environment_score(0, 0, 0.2) == 0
    assert launch.calculate_environment_score(50, 50, 1.5) == pytest.approx(20 + 18 + 18)


@pytest.mark.parametrize('score,expected', [
    (85, 'excellent'), (70, 'good'), (55, 'moderate'), (40, 'poor'), (39.9, 'critical'),
])
def test_launch_feasibility_bands(score, expected):
    assert launch.launch_feasibility(score) == expected


def test_scores_stay_in_range_for_extreme_weather():
    m = Measurement(wind_speed=40, precipitation=100, cloud_cover=100, crosswind=30, temperature=50,
                    flood_risk_index=90, landslide_grade=4, air_regulation_index=0)

    result = launch.assess_launch_environment(m)

    assert result.weather_score == 0
    assert result.risk_score == 0
    assert 0 <= result.overall_score <= 100
    assert result.launch_feasibility == 'critical'


def test_windows_reproducible_with_seeded_rng():
    start = datetime(2024, 7, 15, 6, 0)
    m = Measurement(cloud_cover=10)

    first = launch.predict_launch_windows(m, start=start, rng=random.Random(7))
    second = launch.predict_launch_windows(m, start=start, rng=random.Random(7))

    assert first == second


def test_windows_meet_criteria_and_sorted_best_first():
    start = datetime(2024, 7, 15, 6, 0)
    criteria = LaunchCriteria(max_cloud_cover=40)

    windows = launch.predict_launch_windows(Measurement(cloud_cover=10), criteria, start=start, rng=random.Random(1))

    assert windows
    assert len(windows) <= 24
    scores = [w.overall_score for w in windows]
    assert scores == sorted(scores, reverse=True)
    for window in windows:
        assert window.end_time - window.start_time == timedelta(hours=2)
        assert start <= window.start_time < start + timedelta(hours=48)
        assert window.assessment.weather['precipitation'] == 0
        assert window.overall_score >= criteria.min_overall_score


def test_unreachable_criteria_yield_no_windows():
    criteria = LaunchCriteria(min_overall_score=101)

    assert launch.predict_launch_windows(Measurement(), criteria, rng=random.Random(0)) == []
