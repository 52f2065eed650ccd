import random

import numpy as np
import pandas as pd
import pytest

from risk_scoring import climate_shift


@pytest.fixture
def history():
    return pd.DataFrame({
        'date': pd.to_datetime(['2020-01-01', '2020-07-01', '2020-07-02', '2021-01-15']),
        'temperature': [-20.0, 36.0, 30.0, 10.0],
        'precipitation': [0.0, 60.0, 50.0, 5.0],
        'humidity': [40.0, 80.0, 70.0, 50.0],
        'wind_speed': [2.0, 4.0, 6.0, 3.0],
        'pm25': [50.0, 20.0, 25.0, 45.0],
    })


def test_generated_history_covers_every_day():
    df = climate_shift.generate_historical_weather(2020, 2021, rng=random.Random(1))

    assert len(df) == 731
    assert list(df.columns) == ['date', 'temperature', 'precipitation', 'humidity', 'wind_speed', 'pm25']
    assert df['date'].iloc[0] == pd.Timestamp('2020-01-01')
    assert df['date'].iloc[-1] == pd.Timestamp('2021-12-31')


def test_generated_history_reproducible_with_seeded_rng():
    first = climate_shift.generate_historical_weather(2018, 2019, rng=random.Random(42))
    second = climate_shift.generate_historical_weather(2018, 2019, rng=random.Random(42))

    assert first.equals(second)


def test_generated_history_seasonal_ranges():
    df = climate_shift.generate_historical_weather(2020, 2020, rng=random.Random(7))
    months = df['date'].dt.month

    assert df['precipitation'].min() >= 0
    assert df.loc[months.isin([6, 7, 8, 9]), 'precipitation'].max() <= 50
    assert df.loc[~months.isin([6, 7, 8, 9]), 'precipitation'].max() <= 20
    assert df.loc[months == 1, 'pm25'].between(30, 70).all()
    assert df.loc[months == 7, 'pm25'].between(15, 40).all()


def test_generated_history_rejects_reversed_years():
    with pytest.raises(ValueError):
        climate_shift.generate_historical_weather(2020, 2019)


def test_yearly_summary_averages_and_extreme_days(history):
    summary = climate_shift.yearly_summary(history)

    assert summary['year'].tolist() == [2020, 2021]
    first = summary.iloc[0]
    assert first['avg_temperature'] == 15.3
    assert first['total_precipitation'] == 110.0
    assert first['avg_humidity'] == 63.3
    assert first['avg_wind_speed'] == 4.0
    assert (first['extreme_heat_days'], first['extreme_cold_days'], first['heavy_rain_days']) == (1, 1, 2)
    assert summary.iloc[1][['extreme_heat_days', 'extreme_cold_days', 'heavy_rain_days']].tolist() == [0, 0, 0]


def test_yearly_summary_empty_history():
    assert climate_shift.yearly_summary(pd.DataFrame()).empty


def test_extreme_events_sorted_by_date(history):
    events = climate_shift.detect_extreme_events(
        history, max_temperature=35, min_temperature=-15, max_precipitation=50
    )

    assert events['type'].tolist() == ['cold', 'heat', 'heavy_rain']
    assert events['value'].tolist() == [-20.0, 36.0, 60.0]
    assert events['date'].tolist() == list(pd.to_datetime(['2020-01-01', '2020-07-01', '2020-07-01']))


def test_extreme_events_only_check_given_thresholds(history):
    wind = climate_shift.detect_extreme_events(history, max_wind_speed=0)
    none = climate_shift.detect_extreme_events(history)

    assert wind['type'].tolist() == ['high_wind'] * 4
    assert (wind['threshold'] == 0).all()
    assert none.empty
    assert list(none.columns) == climate_shift.EVENT_COLUMNS


def test_event_frequency_counts_per_year_and_type(history):
    events = climate_shift.detect_extreme_events(history, max_temperature=35, min_temperature=-15, max_precipitation=50)

    frequency = climate_shift.event_frequency(events)

    assert list(frequency.columns) == ['year', 'cold', 'heat', 'heavy_rain']
    assert frequency.iloc[0].tolist() == [2020, 1, 1, 1]
    assert climate_shift.event_frequency(events.iloc[0:0]).empty


def test_monthly_comparison_has_every_month(history):
    comparison = climate_shift.monthly_comparison(history, 2020, 2021)

    assert comparison['month'].tolist() == list(range(1, 13))
    assert set(comparison.columns) == {
        'month', 'temperature_2020', 'temperature_2021', 'precipitation_2020', 'precipitation_2021'
    }
    july = comparison.set_index('month').loc[7]
    assert july['temperature_2020'] == 33.0
    assert july['precipitation_2020'] == 55.0
    assert np.isnan(july['temperature_2021'])


def test_trend_extends_linear_history():
    summary = pd.DataFrame({
        'year': [2000, 2001, 2002, 2003, 2004],
        'avg_temperature': [10.0, 11.0, 12.0, 13.0, 14.0],
        'total_precipitation': [1000.0, 1010.0, 1020.0, 1030.0, 1040.0],
    })

    trend = climate_shift.predict_future_trend(summary, years_ahead=3)

    assert trend['year'].tolist() == [2005, 2006, 2007]
    assert trend['predicted_temperature'].tolist() == pytest.approx([15.0, 16.0, 17.0])
    assert trend['predicted_precipitation'].tolist() == pytest.approx([1050.0, 1060.0, 1070.0])


def test_trend_needs_two_years():
    summary = pd.DataFrame({'year': [2000], 'avg_temperature': [10.0], 'total_precipitation': [900.0]})

    trend = climate_shift.predict_future_trend(summary)

    assert trend.empty
    assert list(trend.columns) == ['year', 'predicted_temperature', 'predicted_precipitation']


def test_simulated_warming_shows_in_the_trend():
    history = climate_shift.generate_historical_weather(2000, 2019, rng=random.Random(3))
    summary = climate_shift.yearly_summary(history)

    slope, _ = np.polyfit(summary['year'], summary['avg_temperature'], 1)

    assert 0.02 < slope < 0.08
    trend = climate_shift.predict_future_trend(summary, years_ahead=5)
    assert trend['predicted_temperature'].is_monotonic_increasing


def test_analyze_climate_shift_uses_default_thresholds():
    result = climate_shift.analyze_climate_shift(2010, 2012, rng=random.Random(9))

    assert set(result) == {'history', 'summary', 'events', 'event_frequency', 'monthly_comparison', 'trend'}
    assert len(result['summary']) == 3
    assert result['trend']['year'].tolist() == [2013, 2014, 2015, 2016, 2017]
    assert set(result['events']['threshold']) <= set(climate_shift.DEFAULT_EVENT_THRESHOLDS.values())
    assert 'temperature_2010' in result['monthly_comparison'].columns
