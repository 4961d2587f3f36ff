"""Tests for sparse/dense conversion and monthly aggregation."""

from aggregator import (
    dense_daily_series, densify, monthly_sum, sparsify, status_table, window_values,
)
from production_data import DayValue, MonthlyEntry, TimeWindow
from status_schema import Status

from factories import entry, model

SPARSE_SAMPLES = [
    [],
    [DayValue(1, 50)],
    [DayValue(31, 7), DayValue(2, 3), DayValue(15, 1200)],
    [DayValue(d, d * 10) for d in range(1, 32)],
]


def test_sparse_dense_round_trip():
    for sample in SPARSE_SAMPLES:
        dense = densify(sample, 31)
        assert set(sparsify(dense)) == set(sample)
        assert densify(sparsify(dense), 31) == dense


def test_sparsify_drops_zero_blank_and_missing():
    values = [0, 5, None, '', '  ', 7]
    assert sparsify(values) == [DayValue(2, 5), DayValue(6, 7)]


def test_dense_series_places_values_by_day():
    m = model('X', entry(2024, 1, Production={1: 50, 10: 4}))
    series = dense_daily_series(m, 2024, 1, Status.PRODUCTION)

    assert len(series) == 29
    assert series[0] == 50
    assert series[9] == 4
    assert sum(1 for v in series if v != 0) == 2


def test_dense_series_length_follows_calendar():
    m = model('X')
    assert len(dense_daily_series(m, 2024, 1, Status.PRODUCTION)) == 29
    assert len(dense_daily_series(m, 2023, 1, Status.PRODUCTION)) == 28
    assert len(dense_daily_series(m, 2023, 3, Status.PRODUCTION)) == 30
    assert len(dense_daily_series(m, 2023, 11, Status.PRODUCTION)) == 31


def test_out_of_range_days_are_dropped():
    m = model('X', entry(2023, 1, Forecast={0: 9, 29: 9, 30: 9, 28: 2}))
    series = dense_daily_series(m, 2023, 1, Status.FORECAST)

    assert len(series) == 28
    assert series == [0] * 27 + [2]


def test_monthly_sum_matches_dense_sum():
    m = model(
        'X',
        entry(2024, 1, Production={1: 50, 2: 25, 29: 5}, CapacityOT={3: 1.5}),
        entry(2024, 6, Capacity={1: 100, 30: 100}),
    )
    for month in range(12):
        for status in Status:
            assert monthly_sum(m, 2024, month, status) == sum(
                dense_daily_series(m, 2024, month, status))
    assert monthly_sum(m, 2024, 1, Status.PRODUCTION) == 80
    assert monthly_sum(m, 2024, 6, Status.CAPACITY) == 200


def test_missing_data_reads_as_zero():
    assert dense_daily_series(None, 2024, 1, Status.PRODUCTION) == [0] * 29
    assert monthly_sum(None, 2024, 1, Status.PRODUCTION) == 0

    m = model('X', entry(2024, 1, Production={1: 50}))
    assert monthly_sum(m, 2023, 1, Status.PRODUCTION) == 0
    assert monthly_sum(m, 2024, 1, Status.FORECAST) == 0


def test_malformed_status_list_reads_as_zero():
    m = model('X', MonthlyEntry(year=2024, month=1, status_data={'Production': 'oops'}))
    assert dense_daily_series(m, 2024, 1, Status.PRODUCTION) == [0] * 29
    assert monthly_sum(m, 2024, 1, Status.PRODUCTION) == 0


def test_first_matching_entry_wins():
    m = model('X', entry(2024, 1, Production={1: 1}), entry(2024, 1, Production={1: 99}))
    assert dense_daily_series(m, 2024, 1, 'Production')[0] == 1


def test_window_values_yearly_sums_each_month():
    m = model('X', entry(2024, 0, Production={1: 10, 2: 10}), entry(2024, 11, Production={5: 3}))
    values = window_values(m, TimeWindow(year=2024), Status.PRODUCTION)

    assert values == [20] + [0] * 10 + [3]


def test_status_table_follows_schema_order():
    m = model('X', entry(2024, 1, Production={1: 50}))
    table = status_table(m, TimeWindow(year=2024, month=1))

    assert list(table) == list(Status)
    assert table[Status.PRODUCTION][0] == 50
    assert all(len(values) == 29 for values in table.values())
