"""Tests for snapshot parsing and calendar/display helpers."""

import pytest

from errors import InvalidWindowError
from production_data import (
    DayValue, TimeWindow, day_label, days_in_month, format_number, month_year_label,
    parse_capacity, parse_production_lines, period_part,
)


def test_parse_stored_document_shape():
    records = [{
        'id': 'abc',
        'plant': 'Line A',
        'description': 'Main line',
        'models': [{
            'name': 'X',
            'maxCapacity': 100,
            'data': [{'year': 2024, 'month': 1, 'data': {'Production': [{'day': 1, 'value': 50}]}}],
        }],
    }]
    lines = parse_production_lines(records)

    assert len(lines) == 1
    assert lines[0].plant_name == 'Line A'
    model = lines[0].models[0]
    assert model.max_capacity == 100
    assert model.monthly_entries[0].values_for('Production') == [DayValue(1, 50)]


def test_parse_accepts_descriptive_keys():
    records = [{
        'id': 'x',
        'plantName': 'Line B',
        'models': [{'name': 'M', 'monthlyEntries': [
            {'year': 2023, 'month': 0, 'statusData': {'Forecast': [{'day': 3, 'value': 7}]}},
        ]}],
    }]
    model = parse_production_lines(records)[0].models[0]
    assert model.find_entry(2023, 0).values_for('Forecast') == [DayValue(3, 7)]


def test_parse_degrades_malformed_fields():
    records = [
        {'id': 1, 'plant': 'P', 'models': 'not a list'},
        {'id': 2, 'plant': 'Q', 'models': [
            {'name': 'M', 'maxCapacity': 'lots', 'data': {'year': 2024}},
            {'name': 'N', 'data': [
                {'year': 2024, 'month': 12, 'data': {}},           # month out of range
                {'year': 2024, 'month': 2, 'data': ['bad']},        # status data not a map
                {'year': 2024, 'month': 3, 'data': {'Production': 'x'}},
                {'year': 2024, 'month': 4, 'data': {'Production': [
                    {'day': 1, 'value': 5}, {'day': 'two', 'value': 3}, {'day': 3, 'value': None},
                ]}},
            ]},
            'garbage',
        ]},
        'not a record',
    ]
    lines = parse_production_lines(records)

    assert len(lines) == 2
    assert lines[0].models == []
    m, n = lines[1].models
    assert m.max_capacity is None and m.monthly_entries == []
    assert [e.month for e in n.monthly_entries] == [2, 3, 4]
    assert n.find_entry(2024, 2).status_data == {}
    assert n.find_entry(2024, 3).values_for('Production') == []
    assert n.find_entry(2024, 4).values_for('Production') == [DayValue(1, 5)]


def test_to_dict_round_trips_through_parser():
    records = [{
        'id': 'abc', 'plant': 'Line A', 'description': '',
        'models': [{'name': 'X', 'maxCapacity': 10, 'data': [
            {'year': 2024, 'month': 1, 'data': {'Production': [{'day': 1, 'value': 50}]}},
        ]}],
    }]
    line = parse_production_lines(records)[0]
    assert line.to_dict() == records[0]


def test_days_in_month_handles_leap_years():
    assert days_in_month(2024, 1) == 29
    assert days_in_month(2023, 1) == 28
    assert days_in_month(1900, 1) == 28
    assert days_in_month(2000, 1) == 29
    assert days_in_month(2024, 0) == 31
    assert days_in_month(2024, 3) == 30


def test_labels():
    assert day_label(2024, 1, 1) == 'Thu 1'
    assert day_label(2024, 1, 29) == 'Thu 29'
    assert month_year_label(1, 2024) == 'Feb 24'
    assert month_year_label(0, 2005) == 'Jan 05'
    assert period_part(-1) == 'Year'
    assert period_part(11) == 'Dec'


def test_time_window_selection():
    daily = TimeWindow.from_selection(1, 2024)
    assert daily.is_daily and daily.period_count == 29 and daily.selection == 1

    yearly = TimeWindow.from_selection(-1, 2024)
    assert not yearly.is_daily and yearly.period_count == 12 and yearly.selection == -1

    with pytest.raises(InvalidWindowError):
        TimeWindow.from_selection(12, 2024)


def test_format_number():
    assert format_number(0) == '0'
    assert format_number(1234567) == '1,234,567'
    assert format_number(1500.0) == '1,500'
    assert format_number(1234.5) == '1,234.5'
    assert format_number(None) == ''
    assert format_number('  ') == ''


def test_parse_capacity():
    assert parse_capacity('12,500') == 12500
    assert parse_capacity('0') == 0
    assert parse_capacity(40) == 40
    assert parse_capacity('-5') is None
    assert parse_capacity(-5) is None
    assert parse_capacity('abc') is None
    assert parse_capacity('') is None
    assert parse_capacity(None) is None
