"""
Sparse <-> dense conversion and per-window aggregation.

Nothing here raises on bad data: a missing model, a missing entry or a
status list of the wrong type all read as zeros.
"""

from typing import Dict, List, Optional, Sequence, Union

from production_data import DayValue, Model, TimeWindow, days_in_month
from status_schema import Status

StatusKey = Union[Status, str]


def _label(status: StatusKey) -> str:
    return status.label if isinstance(status, Status) else str(status)


def _stored_values(model: Optional[Model], year: int, month: int,
                   status: StatusKey) -> List[DayValue]:
    if model is None:
        return []
    entries = getattr(model, 'monthly_entries', None)
    if not isinstance(entries, list):
        return []
    entry = model.find_entry(year, month)
    if entry is None:
        return []
    return entry.values_for(_label(status))


def densify(day_values: Sequence[DayValue], length: int) -> List[float]:
    """Zero-filled array of `length` days; out-of-range days are dropped"""
    dense = [0] * length
    for dv in day_values:
        if 1 <= dv.day <= length:
            dense[dv.day - 1] = dv.value
    return dense


def sparsify(values: Sequence) -> List[DayValue]:
    """Keep only the days holding a real non-zero value (1-based days)"""
    sparse = []
    for index, value in enumerate(values):
        if value is None or value == 0 or (isinstance(value, str) and value.strip() == ''):
            continue
        sparse.append(DayValue(day=index + 1, value=value))
    return sparse


def dense_daily_series(model: Optional[Model], year: int, month: int,
                       status: StatusKey) -> List[float]:
    """One value per calendar day of the month, zero where nothing is stored"""
    length = days_in_month(year, month)
    return densify(_stored_values(model, year, month, status), length)


def monthly_sum(model: Optional[Model], year: int, month: int,
                status: StatusKey) -> float:
    """Sum of the stored day values, computed directly on the sparse list"""
    return sum(dv.value for dv in _stored_values(model, year, month, status))


def window_values(model: Optional[Model], window: TimeWindow,
                  status: StatusKey) -> List[float]:
    """Daily values for a month window, or twelve monthly sums for a year window"""
    if window.is_daily:
        return dense_daily_series(model, window.year, window.month, status)
    return [monthly_sum(model, window.year, month, status) for month in range(12)]


def status_table(model: Optional[Model], window: TimeWindow) -> Dict[Status, List[float]]:
    """Per-status value rows for one model, in schema order"""
    return {status: window_values(model, window, status) for status in Status}
