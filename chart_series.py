"""
Chart series for one model over a time window.

A month window gives one point per day ('Thu 1'), a year window one point
per month ('Feb 24'). Series follow the Status declaration order and carry
that status's rendering hints unchanged.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from aggregator import status_table
from production_data import Model, TimeWindow, day_label, month_year_label
from status_schema import Status


@dataclass(frozen=True)
class ChartSeries:
    status: Status
    values: List[float]

    @property
    def label(self) -> str:
        return self.status.label

    @property
    def chart_kind(self) -> str:
        return self.status.chart_kind

    @property
    def color(self) -> str:
        return self.status.color

    @property
    def draw_order(self) -> int:
        return self.status.draw_order

    @property
    def bar_width_fraction(self) -> Optional[float]:
        return self.status.bar_width_fraction

    @property
    def line_tension(self) -> Optional[float]:
        return self.status.line_tension

    @property
    def point_radius(self) -> Optional[float]:
        return self.status.point_radius


@dataclass(frozen=True)
class TickStyle:
    font_size: float
    rotation: int


def window_labels(window: TimeWindow) -> List[str]:
    if window.is_daily:
        return [day_label(window.year, window.month, day)
                for day in range(1, window.period_count + 1)]
    return [month_year_label(month, window.year) for month in range(12)]


def _has_value(values: Sequence[float]) -> bool:
    return any(value != 0 for value in values)


def series_from_table(table: Dict[Status, List[float]]) -> List[ChartSeries]:
    """
    Apply zero suppression to per-status rows.

    All rows zero -> no series at all. Otherwise only rows with at least
    one non-zero value become series.
    """
    if not any(_has_value(values) for values in table.values()):
        return []
    return [
        ChartSeries(status=status, values=list(table[status]))
        for status in Status
        if status in table and _has_value(table[status])
    ]


def build_series(model: Optional[Model], window: TimeWindow) -> List[ChartSeries]:
    return series_from_table(status_table(model, window))


def tick_style(label_count: int, daily: bool) -> TickStyle:
    """Smaller, steeper x tick labels as the axis gets crowded"""
    if daily:
        return TickStyle(font_size=5 if label_count > 20 else 6, rotation=90)
    if label_count > 6:
        return TickStyle(font_size=6, rotation=90)
    return TickStyle(font_size=8, rotation=45)
