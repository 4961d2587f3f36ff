"""
Tracked metric kinds and their rendering hints.

The order of declaration is the order used everywhere: workbook rows,
document table rows, chart series and legend entries.
"""

from enum import Enum
from typing import List, Optional


class Status(Enum):
    #            label            kind    color      order bar   tension point
    PRODUCTION = ('Production', 'bar', '#C6E0B3', 1, 0.8, None, None)
    FORECAST = ('Forecast', 'bar', '#4574C4', 2, 0.8, None, None)
    CAPACITY = ('Capacity', 'line', '#F07730', 3, None, 0.1, 1.6)
    CAPACITY_OT = ('Capacity + OT', 'line', '#FABC02', 4, None, 0.1, 1.6)

    def __init__(self, label, chart_kind, color, draw_order,
                 bar_width_fraction, line_tension, point_radius):
        self.label = label
        self.chart_kind = chart_kind
        self.color = color
        self.draw_order = draw_order
        # Fraction of the category slot a bar group may use (bars only)
        self.bar_width_fraction: Optional[float] = bar_width_fraction
        self.line_tension: Optional[float] = line_tension
        self.point_radius: Optional[float] = point_radius

    @property
    def is_bar(self) -> bool:
        return self.chart_kind == 'bar'

    @property
    def is_line(self) -> bool:
        return self.chart_kind == 'line'

    @classmethod
    def from_label(cls, label: str) -> Optional['Status']:
        for status in cls:
            if status.label == label:
                return status
        return None


def status_names() -> List[str]:
    """Status labels in declared order"""
    return [status.label for status in Status]
