"""
Production line snapshot model.

Per model, a list of (year, month) entries; each entry holds, per status,
only the days with a stored value. A missing day, status or entry reads
as zero everywhere downstream.

Snapshots arrive as plain dicts (the stored document shape). Parsing never
raises: fields of the wrong type degrade to empty defaults.
"""

import calendar
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from errors import InvalidWindowError

MONTH_ABBR = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
# Indexed by date.weekday(): 0 = Monday
DAY_ABBR = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

WHOLE_YEAR = -1


@dataclass(frozen=True)
class DayValue:
    day: int
    value: float


@dataclass
class MonthlyEntry:
    year: int
    month: int  # 0-11
    status_data: Dict[str, List[DayValue]] = field(default_factory=dict)

    def values_for(self, status_label: str) -> List[DayValue]:
        values = self.status_data.get(status_label)
        return values if isinstance(values, list) else []

    def is_empty(self) -> bool:
        return all(not values for values in self.status_data.values())

    def normalized(self) -> 'MonthlyEntry':
        """Same entry with empty statuses dropped and days in ascending order"""
        return MonthlyEntry(
            year=self.year,
            month=self.month,
            status_data={
                label: sorted(values, key=lambda dv: dv.day)
                for label, values in self.status_data.items()
                if values
            },
        )

    def to_dict(self) -> dict:
        return {
            'year': self.year,
            'month': self.month,
            'data': {
                label: [{'day': dv.day, 'value': dv.value} for dv in values]
                for label, values in self.status_data.items()
            },
        }


@dataclass
class Model:
    name: str
    max_capacity: Optional[float] = None
    monthly_entries: List[MonthlyEntry] = field(default_factory=list)

    def find_entry(self, year: int, month: int) -> Optional[MonthlyEntry]:
        # First match wins if the snapshot holds duplicates
        for entry in self.monthly_entries:
            if entry.year == year and entry.month == month:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'maxCapacity': self.max_capacity,
            'data': [entry.to_dict() for entry in self.monthly_entries],
        }


@dataclass
class ProductionLine:
    id: str
    plant_name: str
    description: str = ''
    models: List[Model] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'plant': self.plant_name,
            'description': self.description,
            'models': [model.to_dict() for model in self.models],
        }


# =============================================================================
# PARSING
# =============================================================================
def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _first_present(record: dict, *keys: str) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def parse_day_values(raw: Any) -> List[DayValue]:
    if not isinstance(raw, list):
        return []
    day_values = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        day = item.get('day')
        value = item.get('value')
        if not isinstance(day, int) or isinstance(day, bool) or not _is_number(value):
            continue
        day_values.append(DayValue(day=day, value=value))
    return day_values


def parse_monthly_entry(raw: Any) -> Optional[MonthlyEntry]:
    if not isinstance(raw, dict):
        return None
    year = raw.get('year')
    month = raw.get('month')
    if not isinstance(year, int) or not isinstance(month, int) or not 0 <= month <= 11:
        return None

    status_data = _first_present(raw, 'statusData', 'data')
    if not isinstance(status_data, dict):
        status_data = {}
    return MonthlyEntry(
        year=year,
        month=month,
        status_data={
            str(label): parse_day_values(values)
            for label, values in status_data.items()
        },
    )


def parse_model(raw: Any) -> Optional[Model]:
    if not isinstance(raw, dict):
        return None
    max_capacity = raw.get('maxCapacity')
    entries = _first_present(raw, 'monthlyEntries', 'data')
    if not isinstance(entries, list):
        entries = []
    parsed_entries = [parse_monthly_entry(e) for e in entries]
    return Model(
        name=str(raw.get('name') or ''),
        max_capacity=max_capacity if _is_number(max_capacity) else None,
        monthly_entries=[e for e in parsed_entries if e is not None],
    )


def parse_production_line(raw: dict) -> ProductionLine:
    models = raw.get('models')
    if not isinstance(models, list):
        models = []
    parsed_models = [parse_model(m) for m in models]
    return ProductionLine(
        id=str(raw.get('id') or ''),
        plant_name=str(_first_present(raw, 'plantName', 'plant') or ''),
        description=str(raw.get('description') or ''),
        models=[m for m in parsed_models if m is not None],
    )


def parse_production_lines(records: Iterable[Any]) -> List[ProductionLine]:
    """Build typed production lines from a snapshot of stored documents"""
    return [parse_production_line(r) for r in records if isinstance(r, dict)]


# =============================================================================
# CALENDAR AND DISPLAY HELPERS
# =============================================================================
def days_in_month(year: int, month: int) -> int:
    """Number of days in a 0-based month, leap years included"""
    return calendar.monthrange(year, month + 1)[1]


def day_label(year: int, month: int, day: int) -> str:
    """'Thu 1' style label for one day of a 0-based month"""
    return f"{DAY_ABBR[date(year, month + 1, day).weekday()]} {day}"


def month_year_label(month: int, year: int) -> str:
    """'Feb 24' style label"""
    return f"{MONTH_ABBR[month]} {year % 100:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """
    Reporting window: one month at daily granularity, or a whole year
    at monthly granularity (month is None).
    """
    year: int
    month: Optional[int] = None

    @classmethod
    def from_selection(cls, month: int, year: int) -> 'TimeWindow':
        """Build from the UI selection where -1 means the whole year"""
        if month == WHOLE_YEAR:
            return cls(year=year)
        if not isinstance(month, int) or not 0 <= month <= 11:
            raise InvalidWindowError(f"Month must be -1..11, got {month!r}")
        return cls(year=year, month=month)

    @property
    def is_daily(self) -> bool:
        return self.month is not None

    @property
    def selection(self) -> int:
        return WHOLE_YEAR if self.month is None else self.month

    @property
    def period_count(self) -> int:
        """Number of columns: days in the month, or 12 months"""
        return days_in_month(self.year, self.month) if self.is_daily else 12


def period_part(month: int) -> str:
    """Filename segment for a month selection: abbreviation or 'Year'"""
    return 'Year' if month == WHOLE_YEAR else MONTH_ABBR[month]


def format_number(value: Any) -> str:
    """Thousands-separated display form ('' for blank, up to 3 decimals)"""
    if value is None or (isinstance(value, str) and value.strip() == ''):
        return ''
    if not _is_number(value):
        return str(value)
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip('0').rstrip('.')


CAPACITY_PATTERN = re.compile(r'^\d+$')


def parse_capacity(text: Any) -> Optional[int]:
    """
    Parse a max-capacity field as typed by a user ('12,500').
    Returns None for blank, negative or non-numeric input.
    """
    if text is None:
        return None
    if _is_number(text):
        return int(text) if text >= 0 else None
    cleaned = str(text).replace(',', '').strip()
    if not CAPACITY_PATTERN.match(cleaned):
        return None
    return int(cleaned)
