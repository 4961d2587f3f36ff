"""
Plant grouping, model ordering and page chunking.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from production_data import WHOLE_YEAR, Model, ProductionLine, TimeWindow

# Models per document page and grid columns, by granularity
DAILY_PAGE_CAPACITY = 3
YEARLY_PAGE_CAPACITY = 6
DAILY_GRID_COLUMNS = 1
YEARLY_GRID_COLUMNS = 2


def collation_key(name: str) -> str:
    """Case-insensitive sort key used for plant and model names"""
    return name.casefold()


def group_and_sort(lines: Iterable[ProductionLine]) -> Dict[str, List[Model]]:
    """
    Group production lines by plant name and order plants and models.

    Records sharing a plant name are merged. Plants and the models within
    each plant are ordered case-insensitively; ties keep input order.
    """
    grouped: Dict[str, List[Model]] = {}
    for line in lines:
        models = line.models if isinstance(line.models, list) else []
        grouped.setdefault(line.plant_name, []).extend(models)

    ordered: Dict[str, List[Model]] = {}
    for plant in sorted(grouped, key=collation_key):
        ordered[plant] = sorted(grouped[plant], key=lambda m: collation_key(m.name))
    return ordered


def chunk(models: Sequence[Model], page_capacity: int) -> List[List[Model]]:
    """Consecutive slices of `page_capacity` models; the last may be shorter"""
    if page_capacity < 1:
        raise ValueError(f"page_capacity must be positive, got {page_capacity}")
    return [list(models[i:i + page_capacity])
            for i in range(0, len(models), page_capacity)]


def page_capacity(window: TimeWindow) -> int:
    return DAILY_PAGE_CAPACITY if window.is_daily else YEARLY_PAGE_CAPACITY


def grid_columns(window: TimeWindow) -> int:
    return DAILY_GRID_COLUMNS if window.is_daily else YEARLY_GRID_COLUMNS


def filter_snapshot(lines: Iterable[ProductionLine],
                    window: TimeWindow) -> List[ProductionLine]:
    """
    Narrow every model to the entries inside the window and drop
    production lines that carry no models. Input records are not modified.
    """
    filtered = []
    for line in lines:
        models = []
        for model in line.models:
            entries = [
                e for e in model.monthly_entries
                if e.year == window.year and (not window.is_daily or e.month == window.month)
            ]
            models.append(replace(model, monthly_entries=entries))
        if models:
            filtered.append(replace(line, models=models))
    return filtered


def available_periods(lines: Iterable[ProductionLine], current_year: int,
                      year: Optional[int] = None) -> Tuple[List[int], int, List[int]]:
    """
    Years and months that hold data, for populating period selectors.

    Returns (years, initial_year, months). `years` falls back to the current
    year when nothing is stored; `initial_year` is the current year when it
    has data, else the latest year; `months` lists the months with data for
    `year` (or `initial_year`), prefixed with the whole-year sentinel.
    """
    lines = list(lines)
    years = sorted({
        entry.year
        for line in lines for model in line.models for entry in model.monthly_entries
    })
    if current_year in years:
        initial_year = current_year
    elif years:
        initial_year = years[-1]
    else:
        initial_year = current_year

    target = initial_year if year is None else year
    months = sorted({
        entry.month
        for line in lines for model in line.models for entry in model.monthly_entries
        if entry.year == target
    })
    return (years or [current_year]), initial_year, [WHOLE_YEAR] + months
