"""
Month editing for a single model.

    VIEWING --begin_edit()--> EDITING --commit()--> VIEWING
                                      --cancel()--> VIEWING (changes discarded)

While EDITING, one day cell at a time may be open for input
(select_cell() ... finish_cell()). Days after today cannot be opened.

commit() turns the dense grid back into sparse day values and rebuilds the
month's entry: unchanged data writes nothing, an all-zero month removes the
entry, anything else inserts or replaces it.
"""

import copy
import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from aggregator import dense_daily_series, sparsify
from errors import CommitError, EditStateError, FutureDateError, PermissionDeniedError
from production_data import MonthlyEntry, Model, ProductionLine, days_in_month, format_number
from status_schema import Status

logger = logging.getLogger(__name__)

# Roles allowed to edit production data
EDIT_ROLES = {'admin', 'staff'}
FIRST_SELECTABLE_YEAR = 2020

LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


class EditState(Enum):
    VIEWING = 'viewing'
    EDITING = 'editing'


@dataclass
class CommitResult:
    changed: bool
    models: List[Model]


def can_edit(role: Optional[str]) -> bool:
    return role in EDIT_ROLES


def parse_cell_input(text) -> object:
    """
    Typed cell text to a grid value: commas are ignored, blank stays blank
    (''), anything not starting with an integer becomes 0.
    """
    cleaned = str(text).replace(',', '')
    if cleaned.strip() == '':
        return ''
    match = LEADING_INT.match(cleaned)
    return int(match.group(1)) if match else 0


def selectable_years(today: date) -> List[int]:
    return list(range(FIRST_SELECTABLE_YEAR, today.year + 1))


def selectable_months(year: int, today: date) -> List[int]:
    """0-based months that can be opened for editing in `year`"""
    if year == today.year:
        return list(range(today.month))
    return list(range(12))


class ModelEditSession:
    """Edit workflow for one model's (year, month) grid"""

    def __init__(self, line: ProductionLine, model_name: str, year: int, month: int,
                 today: Optional[date] = None, role: Optional[str] = None):
        self.line = line
        self.model_name = model_name
        self.year = year
        self.month = month
        self.today = today or date.today()
        self.role = role
        self.state = EditState.VIEWING
        self.editing_cell: Optional[Tuple[str, int]] = None
        self._original_grid: Optional[Dict[str, list]] = None
        self.grid = self._load_grid()

    @property
    def model(self) -> Optional[Model]:
        for model in self.line.models:
            if model.name == self.model_name:
                return model
        return None

    @property
    def day_count(self) -> int:
        return days_in_month(self.year, self.month)

    def _load_grid(self) -> Dict[str, list]:
        model = self.model
        return {
            status.label: dense_daily_series(model, self.year, self.month, status)
            for status in Status
        }

    def _require(self, state: EditState):
        if self.state is not state:
            raise EditStateError(f"Operation requires {state.value} state, session is {self.state.value}")

    def display_value(self, status: Status, day: int) -> str:
        return format_number(self.grid[status.label][day - 1])

    def is_future_day(self, day: int) -> bool:
        return date(self.year, self.month + 1, day) > self.today

    # -- Model level ----------------------------------------------------------
    def begin_edit(self):
        if self.role is not None and not can_edit(self.role):
            raise PermissionDeniedError(f"Role {self.role!r} may not edit production data")
        self._require(EditState.VIEWING)
        if self.model is None:
            raise EditStateError(f"Model {self.model_name!r} not found in {self.line.plant_name!r}")
        self._original_grid = copy.deepcopy(self.grid)
        self.editing_cell = None
        self.state = EditState.EDITING

    def cancel(self):
        self._require(EditState.EDITING)
        if self._original_grid is not None:
            self.grid = self._original_grid
        self._close_session()

    def _close_session(self):
        self.state = EditState.VIEWING
        self.editing_cell = None
        self._original_grid = None

    # -- Cell level -----------------------------------------------------------
    def select_cell(self, status: Status, day: int):
        self._require(EditState.EDITING)
        if not 1 <= day <= self.day_count:
            raise ValueError(f"Day {day} outside 1..{self.day_count}")
        if self.is_future_day(day):
            raise FutureDateError("Cannot edit data for future dates.")
        self.editing_cell = (status.label, day)

    def set_cell_value(self, text):
        self._require(EditState.EDITING)
        if self.editing_cell is None:
            raise EditStateError("No cell selected")
        label, day = self.editing_cell
        self.grid[label][day - 1] = parse_cell_input(text)

    def finish_cell(self):
        """Blur or Enter: close the open cell, keep its value"""
        self._require(EditState.EDITING)
        self.editing_cell = None

    # -- Commit ---------------------------------------------------------------
    def build_entry(self) -> MonthlyEntry:
        return MonthlyEntry(
            year=self.year,
            month=self.month,
            status_data={label: sparsify(values) for label, values in self.grid.items()},
        )

    def commit(self, persist: Optional[Callable[[str, List[Model]], None]] = None) -> CommitResult:
        """
        Rebuild the month entry from the grid and hand the updated model list
        to `persist(line_id, models)` when something changed. A failing
        persist raises CommitError and leaves the session in EDITING with
        the line untouched.
        """
        self._require(EditState.EDITING)
        model = self.model
        new_entry = self.build_entry()
        old_entry = model.find_entry(self.year, self.month)

        if old_entry is None:
            changed = not new_entry.is_empty()
        else:
            changed = old_entry.normalized() != new_entry.normalized()

        if not changed:
            logger.info(f"No changes to save for {self.model_name} {self.year}-{self.month + 1:02d}")
            self._close_session()
            return CommitResult(changed=False, models=list(self.line.models))

        entries = list(model.monthly_entries)
        index = entries.index(old_entry) if old_entry is not None else None
        if new_entry.is_empty():
            del entries[index]
        elif index is not None:
            entries[index] = new_entry
        else:
            entries.append(new_entry)

        updated_model = replace(model, monthly_entries=entries)
        updated_models = [updated_model if m is model else m for m in self.line.models]

        if persist is not None:
            try:
                persist(self.line.id, updated_models)
            except Exception as e:
                logger.error(f"Error saving data for {self.model_name}: {e}")
                raise CommitError(f"An error occurred while saving data: {e}") from e

        self.line = replace(self.line, models=updated_models)
        self._close_session()
        logger.info(f"Saved {self.model_name} {self.year}-{self.month + 1:02d}")
        return CommitResult(changed=True, models=updated_models)
