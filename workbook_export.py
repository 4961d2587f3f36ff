"""
Production workbook layout.

One sheet per plant, named after the plant:
- row 1: header ('STATUS/DAY' or 'STATUS/MONTH', then one cell per period)
- per model: a two-row merged band 'Model: {name}' followed by one row
  per status in schema order
Every written cell is bordered.
"""

from io import BytesIO
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from aggregator import window_values
from errors import ExportError
from production_data import MONTH_ABBR, Model, TimeWindow, day_label
from status_schema import Status

XLSX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADER_FILL_COLOR = '8DB4E2'
MODEL_TITLE_FILL_COLOR = 'C5D9F1'
LABEL_COLUMN_WIDTH = 18
DATA_COLUMN_WIDTH = 10
HEADER_ROW_HEIGHT = 30
MODEL_BAND_ROWS = 2
# Excel sheet title limit
MAX_SHEET_TITLE_LENGTH = 31


def header_labels(window: TimeWindow) -> List[str]:
    if window.is_daily:
        return [day_label(window.year, window.month, day)
                for day in range(1, window.period_count + 1)]
    return list(MONTH_ABBR)


class WorkbookLayoutEngine:
    """Lays out grouped plants into an openpyxl workbook"""

    def __init__(self, window: TimeWindow):
        self.window = window
        self.headers = header_labels(window)
        self.column_count = len(self.headers) + 1

        # -- Styles --
        self.bold_font = Font(bold=True)
        self.center_alignment = Alignment(horizontal="center", vertical="center")
        self.header_fill = PatternFill(start_color=HEADER_FILL_COLOR,
                                       end_color=HEADER_FILL_COLOR, fill_type="solid")
        self.model_title_fill = PatternFill(start_color=MODEL_TITLE_FILL_COLOR,
                                            end_color=MODEL_TITLE_FILL_COLOR, fill_type="solid")
        self.thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def build(self, grouped: Dict[str, List[Model]]) -> Workbook:
        """One sheet per plant, in the order of `grouped`"""
        wb = Workbook()
        wb.remove(wb.active)
        for plant, models in grouped.items():
            self.add_plant_sheet(wb, plant, models)
        return wb

    def add_plant_sheet(self, wb: Workbook, plant: str, models: List[Model]):
        """Sheet titled exactly `plant`, never renamed"""
        if len(plant) > MAX_SHEET_TITLE_LENGTH:
            raise ExportError(
                f"Plant name {plant!r} is longer than {MAX_SHEET_TITLE_LENGTH} characters "
                f"and cannot be used as a sheet name")
        # Excel compares sheet names case-insensitively
        for existing in wb.sheetnames:
            if existing.casefold() == plant.casefold():
                raise ExportError(
                    f"Plant name {plant!r} clashes with sheet {existing!r} (names differ only in case)")
        try:
            ws = wb.create_sheet(title=plant)
        except ValueError as e:
            raise ExportError(f"Plant name {plant!r} cannot be used as a sheet name: {e}") from e

        self._write_header(ws)
        row = 2
        for model in models:
            row = self._write_model_band(ws, row, model)
            row = self._write_status_rows(ws, row, model)

        ws.column_dimensions[get_column_letter(1)].width = LABEL_COLUMN_WIDTH
        for col_idx in range(2, self.column_count + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = DATA_COLUMN_WIDTH
        return ws

    def _write_header(self, ws):
        first = 'STATUS/DAY' if self.window.is_daily else 'STATUS/MONTH'
        for col_idx, header in enumerate([first] + self.headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = self.bold_font
            cell.fill = self.header_fill
            cell.alignment = self.center_alignment
            cell.border = self.thin_border
        ws.row_dimensions[1].height = HEADER_ROW_HEIGHT

    def _write_model_band(self, ws, row: int, model: Model) -> int:
        """Merged title band; returns the next free row"""
        cell = ws.cell(row=row, column=1, value=f"Model: {model.name}")
        cell.font = self.bold_font
        cell.fill = self.model_title_fill
        cell.alignment = self.center_alignment
        # Merging copies the anchor border onto the outer edge of the range
        cell.border = self.thin_border
        end_row = row + MODEL_BAND_ROWS - 1
        ws.merge_cells(start_row=row, start_column=1,
                       end_row=end_row, end_column=self.column_count)
        return end_row + 1

    def _write_status_rows(self, ws, row: int, model: Model) -> int:
        for status in Status:
            values = window_values(model, self.window, status)
            for col_idx, value in enumerate([status.label] + values, start=1):
                ws.cell(row=row, column=col_idx, value=value).border = self.thin_border
            row += 1
        return row


def render_workbook(wb: Workbook) -> bytes:
    """Serialize the workbook to xlsx bytes"""
    buffer = BytesIO()
    try:
        wb.save(buffer)
    except (OSError, ValueError, TypeError, IndexError) as e:
        raise ExportError(f"Workbook serialization failed: {e}") from e
    return buffer.getvalue()
