"""Tests for the workbook layout."""

from io import BytesIO

import pytest
from openpyxl import load_workbook

from errors import ExportError
from grouping import group_and_sort
from production_data import TimeWindow
from status_schema import status_names
from workbook_export import WorkbookLayoutEngine, render_workbook

from factories import entry, line, line_a_snapshot, model


def _build(lines, window):
    wb = WorkbookLayoutEngine(window).build(group_and_sort(lines))
    return load_workbook(BytesIO(render_workbook(wb)))


def test_daily_sheet_for_line_a():
    wb = _build(line_a_snapshot(), TimeWindow(year=2024, month=1))

    assert wb.sheetnames == ['Line A']
    ws = wb['Line A']
    assert ws['A1'].value == 'STATUS/DAY'
    assert ws['B1'].value == 'Thu 1'
    assert ws['AD1'].value == 'Thu 29'
    assert ws.max_column == 30

    assert ws['A2'].value == 'Model: X'
    assert [str(r) for r in ws.merged_cells.ranges] == ['A2:AD3']

    assert [ws.cell(row=r, column=1).value for r in range(4, 8)] == status_names()
    assert ws['B4'].value == 50
    assert [ws.cell(row=4, column=c).value for c in range(3, 31)] == [0] * 28
    assert ws.max_row == 7


def test_header_and_band_styles():
    wb = _build(line_a_snapshot(), TimeWindow(year=2024, month=1))
    ws = wb['Line A']

    header = ws['C1']
    assert header.font.b
    assert header.alignment.horizontal == 'center'
    assert header.fill.fgColor.rgb.endswith('8DB4E2')
    assert header.border.left.style == 'thin'

    band = ws['A2']
    assert band.font.b
    assert band.fill.fgColor.rgb.endswith('C5D9F1')
    assert band.alignment.horizontal == 'center'

    assert ws['AD7'].border.bottom.style == 'thin'
    assert ws['A5'].border.right.style == 'thin'


def test_column_widths():
    ws = _build(line_a_snapshot(), TimeWindow(year=2024, month=1))['Line A']
    assert ws.column_dimensions['A'].width == 18
    assert ws.column_dimensions['B'].width == 10
    assert ws.column_dimensions['AD'].width == 10


def test_yearly_sheets_per_plant_with_monthly_sums():
    lines = [
        line('beta', model('B1', entry(2024, 3, Forecast={1: 5, 2: 6}))),
        line('Alpha', model('Z'), model('A', entry(2024, 0, Production={1: 1, 31: 2}))),
    ]
    wb = _build(lines, TimeWindow(year=2024))

    assert wb.sheetnames == ['Alpha', 'beta']
    ws = wb['Alpha']
    assert ws['A1'].value == 'STATUS/MONTH'
    assert [ws.cell(row=1, column=c).value for c in range(2, 14)][:3] == ['Jan', 'Feb', 'Mar']
    assert ws['M1'].value == 'Dec'

    # model A first, then Z, each with a band and 4 status rows
    assert ws['A2'].value == 'Model: A'
    assert ws['A8'].value == 'Model: Z'
    assert sorted(str(r) for r in ws.merged_cells.ranges) == ['A2:M3', 'A8:M9']
    assert ws['B4'].value == 3
    assert ws['A13'].value == 'Capacity + OT'

    assert wb['beta']['E5'].value == 11


def test_invalid_sheet_name_raises_export_error():
    with pytest.raises(ExportError):
        WorkbookLayoutEngine(TimeWindow(year=2024)).build(
            group_and_sort([line('Line/A', model('X'))]))


def test_plant_names_differing_only_in_case_are_rejected():
    lines = [line('Line A', model('X')), line('line a', model('Y'))]
    with pytest.raises(ExportError, match="differ only in case"):
        WorkbookLayoutEngine(TimeWindow(year=2024)).build(group_and_sort(lines))


def test_overlong_plant_name_is_rejected():
    engine = WorkbookLayoutEngine(TimeWindow(year=2024))
    with pytest.raises(ExportError, match="31 characters"):
        engine.build(group_and_sort([line('P' * 40, model('X'))]))

    wb = engine.build(group_and_sort([line('P' * 31, model('X'))]))
    assert wb.sheetnames == ['P' * 31]
