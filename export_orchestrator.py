"""
Production Report Export
Takes a snapshot of production lines plus a period selection and produces
either the PDF chart report or the xlsx workbook.

Usage:
    # Whole-year PDF report (month defaults to -1 = whole year)
    python3.12 export_orchestrator.py --input productions.json --year 2024

    # February 2024 workbook
    python3.12 export_orchestrator.py --input productions.json --year 2024 --month 1 --format xlsx

    # Check role flags before exporting
    python3.12 export_orchestrator.py --input productions.json --year 2024 --role manager
"""

import argparse
import asyncio
import copy
import json
import logging
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, List, Optional

from errors import NoProductionDataError, PermissionDeniedError, ReportError
from grouping import filter_snapshot, group_and_sort
from logging_config import ReportLogger, setup_logging
from production_data import (
    WHOLE_YEAR, ProductionLine, TimeWindow, parse_production_lines, period_part,
)
from report_generator import PDF_MIME_TYPE, DocumentPageRenderer
from workbook_export import XLSX_MIME_TYPE, WorkbookLayoutEngine, render_workbook

logger = logging.getLogger(__name__)
report_log = ReportLogger('production_report.export')


# =============================================================================
# CONFIGURATION
# =============================================================================
CONFIG_PATH = Path(__file__).parent / "config" / "report_config.json"

DEFAULT_CONFIG = {
    'product': 'NZT',
    'output_dir': 'reports',
    'log_level': 'INFO',
    'document': {
        'dpi': 200,
        'draw_timeout_seconds': 10,
        'poll_interval_seconds': 0.01,
    },
}

# Roles allowed to export reports and workbooks
EXPORT_ROLES = {'admin', 'manager'}


def load_report_config(path=CONFIG_PATH):
    """Load report settings from report_config.json, falling back to defaults"""
    config = copy.deepcopy(DEFAULT_CONFIG)
    path = Path(path)
    if path.exists():
        with open(path, encoding='utf-8') as f:
            loaded = json.load(f)
        document = loaded.pop('document', None)
        config.update(loaded)
        if isinstance(document, dict):
            config['document'].update(document)
    else:
        logger.debug(f"No config at {path}, using defaults")
    return config


@dataclass(frozen=True)
class ExportSettings:
    product: str = 'NZT'
    output_dir: str = 'reports'
    log_level: str = 'INFO'
    dpi: int = 200
    draw_timeout_seconds: float = 10.0
    poll_interval_seconds: float = 0.01

    @classmethod
    def from_config(cls, config: dict) -> 'ExportSettings':
        document = config.get('document', {})
        return cls(
            product=config.get('product', cls.product),
            output_dir=config.get('output_dir', cls.output_dir),
            log_level=config.get('log_level', cls.log_level),
            dpi=document.get('dpi', cls.dpi),
            draw_timeout_seconds=document.get('draw_timeout_seconds', cls.draw_timeout_seconds),
            poll_interval_seconds=document.get('poll_interval_seconds', cls.poll_interval_seconds),
        )


# =============================================================================
# ARTIFACTS
# =============================================================================
@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    mime_type: str
    content: bytes

    def write_to(self, directory) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.content)
        return path


def report_filename(product: str, window: TimeWindow, extension: str) -> str:
    return f"{product}_Production_Report_{period_part(window.selection)}_{window.year}.{extension}"


def can_export(role: Optional[str]) -> bool:
    return role in EXPORT_ROLES


def _coerce_lines(records: Iterable[Any]) -> List[ProductionLine]:
    """Accept typed production lines and raw stored documents, in input order"""
    lines = []
    for record in records or []:
        if isinstance(record, ProductionLine):
            lines.append(record)
        else:
            lines.extend(parse_production_lines([record]))
    return lines


# =============================================================================
# EXPORTS
# =============================================================================
async def export_workbook(lines, month: int, year: int,
                          settings: Optional[ExportSettings] = None) -> ExportArtifact:
    """One sheet per plant with daily (month) or monthly (whole year) values"""
    settings = settings or ExportSettings()
    window = TimeWindow.from_selection(month, year)
    production_lines = _coerce_lines(lines)
    if not production_lines:
        raise NoProductionDataError("No production data to export to Excel")

    grouped = group_and_sort(production_lines)
    report_log.export_started('Workbook', period_part(month), len(grouped))

    try:
        workbook = WorkbookLayoutEngine(window).build(grouped)
        content = render_workbook(workbook)
    except ReportError as e:
        report_log.fault('WORKBOOK', str(e))
        raise
    for plant, models in grouped.items():
        report_log.sheet_written(plant, len(models))

    artifact = ExportArtifact(
        filename=report_filename(settings.product, window, 'xlsx'),
        mime_type=XLSX_MIME_TYPE,
        content=content,
    )
    report_log.export_finished(artifact.filename, len(content))
    return artifact


async def export_document(lines, month: int, year: int,
                          settings: Optional[ExportSettings] = None) -> ExportArtifact:
    """Paginated chart + table PDF, one or more pages per plant"""
    settings = settings or ExportSettings()
    window = TimeWindow.from_selection(month, year)
    production_lines = filter_snapshot(_coerce_lines(lines), window)
    if not production_lines:
        raise NoProductionDataError("No production data to generate a report")

    grouped = group_and_sort(production_lines)
    report_log.export_started('Document', period_part(month), len(grouped))

    renderer = DocumentPageRenderer(
        window,
        dpi=settings.dpi,
        draw_timeout=settings.draw_timeout_seconds,
        poll_interval=settings.poll_interval_seconds,
        report_logger=report_log,
    )
    content = await renderer.render(grouped)

    artifact = ExportArtifact(
        filename=report_filename(settings.product, window, 'pdf'),
        mime_type=PDF_MIME_TYPE,
        content=content,
    )
    report_log.export_finished(artifact.filename, len(content))
    return artifact


async def run_export(lines, month: int, year: int, fmt: str = 'pdf',
                     role: Optional[str] = None,
                     settings: Optional[ExportSettings] = None) -> ExportArtifact:
    """Permission check plus dispatch on output format ('pdf' or 'xlsx')"""
    if role is not None and not can_export(role):
        raise PermissionDeniedError(f"Role {role!r} may not export reports")
    if fmt == 'xlsx':
        return await export_workbook(lines, month, year, settings)
    if fmt == 'pdf':
        return await export_document(lines, month, year, settings)
    raise ValueError(f"Unknown export format: {fmt!r}")


# =============================================================================
# CLI
# =============================================================================
def load_snapshot(path) -> list:
    """Read production line documents from a JSON file (list or {'productions': [...]})"""
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('productions', [])
    return data if isinstance(data, list) else []


def main():
    parser = argparse.ArgumentParser(description="Production Report Export")
    parser.add_argument('--input', required=True,
                        help='JSON snapshot of production lines')
    parser.add_argument('--year', type=int, default=date.today().year,
                        help='Report year (default: current year)')
    parser.add_argument('--month', type=int, default=WHOLE_YEAR,
                        help='Month 0-11, or -1 for the whole year (default)')
    parser.add_argument('--format', dest='fmt', choices=['pdf', 'xlsx'], default='pdf',
                        help='Output format (default: pdf)')
    parser.add_argument('--role', type=str, default=None,
                        help='Caller role, checked against export permissions')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory (default from config: ./reports/)')
    parser.add_argument('--config', type=str, default=str(CONFIG_PATH),
                        help='Path to report_config.json')

    args = parser.parse_args()

    settings = ExportSettings.from_config(load_report_config(args.config))
    setup_logging(settings.log_level)

    try:
        snapshot = load_snapshot(args.input)
        artifact = asyncio.run(run_export(
            snapshot, args.month, args.year, args.fmt, role=args.role, settings=settings))
    except (OSError, json.JSONDecodeError) as e:
        report_log.fault('INPUT', f"Cannot read {args.input}: {e}")
        sys.exit(1)
    except (ReportError, ValueError) as e:
        report_log.fault('EXPORT', str(e))
        sys.exit(1)

    path = artifact.write_to(args.output or settings.output_dir)
    print(f"Report saved: {path}")


if __name__ == "__main__":
    main()
