"""
Centralized logging configuration for the production report engine
Single log file output plus a coloured console stream
"""

import logging
import sys
from pathlib import Path


LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}
RESET = '\033[0m'

# A repeated fault is logged again every N occurrences
FAULT_REPEAT_EVERY = 10


class ReportFormatter(logging.Formatter):
    """Console formatter that colours the level name"""

    use_color = False

    def format(self, record):
        color = LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color is None:
            return super().format(record)
        # Colour a copy so the file handler keeps plain level names
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


def setup_logging(log_level=logging.INFO, log_dir="logs"):
    """
    Configure logging for report exports

    Strategy:
    - Single log file: ./logs/report.log, all levels
    - Console output: log_level and above
    - One line per export start/finish, per-page detail at DEBUG
    """
    if isinstance(log_level, str):
        numeric_level = getattr(logging, log_level.upper(), None)
        if not isinstance(numeric_level, int):
            print(f"Invalid log level: {log_level}, defaulting to INFO")
            numeric_level = logging.INFO
        log_level = numeric_level

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "report.log"

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = ReportFormatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_formatter.use_color = True

    # File handler - captures everything
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove any existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Suppress noisy libraries
    logging.getLogger('matplotlib').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('fontTools').setLevel(logging.WARNING)

    return root_logger


class ReportLogger:
    """One-line export events on top of a named logger"""

    def __init__(self, logger_name='production_report'):
        self.logger = logging.getLogger(logger_name)
        self.last_error = None
        self.error_count = 0

    def export_started(self, kind, period, plant_count):
        self.logger.info(f"▶ {kind} export started: {period}, {plant_count} plant(s)")

    def export_finished(self, filename, size_bytes):
        self.logger.info(f"✓ Export finished: {filename} ({size_bytes:,} bytes)")

    def page_rendered(self, page_number, plant, model_count):
        """Per-page progress, file log only"""
        self.logger.debug(f"📄 Page {page_number}: {plant} ({model_count} model(s))")

    def sheet_written(self, plant, model_count):
        self.logger.debug(f"📊 Sheet '{plant}': {model_count} model(s)")

    def fault(self, component, message):
        """ERROR once per distinct fault; consecutive repeats are only counted"""
        key = (component, message)
        if key == self.last_error:
            self.error_count += 1
            if self.error_count % FAULT_REPEAT_EVERY == 0:
                self.logger.error(f"⚠ [{component}] {message} (x{self.error_count})")
            return
        self.last_error = key
        self.error_count = 1
        self.logger.error(f"⚠ [{component}] {message}")

