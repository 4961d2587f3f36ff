"""Tests for logging setup and the export event logger."""

import logging

from logging_config import ReportFormatter, ReportLogger, setup_logging


def test_setup_logging_writes_log_file(tmp_path):
    root = setup_logging('DEBUG', log_dir=tmp_path)
    try:
        logging.getLogger('production_report.test').info('hello report')
        for handler in root.handlers:
            handler.flush()
        assert 'hello report' in (tmp_path / 'report.log').read_text(encoding='utf-8')
        assert logging.getLogger('matplotlib').level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()


def test_console_colour_does_not_leak_into_record():
    formatter = ReportFormatter('%(levelname)s %(message)s')
    formatter.use_color = True
    record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'boom', None, None)

    assert '\033[31m' in formatter.format(record)
    assert record.levelname == 'ERROR'


def test_fault_deduplicates_consecutive_errors(caplog):
    log = ReportLogger('production_report.faults')
    with caplog.at_level(logging.ERROR, logger='production_report.faults'):
        for _ in range(3):
            log.fault('RENDER', 'page failed')
        log.fault('RENDER', 'other failure')

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ['⚠ [RENDER] page failed', '⚠ [RENDER] other failure']
