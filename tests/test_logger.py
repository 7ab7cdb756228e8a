"""Test logging setup"""

import logging

from spot_exporter.core.logger import (
    ErrorOnlyFilter,
    get_logger,
    setup_logging,
    shutdown_logging,
)


class TestLogging:
    """Test log files and filters"""

    def test_setup_creates_timestamped_files(self, output_dir):
        try:
            logs_dir = setup_logging(output_dir)
            get_logger("spot_exporter.test").error("Something failed")
            get_logger("spot_exporter.test").info("Just info")
        finally:
            shutdown_logging()

        full_logs = list(logs_dir.glob("log_full_*.log"))
        error_logs = list(logs_dir.glob("log_errors_*.log"))
        assert logs_dir == output_dir / "logs"
        assert len(full_logs) == 1 and len(error_logs) == 1

        full_text = full_logs[0].read_text(encoding="utf-8")
        error_text = error_logs[0].read_text(encoding="utf-8")
        assert "Something failed" in full_text and "Just info" in full_text
        assert "Something failed" in error_text
        assert "Just info" not in error_text

    def test_error_only_filter(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "msg", None, None)
        assert ErrorOnlyFilter().filter(record) is False
        record.levelno = logging.ERROR
        assert ErrorOnlyFilter().filter(record) is True
