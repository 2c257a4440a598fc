"""
Unit tests for logging setup.
"""
import logging

from watchsim.log import setup_logging


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "watchsim.log"
    try:
        logger = setup_logging(logging.DEBUG, log_file=log_file)
        logger.info("simulation started")
        for h in root.handlers:
            h.flush()
        assert logger.name == "watchsim"
        assert root.level == logging.DEBUG
        assert "simulation started" in log_file.read_text(encoding="utf-8")
    finally:
        for h in root.handlers:
            if h not in saved_handlers:
                h.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
