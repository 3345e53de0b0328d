"""Tests for logging setup."""

import logging
import os
import tempfile

from skillmatch.utils.logging_config import setup_logging


class TestSetupLogging:
    def test_writes_rotating_log_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(tmpdir, "warning", console=False)
            try:
                assert logger.level == logging.WARNING
                assert len(logger.handlers) == 1
                logging.getLogger("skillmatch.storage.artifacts").warning("disk nearly full")
                logger.handlers[0].flush()
                with open(os.path.join(tmpdir, "skillmatch.log"), encoding="utf-8") as f:
                    assert "[WARNING] skillmatch.storage.artifacts: disk nearly full" in f.read()
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_rerun_does_not_stack_handlers(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(tmpdir)
            logger = setup_logging(tmpdir, logging.DEBUG)
            try:
                assert len(logger.handlers) == 2
                assert logger.level == logging.DEBUG
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_unknown_level_falls_back_to_info(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(tmpdir, "chatty", console=False)
            try:
                assert logger.level == logging.INFO
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)
