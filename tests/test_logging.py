"""Tests for labelbench.logging — console and file handler setup."""

from __future__ import annotations

import logging
import sys
import tempfile
import unittest
from pathlib import Path

from labelbench.logging import setup_logging


class TestSetupLogging(unittest.TestCase):
    def tearDown(self) -> None:
        logger = logging.getLogger("labelbench")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def _console(self, logger: logging.Logger) -> logging.Handler:
        return next(h for h in logger.handlers if not isinstance(h, logging.FileHandler))

    def test_default_level(self) -> None:
        logger = setup_logging()
        self.assertEqual(logger.name, "labelbench")
        self.assertEqual(self._console(logger).level, logging.INFO)

    def test_verbose(self) -> None:
        self.assertEqual(self._console(setup_logging(verbose=True)).level, logging.DEBUG)

    def test_quiet(self) -> None:
        self.assertEqual(self._console(setup_logging(quiet=True)).level, logging.WARNING)

    def test_verbose_wins_over_quiet(self) -> None:
        logger = setup_logging(verbose=True, quiet=True)
        self.assertEqual(self._console(logger).level, logging.DEBUG)

    def test_reconfigure_replaces_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        self.assertEqual(len(logger.handlers), 1)

    def test_log_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "bench.log"
            logger = setup_logging(quiet=True, log_file=log_file)
            logger.debug("trial 1/3")
            for handler in logger.handlers:
                handler.flush()
            self.assertIn("trial 1/3", log_file.read_text())
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()

    def test_console_writes_to_stderr(self) -> None:
        console = self._console(setup_logging())
        self.assertIs(console.stream, sys.stderr)

    def test_log_file_truncated_per_run(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "bench.log"
            log_file.write_text("previous run\n")
            logger = setup_logging(log_file=log_file)
            logger.info("averages test on 'hamlet': starts")
            for handler in logger.handlers:
                handler.flush()
            text = log_file.read_text()
            self.assertNotIn("previous run", text)
            self.assertIn("INFO    [test_logging] averages test on 'hamlet': starts", text)
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()


if __name__ == "__main__":
    unittest.main()
