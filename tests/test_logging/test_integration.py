"""
Integration tests for logging infrastructure

Tests end-to-end scenarios combining multiple components:
- Config + Sinks + File Handler
- Logger + Redaction + Formatting
- Rotation under load
"""

import gzip
import json
import shutil
import tempfile
import unittest
from io import StringIO
from pathlib import Path

from svclog.logging import get_logger
from svclog.logging.config import LoggingConfig
from svclog.logging.domain import APILogger
from svclog.logging.redactor import REDACTED
from svclog.logging.structured_logger import LoggerFactory

from tests.helpers.logging_helpers import read_entries


class TestEndToEndLogging(unittest.TestCase):
    """Test complete end-to-end logging scenarios"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.log_dir = Path(self.temp_dir) / "logs"
        LoggerFactory.reset()

    def tearDown(self):
        """Clean up"""
        LoggerFactory.reset()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def build(self, stream=None, **overrides):
        config = dict(
            LoggingConfig.DEFAULT_CONFIG,
            environment="production",
            level="info",
            log_dir=str(self.log_dir),
            service_name="billing",
            version="2.1.0",
            color=False,
        )
        config.update(overrides)
        return LoggingConfig.build_context(config, stream=stream)

    def test_error_reaches_both_files_redacted(self):
        context = self.build()
        context.logger().error("DB down", {"host": "db-1"}, password="abc123")
        context.close()

        error_entries = read_entries(self.log_dir / "error.log")
        combined_entries = read_entries(self.log_dir / "combined.log")
        self.assertEqual(error_entries, combined_entries)

        entry = error_entries[0]
        self.assertEqual(
            list(entry)[:6], ["timestamp", "level", "message", "service", "version", "environment"]
        )
        self.assertEqual(entry["level"], "error")
        self.assertEqual(entry["message"], "DB down")
        self.assertEqual(entry["service"], "billing")
        self.assertEqual(entry["version"], "2.1.0")
        self.assertEqual(entry["environment"], "production")
        self.assertEqual(entry["host"], "db-1")
        self.assertEqual(entry["password"], REDACTED)
        self.assertNotIn("abc123", (self.log_dir / "error.log").read_text())

    def test_level_routing(self):
        context = self.build()
        logger = context.logger("jobs")
        logger.warn("Queue backing up", depth=120)
        logger.info("Job done")
        context.close()

        self.assertFalse((self.log_dir / "error.log").exists())
        messages = [entry["message"] for entry in read_entries(self.log_dir / "combined.log")]
        self.assertEqual(messages, ["Queue backing up", "Job done"])

    def test_debug_below_threshold_writes_nothing(self):
        context = self.build()
        context.logger().debug("Cache miss", key_name="user:1")
        context.close()

        combined = self.log_dir / "combined.log"
        self.assertTrue(not combined.exists() or combined.stat().st_size == 0)

    def test_http_log(self):
        context = self.build(http=True)
        api = APILogger("stripe", context.logger())
        api.log_request("GET", "/v1/charges", headers={"x-api-key": "sk_live_1"})
        context.close()

        http_entries = read_entries(self.log_dir / "http.log")
        self.assertEqual(len(http_entries), 1)
        self.assertEqual(http_entries[0]["headers"], {"x-api-key": REDACTED})
        # http is more verbose than info
        self.assertFalse((self.log_dir / "combined.log").exists())

    def test_console_in_development(self):
        output = StringIO()
        context = self.build(stream=output, environment="development")
        context.logger("api.users").info("Fetching user", userId=42)
        context.close()

        console = output.getvalue()
        self.assertIn("info [api.users]: Fetching user", console)
        self.assertIn('"userId": 42', console)
        self.assertNotIn("billing", console)

    def test_no_console_in_production(self):
        output = StringIO()
        context = self.build(stream=output)
        context.logger().error("Visible in files only")
        context.close()

        self.assertEqual(output.getvalue(), "")

    def test_rotation_under_load(self):
        context = self.build(max_size=512)
        logger = context.logger("load")
        for i in range(60):
            logger.info("Processed batch", batch=i)
        context.close()

        combined = context.sink("combined")
        archives = combined.handler.archives()
        self.assertGreater(len(archives), 0)
        self.assertLessEqual(len(archives), 10)
        self.assertLessEqual((self.log_dir / "combined.log").stat().st_size, 512)

        with gzip.open(archives[-1], "rt", encoding="utf-8") as f:
            archived = [json.loads(line) for line in f]
        self.assertTrue(all(entry["message"] == "Processed batch" for entry in archived))

        current = read_entries(self.log_dir / "combined.log")
        self.assertEqual(current[-1]["batch"], 59)

    def test_factory_pipeline(self):
        output = StringIO()
        LoggingConfig.setup_logging(
            stream=output,
            log_dir=str(self.log_dir),
            level="verbose",
            environment="development",
            service_name="billing",
            color=False,
        )

        get_logger("payments").child("refunds").verbose("Refund queued", amount=500)
        LoggerFactory.context().flush()

        entry = read_entries(self.log_dir / "combined.log")[0]
        self.assertEqual(entry["module"], "payments.refunds")
        self.assertEqual(entry["level"], "verbose")
        self.assertIn("[payments.refunds]: Refund queued", output.getvalue())

    def test_sink_failure_isolated(self):
        output = StringIO()
        context = self.build(stream=output, environment="development")
        combined = context.sink("combined")

        def broken(line):
            raise OSError("disk full")

        combined._write = broken
        context.logger().error("Still on console")
        context.close()

        self.assertEqual(combined.failures, 1)
        self.assertIn("Still on console", output.getvalue())
        self.assertEqual(len(read_entries(self.log_dir / "error.log")), 1)


if __name__ == "__main__":
    unittest.main()
