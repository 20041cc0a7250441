"""
Unit tests for file_handler.py

Tests file logging functionality including:
- File creation
- Size-bounded rotation
- Archive naming, compression and retention
- Cleanup
"""

import gzip
import shutil
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from svclog.logging.file_handler import RotatingFileHandler


class TestRotatingFileHandler(unittest.TestCase):
    """Test RotatingFileHandler class"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.log_file = Path(self.temp_dir) / "test.log"

    def tearDown(self):
        """Clean up temp directory"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def read_archives(self, handler):
        contents = []
        for archive in handler.archives():
            if archive.suffix == ".gz":
                contents.append(gzip.decompress(archive.read_bytes()).decode("utf-8"))
            else:
                contents.append(archive.read_text(encoding="utf-8"))
        return contents

    def test_handler_initialization(self):
        """Test handler is initialized correctly"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=1024, backup_count=3)

        self.assertEqual(handler.filepath, self.log_file)
        self.assertEqual(handler.max_bytes, 1024)
        self.assertEqual(handler.backup_count, 3)
        self.assertTrue(handler.compress)

        handler.close()

    def test_creates_log_directory(self):
        """Test that handler creates log directory if it doesn't exist"""
        nested_log = Path(self.temp_dir) / "subdir" / "logs" / "test.log"

        handler = RotatingFileHandler(str(nested_log))
        handler.write("Test message\n")
        handler.close()

        self.assertTrue(nested_log.parent.exists())
        self.assertTrue(nested_log.exists())

    def test_writes_to_file(self):
        """Test that handler appends to file"""
        handler = RotatingFileHandler(str(self.log_file))

        handler.write("Test message 1\n")
        handler.write("Test message 2\n")
        handler.close()

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "Test message 1\nTest message 2\n")

    def test_appends_to_existing_file(self):
        self.log_file.write_text("existing\n", encoding="utf-8")

        with RotatingFileHandler(str(self.log_file)) as handler:
            handler.write("new\n")

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "existing\nnew\n")

    def test_rotation_before_exceeding_limit(self):
        """Test that the live file never grows past max_bytes"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=100, backup_count=50)

        line = "x" * 29 + "\n"  # 30 bytes
        for _ in range(3):
            handler.write(line)
        self.assertEqual(self.log_file.stat().st_size, 90)
        self.assertEqual(handler.archives(), [])

        handler.write(line)  # would reach 120 bytes
        self.assertEqual(self.log_file.stat().st_size, 30)
        self.assertEqual(len(handler.archives()), 1)

        for _ in range(20):
            handler.write(line)
            self.assertLessEqual(self.log_file.stat().st_size, 100)

        handler.close()

    def test_oversized_record_written_alone(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=3, compress=False)

        handler.write("short\n")
        handler.write("a much longer line than ten bytes\n")
        handler.close()

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "a much longer line than ten bytes\n")
        self.assertEqual(self.read_archives(handler), ["short\n"])

    def test_archive_naming_and_compression(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=20, backup_count=3)

        handler.write("first entry 123456\n")
        handler.write("second entry 12345\n")
        handler.close()

        archives = handler.archives()
        self.assertEqual(len(archives), 1)
        self.assertRegex(archives[0].name, r"^test\.\d{8}-\d{6}-\d{6}\.log\.gz$")
        self.assertEqual(self.read_archives(handler), ["first entry 123456\n"])

    def test_uncompressed_archives(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=20, backup_count=3, compress=False)

        handler.write("first entry 123456\n")
        handler.write("second entry 12345\n")
        handler.close()

        self.assertRegex(handler.archives()[0].name, r"^test\.\d{8}-\d{6}-\d{6}\.log$")

    def test_backup_count_limit(self):
        """Test that only backup_count archives are kept"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=50, backup_count=2)

        for i in range(50):
            handler.write(f"Log message {i} with content to fill up space\n")

        handler.close()

        self.assertEqual(len(handler.archives()), 2)

    def test_retention_keeps_newest(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=2, compress=False)

        for i in range(6):
            handler.write(f"entry-{i}\n")
        handler.close()

        self.assertEqual(self.read_archives(handler), ["entry-3\n", "entry-4\n"])
        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "entry-5\n")

    def test_archives_of_other_logs_ignored(self):
        other = Path(self.temp_dir) / "other.20250101-000000-000000.log.gz"
        other.write_bytes(b"")

        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=1)
        handler.write("entry-one\n")
        handler.write("entry-two\n")
        handler.write("entry-three\n")
        handler.close()

        self.assertTrue(other.exists())
        self.assertEqual(len(handler.archives()), 1)

    def test_archive_stamp_is_utc(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10)
        handler.write("first entry\n")
        handler.write("second entry\n")
        handler.close()

        stamp = handler.archives()[0].name.split(".")[1]
        archived_at = datetime.strptime(stamp, "%Y%m%d-%H%M%S-%f").replace(tzinfo=timezone.utc)
        self.assertLess(abs((datetime.now(timezone.utc) - archived_at).total_seconds()), 60)

    def test_collision_counters_sort_numerically(self):
        names = [
            "test.20250101-000000-000000_10.log.gz",
            "test.20250101-000000-000000_2.log.gz",
            "test.20250101-000000-000000.log.gz",
            "test.20241231-235959-999999.log.gz",
        ]
        for name in names:
            (Path(self.temp_dir) / name).write_bytes(b"")

        handler = RotatingFileHandler(str(self.log_file))

        self.assertEqual(
            [archive.name for archive in handler.archives()],
            [
                "test.20241231-235959-999999.log.gz",
                "test.20250101-000000-000000.log.gz",
                "test.20250101-000000-000000_2.log.gz",
                "test.20250101-000000-000000_10.log.gz",
            ],
        )

    def test_prunes_lowest_collision_counter_first(self):
        for name in ("test.20250101-000000-000000_2.log.gz", "test.20250101-000000-000000_10.log.gz"):
            (Path(self.temp_dir) / name).write_bytes(b"")

        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=2)
        handler.write("first entry\n")
        handler.write("second entry\n")
        handler.close()

        names = [archive.name for archive in handler.archives()]
        self.assertEqual(len(names), 2)
        self.assertEqual(names[0], "test.20250101-000000-000000_10.log.gz")

    def test_rotation_preserves_content(self):
        """Test that rotation preserves all content"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=200, backup_count=50)

        messages = [f"Log entry number {i} with some additional content\n" for i in range(30)]
        for msg in messages:
            handler.write(msg)
        handler.close()

        all_content = "".join(self.read_archives(handler)) + self.log_file.read_text(encoding="utf-8")
        self.assertEqual(all_content, "".join(messages))

    def test_zero_max_bytes_disables_rotation(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=0)
        for i in range(100):
            handler.write(f"entry {i}\n")
        handler.close()

        self.assertEqual(handler.archives(), [])

    def test_flush(self):
        handler = RotatingFileHandler(str(self.log_file))

        handler.write("Test message\n")
        handler.flush()

        self.assertIn("Test message", self.log_file.read_text(encoding="utf-8"))
        handler.close()

    def test_unicode_content(self):
        """Test writing Unicode content"""
        handler = RotatingFileHandler(str(self.log_file))

        handler.write("Message with émojis: 🎉 ✅ 🚀\n")
        handler.write("Chinese: 你好世界\n")
        handler.close()

        content = self.log_file.read_text(encoding="utf-8")
        self.assertIn("🎉", content)
        self.assertIn("你好世界", content)

    def test_close_multiple_times(self):
        """Test that closing multiple times doesn't cause errors"""
        handler = RotatingFileHandler(str(self.log_file))
        handler.write("Test\n")

        handler.close()
        handler.close()
        handler.close()


if __name__ == "__main__":
    unittest.main()
