"""
File Handler - Size-bounded rotating log files

Provides file output with automatic rotation based on file size.

Features:
- Rotation before a write would push the file past max_bytes
- Archives named with a timestamp suffix, optionally gzip-compressed
- Retention cap on the number of archived files
- Thread-safe write operations
- Automatic directory creation

Usage:
    from svclog.logging.file_handler import RotatingFileHandler

    handler = RotatingFileHandler(
        filepath="logs/combined.log",
        max_bytes=10485760,  # 10MB
        backup_count=10,
    )

    handler.write('{"message": "Started"}\\n')
    handler.close()

Rotation pattern (UTC timestamp):
    combined.log -> combined.20250120-101530-123456.log.gz
"""

import gzip
import os
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock

from beartype.typing import List

ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S-%f"


class RotatingFileHandler:
    """
    Rotating file handler with timestamped, compressed archives.

    Example:
        handler = RotatingFileHandler("logs/error.log", max_bytes=10485760, backup_count=5)
        handler.write('{"level": "error", "message": "DB down"}\\n')
        handler.close()
    """

    def __init__(
        self,
        filepath: str,
        max_bytes: int = 10485760,  # 10MB
        backup_count: int = 5,
        compress: bool = True,
        encoding: str = "utf-8",
    ):
        """
        Initialize rotating file handler.

        Args:
            filepath: Path to log file
            max_bytes: Maximum file size; 0 disables rotation
            backup_count: Number of archived files to keep
            compress: Gzip archived files
            encoding: File encoding (default: utf-8)
        """
        self.filepath = Path(filepath)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.compress = compress
        self.encoding = encoding
        self._file = None
        self._lock = Lock()
        self._archive_pattern = re.compile(
            rf"^{re.escape(self.filepath.stem)}\.(?P<stamp>\d{{8}}-\d{{6}}-\d{{6}})(?:_(?P<counter>\d+))?"
            rf"{re.escape(self.filepath.suffix)}(?:\.gz)?$"
        )
        self._ensure_directory()

    def _ensure_directory(self):
        """Create log directory if it doesn't exist"""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def write(self, content: str):
        """
        Write content to file, rotating first if it would not fit.

        Args:
            content: Content to write (should include newline if needed)
        """
        data = content.encode(self.encoding)
        with self._lock:
            if self._should_rotate(len(data)):
                self._rotate()

            if self._file is None or self._file.closed:
                self._file = open(self.filepath, "ab")

            self._file.write(data)
            self._file.flush()
            os.fsync(self._file.fileno())

    def _current_size(self) -> int:
        try:
            return self.filepath.stat().st_size
        except OSError:
            return 0

    def _should_rotate(self, incoming: int) -> bool:
        """
        Check whether writing `incoming` bytes would exceed max_bytes.

        An empty file is never rotated, so a single oversized record still
        gets written to a fresh file on its own.
        """
        if self.max_bytes <= 0:
            return False
        size = self._current_size()
        return size > 0 and size + incoming > self.max_bytes

    def _archive_path(self) -> Path:
        stamp = datetime.now(timezone.utc).strftime(ARCHIVE_TIMESTAMP_FORMAT)
        extension = self.filepath.suffix + (".gz" if self.compress else "")
        candidate = self.filepath.with_name(f"{self.filepath.stem}.{stamp}{extension}")
        counter = 1
        while candidate.exists():
            candidate = self.filepath.with_name(f"{self.filepath.stem}.{stamp}_{counter}{extension}")
            counter += 1
        return candidate

    def _rotate(self):
        """
        Archive the current file and prune archives beyond backup_count.
        """
        if self._file and not self._file.closed:
            self._file.close()
            self._file = None

        if not self.filepath.exists():
            return

        archive = self._archive_path()
        if self.compress:
            with open(self.filepath, "rb") as src, gzip.open(archive, "wb") as dst:
                shutil.copyfileobj(src, dst)
            self.filepath.unlink()
        else:
            self.filepath.replace(archive)

        self._prune_archives()

    def archives(self) -> List[Path]:
        """Archived files for this log, oldest first"""
        if not self.filepath.parent.exists():
            return []
        found = []
        for path in self.filepath.parent.iterdir():
            match = self._archive_pattern.match(path.name)
            if match:
                found.append(((match.group("stamp"), int(match.group("counter") or 0)), path))
        return [path for _, path in sorted(found)]

    def _prune_archives(self):
        archives = self.archives()
        excess = len(archives) - self.backup_count
        for old in archives[: max(excess, 0)]:
            try:
                old.unlink()
            except OSError:
                pass  # Ignore errors deleting old archives

    def flush(self):
        """
        Flush file buffer.

        Ensures all buffered data is written to disk.
        """
        with self._lock:
            if self._file and not self._file.closed:
                self._file.flush()
                os.fsync(self._file.fileno())

    def close(self):
        """
        Close file handle.

        Should be called when done writing to ensure data is flushed.
        """
        with self._lock:
            if self._file and not self._file.closed:
                self._file.flush()
                self._file.close()
                self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        try:
            self.close()
        except Exception:
            pass  # Ignore errors in destructor

