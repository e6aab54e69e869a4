"""
Append-only line writer with one lock per target file.

Many records from the same source file share an audit file; appends to
a path are serialized so lines never interleave.
"""

import threading
from pathlib import Path
from typing import Dict, Union


class AuditFileWriter:
    """Thread-safe append-or-create writer."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._locks: Dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = threading.Lock()
                self._locks[path] = lock
            return lock

    def write(self, path: Union[str, Path], line: str) -> None:
        """
        Append a line to a file, creating it and its parent directories.

        Raises:
            OSError: if the directory or file cannot be created or written
        """
        target = Path(path)
        with self._lock_for(target):
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "a", encoding=self.encoding) as f:
                f.write(line)

    def reset(self) -> None:
        """Drop per-path locks at the end of a run."""
        with self._guard:
            self._locks.clear()
