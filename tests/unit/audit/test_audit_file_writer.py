"""
Tests for the append-only AuditFileWriter.
"""

import threading
from pathlib import Path

import pytest

from transaction_filter.core.writer import AuditFileWriter


class TestAppendSemantics:
    """Append-or-create behaviour."""

    def test_creates_file_and_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "out.csv"

        AuditFileWriter().write(target, "a;b\n")

        assert target.read_text(encoding="utf-8") == "a;b\n"

    def test_never_truncates(self, tmp_path: Path) -> None:
        target = tmp_path / "out.csv"
        target.write_text("existing\n", encoding="utf-8")
        writer = AuditFileWriter()

        writer.write(target, "first\n")
        writer.write(str(target), "second\n")

        assert target.read_text(encoding="utf-8") == "existing\nfirst\nsecond\n"

    def test_explicit_encoding(self, tmp_path: Path) -> None:
        target = tmp_path / "out.csv"

        AuditFileWriter(encoding="latin-1").write(target, "caffè\n")

        assert target.read_bytes() == "caffè\n".encode("latin-1")

    def test_unwritable_target_raises(self, tmp_path: Path) -> None:
        """Errors surface to the caller, which decides how to handle them."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(OSError):
            AuditFileWriter().write(blocker / "out.csv", "x\n")


class TestConcurrentWrites:
    """Per-path serialization of appends."""

    def test_lines_do_not_interleave(self, tmp_path: Path) -> None:
        target = tmp_path / "shared.csv"
        writer = AuditFileWriter()
        payload = ";".join(["x" * 50] * 15)

        def worker(worker_id: int) -> None:
            for i in range(100):
                writer.write(target, f"{worker_id};{i};{payload}\n")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = target.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 800
        assert all(line.endswith(payload) for line in lines)

    def test_one_lock_per_path(self, tmp_path: Path) -> None:
        writer = AuditFileWriter()
        writer.write(tmp_path / "a.csv", "1\n")
        writer.write(tmp_path / "a.csv", "2\n")
        writer.write(tmp_path / "b.csv", "3\n")

        assert len(writer._locks) == 2

        writer.reset()
        assert writer._locks == {}
