"""
Tests for the identifier store and its loader.
"""

from pathlib import Path

import pytest

from transaction_filter.config import StoreSettings
from transaction_filter.core.exceptions import StoreUnavailableError
from transaction_filter.core.hashing import salted_sha256
from transaction_filter.core.store import IdentifierStore, InMemoryIdentifierStore, load_identifier_store


class TestInMemoryIdentifierStore:
    """Membership and salt queries."""

    def test_contains(self) -> None:
        store = InMemoryIdentifierStore(["a", "b"], "salt")

        assert store.contains("a")
        assert not store.contains("c")
        assert store.salt() == "salt"
        assert len(store) == 2

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryIdentifierStore([]), IdentifierStore)

    def test_identifiers_are_copied(self) -> None:
        """Later changes to the source collection do not leak into the store."""
        source = ["a"]
        store = InMemoryIdentifierStore(source)
        source.append("b")

        assert not store.contains("b")


class TestLoadIdentifierStore:
    """Loading from configured files."""

    def test_loads_identifiers_skipping_blank_lines(self, tmp_path: Path) -> None:
        hpan_file = tmp_path / "hpans.txt"
        hpan_file.write_text("aaa\n\n  bbb  \n", encoding="utf-8")

        store = load_identifier_store(StoreSettings(hpan_path=hpan_file, salt="pepper"))

        assert store.contains("aaa")
        assert store.contains("bbb")
        assert len(store) == 2
        assert store.salt() == "pepper"

    def test_salt_file_overrides_literal_salt(self, tmp_path: Path) -> None:
        salt_file = tmp_path / "salt.txt"
        salt_file.write_text("from-file\nignored\n", encoding="utf-8")

        store = load_identifier_store(StoreSettings(salt="literal", salt_path=salt_file), identifiers=["x"])

        assert store.salt() == "from-file"

    def test_missing_identifier_file(self, tmp_path: Path) -> None:
        with pytest.raises(StoreUnavailableError) as exc_info:
            load_identifier_store(StoreSettings(hpan_path=tmp_path / "missing.txt"))

        assert exc_info.value.error_code == "store_unavailable"
        assert "hpan_path" in exc_info.value.details

    def test_missing_salt_file(self, tmp_path: Path) -> None:
        with pytest.raises(StoreUnavailableError):
            load_identifier_store(StoreSettings(salt_path=tmp_path / "missing.txt"), identifiers=["x"])

    def test_no_identifier_source_configured(self) -> None:
        with pytest.raises(StoreUnavailableError):
            load_identifier_store(StoreSettings())


class TestSaltedHash:
    """salted_sha256 output format."""

    def test_lowercase_hex_of_pan_and_salt(self) -> None:
        digest = salted_sha256("4111", "salt")

        assert len(digest) == 64
        assert digest == digest.lower()
        assert digest == salted_sha256("4111sa", "lt")
        assert digest != salted_sha256("4111", "other")
