"""
Identifier store: the permitted PAN set and the hashing salt.

Loaded once before processing starts and read-only afterwards, so
concurrent lookups from worker threads need no locking.
"""

from pathlib import Path
from typing import Iterable, Optional, Protocol, runtime_checkable

import structlog

from ..config import StoreSettings
from .exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)


@runtime_checkable
class IdentifierStore(Protocol):
    """Membership and salt capability consumed by the record processor."""

    def contains(self, identifier: str) -> bool:
        ...

    def salt(self) -> str:
        ...


class InMemoryIdentifierStore:
    """IdentifierStore backed by a frozenset."""

    def __init__(self, identifiers: Iterable[str], salt: str = "") -> None:
        self._identifiers = frozenset(identifiers)
        self._salt = salt

    def contains(self, identifier: str) -> bool:
        return identifier in self._identifiers

    def salt(self) -> str:
        return self._salt

    def __len__(self) -> int:
        return len(self._identifiers)


def _read_identifiers(path: Path) -> Iterable[str]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            identifier = line.strip()
            if identifier:
                yield identifier


def _read_salt(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.readline().strip()


def load_identifier_store(settings: StoreSettings, identifiers: Optional[Iterable[str]] = None) -> InMemoryIdentifierStore:
    """
    Build the identifier store from configuration.

    Args:
        settings: Store settings (identifier file, salt or salt file)
        identifiers: Explicit identifiers, used instead of the configured file

    Returns:
        Fully loaded in-memory store

    Raises:
        StoreUnavailableError: if the identifier or salt file cannot be read
    """
    salt = settings.salt
    if settings.salt_path is not None:
        try:
            salt = _read_salt(settings.salt_path)
        except OSError as e:
            logger.error("Error reading salt file", salt_path=str(settings.salt_path), error=str(e))
            raise StoreUnavailableError(
                "Salt file unavailable",
                details={"salt_path": str(settings.salt_path)},
            ) from e

    if identifiers is None:
        if settings.hpan_path is None:
            raise StoreUnavailableError("No identifier file configured")
        try:
            identifiers = list(_read_identifiers(settings.hpan_path))
        except OSError as e:
            logger.error("Error reading identifier file", hpan_path=str(settings.hpan_path), error=str(e))
            raise StoreUnavailableError(
                "Identifier file unavailable",
                details={"hpan_path": str(settings.hpan_path)},
            ) from e

    store = InMemoryIdentifierStore(identifiers, salt)
    logger.info("Identifier store loaded", identifiers=len(store), salted=bool(salt))
    return store
