"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

import hashlib
import os
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import patch

import pytest
import structlog
from prometheus_client import CollectorRegistry

from transaction_filter.config import AuditSettings, get_settings
from transaction_filter.core.metrics import MetricsCollector
from transaction_filter.core.store import InMemoryIdentifierStore
from transaction_filter.models.transaction import InboundRecord

TEST_SALT = "s4lt-for-tests"
PERMITTED_PAN = "4111111111111111"
UNKNOWN_PAN = "5500000000000004"


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@pytest.fixture(autouse=True)
def isolated_environment() -> Generator[None, None, None]:
    """Keep env vars, cached settings and structlog config per test."""
    with patch.dict(os.environ):
        for key in [k for k in os.environ if k.startswith("TRANSACTION_FILTER_")]:
            del os.environ[key]
        get_settings.cache_clear()
        yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def salt() -> str:
    return TEST_SALT


@pytest.fixture
def plain_store() -> InMemoryIdentifierStore:
    """Store holding plaintext PANs."""
    return InMemoryIdentifierStore([PERMITTED_PAN], TEST_SALT)


@pytest.fixture
def hashed_store() -> InMemoryIdentifierStore:
    """Store holding salted PAN hashes."""
    return InMemoryIdentifierStore([sha256_hex(PERMITTED_PAN + TEST_SALT)], TEST_SALT)


@pytest.fixture
def make_record() -> Callable[..., InboundRecord]:
    """Factory for valid records; keyword arguments override fields."""

    def _make(**overrides: Any) -> InboundRecord:
        values = {
            "acquirer_code": "13131",
            "operation_type": "00",
            "circuit_type": "01",
            "pan": PERMITTED_PAN,
            "trx_date": "2024-01-01T10:15:00.000+01:00",
            "id_trx_acquirer": "123456789",
            "id_trx_issuer": "987654321",
            "correlation_id": "corr-1",
            "amount": "12.50",
            "amount_currency": "978",
            "acquirer_id": "0000",
            "merchant_id": "merchant-1",
            "terminal_id": "terminal-1",
            "bin": "411111",
            "mcc": "5411",
            "source_filename": "/data/in/CSTAR.13131.TRNLOG.20240101.csv",
            "line_number": 1,
        }
        values.update(overrides)
        return InboundRecord(**values)

    return _make


@pytest.fixture
def audit_dir(tmp_path: Path) -> Path:
    return tmp_path / "audit"


@pytest.fixture
def audit_settings(audit_dir: Path) -> AuditSettings:
    """Audit settings writing under a temporary directory."""
    return AuditSettings(
        logs_path=str(audit_dir),
        execution_date="20240101",
        logging_frequency=1,
    )


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    return MetricsCollector(registry=registry)


@pytest.fixture
def permitted_pan() -> str:
    return PERMITTED_PAN


@pytest.fixture
def unknown_pan() -> str:
    return UNKNOWN_PAN


@pytest.fixture
def hash_pan() -> Callable[[str], str]:
    """Expected salted hash of a PAN."""
    return lambda pan: sha256_hex(pan + TEST_SALT)
