"""
Prometheus metrics collection.

In-memory counters for a filtering run; batch runs can dump them to a
node-exporter textfile at the end.
"""

from pathlib import Path
from typing import Union

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info, write_to_textfile

from .. import __version__

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for the transaction filter.

    Pass a dedicated CollectorRegistry to keep runs (and tests) isolated.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        self.service_info = Info(
            "transaction_filter",
            "Transaction filter information",
            registry=registry,
        )
        self.service_info.info({
            "version": __version__,
            "service": "transaction-filter",
        })

        self.records_total = Counter(
            "transaction_filter_records_total",
            "Records processed, by outcome",
            ["outcome"],
            registry=registry,
        )

        self.read_errors_total = Counter(
            "transaction_filter_read_errors_total",
            "Source lines that could not be parsed",
            registry=registry,
        )

        self.audit_writes_total = Counter(
            "transaction_filter_audit_writes_total",
            "Audit lines written, by audit kind",
            ["kind"],
            registry=registry,
        )

        self.audit_write_errors_total = Counter(
            "transaction_filter_audit_write_errors_total",
            "Audit lines that could not be written, by audit kind",
            ["kind"],
            registry=registry,
        )

        self.processing_seconds = Histogram(
            "transaction_filter_processing_seconds",
            "Time spent deciding a single record",
            buckets=[0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05],
            registry=registry,
        )

    def record_outcome(self, outcome: str, duration_seconds: float) -> None:
        """Record one processing decision."""
        self.records_total.labels(outcome=outcome).inc()
        self.processing_seconds.observe(duration_seconds)

    def record_read_error(self) -> None:
        self.read_errors_total.inc()

    def record_audit_write(self, kind: str) -> None:
        self.audit_writes_total.labels(kind=kind).inc()

    def record_audit_write_error(self, kind: str) -> None:
        self.audit_write_errors_total.labels(kind=kind).inc()

    def write_textfile(self, path: Union[str, Path]) -> None:
        """Dump the registry in Prometheus text format."""
        write_to_textfile(str(path), self.registry)
        logger.info("Metrics written", path=str(path))
