"""
Audit logging of processing outcomes.

Observes every decision made by the record processor and:
- emits sampled log lines for processed and filtered records
- emits one error log line per rejected record
- appends filtered and rejected records to per-source-file CSV files

Audit failures are logged and never propagated: losing an audit line
must not change a record's outcome or stop the run.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import structlog

from ..config import AuditSettings
from ..models.transaction import Filtered, Forwarded, InboundRecord, ProcessingOutcome, RejectedInvalid
from .exceptions import AuditWriteError
from .metrics import MetricsCollector
from .writer import AuditFileWriter

logger = structlog.get_logger(__name__)

FILTERED_RECORDS = "FilteredRecords"
ERROR_RECORDS = "ErrorRecords"


def source_basename(source_filename: str) -> str:
    """Last path segment of a source file name, accepting '\\' separators."""
    return source_filename.replace("\\", "/").split("/")[-1]


def resolve_audit_dir(reference: str) -> Path:
    """
    Resolve an audit directory reference to an absolute path.

    Accepts plain paths and 'file:' references; '~' is expanded.
    """
    location = reference[len("file:"):] if reference.startswith("file:") else reference
    if not location:
        raise AuditWriteError("Empty audit directory reference", details={"reference": reference})
    return Path(location).expanduser().resolve()


def build_audit_path(audit_dir: Path, execution_date: str, kind: str, source_filename: str) -> Path:
    """
    Path of the audit file for a source file.

    {audit_dir}/{execution_date}_{kind}_{basename}.csv, without doubling
    an existing .csv extension.
    """
    name = source_basename(source_filename)
    if not name:
        raise AuditWriteError("Source file name has no base name", details={"source_filename": source_filename})
    if not name.lower().endswith(".csv"):
        name = f"{name}.csv"
    return audit_dir / f"{execution_date}_{kind}_{name}"


class AuditLogger:
    """Listener notified after each record is processed."""

    def __init__(
        self,
        settings: AuditSettings,
        writer: Optional[AuditFileWriter] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.writer = writer or AuditFileWriter(encoding=settings.encoding)
        self.metrics = metrics
        self._executor: Optional[ThreadPoolExecutor] = None
        if settings.write_workers > 0:
            self._executor = ThreadPoolExecutor(
                max_workers=settings.write_workers,
                thread_name_prefix="audit-writer",
            )
        logger.info(
            "Audit logger initialized",
            logs_path=settings.logs_path,
            execution_date=settings.execution_date,
            logging_frequency=settings.logging_frequency,
            write_workers=settings.write_workers,
        )

    def on_outcome(self, record: InboundRecord, outcome: ProcessingOutcome) -> None:
        """Dispatch a processing outcome to the matching audit behaviour."""
        if isinstance(outcome, RejectedInvalid):
            self._on_error(record, violations=sorted(str(v) for v in outcome.violations))
        elif isinstance(outcome, Filtered):
            self._after_process(record, forwarded=False)
        elif isinstance(outcome, Forwarded):
            self._after_process(record, forwarded=True)
        else:
            raise TypeError(f"Unknown processing outcome: {type(outcome).__name__}")

    def on_process_error(self, record: InboundRecord, error: BaseException) -> None:
        """Audit a record whose processing raised an unexpected error."""
        self._on_error(record, error=str(error), error_type=type(error).__name__)

    def _after_process(self, record: InboundRecord, forwarded: bool) -> None:
        if self.settings.enable_after_process_logging:
            self._log_sampled(record, forwarded)

        if self.settings.enable_after_process_file_logging and not forwarded:
            self._submit_write(record, FILTERED_RECORDS)

    def _log_sampled(self, record: InboundRecord, forwarded: bool) -> None:
        frequency = self.settings.logging_frequency
        if frequency > 1 and record.line_number % frequency == 0:
            if forwarded:
                logger.info("Processed lines on file", lines=record.line_number, filename=record.source_filename)
            else:
                logger.info("Filtered transaction record", filename=record.source_filename, line=record.line_number)
        elif frequency == 1:
            if forwarded:
                logger.debug("Processed transaction record", filename=record.source_filename, line=record.line_number)
            else:
                logger.debug("Filtered transaction record", filename=record.source_filename, line=record.line_number)

    def _on_error(self, record: InboundRecord, **context: object) -> None:
        if self.settings.enable_on_error_logging:
            logger.error(
                "Error during transaction processing",
                filename=record.source_filename,
                line=record.line_number,
                **context,
            )

        if self.settings.enable_on_error_file_logging:
            self._submit_write(record, ERROR_RECORDS)

    def _submit_write(self, record: InboundRecord, kind: str) -> None:
        if self._executor is not None:
            self._executor.submit(self._write_record, record, kind)
        else:
            self._write_record(record, kind)

    def _write_record(self, record: InboundRecord, kind: str) -> None:
        """Append the record to its audit file; never raises."""
        try:
            audit_dir = resolve_audit_dir(self.settings.logs_path)
            path = build_audit_path(audit_dir, self.settings.execution_date, kind, record.source_filename)
            self.writer.write(path, record.to_csv_line())
        except Exception as e:
            logger.error(
                "Failed to write audit record",
                kind=kind,
                filename=record.source_filename,
                line=record.line_number,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if self.metrics:
                self.metrics.record_audit_write_error(kind)
            return

        if self.metrics:
            self.metrics.record_audit_write(kind)

    def close(self) -> None:
        """Wait for pending audit writes and release per-file locks."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.writer.reset()
