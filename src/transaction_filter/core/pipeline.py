"""
Record processing pipeline.

Orchestrates, for every record:
1. Validation, hashing and store lookup (RecordProcessor)
2. Conversion of invalid records into RejectedInvalid outcomes
3. Audit logging (AuditLogger)
4. Metrics

Records are independent, so a run can be spread over a thread pool.
"""

import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from types import TracebackType
from typing import Callable, Deque, Iterable, Iterator, List, Optional, Type

import structlog

from ..models.transaction import Filtered, Forwarded, InboundRecord, ProcessingOutcome, RejectedInvalid
from .audit import AuditLogger
from .exceptions import InvalidRecordError
from .metrics import MetricsCollector
from .processor import RecordProcessor

logger = structlog.get_logger(__name__)

# In-flight records per worker thread
WINDOW_PER_WORKER = 4


@dataclass
class PipelineResult:
    """
    Result of running a stream of records through the pipeline.

    forwarded holds the forwarded records only when the run had no sink.
    """
    forwarded: List[InboundRecord] = field(default_factory=list)
    forwarded_count: int = 0
    filtered_count: int = 0
    rejected_count: int = 0
    processing_time_ms: float = 0.0

    @property
    def total(self) -> int:
        return self.forwarded_count + self.filtered_count + self.rejected_count


class ProcessingPipeline:
    """
    Feeds records into the processor and reports outcomes to the audit logger.

    Only validation failures are handled per record; any other processing
    error is audited and then re-raised as fatal for the run.
    """

    def __init__(
        self,
        processor: RecordProcessor,
        audit_logger: AuditLogger,
        metrics: Optional[MetricsCollector] = None,
        workers: int = 1,
    ) -> None:
        self.processor = processor
        self.audit_logger = audit_logger
        self.metrics = metrics
        self.workers = max(1, workers)
        logger.info("Processing pipeline initialized", workers=self.workers, has_metrics=metrics is not None)

    def process_record(self, record: InboundRecord) -> ProcessingOutcome:
        """Process a single record and notify the audit logger."""
        started = time.perf_counter()
        outcome: ProcessingOutcome
        try:
            outcome = self.processor.process(record)
        except InvalidRecordError as e:
            outcome = RejectedInvalid(record, e.violations)
        except Exception as e:
            self.audit_logger.on_process_error(record, e)
            raise

        self.audit_logger.on_outcome(record, outcome)

        if self.metrics:
            self.metrics.record_outcome(_outcome_label(outcome), time.perf_counter() - started)
        return outcome

    def run(
        self,
        records: Iterable[InboundRecord],
        sink: Optional[Callable[[InboundRecord], None]] = None,
    ) -> PipelineResult:
        """
        Process a stream of records.

        Forwarded records keep their input order, also with several workers.
        With a sink, each forwarded record is handed to it on the calling
        thread instead of being kept in the result. Worker runs pull at most
        workers * WINDOW_PER_WORKER records ahead of the consumer.
        """
        started = time.perf_counter()
        result = PipelineResult()

        if self.workers == 1:
            outcomes: Iterable[ProcessingOutcome] = map(self.process_record, records)
            self._collect(outcomes, result, sink)
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="record-worker") as executor:
                self._collect(self._windowed(executor, records), result, sink)

        result.processing_time_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Pipeline run completed",
            forwarded=result.forwarded_count,
            filtered=result.filtered_count,
            rejected=result.rejected_count,
            processing_time_ms=round(result.processing_time_ms, 3),
        )
        return result

    def _windowed(self, executor: ThreadPoolExecutor, records: Iterable[InboundRecord]) -> Iterator[ProcessingOutcome]:
        """Yield outcomes in input order with a bounded number of pending futures."""
        window = self.workers * WINDOW_PER_WORKER
        pending: Deque[Future] = deque()
        try:
            for record in records:
                pending.append(executor.submit(self.process_record, record))
                if len(pending) >= window:
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()
        finally:
            for future in pending:
                future.cancel()

    @staticmethod
    def _collect(
        outcomes: Iterable[ProcessingOutcome],
        result: PipelineResult,
        sink: Optional[Callable[[InboundRecord], None]],
    ) -> None:
        for outcome in outcomes:
            if isinstance(outcome, Forwarded):
                result.forwarded_count += 1
                if sink is None:
                    result.forwarded.append(outcome.record)
                else:
                    sink(outcome.record)
            elif isinstance(outcome, Filtered):
                result.filtered_count += 1
            else:
                result.rejected_count += 1

    def close(self) -> None:
        self.audit_logger.close()

    def __enter__(self) -> "ProcessingPipeline":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


def _outcome_label(outcome: ProcessingOutcome) -> str:
    if isinstance(outcome, Forwarded):
        return "forwarded"
    if isinstance(outcome, Filtered):
        return "filtered"
    return "rejected"
