"""
Per-record filtering decision.

validate → hash (optional) → store lookup → Forwarded / Filtered.
The input record is never mutated: a forwarded record is a copy whose
PAN is replaced by its salted hash.
"""

from typing import Optional

import structlog

from ..models.transaction import Filtered, Forwarded, InboundRecord, ProcessingOutcome
from .exceptions import InvalidRecordError
from .hashing import salted_sha256
from .store import IdentifierStore
from .validator import RecordValidator

logger = structlog.get_logger(__name__)


class RecordProcessor:
    """
    Validates inbound records and filters them against the identifier store.

    Depending on deployment, the store holds either plaintext PANs
    (apply_hashing=False) or salted hashes (apply_hashing=True). In both
    modes the PAN leaving in a Forwarded outcome is the salted hash.
    """

    def __init__(
        self,
        store: IdentifierStore,
        apply_hashing: bool = False,
        validator: Optional[RecordValidator] = None,
    ) -> None:
        self.store = store
        self.apply_hashing = apply_hashing
        self.validator = validator or RecordValidator()
        logger.info("Record processor initialized", apply_hashing=apply_hashing)

    def process(self, record: InboundRecord, apply_hashing: Optional[bool] = None) -> ProcessingOutcome:
        """
        Decide whether a record is forwarded or filtered.

        Args:
            record: Record from the read phase
            apply_hashing: Overrides the configured lookup mode for this call

        Returns:
            Forwarded with the hashed PAN, or Filtered with the original record

        Raises:
            InvalidRecordError: if the record breaks any field constraint
        """
        violations = self.validator.validate(record)
        if violations:
            raise InvalidRecordError(violations)

        hashing = self.apply_hashing if apply_hashing is None else apply_hashing
        # pan is guaranteed non-blank by validation
        pan: str = record.pan  # type: ignore[assignment]
        hashed_pan = salted_sha256(pan, self.store.salt())
        candidate = hashed_pan if hashing else pan

        if self.store.contains(candidate):
            return Forwarded(record.with_pan(hashed_pan))
        return Filtered(record)
