"""
Transaction record data models.

- InboundRecord: one parsed source line, immutable once built
- Violation: a single broken field constraint
- ProcessingOutcome: Forwarded, Filtered or RejectedInvalid
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Column order shared by source files and audit CSVs
CSV_FIELDS: Tuple[str, ...] = (
    "acquirer_code",
    "operation_type",
    "circuit_type",
    "pan",
    "trx_date",
    "id_trx_acquirer",
    "id_trx_issuer",
    "correlation_id",
    "amount",
    "amount_currency",
    "acquirer_id",
    "merchant_id",
    "terminal_id",
    "bin",
    "mcc",
)

CSV_DELIMITER = ";"


class InboundRecord(BaseModel):
    """
    Individual transaction record as read from a source file.

    Field values are kept as received; business constraints are checked
    by the RecordValidator, not at construction time.
    """

    acquirer_code: Optional[str] = None
    operation_type: Optional[str] = None
    circuit_type: Optional[str] = None
    pan: Optional[str] = None
    trx_date: Optional[str] = None
    id_trx_acquirer: Optional[str] = None
    id_trx_issuer: Optional[str] = None
    correlation_id: Optional[str] = None
    amount: Optional[Decimal] = None
    amount_currency: Optional[str] = None
    acquirer_id: Optional[str] = None
    merchant_id: Optional[str] = None
    terminal_id: Optional[str] = None
    bin: Optional[str] = None
    mcc: Optional[str] = None

    # Provenance
    source_filename: str = Field(description="Path of the file the record was read from")
    line_number: int = Field(description="1-based line number within the source file")

    model_config = ConfigDict(frozen=True)

    def with_pan(self, pan: str) -> "InboundRecord":
        """Return a copy carrying a different PAN."""
        return self.model_copy(update={"pan": pan})

    def to_csv_line(self) -> str:
        """Render the 15 transaction fields as a ';'-delimited line."""
        values = []
        for name in CSV_FIELDS:
            value = getattr(self, name)
            values.append("" if value is None else str(value))
        return CSV_DELIMITER.join(values) + "\n"


@dataclass(frozen=True)
class Violation:
    """A field constraint broken by a record."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class ProcessingOutcome:
    """Result of one filtering decision."""

    record: InboundRecord


@dataclass(frozen=True)
class Forwarded(ProcessingOutcome):
    """The PAN is permitted; record carries the salted hash."""


@dataclass(frozen=True)
class Filtered(ProcessingOutcome):
    """The PAN is not permitted; record is the original input."""


@dataclass(frozen=True)
class RejectedInvalid(ProcessingOutcome):
    """The record failed validation and was never looked up."""

    violations: FrozenSet[Violation] = frozenset()
