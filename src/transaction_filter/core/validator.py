"""
Record validation.

Field constraints are declared on a pydantic model; a failed model
validation is translated into a set of Violations instead of being raised.
"""

import re
from decimal import Decimal
from typing import Optional, Set

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..models.transaction import InboundRecord, Violation

_TWO_DIGITS = r"^[0-9]{2}$"


class TransactionConstraints(BaseModel):
    """Constraints a record must satisfy before lookup."""

    acquirer_code: Optional[str] = Field(default=None, max_length=20)
    operation_type: Optional[str] = Field(default=None, pattern=_TWO_DIGITS)
    circuit_type: Optional[str] = Field(default=None, pattern=_TWO_DIGITS)
    pan: Optional[str] = Field(default=None, max_length=64)
    trx_date: Optional[str] = Field(default=None, max_length=64)
    id_trx_acquirer: Optional[str] = Field(default=None, max_length=255)
    id_trx_issuer: Optional[str] = Field(default=None, max_length=255)
    correlation_id: Optional[str] = Field(default=None, max_length=255)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    amount_currency: Optional[str] = Field(default=None, max_length=3)
    acquirer_id: Optional[str] = Field(default=None, max_length=255)
    merchant_id: Optional[str] = Field(default=None, max_length=255)
    terminal_id: Optional[str] = Field(default=None, max_length=255)
    bin: Optional[str] = Field(default=None, pattern=r"^([0-9]{6}|[0-9]{8})$")
    mcc: Optional[str] = Field(default=None, max_length=5)

    source_filename: Optional[str] = None
    line_number: int = Field(ge=1)

    @field_validator("pan", "source_filename")
    def validate_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            raise ValueError("must not be blank")
        return v

    model_config = ConfigDict(validate_default=True)


_VALUE_ERROR_PREFIX = re.compile(r"^Value error, ")


class RecordValidator:
    """Checks records against TransactionConstraints."""

    def validate(self, record: InboundRecord) -> Set[Violation]:
        """
        Validate a record.

        Returns:
            Empty set when the record is valid, otherwise one Violation
            per broken constraint
        """
        try:
            TransactionConstraints.model_validate(record.model_dump())
        except ValidationError as e:
            return {
                Violation(
                    field=".".join(str(part) for part in error["loc"]) or "record",
                    message=_VALUE_ERROR_PREFIX.sub("", error["msg"]),
                )
                for error in e.errors()
            }
        return set()
