"""
Data models package.

Contains the transaction record model, constraint violations and
processing outcomes.
"""

from .transaction import (
    CSV_DELIMITER,
    CSV_FIELDS,
    Filtered,
    Forwarded,
    InboundRecord,
    ProcessingOutcome,
    RejectedInvalid,
    Violation,
)

__all__ = [
    "CSV_DELIMITER",
    "CSV_FIELDS",
    "InboundRecord",
    "Violation",

    # Outcomes
    "ProcessingOutcome",
    "Forwarded",
    "Filtered",
    "RejectedInvalid",
]
