"""Generator-based reading of ';'-delimited transaction files."""

from pathlib import Path
from typing import Callable, Generator, Optional, Union

import structlog
from pydantic import ValidationError

from ..models.transaction import CSV_DELIMITER, CSV_FIELDS, InboundRecord

logger = structlog.get_logger(__name__)


def parse_line(line: str, source_filename: str, line_number: int) -> InboundRecord:
    """
    Parse one source line into an InboundRecord.

    Raises:
        ValueError: if the column count is wrong or a value cannot be
            converted (pydantic's ValidationError is a ValueError)
    """
    columns = line.rstrip("\r\n").split(CSV_DELIMITER)
    if len(columns) != len(CSV_FIELDS):
        raise ValueError(f"expected {len(CSV_FIELDS)} columns, got {len(columns)}")

    values = {name: (value if value != "" else None) for name, value in zip(CSV_FIELDS, columns)}
    return InboundRecord(source_filename=source_filename, line_number=line_number, **values)


def read_transactions(
    path: Union[str, Path],
    encoding: str = "utf-8",
    on_error: Optional[Callable[[str, int, Exception], None]] = None,
) -> Generator[InboundRecord, None, None]:
    """
    Yield a record for each non-blank line of a transaction file.

    Line numbers are 1-based and count blank lines too, so they match
    what an editor shows. Lines that cannot be decoded or parsed are
    logged and skipped. Lines are split on raw newline bytes before
    decoding, so the encoding must be ASCII-compatible.
    """
    source_filename = str(path)
    with open(path, "rb") as f:
        for line_number, raw in enumerate(f, start=1):
            if not raw.strip():
                continue
            try:
                record = parse_line(raw.decode(encoding), source_filename, line_number)
            except (UnicodeDecodeError, ValueError, ValidationError) as e:
                logger.error(
                    "Unparseable transaction line",
                    filename=source_filename,
                    line=line_number,
                    error_type=type(e).__name__,
                )
                if on_error is not None:
                    on_error(source_filename, line_number, e)
                continue
            yield record
