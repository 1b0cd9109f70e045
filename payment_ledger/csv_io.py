"""
CSV Input/Output Adapters

Reads transaction events from a CSV stream and writes the final account
report. Rows that do not fit the event schema are skipped here so the
ledger only ever sees well-formed events.
"""

import csv
import re
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from pydantic import BaseModel, Field, ValidationError, field_validator

from .accounts import AccountSnapshot
from .transactions import TransactionEvent
from .logging_config import get_logger, log_action

INPUT_COLUMNS = ("type", "client", "tx", "amount")
REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]
MAX_ID = 2 ** 64 - 1

_ID_PATTERN = re.compile(r"[0-9]+")

logger = get_logger("payment_ledger.csv_io")


class EventRow(BaseModel):
    """Schema for one input row"""
    type: str = Field(..., min_length=1, description="Event verb (deposit, withdrawal, ...)")
    client: int = Field(..., ge=0, le=MAX_ID, description="Client id")
    tx: int = Field(..., ge=0, le=MAX_ID, description="Transaction id, unique across clients")
    amount: Optional[str] = Field(None, description="Decimal amount as string")

    @field_validator("client", "tx", mode="before")
    @classmethod
    def plain_digits_only(cls, value):
        # Lax int coercion would also take "1.0" and "1_0"
        if isinstance(value, str) and not _ID_PATTERN.fullmatch(value):
            raise ValueError("must be an unsigned integer")
        return value

    @field_validator("amount")
    @classmethod
    def blank_amount_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def to_event(self) -> TransactionEvent:
        return TransactionEvent(
            type=self.type,
            client_id=self.client,
            tx_id=self.tx,
            amount=self.amount,
        )


def _header_index(header: List[str]) -> Optional[Dict[str, int]]:
    names = [name.strip().lower() for name in header]
    index = {name: position for position, name in enumerate(names) if name in INPUT_COLUMNS}
    if any(column not in index for column in REQUIRED_COLUMNS):
        return None
    return index


def read_events(stream: TextIO) -> Iterator[TransactionEvent]:
    """
    Yield events from a CSV stream with a `type,client,tx,amount` header

    Fields are whitespace-trimmed and the trailing amount column may be
    omitted. Malformed rows are logged at debug level and skipped.

    Args:
        stream: Open text stream positioned at the header row

    Yields:
        TransactionEvent for every row that passes the schema
    """
    reader = csv.reader(stream)

    index = None
    width = len(INPUT_COLUMNS)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            # e.g. a field over csv.field_size_limit(); the reader resumes on the next line
            log_action(
                logger, "debug", f"Skipped row {reader.line_num}: {e}",
                reason="malformed_row"
            )
            continue

        if not row or all(not value.strip() for value in row):
            continue

        if index is None:
            index = _header_index(row)
            if index is None:
                logger.warning(f"Input header {row!r} lacks required columns {REQUIRED_COLUMNS}")
                return
            width = len(row)
            continue

        if len(row) > width:
            log_action(
                logger, "debug", f"Skipped row {reader.line_num}: too many fields",
                reason="malformed_row", extra={"row": row}
            )
            continue

        values = {
            column: row[position].strip()
            for column, position in index.items()
            if position < len(row)
        }
        try:
            yield EventRow(**values).to_event()
        except ValidationError as e:
            log_action(
                logger, "debug", f"Skipped row {reader.line_num}: {e.error_count()} invalid field(s)",
                reason="malformed_row", extra={"row": row}
            )


def write_snapshots(stream: TextIO, snapshots: Iterable[AccountSnapshot]) -> None:
    """Write the account report: header row, then one row per snapshot"""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for snapshot in snapshots:
        writer.writerow(snapshot.to_row())
