"""
csv_io.py - CSV input and output

Reading turns CSV rows into TransactionRecords lazily, so that a malformed
row aborts a replay at the point where it is reached. Writing renders
account snapshots as the output CSV.

Input columns are located by header name; whitespace around headers and
values is ignored. Required columns are type, client and tx. The amount
column is optional and may be empty.
"""

from __future__ import annotations
import csv
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Sequence, TextIO, Union

from .core import (
    TransactionKind, TransactionRecord, AccountSnapshot, RecordParseError,
    CSV_FIELDS, OUTPUT_FIELDS, parse_amount,
)
from .account import AccountRegistry
from .engine import ReplayEngine


REQUIRED_FIELDS = ("type", "client", "tx")

# Column positions when a row is parsed without a header.
DEFAULT_COLUMNS: Dict[str, int] = {name: idx for idx, name in enumerate(CSV_FIELDS)}


def _parse_id(name: str, text: Optional[str]) -> int:
    if text is None or not text.strip():
        raise ValueError(f"missing {name}")
    text = text.strip()
    # An optional "+" then ASCII digits; int() would also take "1_000" and
    # non-ASCII digits.
    digits = text[1:] if text.startswith("+") else text
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"invalid {name} {text!r}")
    return int(text)


def parse_row(
    row: Sequence[str],
    columns: Optional[Dict[str, int]] = None,
    line_number: Optional[int] = None,
) -> TransactionRecord:
    """
    Parse one CSV row into a TransactionRecord.

    Args:
        row: Raw cell values
        columns: Column name -> index (default: type, client, tx, amount)
        line_number: Line of the row in its file, for error messages

    Returns:
        The parsed record

    Raises:
        RecordParseError: If type, client or tx is missing or invalid
    """
    if columns is None:
        columns = DEFAULT_COLUMNS

    def cell(name: str) -> Optional[str]:
        idx = columns.get(name)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    try:
        kind_text = cell("type")
        if kind_text is None:
            raise ValueError("missing type")
        return TransactionRecord(
            kind=TransactionKind.parse(kind_text),
            client_id=_parse_id("client", cell("client")),
            tx_id=_parse_id("tx", cell("tx")),
            amount=parse_amount(cell("amount")),
        )
    except ValueError as e:
        raise RecordParseError(str(e), line_number=line_number, row=list(row)) from e


def iter_records(lines: Iterable[str]) -> Iterator[TransactionRecord]:
    """
    Lazily parse CSV text (header row first) into TransactionRecords.

    Blank rows are skipped. An empty input yields nothing.

    Raises:
        RecordParseError: On a missing required column or a malformed row
    """
    reader = csv.reader(lines)
    header = next(reader, None)
    if header is None:
        return

    columns = {name.strip().lower(): idx for idx, name in enumerate(header)}
    missing = [name for name in REQUIRED_FIELDS if name not in columns]
    if missing:
        raise RecordParseError(
            f"missing column(s): {', '.join(missing)}", line_number=reader.line_num, row=header
        )

    for row in reader:
        if not any(value.strip() for value in row):
            continue
        yield parse_row(row, columns, line_number=reader.line_num)


def read_records(path: Union[str, Path]) -> Iterator[TransactionRecord]:
    """
    Lazily read TransactionRecords from a CSV file.

    The file is opened when iteration starts and closed when it ends.

    Raises:
        OSError: If the file cannot be opened
        RecordParseError: On a malformed row
    """
    with open(path, newline="") as file:
        yield from iter_records(file)


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> int:
    """
    Write account snapshots as CSV with a header row.

    Args:
        snapshots: Accounts to write
        stream: Text stream to write to

    Returns:
        Number of account rows written
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    count = 0
    for snap in snapshots:
        writer.writerow(snap.as_row())
        count += 1
    return count


def replay_file(path: Union[str, Path], verbose: bool = False) -> AccountRegistry:
    """
    Replay a transaction CSV file and return the final account registry.

    Raises:
        OSError: If the file cannot be opened
        RecordParseError: On a malformed row
    """
    return ReplayEngine(verbose=verbose).run(read_records(path))
