"""Parsing of the tab-separated payment feed.

The feed has a header line followed by one payment per line. The three
columns we need (date, month label, amount) are located by header name, so
the spreadsheet may reorder or add columns freely. Individual bad cells are
absorbed: an unparseable date becomes ``None`` and an unparseable amount
becomes ``0``.
"""

from __future__ import annotations

import logging
import re
from functools import cmp_to_key
from typing import Iterable, List, Sequence, Tuple

from .data_models import PaymentRecord, RawRow
from .errors import SchemaError
from .utils import parse_amount, parse_feed_date

log = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("Fecha", "Mes", "Valor")

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def _split_lines(text: str) -> List[str]:
    # Lines stay unstripped so a leading empty cell keeps its column.
    return [line for line in _LINE_SPLIT_RE.split(text or "") if line.strip()]


def _locate_columns(header_line: str, columns: Sequence[str]) -> Tuple[int, int, int]:
    headers = [h.strip().lower() for h in header_line.split("\t")]
    indexes = []
    missing = []
    for name in columns:
        try:
            indexes.append(headers.index(name.strip().lower()))
        except ValueError:
            missing.append(name)
    if missing:
        raise SchemaError(missing)
    return indexes[0], indexes[1], indexes[2]


def read_raw_rows(text: str, columns: Sequence[str] = DEFAULT_COLUMNS) -> List[RawRow]:
    """Split feed text into ``RawRow`` objects, one per non-blank data line.

    Raises
    ------
    SchemaError
        If the header line lacks any of ``columns`` (case-insensitive).
    """
    lines = _split_lines(text)
    if not lines:
        return []
    idx_date, idx_month, idx_amount = _locate_columns(lines[0], columns)

    def cell(cols: List[str], idx: int) -> str:
        return cols[idx].strip() if idx < len(cols) else ""

    rows: List[RawRow] = []
    for line in lines[1:]:
        cols = line.split("\t")
        row = RawRow(
            date_text=cell(cols, idx_date),
            month_text=cell(cols, idx_month),
            amount_text=cell(cols, idx_amount),
        )
        if row.is_blank():
            continue
        rows.append(row)
    return rows


def to_record(row: RawRow) -> PaymentRecord:
    parsed_date = parse_feed_date(row.date_text)
    if parsed_date is None and row.date_text:
        log.debug("Unparseable date %r kept without a date", row.date_text)
    amount = parse_amount(row.amount_text)
    if amount == 0 and row.amount_text:
        log.debug("Amount %r read as 0", row.amount_text)
    return PaymentRecord(
        date=parsed_date,
        month_label=row.month_text,
        amount=amount,
        date_text=row.date_text,
        amount_text=row.amount_text,
    )


def _compare_records(a: PaymentRecord, b: PaymentRecord) -> int:
    # Undated records go last and fall back to their raw text; with a dirty
    # feed this order is deterministic but not necessarily chronological.
    if a.date is not None and b.date is not None:
        return (a.date > b.date) - (a.date < b.date)
    if a.date is not None:
        return -1
    if b.date is not None:
        return 1
    return (a.date_text > b.date_text) - (a.date_text < b.date_text)


def sort_records(records: Iterable[PaymentRecord]) -> List[PaymentRecord]:
    return sorted(records, key=cmp_to_key(_compare_records))


def parse_feed(text: str, columns: Sequence[str] = DEFAULT_COLUMNS) -> List[PaymentRecord]:
    """Parse feed text into payment records ordered for the ledger.

    Parameters
    ----------
    text: str
        The whole feed, header first, ``\\t`` between fields.
    columns: Sequence[str]
        Header names of the date, month label and amount columns.

    Returns
    -------
    List[PaymentRecord]
        Records sorted by date, undated ones last. The list is empty when
        the feed has no data rows.
    """
    return sort_records(to_record(row) for row in read_raw_rows(text, columns))
