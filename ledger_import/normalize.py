"""
Row normalization for bank CSV statements.

Every data row of a statement is converted to an imported transaction:

- date: ISO-8601 string (YYYY-MM-DDT00:00:00)
- description: trimmed text, 'Unknown' when the column is empty or unmapped
- amount: float, positive for credits and negative for debits
- raw_data: the original row, keyed by header name or column position

Rows without a usable date or amount are dropped rather than failing the
import. Each dropped row is recorded with a reason so callers can report how
much of a file was skipped.
"""

import io
import logging
import re
from datetime import datetime
from typing import Tuple

import numpy as np
import pandas as pd

from ledger_import.columns import is_positional

logger = logging.getLogger(__name__)

# Tried in order; the first format producing a valid calendar date wins.
# Day-first is tried before month-first, so '03/04/2024' is 3 April.
# strptime accepts unpadded values for %d and %m, which also covers the
# d/M/yyyy and M/d/yyyy layouts.
DATE_FORMATS = [
    '%d/%m/%Y',  # dd/MM/yyyy
    '%m/%d/%Y',  # MM/dd/yyyy
    '%Y-%m-%d',  # ISO
    '%d-%m-%Y',  # dd-MM-yyyy
    '%m-%d-%Y',  # MM-dd-yyyy
]

UNKNOWN_DESCRIPTION = 'Unknown'


class RowAccessor:
    """
    Uniform access to one decoded CSV row.

    Positional rows are addressed by column index ('0', '1', ...), named rows
    by header name. ``get`` returns None for missing or null cells.
    """

    def __init__(self, row, positional=False):
        self.row = row
        self.positional = positional

    def get(self, field):
        if field is None:
            return None
        key = int(field) if self.positional else field
        value = self.row.get(key)
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        return str(value)

    def raw(self):
        """The row as a plain dict of strings keyed by column name or index."""
        return {
            str(key): '' if value is None or (not isinstance(value, str) and pd.isna(value)) else str(value)
            for key, value in self.row.items()
        }


def parse_date(date_str):
    """
    Parse a statement date into an ISO-8601 string.

    Args:
        date_str (str): Raw date text

    Returns:
        str or None: ISO date (YYYY-MM-DDT00:00:00), or None if no supported
        format matches
    """
    if date_str is None:
        return None
    date_str = str(date_str).strip().strip('"\'')
    if not date_str:
        return None

    for fmt in DATE_FORMATS:
        try:
            dt = datetime.strptime(date_str, fmt)
        except ValueError:
            continue
        logger.debug(f"Parsed date {date_str} using format {fmt}")
        return dt.isoformat()

    return None

def parse_amount(value):
    """Clean and convert an amount string.

    Every character other than digits, '.' and '-' is removed, so currency
    symbols, thousands separators and spaces are ignored.

    Args:
        value (str): Raw amount text

    Returns:
        float: Parsed amount

    Raises:
        ValueError: If nothing numeric remains after cleaning
    """
    if value is None:
        raise ValueError("Invalid amount format: None")
    cleaned = re.sub(r'[^0-9.\-]', '', str(value))
    try:
        return float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid amount format: {value}")

def _decode_rows(contents, positional, skipped):
    """Decode CSV text into a list of row dicts using pandas."""

    def _bad_line(fields):
        skipped.append({'row': None, 'reason': f"Malformed line with {len(fields)} fields"})
        return None

    try:
        df = pd.read_csv(
            io.StringIO(contents),
            header=None if positional else 0,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            engine='python',
            on_bad_lines=_bad_line,
        )
    except pd.errors.EmptyDataError:
        logger.warning("Statement contains no data")
        return []

    if not positional:
        df.columns = [str(col).lstrip('\ufeff').strip() for col in df.columns]
    return df.to_dict('records')

def _side_amount(accessor, field):
    """One side of a debit/credit pair; blank or placeholder cells ('-', 'N/A') read as 0."""
    value = accessor.get(field) if field else None
    if not value or not value.strip():
        return 0.0
    try:
        return parse_amount(value)
    except ValueError:
        logger.debug(f"Reading {field} value {value!r} as 0")
        return 0.0

def _resolve_amount(accessor, mapping):
    if mapping.amount:
        amount_str = accessor.get(mapping.amount)
        if not amount_str:
            raise ValueError("Missing amount")
        return parse_amount(amount_str)

    if mapping.debit or mapping.credit:
        return _side_amount(accessor, mapping.credit) - _side_amount(accessor, mapping.debit)

    raise ValueError("No amount columns mapped")

def normalize_row(accessor, mapping):
    """
    Convert one decoded row into an imported transaction.

    Args:
        accessor (RowAccessor): Row to convert
        mapping (ColumnMapping): Resolved columns

    Returns:
        dict: Imported transaction (date, description, amount, raw_data)

    Raises:
        ValueError: If the row has no usable date or amount
    """
    date_str = accessor.get(mapping.date) if mapping.date else None
    if not date_str or not date_str.strip():
        raise ValueError("Missing date")

    date = parse_date(date_str)
    if date is None:
        raise ValueError(f"Unrecognized date: {date_str}")

    description = accessor.get(mapping.description) if mapping.description else None
    if not description:
        description = UNKNOWN_DESCRIPTION

    amount = _resolve_amount(accessor, mapping)
    if not np.isfinite(amount):
        raise ValueError(f"Amount is not finite: {amount}")

    return {
        'date': date,
        'description': description.strip(),
        'amount': amount,
        'raw_data': accessor.raw(),
    }

def parse_statement(contents, column_mapping) -> Tuple[list, list]:
    """
    Parse statement text into imported transactions.

    Args:
        contents (str): Full text of the CSV file
        column_mapping (ColumnMapping): Resolved columns

    Returns:
        tuple: (transactions, skipped) where skipped is a list of
        {'row': int or None, 'reason': str} for every dropped row
    """
    skipped = []
    positional = is_positional(column_mapping)
    rows = _decode_rows(contents, positional, skipped)

    transactions = []
    for number, row in enumerate(rows, start=1):
        try:
            transactions.append(normalize_row(RowAccessor(row, positional), column_mapping))
        except Exception as e:
            logger.debug(f"Skipping row {number}: {e}")
            skipped.append({'row': number, 'reason': str(e)})

    logger.info(f"Parsed {len(transactions)} transactions, skipped {len(skipped)} rows")
    return transactions, skipped

def parse_csv(contents, column_mapping):
    """Parse statement text, returning only the imported transactions."""
    transactions, _ = parse_statement(contents, column_mapping)
    return transactions
