"""
Column detection for bank CSV statements.

A statement's columns are resolved to the semantic fields the row normalizer
needs (date, description, amount, debit, credit, balance). Two strategies
exist:

- Generic keyword heuristics over the header row (``detect_columns``)
- Fixed per-institution layouts (``get_bank_column_mapping``), used when the
  account being imported into names its bank

A resolved field is either a header name or, for positional layouts, the
column index as a string ('0', '1', ...).
"""

import io
import logging
from typing import NamedTuple, Optional

import pandas as pd

logger = logging.getLogger(__name__)

BANK_CBA = 'CBA'
BANK_STGEORGE = 'STGEORGE'
BANK_OTHER = 'OTHER'

SUPPORTED_BANKS = [BANK_CBA, BANK_STGEORGE, BANK_OTHER]

DATE_KEYWORDS = ['date', 'transaction date', 'posted date', 'value date']
DESCRIPTION_KEYWORDS = ['description', 'narrative', 'details', 'merchant', 'payee']
AMOUNT_KEYWORDS = ['amount', 'value', 'transaction']
DEBIT_KEYWORDS = ['debit', 'withdrawal', 'out']
CREDIT_KEYWORDS = ['credit', 'deposit', 'in']
BALANCE_KEYWORDS = ['balance', 'running balance']

# A header row containing none of these is treated as missing
RECOGNIZED_HEADER_KEYWORDS = ['date', 'amount', 'description', 'debit', 'credit']

CBA_POSITIONAL = {'date': '0', 'amount': '1', 'description': '2', 'balance': '3'}

EXPECTED_FORMATS = {
    BANK_CBA: 'Date, Amount, Description, Balance (with or without a header row)',
    BANK_STGEORGE: 'Date, Description, Debit, Credit, Balance (header row required)',
}


class ColumnDetectionError(ValueError):
    """Required columns could not be found in the statement."""


class BankFormatError(ColumnDetectionError):
    """The statement does not match the layout of the selected bank."""

    def __init__(self, bank_id, message=None):
        self.bank_id = bank_id
        expected = EXPECTED_FORMATS.get(bank_id, 'a supported layout')
        if message is None:
            message = f"File does not match the {bank_id} format. Expected columns: {expected}"
        super().__init__(message)


class ColumnMapping(NamedTuple):
    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    balance: Optional[str] = None


def _find_header(headers, keywords, exclude=None):
    """Return the first header containing any keyword (case-insensitive), or None."""
    for header in headers:
        lowered = header.lower()
        if exclude and exclude in lowered:
            continue
        if any(keyword in lowered for keyword in keywords):
            return header
    return None

def detect_columns(headers):
    """
    Detect statement columns from header names using keyword heuristics.

    Args:
        headers (list): Header tokens from the first row of the file

    Returns:
        ColumnMapping: Best-effort mapping; unmatched fields are None

    Notes:
        - Matching is a case-insensitive substring search
        - The first matching header wins for each field
        - Headers mentioning 'balance' are never picked as the amount column
    """
    mapping = ColumnMapping(
        date=_find_header(headers, DATE_KEYWORDS),
        description=_find_header(headers, DESCRIPTION_KEYWORDS),
        amount=_find_header(headers, AMOUNT_KEYWORDS, exclude='balance'),
        debit=_find_header(headers, DEBIT_KEYWORDS),
        credit=_find_header(headers, CREDIT_KEYWORDS),
        balance=_find_header(headers, BALANCE_KEYWORDS),
    )
    logger.debug(f"Detected columns {mapping} from headers {headers}")
    return mapping

def _has_recognizable_headers(headers):
    return any(
        keyword in header.lower()
        for header in headers
        for keyword in RECOGNIZED_HEADER_KEYWORDS
    )

def _cba_mapping(headers):
    positional = ColumnMapping(**CBA_POSITIONAL)

    if not headers or not _has_recognizable_headers(headers):
        logger.info("CBA file has no recognizable header row, using positional columns")
        return positional

    mapping = ColumnMapping(
        date=_find_header(headers, DATE_KEYWORDS),
        description=_find_header(headers, DESCRIPTION_KEYWORDS),
        amount=_find_header(headers, AMOUNT_KEYWORDS, exclude='balance'),
        balance=_find_header(headers, BALANCE_KEYWORDS),
    )
    if not (mapping.date and mapping.amount and mapping.description):
        logger.info(f"CBA headers {headers} only partially resolved, using positional columns")
        return positional
    return mapping

def _stgeorge_mapping(headers):
    date = _find_header(headers, DATE_KEYWORDS)
    description = _find_header(headers, DESCRIPTION_KEYWORDS)
    debit = _find_header(headers, DEBIT_KEYWORDS)
    credit = _find_header(headers, CREDIT_KEYWORDS)

    if not date or not description or not (debit or credit):
        logger.warning(f"St.George headers {headers} are missing required columns")
        return None

    return ColumnMapping(
        date=date,
        description=description,
        debit=debit,
        credit=credit,
        balance=_find_header(headers, BALANCE_KEYWORDS),
    )

def get_bank_column_mapping(bank_id, headers):
    """
    Resolve columns using the fixed layout of a specific institution.

    Args:
        bank_id (str): Bank identifier ('CBA', 'STGEORGE', 'OTHER')
        headers (list): Header tokens from the first row of the file

    Returns:
        ColumnMapping or None: Mapping for the bank, or None when the bank's
        required columns are absent (St.George only; CBA always falls back to
        positional columns)
    """
    if bank_id == BANK_CBA:
        return _cba_mapping(headers)
    if bank_id == BANK_STGEORGE:
        return _stgeorge_mapping(headers)
    return detect_columns(headers)

def is_positional(mapping):
    """True when the mapping addresses columns by index rather than header name."""
    return bool(mapping.date) and mapping.date.isdigit()

def validate_column_mapping(mapping):
    """Check the mapping has a date, a description and a way to compute the amount.

    Raises:
        ColumnDetectionError: If a required column is missing
    """
    if not mapping.date or not mapping.description:
        raise ColumnDetectionError("Could not detect required columns (Date, Description)")
    if not mapping.amount and not (mapping.debit and mapping.credit):
        raise ColumnDetectionError("Could not detect amount columns")
    return mapping

def resolve_column_mapping(bank_id, headers):
    """
    Resolve and validate the column mapping for an import.

    Args:
        bank_id (str or None): Bank of the target account
        headers (list): Header tokens from the first row of the file

    Returns:
        ColumnMapping: Validated mapping

    Raises:
        BankFormatError: If the selected bank's layout does not fit the file
        ColumnDetectionError: If generic detection cannot find required columns
    """
    bank_id = (bank_id or BANK_OTHER).upper()
    mapping = get_bank_column_mapping(bank_id, headers)

    if bank_id in (BANK_CBA, BANK_STGEORGE):
        if mapping is None:
            raise BankFormatError(bank_id)
        # St.George may carry only one of debit/credit; the other side reads as zero
        if not mapping.date or not mapping.description:
            raise BankFormatError(bank_id)
        return mapping

    return validate_column_mapping(mapping)

def read_headers(contents):
    """
    Return the trimmed, unquoted tokens of the first record of a CSV text.

    The record is decoded with the same pandas settings the row normalizer
    uses, so header names always match the decoded row keys.
    """
    try:
        df = pd.read_csv(
            io.StringIO(contents),
            header=None,
            nrows=1,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            engine='python',
        )
    except pd.errors.EmptyDataError:
        return []
    if df.empty:
        return []
    return [str(cell).lstrip('\ufeff').strip().strip('"') for cell in df.iloc[0].tolist()]
