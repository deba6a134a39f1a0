"""
Ledger Import - bank CSV statement import for a personal finance ledger.

This package provides functionality to:
- Detect statement columns, generically or from a bank's fixed layout (CBA, St.George)
- Normalize rows into imported transactions (ISO date, description, signed amount)
- Classify transactions by type and apply ordered category rules
- Find potential duplicates against the ledger and resolve them one at a time
- Report transfers that have no counterpart in another account

Imported transactions have the form:
- date: ISO-8601 date (YYYY-MM-DDT00:00:00)
- description: Transaction description
- amount: Signed amount (negative for debits, positive for credits)
- raw_data: The original CSV row
"""

from .columns import (
    ColumnMapping,
    ColumnDetectionError,
    BankFormatError,
    detect_columns,
    get_bank_column_mapping,
    resolve_column_mapping,
)
from .normalize import RowAccessor, parse_date, parse_amount, parse_csv, parse_statement
from .categorize import (
    infer_transaction_type,
    match_category,
    auto_categorize_transaction,
    reorder_rules,
)
from .duplicates import PotentialDuplicate, find_potential_duplicates
from .merge import MergeSession
from .orphans import detect_orphan_transfers, get_orphan_transfers
from .ledger import Ledger, LedgerFormatError, create_manual_transaction
from .importer import InvalidFileTypeError, prepare_import, import_statement

__all__ = [
    'ColumnMapping',
    'ColumnDetectionError',
    'BankFormatError',
    'detect_columns',
    'get_bank_column_mapping',
    'resolve_column_mapping',
    'RowAccessor',
    'parse_date',
    'parse_amount',
    'parse_csv',
    'parse_statement',
    'infer_transaction_type',
    'match_category',
    'auto_categorize_transaction',
    'reorder_rules',
    'PotentialDuplicate',
    'find_potential_duplicates',
    'MergeSession',
    'detect_orphan_transfers',
    'get_orphan_transfers',
    'Ledger',
    'LedgerFormatError',
    'create_manual_transaction',
    'InvalidFileTypeError',
    'prepare_import',
    'import_statement',
]
