"""
Duplicate detection between imported rows and the existing ledger.

A new row is a potential duplicate of an existing transaction when both are
in the same account, the amounts differ by less than a cent and the dates
are at most one calendar day apart. Matching is greedy: each new row is
paired with the first qualifying transaction in ledger order.
"""

import logging
from typing import NamedTuple

from ledger_import.utils import calendar_days_between

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01
DATE_TOLERANCE_DAYS = 1


class PotentialDuplicate(NamedTuple):
    existing_transaction: dict
    new_transaction: dict
    new_transaction_index: int


def is_potential_duplicate(existing, new, account_id):
    if existing.get('account_id') != account_id:
        return False
    if abs(existing['amount'] - new['amount']) >= AMOUNT_TOLERANCE:
        return False
    try:
        days = calendar_days_between(existing.get('date'), new['date'])
    except ValueError as e:
        logger.warning(f"Cannot compare dates of transaction {existing.get('id')}: {e}")
        return False
    return abs(days) <= DATE_TOLERANCE_DAYS

def find_potential_duplicates(existing_transactions, new_transactions, account_id):
    """
    Pair imported rows with existing transactions they may duplicate.

    Args:
        existing_transactions (list): Ledger transactions, in stored order
        new_transactions (list): Imported transactions, in file order
        account_id (str): Account the rows are being imported into

    Returns:
        list: PotentialDuplicate entries, at most one per imported row, in
        the order of the imported rows
    """
    candidates = [t for t in existing_transactions if t.get('account_id') == account_id]
    duplicates = []

    for index, new in enumerate(new_transactions):
        for existing in candidates:
            if is_potential_duplicate(existing, new, account_id):
                duplicates.append(PotentialDuplicate(existing, new, index))
                break

    logger.info(f"Found {len(duplicates)} potential duplicates among {len(new_transactions)} imported rows")
    return duplicates
