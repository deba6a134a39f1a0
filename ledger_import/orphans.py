"""
Orphaned transfer detection.

A transfer between two of the user's accounts shows up twice: money out of
one account and the same amount into another. A TRANSFER transaction with no
such counterpart is reported as orphaned, usually because the other side was
never imported or was categorized differently.
"""

import logging

from ledger_import.categorize import TRANSFER
from ledger_import.utils import to_timestamp

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _days_apart(first, second):
    return abs((first - second).total_seconds()) / SECONDS_PER_DAY

def _transfer_date(transaction):
    try:
        return to_timestamp(transaction.get('date'))
    except ValueError as e:
        logger.warning(f"Transfer {transaction.get('id')} has an invalid date: {e}")
        return None

def detect_orphan_transfers(transactions, date_tolerance_days=7, amount_tolerance=0.01):
    """
    Find transfers without a matching inverse transfer in another account.

    Args:
        transactions (list): All ledger transactions
        date_tolerance_days (float): Maximum days between the two sides
        amount_tolerance (float): Maximum difference between one amount and
            the negation of the other

    Returns:
        list: Ids of orphaned TRANSFER transactions, in ledger order
    """
    transfers = [
        (t, _transfer_date(t))
        for t in transactions
        if t.get('type') == TRANSFER
    ]
    orphaned = []

    for transfer, transfer_date in transfers:
        # An undated transfer can't be paired, so it is always orphaned
        has_match = transfer_date is not None and any(
            other_date is not None
            and other.get('account_id') != transfer.get('account_id')
            and abs(other['amount'] + transfer['amount']) < amount_tolerance
            and _days_apart(other_date, transfer_date) <= date_tolerance_days
            for other, other_date in transfers
        )
        if not has_match:
            orphaned.append(transfer['id'])

    logger.info(f"Found {len(orphaned)} orphaned transfers out of {len(transfers)}")
    return orphaned

def get_orphan_transfers(transactions, date_tolerance_days=7, amount_tolerance=0.01):
    """Same as ``detect_orphan_transfers`` but returns the transactions themselves."""
    orphaned = set(detect_orphan_transfers(transactions, date_tolerance_days, amount_tolerance))
    return [t for t in transactions if t['id'] in orphaned]
