"""
Reporting for imports and ledger exports.
"""

import csv
import logging
import pathlib

import pandas as pd

logger = logging.getLogger(__name__)

# Column order of exported transactions
EXPORT_COLUMNS = [
    'id',
    'date',
    'account',
    'description',
    'category',
    'type',
    'amount',
    'currency',
    'is_manual_entry',
    'notes',
]


def transactions_to_dataframe(transactions, accounts=None, categories=None):
    """
    Build a DataFrame of transactions with account and category names resolved.

    Args:
        transactions (list): Ledger transactions
        accounts (list, optional): Ledger accounts, for account names
        categories (list, optional): Ledger categories, for category names

    Returns:
        pd.DataFrame: One row per transaction with EXPORT_COLUMNS, sorted by
        date (newest first)
    """
    if not transactions:
        return pd.DataFrame(columns=EXPORT_COLUMNS)

    account_names = {a['id']: a['name'] for a in accounts or []}
    category_names = {c['id']: c['name'] for c in categories or []}

    df = pd.DataFrame(transactions)
    result = pd.DataFrame()
    result['id'] = df['id']
    result['date'] = pd.to_datetime(df['date'], utc=True, format='ISO8601').dt.strftime('%Y-%m-%d')
    result['account'] = df['account_id'].map(lambda a: account_names.get(a, a))
    result['description'] = df['description']
    result['category'] = df['category_id'].map(
        lambda c: category_names.get(c, c) if pd.notna(c) and c else 'Uncategorized'
    )
    result['type'] = df['type']
    result['amount'] = df['amount'].astype(float)
    result['currency'] = df['currency'] if 'currency' in df.columns else ''
    result['is_manual_entry'] = df['is_manual_entry'] if 'is_manual_entry' in df.columns else False
    result['notes'] = df['notes'].fillna('') if 'notes' in df.columns else ''

    return result.sort_values('date', ascending=False, kind='stable').reset_index(drop=True)

def save_transactions(transactions, output_path, accounts=None, categories=None):
    """Save transactions to a CSV file.

    Args:
        transactions (list): Ledger transactions
        output_path (str or Path): File path, or a directory to write
            transactions.csv into
    """
    result = transactions_to_dataframe(transactions, accounts, categories)

    output_path = pathlib.Path(output_path)
    if output_path.is_dir() or not output_path.suffix:
        output_path = output_path / "transactions.csv"

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Quote all non-numeric fields
    result.to_csv(output_path, index=False, quoting=csv.QUOTE_NONNUMERIC)
    logger.info(f"Saved {len(result)} transactions to {output_path}")
    return output_path

def format_import_summary(summary):
    """Format the summary returned by ``import_statement``.

    Args:
        summary (dict): Import summary

    Returns:
        str: Formatted summary text
    """
    lines = [
        f"Imported Transactions: {summary.get('imported', 0)}",
        f"Potential Duplicates: {summary.get('duplicates', 0)}",
        f"Merged: {summary.get('merged', 0)}",
        f"Kept Existing: {summary.get('kept_existing', 0)}",
        f"Added As New: {summary.get('added_as_new', 0)}",
        f"Skipped Rows: {summary.get('skipped_rows', 0)}",
    ]
    return "\n".join(lines)

def format_orphan_report(orphans, accounts=None):
    """Format orphaned transfers as one line each, or a message if there are none."""
    if not orphans:
        return "No orphaned transfers found"

    account_names = {a['id']: a['name'] for a in accounts or []}
    lines = [f"Orphaned Transfers: {len(orphans)}"]
    for t in orphans:
        account = account_names.get(t.get('account_id'), t.get('account_id'))
        lines.append(f"{t['date'][:10]}  {t['amount']:>10.2f}  {account}  {t['description']}")
    return "\n".join(lines)
