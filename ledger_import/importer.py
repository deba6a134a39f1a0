"""
Statement import pipeline.

raw file -> column detection -> row normalization -> duplicate detection ->
duplicate review (MergeSession) -> classification -> ledger append

``prepare_import`` runs everything up to the duplicate review and returns
the MergeSession, so an interactive caller can decide each duplicate at its
own pace. ``import_statement`` runs the whole pipeline with a decision
callback.
"""

import logging
import os

from ledger_import.columns import read_headers, resolve_column_mapping
from ledger_import.duplicates import find_potential_duplicates
from ledger_import.merge import MergeSession
from ledger_import.normalize import parse_statement

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ['.csv']
ENCODINGS = ['utf-8', 'utf-8-sig', 'cp1252']


class InvalidFileTypeError(ValueError):
    """The selected file is not a CSV statement."""


def read_statement_file(file_path):
    """Read a CSV statement into memory.

    Args:
        file_path (str or Path): Path to the CSV file

    Returns:
        str: File contents

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidFileTypeError: If the path is a directory or not a .csv file
        ValueError: If the file is empty or cannot be decoded
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    if os.path.isdir(file_path):
        raise InvalidFileTypeError("Path is a directory")

    _, ext = os.path.splitext(str(file_path))
    if ext.lower() not in SUPPORTED_EXTENSIONS:
        raise InvalidFileTypeError(f"Invalid file type: {ext or 'no extension'}. Please select a CSV file.")

    if os.path.getsize(file_path) == 0:
        raise ValueError("Could not read CSV file: File is empty")

    for encoding in ENCODINGS:
        try:
            with open(file_path, 'r', encoding=encoding, newline='') as f:
                contents = f.read()
            logger.debug(f"Read {file_path} with encoding: {encoding}")
            return contents.lstrip('\ufeff')
        except UnicodeDecodeError:
            continue

    raise ValueError("Could not read CSV file with any supported encoding")

def prepare_import(ledger, contents, account_id):
    """
    Parse a statement and find its potential duplicates.

    Args:
        ledger (Ledger): Target ledger
        contents (str): Statement text
        account_id (str): Account to import into

    Returns:
        MergeSession: Session in the idle state, ready to start

    Raises:
        ValueError: If the account does not exist or no row could be parsed
        ColumnDetectionError: If the columns cannot be resolved (nothing is
            parsed in that case)
    """
    account = ledger.get_account(account_id)
    if account is None:
        raise ValueError(f"Account not found: {account_id}")

    headers = read_headers(contents)
    mapping = resolve_column_mapping(account.get('bank_id'), headers)
    logger.info(f"Importing into {account['name']} with columns {mapping}")

    imported, skipped = parse_statement(contents, mapping)
    if not imported:
        if skipped:
            raise ValueError(f"No transactions could be parsed; all {len(skipped)} rows were skipped")
        raise ValueError("No valid data rows found in file")

    duplicates = find_potential_duplicates(ledger.transactions, imported, account_id)
    return MergeSession(ledger, imported, duplicates, account_id, skipped=skipped)

def import_statement(ledger, file_path, account_id, decide=None):
    """
    Import a CSV statement into an account.

    Args:
        ledger (Ledger): Target ledger
        file_path (str or Path): CSV statement
        account_id (str): Account to import into
        decide (callable, optional): Called with each PotentialDuplicate and
            returns 'merge', 'keep_existing' or 'add_as_new'. None (or a
            callback returning None) keeps the existing transactions.

    Returns:
        dict: Import summary (imported, merged, kept_existing, added_as_new,
        skipped_rows, duplicates)
    """
    contents = read_statement_file(file_path)
    session = prepare_import(ledger, contents, account_id)

    if decide is None:
        session.start()
        session.cancel()
        added = session.commit()
    else:
        added = session.run(decide)

    summary = session.summary()
    summary['imported'] = len(added)
    summary['skipped'] = session.skipped
    logger.info(f"Imported {summary['imported']} transactions from {file_path}")
    return summary
