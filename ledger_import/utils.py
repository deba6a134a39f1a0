"""
Utility functions for the import system.

This module contains helper functions that are used across the system but
are not directly related to statement parsing or reconciliation: logging
setup, environment configuration and date helpers.
"""

import os
import pathlib
import logging

import pandas as pd

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'debug.log'


def resolve_log_level(debug=False, log_level='info'):
    """Map the --debug flag or a level name to a logging level (INFO if unknown)."""
    if debug:
        return logging.DEBUG
    return getattr(logging, str(log_level).upper(), logging.INFO)

def setup_logging(debug=False, log_level='info'):
    """
    Send log records to the LOG_FILE file and to the console.

    Imports are logged in full to the file; the console shows the same
    records so skipped rows and duplicate counts are visible while running.

    Returns:
        pathlib.Path: The log file in use
    """
    log_file = pathlib.Path(os.getenv('LOG_FILE', DEFAULT_LOG_FILE))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=resolve_log_level(debug, log_level),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file, encoding='utf-8'), logging.StreamHandler()],
    )
    logger.debug(f"Logging to {log_file}")
    return log_file

def ensure_directory(dir_type):
    """Ensure required directories exist.

    Args:
        dir_type (str): Type of directory ('data', 'logs', 'output')

    Returns:
        pathlib.Path: Path to the directory

    Raises:
        ValueError: If dir_type is invalid
    """
    valid_dir_types = ['data', 'logs', 'output']
    if dir_type not in valid_dir_types:
        raise ValueError(f"Invalid directory type: {dir_type}. Expected one of: {valid_dir_types}")

    base_dir = os.getenv('DATA_DIR', os.getcwd())
    dir_path = pathlib.Path(base_dir) / dir_type
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path

def default_ledger_path():
    """Return the ledger JSON path from LEDGER_FILE, or data/ledger.json under DATA_DIR."""
    ledger_file = os.getenv('LEDGER_FILE')
    if ledger_file:
        return pathlib.Path(ledger_file)
    return ensure_directory('data') / 'ledger.json'

def default_currency():
    return os.getenv('DEFAULT_CURRENCY', 'AUD')

def to_timestamp(value):
    """
    Convert an ISO date string (or datetime) to a naive pandas Timestamp.

    Timezone-aware values are converted to UTC and stripped so that dates
    written by other tools (e.g. '2025-01-30T14:00:00.000Z') can be compared
    with the naive dates produced by the row normalizer.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Invalid date: {value}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts

def calendar_days_between(first, second):
    """Signed number of calendar days from ``first`` to ``second``."""
    return (to_timestamp(second).normalize() - to_timestamp(first).normalize()).days
