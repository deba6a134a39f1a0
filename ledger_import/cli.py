"""
Command line interface for importing statements into a ledger file.
"""

import argparse
import logging

from ledger_import.columns import SUPPORTED_BANKS
from ledger_import.categorize import recategorize_transactions
from ledger_import.importer import import_statement
from ledger_import.ledger import Ledger
from ledger_import.merge import ADD_AS_NEW, KEEP_EXISTING, MERGE
from ledger_import.orphans import get_orphan_transfers
from ledger_import.report import format_import_summary, format_orphan_report, save_transactions
from ledger_import.utils import default_ledger_path, setup_logging

logger = logging.getLogger(__name__)

PROMPT_CHOICES = {'m': MERGE, 'k': KEEP_EXISTING, 'a': ADD_AS_NEW, '': KEEP_EXISTING}


def _describe(transaction):
    return f"{transaction['date'][:10]}  {transaction['amount']:>10.2f}  {transaction['description']}"

def prompt_decision(duplicate):
    """Ask on the terminal how to resolve one potential duplicate."""
    print("\nPotential duplicate transaction")
    print(f"  Existing: {_describe(duplicate.existing_transaction)}")
    print(f"  New:      {_describe(duplicate.new_transaction)}")
    while True:
        answer = input("[m]erge, [k]eep existing, [a]dd as new, [q]uit (default: keep): ").strip().lower()
        if answer == 'q':
            return None
        if answer in PROMPT_CHOICES:
            return PROMPT_CHOICES[answer]
        print(f"Invalid choice: {answer}")

def fixed_decision(decision):
    return lambda duplicate: decision

def build_parser():
    parser = argparse.ArgumentParser(description='Import bank CSV statements into a ledger')
    parser.add_argument('--ledger', type=str, default=None,
                        help='Path to the ledger JSON file (default: LEDGER_FILE or data/ledger.json)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    import_parser = subparsers.add_parser('import', help='Import a CSV statement')
    import_parser.add_argument('file', help='CSV statement to import')
    target = import_parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--account', help='Id of the account to import into')
    target.add_argument('--new-account', help='Create an account with this name and import into it')
    import_parser.add_argument('--bank', choices=SUPPORTED_BANKS, default='OTHER',
                               help='Bank of the new account (selects the column layout)')
    import_parser.add_argument('--on-duplicate', choices=['ask', 'keep', 'merge', 'add'], default='ask',
                               help='How to resolve potential duplicates')

    account_parser = subparsers.add_parser('add-account', help='Create an account')
    account_parser.add_argument('name')
    account_parser.add_argument('--bank', choices=SUPPORTED_BANKS, default='OTHER')

    subparsers.add_parser('accounts', help='List accounts')

    orphan_parser = subparsers.add_parser('orphans', help='Report transfers without a counterpart')
    orphan_parser.add_argument('--days', type=float, default=7, help='Date tolerance in days')
    orphan_parser.add_argument('--tolerance', type=float, default=0.01, help='Amount tolerance')

    export_parser = subparsers.add_parser('export', help='Export transactions to CSV')
    export_parser.add_argument('output', help='Output file or directory')

    backup_parser = subparsers.add_parser('export-json', help='Write the whole ledger as JSON')
    backup_parser.add_argument('output')

    restore_parser = subparsers.add_parser('import-json', help='Replace the ledger with a JSON document')
    restore_parser.add_argument('file')

    subparsers.add_parser('recategorize', help='Apply rules to uncategorized transactions')

    return parser

def _decision_callback(on_duplicate):
    if on_duplicate == 'ask':
        return prompt_decision
    return fixed_decision({'keep': KEEP_EXISTING, 'merge': MERGE, 'add': ADD_AS_NEW}[on_duplicate])

def run_command(args, ledger):
    """Execute a parsed command against a ledger. Returns True if the ledger changed."""
    if args.command == 'import':
        account_id = args.account
        if args.new_account:
            account_id = ledger.add_account(args.new_account, bank_id=args.bank)['id']
        summary = import_statement(ledger, args.file, account_id, decide=_decision_callback(args.on_duplicate))
        print(format_import_summary(summary))
        return True

    if args.command == 'add-account':
        account = ledger.add_account(args.name, bank_id=args.bank)
        print(f"Created account {account['id']} ({account['name']}, {account['bank_id']})")
        return True

    if args.command == 'accounts':
        for account in ledger.accounts:
            print(f"{account['id']}  {account['name']}  {account.get('bank_id', 'OTHER')}")
        return False

    if args.command == 'orphans':
        orphans = get_orphan_transfers(ledger.transactions, args.days, args.tolerance)
        print(format_orphan_report(orphans, ledger.accounts))
        return False

    if args.command == 'export':
        path = save_transactions(ledger.transactions, args.output, ledger.accounts, ledger.categories)
        print(f"Exported {len(ledger.transactions)} transactions to {path}")
        return False

    if args.command == 'export-json':
        ledger.save(args.output)
        return False

    if args.command == 'import-json':
        with open(args.file, 'r', encoding='utf-8') as f:
            ledger.load_json(f.read())
        return True

    if args.command == 'recategorize':
        changes = recategorize_transactions(ledger.transactions, ledger.rules, ledger.categories)
        for transaction_id, category_id in changes.items():
            ledger.update(transaction_id, {'category_id': category_id})
        print(f"Categorized {len(changes)} transactions")
        return bool(changes)

    raise ValueError(f"Unknown command: {args.command}")

def main(argv=None):
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)
    ledger_path = args.ledger or default_ledger_path()

    try:
        ledger = Ledger.load(ledger_path)
        if run_command(args, ledger):
            ledger.save(ledger_path)
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Error during {args.command}: {str(e)}")
        return 1
    return 0
