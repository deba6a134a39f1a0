"""
In-memory ledger state and its dispatch interface.

The ledger holds accounts, transactions, categories and the ordered rule
list. State is only changed through ``Ledger.dispatch`` with an action dict
whose 'type' key selects the operation:

- ADD_TRANSACTIONS, UPDATE_TRANSACTION, DELETE_TRANSACTION, MERGE_TRANSACTION
- ADD_ACCOUNT, UPDATE_ACCOUNT, DELETE_ACCOUNT
- ADD_CATEGORY, UPDATE_CATEGORY, DELETE_CATEGORY
- ADD_RULE, UPDATE_RULE, DELETE_RULE, REORDER_RULES
- UPDATE_CURRENCY, IMPORT_STATE, RESET_STATE

Each dispatch builds a new state dict, so snapshots handed out earlier are
never modified. The whole state round-trips through JSON for export and
backup.
"""

import copy
import json
import logging
import pathlib
import uuid
from datetime import datetime

from ledger_import.categorize import (
    apply_category_type_override,
    find_refund_category,
    infer_transaction_type,
    reorder_rules,
    validate_rule,
)
from ledger_import.defaults import default_categories, default_rules
from ledger_import.utils import default_currency, to_timestamp

logger = logging.getLogger(__name__)

STATE_VERSION = '1.0.0'

# Keys every imported state document must provide as lists
REQUIRED_STATE_LISTS = ['transactions', 'accounts', 'categories']


class LedgerFormatError(ValueError):
    """A ledger document could not be parsed."""


def _now():
    return datetime.now().isoformat()

def new_id(prefix):
    return f"{prefix}-{uuid.uuid4().hex[:12]}"

def initial_state():
    """Return a fresh ledger state seeded with the default categories and rules."""
    return {
        'transactions': [],
        'accounts': [],
        'categories': default_categories(),
        'rules': default_rules(),
        'currency': default_currency(),
        'version': STATE_VERSION,
        'last_modified': _now(),
    }

def _replace(items, item_id, updates):
    return [{**item, **updates} if item['id'] == item_id else item for item in items]

def _remove(items, item_id):
    return [item for item in items if item['id'] != item_id]

def _flatten_category_rules(categories, rules):
    """Move rules embedded in categories into the global ordered rule list."""
    flattened = list(rules)
    known = {rule['id'] for rule in flattened}
    stripped = []
    for category in categories:
        category = dict(category)
        for rule in category.pop('rules', None) or []:
            if rule.get('id') in known:
                continue
            flattened.append({'category_id': category['id'], **rule})
            known.add(rule.get('id'))
        stripped.append(category)
    return stripped, flattened

def normalize_state(state):
    """
    Validate a loaded state document and fill in missing optional keys.

    Raises:
        LedgerFormatError: If the document is not a ledger state
    """
    if not isinstance(state, dict):
        raise LedgerFormatError("Ledger document must be a JSON object")
    for key in REQUIRED_STATE_LISTS:
        if not isinstance(state.get(key), list):
            raise LedgerFormatError(f"Ledger document is missing the '{key}' list")

    categories, rules = _flatten_category_rules(state['categories'], state.get('rules') or [])
    return {
        'transactions': list(state['transactions']),
        'accounts': list(state['accounts']),
        'categories': categories,
        'rules': rules,
        'currency': state.get('currency') or default_currency(),
        'version': state.get('version', STATE_VERSION),
        'last_modified': state.get('last_modified', _now()),
    }

def _merge_transaction(state, transaction_id, csv_data):
    # Date and description come from the statement; everything the user
    # entered (category, notes, type) stays
    refund_category = find_refund_category(state['categories'])
    merged = []
    for transaction in state['transactions']:
        if transaction['id'] == transaction_id:
            transaction = {
                **transaction,
                'date': csv_data['date'],
                'description': csv_data['description'],
            }
            transaction['type'] = apply_category_type_override(transaction, refund_category)
        merged.append(transaction)
    return merged

def apply_action(state, action):
    """
    Apply one action to a state and return the new state.

    Args:
        state (dict): Current ledger state
        action (dict): Action with a 'type' key and its payload

    Returns:
        dict: New ledger state

    Raises:
        ValueError: If the action type is unknown or its payload is invalid
    """
    action_type = action.get('type')
    new_state = dict(state)

    if action_type == 'ADD_TRANSACTIONS':
        new_state['transactions'] = state['transactions'] + list(action['transactions'])
    elif action_type == 'UPDATE_TRANSACTION':
        new_state['transactions'] = _replace(state['transactions'], action['id'], action['updates'])
    elif action_type == 'DELETE_TRANSACTION':
        new_state['transactions'] = _remove(state['transactions'], action['id'])
    elif action_type == 'MERGE_TRANSACTION':
        new_state['transactions'] = _merge_transaction(state, action['id'], action['csv_data'])
    elif action_type == 'ADD_ACCOUNT':
        new_state['accounts'] = state['accounts'] + [action['account']]
    elif action_type == 'UPDATE_ACCOUNT':
        new_state['accounts'] = _replace(state['accounts'], action['id'], action['updates'])
    elif action_type == 'DELETE_ACCOUNT':
        # Transactions keep their account_id
        new_state['accounts'] = _remove(state['accounts'], action['id'])
    elif action_type == 'ADD_CATEGORY':
        new_state['categories'] = state['categories'] + [action['category']]
    elif action_type == 'UPDATE_CATEGORY':
        new_state['categories'] = _replace(state['categories'], action['id'], action['updates'])
    elif action_type == 'DELETE_CATEGORY':
        category_id = action['id']
        new_state['categories'] = _remove(state['categories'], category_id)
        new_state['rules'] = [r for r in state['rules'] if r.get('category_id') != category_id]
        new_state['transactions'] = [
            {**t, 'category_id': None} if t.get('category_id') == category_id else t
            for t in state['transactions']
        ]
    elif action_type == 'ADD_RULE':
        rule = validate_rule(action['rule'])
        position = action.get('position')
        rules = list(state['rules'])
        if position is None:
            rules.append(rule)
        else:
            rules.insert(position, rule)
        new_state['rules'] = rules
    elif action_type == 'UPDATE_RULE':
        rules = _replace(state['rules'], action['id'], action['updates'])
        for rule in rules:
            if rule['id'] == action['id']:
                validate_rule(rule)
        new_state['rules'] = rules
    elif action_type == 'DELETE_RULE':
        new_state['rules'] = _remove(state['rules'], action['id'])
    elif action_type == 'REORDER_RULES':
        new_state['rules'] = reorder_rules(state['rules'], action['ordered_ids'])
    elif action_type == 'UPDATE_CURRENCY':
        new_state['currency'] = action['currency']
    elif action_type == 'IMPORT_STATE':
        new_state = normalize_state(action['state'])
    elif action_type == 'RESET_STATE':
        new_state = initial_state()
    else:
        raise ValueError(f"Unknown action type: {action_type}")

    new_state['last_modified'] = _now()
    return new_state


class Ledger:
    """Owner of the ledger state; all changes go through ``dispatch``."""

    def __init__(self, state=None):
        self.state = normalize_state(state) if state is not None else initial_state()

    def dispatch(self, action):
        logger.debug(f"Dispatching {action.get('type')}")
        self.state = apply_action(self.state, action)
        return self.state

    def snapshot(self):
        """Deep copy of the current state, safe to hand to read-only algorithms."""
        return copy.deepcopy(self.state)

    @property
    def transactions(self):
        return self.state['transactions']

    @property
    def accounts(self):
        return self.state['accounts']

    @property
    def categories(self):
        return self.state['categories']

    @property
    def rules(self):
        return self.state['rules']

    def get_account(self, account_id):
        for account in self.state['accounts']:
            if account['id'] == account_id:
                return account
        return None

    def get_transaction(self, transaction_id):
        for transaction in self.state['transactions']:
            if transaction['id'] == transaction_id:
                return transaction
        return None

    def append(self, transactions):
        return self.dispatch({'type': 'ADD_TRANSACTIONS', 'transactions': transactions})

    def update(self, transaction_id, updates):
        return self.dispatch({'type': 'UPDATE_TRANSACTION', 'id': transaction_id, 'updates': updates})

    def remove(self, transaction_id):
        return self.dispatch({'type': 'DELETE_TRANSACTION', 'id': transaction_id})

    def merge(self, transaction_id, csv_data):
        return self.dispatch({'type': 'MERGE_TRANSACTION', 'id': transaction_id, 'csv_data': csv_data})

    def add_account(self, name, bank_id='OTHER', color=None):
        """Create an account and return it."""
        account = {
            'id': new_id('acc'),
            'name': name.strip(),
            'color': color or f"#{uuid.uuid4().hex[:6]}",
            'bank_id': bank_id,
        }
        self.dispatch({'type': 'ADD_ACCOUNT', 'account': account})
        return account

    def bulk_categorize(self, transaction_ids, category_id):
        """Set (or clear, with None) the category of several transactions."""
        for transaction_id in transaction_ids:
            self.update(transaction_id, {'category_id': category_id})

    def bulk_delete(self, transaction_ids):
        for transaction_id in transaction_ids:
            self.remove(transaction_id)

    def to_json(self):
        return json.dumps(self.state, indent=2)

    def load_json(self, text):
        """
        Replace the whole state with a JSON document.

        The current state is kept if the document cannot be parsed.

        Raises:
            LedgerFormatError: If the text is not a valid ledger document
        """
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise LedgerFormatError(f"Invalid ledger JSON: {e}")
        return self.dispatch({'type': 'IMPORT_STATE', 'state': parsed})

    def save(self, path):
        path = pathlib.Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding='utf-8')
        logger.info(f"Saved ledger to {path}")

    @classmethod
    def load(cls, path):
        """Load a ledger from a JSON file, or start a new one if it doesn't exist."""
        path = pathlib.Path(path)
        ledger = cls()
        if path.exists():
            ledger.load_json(path.read_text(encoding='utf-8'))
            logger.info(f"Loaded ledger from {path}")
        else:
            logger.info(f"No ledger at {path}, starting a new one")
        return ledger


def create_manual_transaction(account_id, date, description, amount, currency=None,
                              category_id=None, notes=None):
    """
    Build a manually entered transaction.

    Args:
        account_id (str): Owning account
        date (str): Any date pandas understands, e.g. '2025-01-31'
        description (str): Description
        amount (float): Signed amount (negative for money out)

    Returns:
        dict: Transaction ready for ``Ledger.append``
    """
    if not account_id:
        raise ValueError("Account is required")
    if not description or not description.strip():
        raise ValueError("Description is required")

    transaction = {
        'id': new_id('txn'),
        'date': to_timestamp(date).isoformat(),
        'description': description.strip(),
        'amount': float(amount),
        'currency': currency or default_currency(),
        'category_id': category_id,
        'account_id': account_id,
        'type': infer_transaction_type(float(amount), description),
        'is_manual_entry': True,
    }
    if notes:
        transaction['notes'] = notes
    return transaction

def transaction_from_import(imported, account_id, currency=None):
    """Build an uncategorized ledger transaction from an imported row."""
    return {
        'id': new_id('txn'),
        'date': imported['date'],
        'description': imported['description'],
        'amount': imported['amount'],
        'currency': currency or default_currency(),
        'category_id': None,
        'account_id': account_id,
        'type': infer_transaction_type(imported['amount'], imported['description']),
        'is_manual_entry': False,
        'original_data': imported.get('raw_data'),
    }
