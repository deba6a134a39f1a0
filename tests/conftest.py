import pytest

from ledger_import.ledger import Ledger
from ledger_import.defaults import default_categories, default_rules

# Sample statements for each layout
generic_csv = (
    'Date,Description,Amount,Balance\n'
    '31/01/2025,"WOOLWORTHS 123",-45.60,1000.00\n'
)

generic_next_day_csv = (
    'Date,Description,Amount,Balance\n'
    '01/02/2025,"WOOLWORTHS 123",-45.60,954.40\n'
)

cba_headerless_csv = (
    '31/01/2025,-45.60,"WOOLWORTHS 123",1000.00\n'
    '01/02/2025,+2500.00,"SALARY ACME PTY LTD",3500.00\n'
)

cba_headed_csv = (
    'Date,Amount,Description,Balance\n'
    '31/01/2025,-45.60,"WOOLWORTHS 123",1000.00\n'
)

stgeorge_csv = (
    'Date,Description,Debit,Credit,Balance\n'
    '31/01/2025,WOOLWORTHS 123,45.60,,954.40\n'
    '01/02/2025,SALARY ACME,,2500.00,3454.40\n'
)

debit_credit_csv = (
    'Date,Details,Withdrawal,Deposit\n'
    '31/01/2025,Rent,"1,200.00",\n'
    '01/02/2025,Pay,,$3000\n'
)

messy_csv = (
    'Date,Description,Amount\n'
    '31/01/2025,Coffee,-4.50\n'
    ',No date,-1.00\n'
    'not-a-date,Bad date,-2.00\n'
    '02/02/2025,Bad amount,abc\n'
    '03/02/2025,,-3.00\n'
)

@pytest.fixture
def sample_csv():
    """Helper fixture returning sample statement text by layout name"""
    def _sample(name):
        samples = {
            'generic': generic_csv,
            'generic_next_day': generic_next_day_csv,
            'cba_headerless': cba_headerless_csv,
            'cba_headed': cba_headed_csv,
            'stgeorge': stgeorge_csv,
            'debit_credit': debit_credit_csv,
            'messy': messy_csv,
        }
        if name not in samples:
            raise ValueError(f"Unknown sample: {name}")
        return samples[name]
    return _sample

@pytest.fixture
def write_csv(tmp_path):
    """Write statement text to a file under tmp_path and return its path"""
    def _write(contents, name='statement.csv'):
        path = tmp_path / name
        path.write_text(contents, encoding='utf-8')
        return path
    return _write

@pytest.fixture
def empty_ledger():
    """Ledger with one generic account and no categories or rules."""
    return Ledger({
        'transactions': [],
        'accounts': [{'id': 'acc-1', 'name': 'Everyday', 'color': '#000000', 'bank_id': 'OTHER'}],
        'categories': [],
        'rules': [],
    })

@pytest.fixture
def sample_ledger():
    """Ledger with default categories and rules, three accounts and one existing transaction.

    The existing transaction is categorized and has notes so merges can be
    checked for preserving user-entered fields.
    """
    return Ledger({
        'transactions': [
            {
                'id': 'txn-existing',
                'date': '2025-01-30T00:00:00',
                'description': 'WOOLWORTHS',
                'amount': -45.60,
                'currency': 'AUD',
                'category_id': 'cat-groceries',
                'account_id': 'acc-1',
                'type': 'EXPENSE',
                'is_manual_entry': False,
                'notes': 'weekly shop',
            },
        ],
        'accounts': [
            {'id': 'acc-1', 'name': 'Everyday', 'color': '#111111', 'bank_id': 'OTHER'},
            {'id': 'acc-cba', 'name': 'CBA Smart Access', 'color': '#222222', 'bank_id': 'CBA'},
            {'id': 'acc-stg', 'name': 'St.George Complete', 'color': '#333333', 'bank_id': 'STGEORGE'},
        ],
        'categories': default_categories(),
        'rules': default_rules(),
        'currency': 'AUD',
    })

@pytest.fixture
def sample_rules():
    """Ordered rules where the first two both match 'WOOLWORTHS'."""
    return [
        {'id': 'r-wool', 'match_type': 'contains', 'pattern': 'wool', 'category_id': 'cat-a',
         'target_type': 'EXPENSE', 'case_sensitive': False},
        {'id': 'r-woolworths', 'match_type': 'contains', 'pattern': 'woolworths', 'category_id': 'cat-b',
         'target_type': 'EXPENSE', 'case_sensitive': False},
        {'id': 'r-salary', 'match_type': 'regex', 'pattern': r'^salary\b', 'category_id': 'cat-salary',
         'target_type': 'INCOME', 'case_sensitive': False},
        {'id': 'r-any-fee', 'match_type': 'contains', 'pattern': 'FEE', 'category_id': 'cat-fees',
         'target_type': 'ALL', 'case_sensitive': True},
    ]

@pytest.fixture
def transfer_pair():
    """A matching pair of transfers between two accounts, three days apart."""
    return [
        {'id': 'a', 'date': '2025-03-01T00:00:00', 'description': 'Transfer from Savings',
         'amount': 100.00, 'account_id': 'acc-x', 'type': 'TRANSFER', 'category_id': None},
        {'id': 'b', 'date': '2025-03-04T00:00:00', 'description': 'Transfer to Everyday',
         'amount': -100.00, 'account_id': 'acc-y', 'type': 'TRANSFER', 'category_id': None},
    ]
