"""
Default categories and rules for a new ledger.
"""

import copy

from ledger_import.categorize import EXPENSE, INCOME, TRANSFER, MATCH_CONTAINS

DEFAULT_CATEGORIES = [
    # Income
    {'id': 'cat-salary', 'name': 'Salary', 'type': INCOME, 'color': '#10b981'},
    {'id': 'cat-investment', 'name': 'Investment Income', 'type': INCOME, 'color': '#3b82f6'},
    {'id': 'cat-refund', 'name': 'Refunds', 'type': EXPENSE, 'color': '#06b6d4'},
    {'id': 'cat-other-income', 'name': 'Other Income', 'type': INCOME, 'color': '#8b5cf6'},
    # Expenses
    {'id': 'cat-groceries', 'name': 'Groceries', 'type': EXPENSE, 'color': '#f59e0b'},
    {'id': 'cat-dining', 'name': 'Dining & Restaurants', 'type': EXPENSE, 'color': '#ef4444'},
    {'id': 'cat-transport', 'name': 'Transportation', 'type': EXPENSE, 'color': '#6366f1'},
    {'id': 'cat-utilities', 'name': 'Utilities', 'type': EXPENSE, 'color': '#14b8a6'},
    {'id': 'cat-entertainment', 'name': 'Entertainment', 'type': EXPENSE, 'color': '#ec4899'},
    {'id': 'cat-shopping', 'name': 'Shopping', 'type': EXPENSE, 'color': '#f97316'},
    {'id': 'cat-health', 'name': 'Health & Medical', 'type': EXPENSE, 'color': '#84cc16'},
    {'id': 'cat-other-expense', 'name': 'Other Expenses', 'type': EXPENSE, 'color': '#64748b'},
    {'id': 'cat-gifts-loans', 'name': 'Gifts/Loans', 'type': EXPENSE, 'color': '#a855f7'},
    # Transfers
    {'id': 'cat-transfer', 'name': 'Transfers', 'type': TRANSFER, 'color': '#94a3b8'},
]

# (rule id, pattern, category id); all are case-insensitive 'contains' rules on expenses
_DEFAULT_RULE_PATTERNS = [
    ('rule-woolworths', 'woolworths', 'cat-groceries'),
    ('rule-coles', 'coles', 'cat-groceries'),
    ('rule-aldi', 'aldi', 'cat-groceries'),
    ('rule-restaurant', 'restaurant', 'cat-dining'),
    ('rule-cafe', 'cafe', 'cat-dining'),
    ('rule-uber', 'uber', 'cat-transport'),
    ('rule-fuel', 'petrol', 'cat-transport'),
    ('rule-netflix', 'netflix', 'cat-entertainment'),
    ('rule-spotify', 'spotify', 'cat-entertainment'),
    ('rule-amazon', 'amazon', 'cat-shopping'),
]

DEFAULT_RULES = [
    {
        'id': rule_id,
        'match_type': MATCH_CONTAINS,
        'pattern': pattern,
        'category_id': category_id,
        'target_type': EXPENSE,
        'case_sensitive': False,
    }
    for rule_id, pattern, category_id in _DEFAULT_RULE_PATTERNS
]


def default_categories():
    return copy.deepcopy(DEFAULT_CATEGORIES)

def default_rules():
    return copy.deepcopy(DEFAULT_RULES)
