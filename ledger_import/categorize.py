"""
Transaction type inference and rule-based categorization.

Types:
- INCOME: money in
- EXPENSE: money out
- TRANSFER: movement between the user's own accounts

Category rules live in a single ordered list. Evaluation order matters: the
first rule that matches a description decides the category, regardless of
how specific later rules are.
"""

import logging
import re

logger = logging.getLogger(__name__)

INCOME = 'INCOME'
EXPENSE = 'EXPENSE'
TRANSFER = 'TRANSFER'
ALL = 'ALL'

TRANSACTION_TYPES = [INCOME, EXPENSE, TRANSFER]
TARGET_TYPES = TRANSACTION_TYPES + [ALL]

MATCH_CONTAINS = 'contains'
MATCH_REGEX = 'regex'

# The keyword sets for money in and money out are not the same
INCOMING_TRANSFER_KEYWORDS = ['transfer', 'xfer', 'payment sent']
OUTGOING_TRANSFER_KEYWORDS = ['transfer', 'xfer', 'payment received']

REFUND_KEYWORDS = ['refund', 'reversal', 'reversed', 'credit', 'return', 'chargeback']

REFUND_CATEGORY_ID = 'cat-refund'
REFUND_CATEGORY_NAME = 'Refunds'


def infer_transaction_type(amount, description):
    """
    Derive the transaction type from its sign and description.

    Args:
        amount (float): Signed amount (positive for credits)
        description (str): Transaction description

    Returns:
        str: 'INCOME', 'EXPENSE' or 'TRANSFER'

    Notes:
        - A zero amount is treated as money in
        - Transfer keywords are matched case-insensitively
    """
    lowered = (description or '').lower()
    if amount >= 0:
        if any(keyword in lowered for keyword in INCOMING_TRANSFER_KEYWORDS):
            return TRANSFER
        return INCOME
    if any(keyword in lowered for keyword in OUTGOING_TRANSFER_KEYWORDS):
        return TRANSFER
    return EXPENSE

def _rule_matches(rule, description):
    case_sensitive = rule.get('case_sensitive', False)
    pattern = rule.get('pattern', '')

    if rule.get('match_type') == MATCH_CONTAINS:
        if case_sensitive:
            return pattern in description
        return pattern.lower() in description.lower()

    if rule.get('match_type') == MATCH_REGEX:
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.search(pattern, description, flags) is not None

    logger.warning(f"Rule {rule.get('id')} has unknown match type: {rule.get('match_type')}")
    return False

def match_category(description, rules, transaction_type):
    """
    Find the category of the first rule matching a description.

    Args:
        description (str): Transaction description
        rules (list): Ordered category rules
        transaction_type (str): Type of the transaction being categorized

    Returns:
        str or None: Category id of the first matching rule, or None

    Notes:
        - Only rules targeting the transaction's type or 'ALL' are considered
        - A rule with an invalid regex, a missing pattern or an unknown match
          type is logged and skipped
    """
    relevant = [r for r in rules if r.get('target_type') in (ALL, transaction_type)]

    for rule in relevant:
        pattern = rule.get('pattern')
        if not isinstance(pattern, str) or not pattern:
            logger.warning(f"Skipping rule {rule.get('id')} with invalid pattern: {pattern!r}")
            continue
        try:
            if _rule_matches(rule, description):
                return rule.get('category_id')
        except re.error as e:
            logger.error(f"Invalid regex pattern in rule {rule.get('id')}: {rule.get('pattern')} ({e})")
            continue

    return None

def find_refund_category(categories):
    """Return the id of the Refunds category, or None if the ledger has none."""
    for category in categories or []:
        if category.get('id') == REFUND_CATEGORY_ID:
            return category['id']
    for category in categories or []:
        if (category.get('name') or '').strip().lower() == REFUND_CATEGORY_NAME.lower():
            return category['id']
    return None

def is_refund(amount, description):
    lowered = (description or '').lower()
    return amount > 0 and any(keyword in lowered for keyword in REFUND_KEYWORDS)

def auto_categorize_transaction(transaction, rules, categories=None):
    """
    Pick a category for a transaction.

    Positive amounts whose description looks like a refund go to the Refunds
    category when the ledger has one. Everything else goes through the
    ordered rules.

    Args:
        transaction (dict): Transaction with 'description', 'amount' and 'type'
        rules (list): Ordered category rules
        categories (list, optional): Ledger categories, used to find Refunds

    Returns:
        str or None: Category id, or None if nothing matched
    """
    refund_category = find_refund_category(categories)
    if refund_category and is_refund(transaction['amount'], transaction['description']):
        logger.debug(f"Categorized refund: {transaction['description']}")
        return refund_category
    return match_category(transaction['description'], rules, transaction['type'])

def apply_category_type_override(transaction, refund_category_id):
    """Refund-categorized transactions are expenses, whatever their sign."""
    if refund_category_id and transaction.get('category_id') == refund_category_id:
        return EXPENSE
    return transaction['type']

def recategorize_transactions(transactions, rules, categories=None, only_uncategorized=True):
    """
    Re-run categorization over existing transactions.

    Returns:
        dict: {transaction id: new category id} for every transaction whose
        category would change
    """
    changes = {}
    for transaction in transactions:
        if only_uncategorized and transaction.get('category_id'):
            continue
        category_id = auto_categorize_transaction(transaction, rules, categories)
        if category_id and category_id != transaction.get('category_id'):
            changes[transaction['id']] = category_id
    return changes

def reorder_rules(rules, ordered_ids):
    """
    Return the rules in a new evaluation order.

    Args:
        rules (list): Current ordered rules
        ordered_ids (list): Target order of rule ids

    Returns:
        list: Rules listed in ``ordered_ids`` first, in that order, followed
        by any rules not mentioned, in their existing order. Unknown and
        repeated ids are ignored.
    """
    by_id = {rule['id']: rule for rule in rules}
    ordered = []
    seen = set()
    for rule_id in ordered_ids:
        if rule_id in by_id and rule_id not in seen:
            ordered.append(by_id[rule_id])
            seen.add(rule_id)
        elif rule_id not in by_id:
            logger.debug(f"Ignoring unknown rule id in reorder: {rule_id}")

    remainder = [rule for rule in rules if rule['id'] not in seen]
    return ordered + remainder

def validate_rule(rule):
    """Check a rule's shape before it is stored.

    Raises:
        ValueError: If the match type or target type is unsupported, or the
        pattern is empty
    """
    if rule.get('match_type') not in (MATCH_CONTAINS, MATCH_REGEX):
        raise ValueError(f"Invalid match type: {rule.get('match_type')}")
    if rule.get('target_type') not in TARGET_TYPES:
        raise ValueError(f"Invalid target type: {rule.get('target_type')}")
    if not rule.get('pattern'):
        raise ValueError("Rule pattern cannot be empty")
    return rule
