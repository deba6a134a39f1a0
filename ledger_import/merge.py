"""
Interactive resolution of potential duplicates.

A MergeSession walks the potential duplicates of one import, one at a time,
waiting for a decision on each:

- merge: the existing transaction takes the statement's date and
  description, keeping its category and notes; the imported row is dropped
- keep_existing: the imported row is dropped
- add_as_new: the imported row is added alongside the existing transaction

States: idle -> has_duplicates -> per_row_decision -> exhausted -> idle.
Cancelling resolves every remaining item as keep_existing. Committing an
exhausted session classifies the surviving imported rows and appends them to
the ledger.
"""

import logging

from ledger_import.categorize import (
    apply_category_type_override,
    auto_categorize_transaction,
    find_refund_category,
)
from ledger_import.ledger import transaction_from_import

logger = logging.getLogger(__name__)

IDLE = 'idle'
HAS_DUPLICATES = 'has_duplicates'
PER_ROW_DECISION = 'per_row_decision'
EXHAUSTED = 'exhausted'

MERGE = 'merge'
KEEP_EXISTING = 'keep_existing'
ADD_AS_NEW = 'add_as_new'

DECISIONS = [MERGE, KEEP_EXISTING, ADD_AS_NEW]


class MergeSession:
    """
    Sequential, cancelable decision loop over the duplicates of one import.

    Args:
        ledger (Ledger): Ledger receiving merges and new transactions
        imported (list): Imported transactions, in file order
        duplicates (list): PotentialDuplicate entries for ``imported``
        account_id (str): Account the rows are imported into
    """

    def __init__(self, ledger, imported, duplicates, account_id, skipped=None):
        self.ledger = ledger
        self.imported = list(imported)
        self.queue = list(duplicates)
        self.account_id = account_id
        self.skipped = list(skipped or [])
        self.consumed = set()
        self.decisions = []
        self.cursor = 0
        self.committed = False
        self.state = IDLE

    def start(self):
        """Load the queue and present the first item, if any."""
        if self.state != IDLE or self.committed:
            raise ValueError(f"Cannot start a session in state '{self.state}'")
        self.state = HAS_DUPLICATES if self.queue else EXHAUSTED
        if self.state == HAS_DUPLICATES:
            self._advance()
        return self.current

    def _advance(self):
        while self.cursor < len(self.queue) and self.queue[self.cursor].new_transaction_index in self.consumed:
            self.cursor += 1
        if self.cursor < len(self.queue):
            self.state = PER_ROW_DECISION
        else:
            self.state = EXHAUSTED
            logger.info(f"All {len(self.queue)} potential duplicates resolved")

    @property
    def current(self):
        """The PotentialDuplicate awaiting a decision, or None."""
        if self.state != PER_ROW_DECISION:
            return None
        return self.queue[self.cursor]

    @property
    def remaining(self):
        return len(self.queue) - self.cursor if self.state == PER_ROW_DECISION else 0

    def decide(self, decision):
        """
        Resolve the current item and move to the next one.

        Args:
            decision (str): 'merge', 'keep_existing' or 'add_as_new'

        Raises:
            ValueError: If there is no item awaiting a decision or the
            decision is unknown
        """
        if self.state != PER_ROW_DECISION:
            raise ValueError(f"No duplicate awaiting a decision (state '{self.state}')")
        if decision not in DECISIONS:
            raise ValueError(f"Invalid decision: {decision}. Expected one of: {DECISIONS}")

        item = self.queue[self.cursor]
        if decision == MERGE:
            self.ledger.merge(
                item.existing_transaction['id'],
                {
                    'date': item.new_transaction['date'],
                    'description': item.new_transaction['description'],
                },
            )
            self.consumed.add(item.new_transaction_index)
        elif decision == KEEP_EXISTING:
            self.consumed.add(item.new_transaction_index)

        logger.debug(f"Row {item.new_transaction_index}: {decision}")
        self.decisions.append((item.new_transaction_index, decision))
        self.cursor += 1
        self._advance()
        return self.current

    def cancel(self):
        """Resolve every remaining item as keep_existing."""
        while self.state == PER_ROW_DECISION:
            self.decide(KEEP_EXISTING)

    def run(self, decide_callback):
        """
        Drive the session with a callback.

        The callback receives each PotentialDuplicate and returns a decision.
        Returning None, or raising KeyboardInterrupt or EOFError, cancels the
        rest of the session.
        """
        if self.state == IDLE:
            self.start()
        while self.state == PER_ROW_DECISION:
            try:
                decision = decide_callback(self.current)
            except (KeyboardInterrupt, EOFError):
                logger.warning("Duplicate review interrupted, keeping existing transactions")
                decision = None
            if decision is None:
                self.cancel()
                break
            self.decide(decision)
        return self.commit()

    def surviving_rows(self):
        return [row for index, row in enumerate(self.imported) if index not in self.consumed]

    def commit(self):
        """
        Classify the surviving imported rows and append them to the ledger.

        Returns:
            list: Transactions added to the ledger

        Raises:
            ValueError: If duplicates are still awaiting a decision
        """
        if self.state != EXHAUSTED:
            raise ValueError(f"Cannot commit a session in state '{self.state}'")

        currency = self.ledger.state.get('currency')
        rules = self.ledger.rules
        categories = self.ledger.categories
        refund_category = find_refund_category(categories)

        transactions = []
        for row in self.surviving_rows():
            transaction = transaction_from_import(row, self.account_id, currency)
            transaction['category_id'] = auto_categorize_transaction(transaction, rules, categories)
            transaction['type'] = apply_category_type_override(transaction, refund_category)
            transactions.append(transaction)

        if transactions:
            self.ledger.append(transactions)
        logger.info(f"Added {len(transactions)} transactions to account {self.account_id}")
        self.state = IDLE
        self.committed = True
        return transactions

    def summary(self):
        """Counts of what the session did, keyed for reporting."""
        counts = {decision: 0 for decision in DECISIONS}
        for _, decision in self.decisions:
            counts[decision] += 1
        return {
            'duplicates': len(self.queue),
            'merged': counts[MERGE],
            'kept_existing': counts[KEEP_EXISTING],
            'added_as_new': counts[ADD_AS_NEW],
            'skipped_rows': len(self.skipped),
        }
