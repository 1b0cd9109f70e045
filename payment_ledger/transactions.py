"""
Transaction Records Module

Defines the input event verbs, the incoming event record, and the log of
accepted deposits and withdrawals. Transaction ids are unique across all
clients: once an id is used by an accepted deposit or withdrawal it can
never be reused.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, Optional
from enum import Enum


class TransactionType(Enum):
    """Event verbs accepted in the input stream"""
    DEPOSIT = "deposit"        # Credit client funds
    WITHDRAWAL = "withdrawal"  # Debit client funds
    DISPUTE = "dispute"        # Hold a previous deposit
    RESOLVE = "resolve"        # Release a held deposit
    CHARGEBACK = "chargeback"  # Reverse a held deposit and lock the account

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional['TransactionType']:
        """Match a verb case-insensitively, None if unknown"""
        if text is None:
            return None
        try:
            return cls(text.strip().lower())
        except ValueError:
            return None


class TransactionKind(Enum):
    """Kinds of stored transactions"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class TransactionEvent:
    """
    One input record, already validated for shape by the reader

    `amount` is only meaningful for deposits and withdrawals.
    """
    type: str
    client_id: int
    tx_id: int
    amount: Optional[str] = None


@dataclass
class Transaction:
    """
    Accepted deposit or withdrawal

    Only deposits take part in disputes. A charged-back deposit stays in the
    log but its account is locked, so nothing can touch it again.
    """
    tx_id: int
    client_id: int
    kind: TransactionKind
    amount: Decimal
    disputed: bool = False

    @property
    def is_deposit(self) -> bool:
        return self.kind == TransactionKind.DEPOSIT

    @property
    def is_disputable(self) -> bool:
        """Check if a dispute can be opened against this transaction"""
        return self.is_deposit and not self.disputed


class TransactionLog:
    """Owns every accepted transaction, keyed by global transaction id"""

    def __init__(self):
        self._transactions: Dict[int, Transaction] = {}

    def get(self, tx_id: int) -> Optional[Transaction]:
        return self._transactions.get(tx_id)

    def record(self, transaction: Transaction) -> None:
        if transaction.tx_id in self._transactions:
            raise ValueError(f"Transaction {transaction.tx_id} already recorded")
        self._transactions[transaction.tx_id] = transaction

    def __contains__(self, tx_id: int) -> bool:
        return tx_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)
