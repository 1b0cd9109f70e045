"""
Ledger Engine

Replays deposit, withdrawal, dispute, resolve and chargeback events against
client accounts. Every event is all-or-nothing: all checks run before any
balance or flag changes. An event that fails a check is dropped and the
replay carries on; nothing is ever raised for a bad record.
"""

from collections import Counter
from decimal import Decimal, Inexact, Rounded, localcontext
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple
from enum import Enum

from .accounts import Account, AccountBook, AccountSnapshot
from .currency import AMOUNT_QUANTUM, LEDGER_CONTEXT, AmountParseError, parse_amount
from .transactions import (
    Transaction, TransactionEvent, TransactionKind, TransactionLog, TransactionType
)
from .logging_config import get_logger, log_action


ZERO = Decimal('0').quantize(AMOUNT_QUANTUM)


class Outcome(Enum):
    """Result of applying one event"""
    APPLIED = "applied"
    ACCOUNT_LOCKED = "account_locked"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    CLIENT_MISMATCH = "client_mismatch"
    NOT_DISPUTABLE = "not_disputable"      # Withdrawals never take part in disputes
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    INSUFFICIENT_HELD = "insufficient_held"
    BALANCE_OVERFLOW = "balance_overflow"   # Result would need more than 28 digits
    UNKNOWN_EVENT = "unknown_event"

    @property
    def applied(self) -> bool:
        return self is Outcome.APPLIED


@dataclass
class ReplaySummary:
    """Counts of applied and dropped events for one replay"""
    applied: int = 0
    dropped: Dict[Outcome, int] = field(default_factory=dict)

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped.values())

    @property
    def total(self) -> int:
        return self.applied + self.total_dropped


class LedgerEngine:
    """
    In-memory ledger over client accounts and a global transaction log

    Events must be applied in input order: a dispute needs its deposit, and
    duplicate detection needs every earlier transaction id.
    """

    def __init__(self):
        self.accounts = AccountBook()
        self.transactions = TransactionLog()
        self.logger = get_logger("payment_ledger.ledger")

    def _drop(self, outcome: Outcome, action: TransactionType, client_id: int, tx_id: int) -> Outcome:
        log_action(
            self.logger, "debug", f"Dropped {action.value}",
            client_id=client_id, tx_id=tx_id, action=action.value, reason=outcome.value
        )
        return outcome

    def _new_funds_checks(
        self, action: TransactionType, client_id: int, tx_id: int, amount_text: Optional[str]
    ) -> Tuple[Outcome, Optional[Account], Optional[Decimal]]:
        """Guards shared by deposit and withdrawal; returns the parsed amount on success"""
        if self.accounts.is_locked(client_id):
            return self._drop(Outcome.ACCOUNT_LOCKED, action, client_id, tx_id), None, None

        if tx_id in self.transactions:
            return self._drop(Outcome.DUPLICATE_TRANSACTION, action, client_id, tx_id), None, None

        try:
            amount = parse_amount(amount_text)
        except AmountParseError as e:
            log_action(
                self.logger, "debug", str(e),
                client_id=client_id, tx_id=tx_id, action=action.value, reason=e.kind.value
            )
            return Outcome.INVALID_AMOUNT, None, None

        return Outcome.APPLIED, self.accounts.get(client_id), amount

    def _disputed_checks(
        self, action: TransactionType, client_id: int, tx_id: int, want_disputed: bool
    ) -> Tuple[Outcome, Optional[Transaction]]:
        """Guards shared by dispute, resolve and chargeback"""
        if self.accounts.is_locked(client_id):
            return self._drop(Outcome.ACCOUNT_LOCKED, action, client_id, tx_id), None

        transaction = self.transactions.get(tx_id)
        if transaction is None:
            return self._drop(Outcome.UNKNOWN_TRANSACTION, action, client_id, tx_id), None

        if transaction.client_id != client_id:
            return self._drop(Outcome.CLIENT_MISMATCH, action, client_id, tx_id), None

        if not transaction.is_deposit:
            return self._drop(Outcome.NOT_DISPUTABLE, action, client_id, tx_id), None

        if want_disputed and not transaction.disputed:
            return self._drop(Outcome.NOT_DISPUTED, action, client_id, tx_id), None

        if not want_disputed and transaction.disputed:
            return self._drop(Outcome.ALREADY_DISPUTED, action, client_id, tx_id), None

        return Outcome.APPLIED, transaction

    def _exact_balances(
        self, account: Optional[Account], action: TransactionType, client_id: int, tx_id: int,
        available_delta: Decimal = ZERO, held_delta: Decimal = ZERO
    ) -> Optional[Tuple[Decimal, Decimal]]:
        """New (available, held) for an account, None if exact arithmetic would round"""
        available = account.available if account is not None else ZERO
        held = account.held if account is not None else ZERO
        try:
            with localcontext(LEDGER_CONTEXT):
                new_available = available + available_delta
                new_held = held + held_delta
                # Total must stay representable too
                new_available + new_held
        except (Inexact, Rounded):
            self._drop(Outcome.BALANCE_OVERFLOW, action, client_id, tx_id)
            return None
        return new_available, new_held

    def deposit(self, client_id: int, tx_id: int, amount_text: Optional[str]) -> Outcome:
        """Credit available funds and record a deposit"""
        outcome, account, amount = self._new_funds_checks(
            TransactionType.DEPOSIT, client_id, tx_id, amount_text
        )
        if not outcome.applied:
            return outcome

        balances = self._exact_balances(
            account, TransactionType.DEPOSIT, client_id, tx_id, available_delta=amount
        )
        if balances is None:
            return Outcome.BALANCE_OVERFLOW

        if account is None:
            account = self.accounts.get_or_create(client_id)
        account.available, account.held = balances
        self.transactions.record(Transaction(
            tx_id=tx_id,
            client_id=client_id,
            kind=TransactionKind.DEPOSIT,
            amount=amount,
        ))
        return Outcome.APPLIED

    def withdrawal(self, client_id: int, tx_id: int, amount_text: Optional[str]) -> Outcome:
        """Debit available funds and record a withdrawal; never overdraws"""
        outcome, account, amount = self._new_funds_checks(
            TransactionType.WITHDRAWAL, client_id, tx_id, amount_text
        )
        if not outcome.applied:
            return outcome

        # An unknown client has nothing available, so the withdrawal fails
        if account is None or account.available < amount:
            return self._drop(Outcome.INSUFFICIENT_FUNDS, TransactionType.WITHDRAWAL, client_id, tx_id)

        balances = self._exact_balances(
            account, TransactionType.WITHDRAWAL, client_id, tx_id, available_delta=-amount
        )
        if balances is None:
            return Outcome.BALANCE_OVERFLOW

        account.available, account.held = balances
        self.transactions.record(Transaction(
            tx_id=tx_id,
            client_id=client_id,
            kind=TransactionKind.WITHDRAWAL,
            amount=amount,
        ))
        return Outcome.APPLIED

    def dispute(self, client_id: int, tx_id: int) -> Outcome:
        """
        Move a deposit's amount from available to held

        Available may go negative if the funds were already withdrawn.
        """
        outcome, transaction = self._disputed_checks(
            TransactionType.DISPUTE, client_id, tx_id, want_disputed=False
        )
        if not outcome.applied:
            return outcome

        account = self.accounts.get_or_create(client_id)
        balances = self._exact_balances(
            account, TransactionType.DISPUTE, client_id, tx_id,
            available_delta=-transaction.amount, held_delta=transaction.amount
        )
        if balances is None:
            return Outcome.BALANCE_OVERFLOW

        account.available, account.held = balances
        transaction.disputed = True
        return Outcome.APPLIED

    def resolve(self, client_id: int, tx_id: int) -> Outcome:
        """Release a disputed deposit back to available"""
        outcome, transaction = self._disputed_checks(
            TransactionType.RESOLVE, client_id, tx_id, want_disputed=True
        )
        if not outcome.applied:
            return outcome

        account = self.accounts.get_or_create(client_id)
        if account.held < transaction.amount:
            return self._drop(Outcome.INSUFFICIENT_HELD, TransactionType.RESOLVE, client_id, tx_id)

        balances = self._exact_balances(
            account, TransactionType.RESOLVE, client_id, tx_id,
            available_delta=transaction.amount, held_delta=-transaction.amount
        )
        if balances is None:
            return Outcome.BALANCE_OVERFLOW

        account.available, account.held = balances
        transaction.disputed = False
        return Outcome.APPLIED

    def chargeback(self, client_id: int, tx_id: int) -> Outcome:
        """Remove a disputed deposit from held funds and lock the account"""
        outcome, transaction = self._disputed_checks(
            TransactionType.CHARGEBACK, client_id, tx_id, want_disputed=True
        )
        if not outcome.applied:
            return outcome

        account = self.accounts.get_or_create(client_id)
        if account.held < transaction.amount:
            return self._drop(Outcome.INSUFFICIENT_HELD, TransactionType.CHARGEBACK, client_id, tx_id)

        balances = self._exact_balances(
            account, TransactionType.CHARGEBACK, client_id, tx_id, held_delta=-transaction.amount
        )
        if balances is None:
            return Outcome.BALANCE_OVERFLOW

        account.available, account.held = balances
        account.lock()
        transaction.disputed = False
        log_action(
            self.logger, "info", "Account locked after chargeback",
            client_id=client_id, tx_id=tx_id, action=TransactionType.CHARGEBACK.value
        )
        return Outcome.APPLIED

    def apply(self, event: TransactionEvent) -> Outcome:
        """Dispatch one event by its verb; unknown verbs are dropped"""
        event_type = TransactionType.parse(event.type)

        if event_type == TransactionType.DEPOSIT:
            return self.deposit(event.client_id, event.tx_id, event.amount)
        if event_type == TransactionType.WITHDRAWAL:
            return self.withdrawal(event.client_id, event.tx_id, event.amount)
        if event_type == TransactionType.DISPUTE:
            return self.dispute(event.client_id, event.tx_id)
        if event_type == TransactionType.RESOLVE:
            return self.resolve(event.client_id, event.tx_id)
        if event_type == TransactionType.CHARGEBACK:
            return self.chargeback(event.client_id, event.tx_id)

        log_action(
            self.logger, "debug", f"Dropped unknown event type {event.type!r}",
            client_id=event.client_id, tx_id=event.tx_id, reason=Outcome.UNKNOWN_EVENT.value
        )
        return Outcome.UNKNOWN_EVENT

    def apply_all(self, events: Iterable[TransactionEvent]) -> ReplaySummary:
        """Apply events strictly in order and count the outcomes"""
        counts: Counter = Counter()
        for event in events:
            counts[self.apply(event)] += 1

        applied = counts.pop(Outcome.APPLIED, 0)
        return ReplaySummary(applied=applied, dropped=dict(counts))

    def account(self, client_id: int) -> Optional[AccountSnapshot]:
        account = self.accounts.get(client_id)
        return account.snapshot() if account is not None else None

    def transaction(self, tx_id: int) -> Optional[Transaction]:
        """Copy of a recorded transaction, None if the id was never accepted"""
        transaction = self.transactions.get(tx_id)
        return replace(transaction) if transaction is not None else None

    def snapshots(self) -> List[AccountSnapshot]:
        """Every account ever created, ordered by client id"""
        return self.accounts.snapshots()
