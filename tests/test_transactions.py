"""
Test suite for transactions module

Tests event verb parsing, transaction records and the transaction log.
"""

import pytest
from decimal import Decimal

from payment_ledger.transactions import (
    Transaction, TransactionEvent, TransactionKind, TransactionLog, TransactionType
)


class TestTransactionType:
    """Test event verb matching"""

    def test_known_verbs(self):
        """Test every verb is recognised"""
        assert TransactionType.parse("deposit") == TransactionType.DEPOSIT
        assert TransactionType.parse("withdrawal") == TransactionType.WITHDRAWAL
        assert TransactionType.parse("dispute") == TransactionType.DISPUTE
        assert TransactionType.parse("resolve") == TransactionType.RESOLVE
        assert TransactionType.parse("chargeback") == TransactionType.CHARGEBACK

    def test_case_and_whitespace_insensitive(self):
        """Test verbs are trimmed and lowercased"""
        assert TransactionType.parse("  DePoSiT ") == TransactionType.DEPOSIT
        assert TransactionType.parse("CHARGEBACK") == TransactionType.CHARGEBACK

    @pytest.mark.parametrize("text", ["transfer", "", "deposits", None])
    def test_unknown_verbs(self, text):
        """Test unknown verbs give None"""
        assert TransactionType.parse(text) is None


class TestTransaction:
    """Test transaction records"""

    def test_deposit_is_disputable(self):
        """Test only undisputed deposits can be disputed"""
        deposit = Transaction(tx_id=1, client_id=1, kind=TransactionKind.DEPOSIT, amount=Decimal('5'))
        assert deposit.is_deposit
        assert deposit.is_disputable
        assert not deposit.disputed

        deposit.disputed = True
        assert not deposit.is_disputable

    def test_withdrawal_never_disputable(self):
        """Test withdrawals stay out of the dispute machinery"""
        withdrawal = Transaction(tx_id=2, client_id=1, kind=TransactionKind.WITHDRAWAL, amount=Decimal('5'))
        assert not withdrawal.is_deposit
        assert not withdrawal.is_disputable

    def test_event_amount_optional(self):
        """Test events for disputes carry no amount"""
        event = TransactionEvent(type="dispute", client_id=1, tx_id=1)
        assert event.amount is None


class TestTransactionLog:
    """Test the transaction log"""

    def setup_method(self):
        """Set up test fixtures"""
        self.log = TransactionLog()
        self.deposit = Transaction(tx_id=1, client_id=1, kind=TransactionKind.DEPOSIT, amount=Decimal('5'))

    def test_record_and_get(self):
        """Test recording and looking up transactions"""
        self.log.record(self.deposit)
        assert 1 in self.log
        assert self.log.get(1) is self.deposit
        assert self.log.get(2) is None
        assert len(self.log) == 1

    def test_ids_are_global(self):
        """Test the same id cannot be recorded twice, even for another client"""
        self.log.record(self.deposit)
        other = Transaction(tx_id=1, client_id=2, kind=TransactionKind.WITHDRAWAL, amount=Decimal('1'))
        with pytest.raises(ValueError, match="already recorded"):
            self.log.record(other)
        assert self.log.get(1) is self.deposit
