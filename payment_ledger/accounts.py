"""
Account Management Module

Tracks client accounts and their balances. Each client owns exactly one
account, created lazily the first time an event against it is applied.
Total balance is always derived from available and held funds.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .currency import AMOUNT_QUANTUM, format_amount


@dataclass(frozen=True)
class AccountSnapshot:
    """
    Immutable view of an account for the final report
    """
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    def to_row(self) -> List[str]:
        """Render as an output row: client, available, held, total, locked"""
        return [
            str(self.client_id),
            format_amount(self.available),
            format_amount(self.held),
            format_amount(self.total),
            "true" if self.locked else "false",
        ]


@dataclass
class Account:
    """
    Client account with available and held funds

    Once locked (after a chargeback) the account never unlocks.
    """
    client_id: int
    available: Decimal = field(default_factory=lambda: Decimal('0').quantize(AMOUNT_QUANTUM))
    held: Decimal = field(default_factory=lambda: Decimal('0').quantize(AMOUNT_QUANTUM))
    locked: bool = False

    @property
    def total(self) -> Decimal:
        """Available plus held funds"""
        return self.available + self.held

    def lock(self) -> None:
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class AccountBook:
    """Owns every client account, keyed by client id"""

    def __init__(self):
        self._accounts: Dict[int, Account] = {}

    def get(self, client_id: int) -> Optional[Account]:
        return self._accounts.get(client_id)

    def get_or_create(self, client_id: int) -> Account:
        account = self._accounts.get(client_id)
        if account is None:
            account = Account(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def is_locked(self, client_id: int) -> bool:
        """Check if the account exists and is locked"""
        account = self._accounts.get(client_id)
        return account is not None and account.locked

    def snapshots(self) -> List[AccountSnapshot]:
        """Snapshots of every account, ordered by ascending client id"""
        return [self._accounts[client_id].snapshot() for client_id in sorted(self._accounts)]

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)
