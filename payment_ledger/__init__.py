"""
Payment Ledger

Replays deposits, withdrawals, disputes, resolves and chargebacks against
client accounts using exact Decimal arithmetic, and reports final balances.
"""

__version__ = "1.0.0"
