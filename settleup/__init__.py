"""Balance and settlement engine for a shared-expense tracker."""

from .audit import generate_audit_details
from .balances import net_balance, overall_balances
from .settlement import net_settlement
from .simplify import simplify_debts
from .store import ExpenseStore

__all__ = [
    "ExpenseStore",
    "generate_audit_details",
    "net_balance",
    "net_settlement",
    "overall_balances",
    "simplify_debts",
]
