from .balance import BalanceAdjustmentView, BalanceView, TransactionListView

__all__ = [
    "BalanceView",
    "TransactionListView",
    "BalanceAdjustmentView",
]
