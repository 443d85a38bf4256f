"""GroupSettle - Split shared expenses and settle up with as few payments as possible."""

__version__ = "0.1.0"

from .balances import aggregate, build_balance_report
from .config import Settings, load_settings
from .db import Database
from .exceptions import BusinessRuleError, GroupSettleError, ValidationError
from .models import (
    BalanceReport,
    ExpenseInput,
    ExpenseRecord,
    Participant,
    SettlementPlan,
    SplitEntry,
    SplitRule,
    Transfer,
)
from .service import LedgerService
from .settlement import settle, validate_conservation
from .splits import compute_equal_split, compute_exact_split, compute_splits

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "GroupSettleError",
    "ValidationError",
    "BusinessRuleError",
    "BalanceReport",
    "ExpenseInput",
    "ExpenseRecord",
    "Participant",
    "SettlementPlan",
    "SplitEntry",
    "SplitRule",
    "Transfer",
    "aggregate",
    "build_balance_report",
    "compute_equal_split",
    "compute_exact_split",
    "compute_splits",
    "settle",
    "validate_conservation",
    "LedgerService",
]
