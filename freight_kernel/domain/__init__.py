"""
Pure domain layer.

This module contains the freight bookkeeping value objects with NO
dependencies on:
- Persistence
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from freight_kernel.domain.accounts import (
    Account,
    Collection,
    DocumentBook,
    LocatedDocument,
)
from freight_kernel.domain.amounts import (
    AMOUNT_DECIMAL_PLACES,
    DEFAULT_TOLERANCE,
    ZERO,
    amounts_match,
    floor_at_zero,
    format_currency,
    parse_date,
    round_amount,
    same_day,
    sort_by_date,
    sum_amounts,
    to_amount,
)
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import (
    Advance,
    Bill,
    ChargeDocument,
    Memo,
    Payment,
    PaymentDeduction,
    Trip,
)
from freight_kernel.domain.enums import (
    AccountKind,
    DeductionType,
    DocumentKind,
    DocumentStatus,
    EntryKind,
    TransactionCategory,
    TransactionType,
)
from freight_kernel.domain.ledger import AccountLedger, LedgerEntry

__all__ = [
    "AMOUNT_DECIMAL_PLACES",
    "DEFAULT_TOLERANCE",
    "ZERO",
    "Account",
    "AccountKind",
    "AccountLedger",
    "Advance",
    "BankTransaction",
    "Bill",
    "ChargeDocument",
    "Collection",
    "DeductionType",
    "DocumentBook",
    "DocumentKind",
    "DocumentStatus",
    "EntryKind",
    "LedgerEntry",
    "LocatedDocument",
    "Memo",
    "Payment",
    "PaymentDeduction",
    "TransactionCategory",
    "TransactionType",
    "Trip",
    "amounts_match",
    "floor_at_zero",
    "format_currency",
    "parse_date",
    "round_amount",
    "same_day",
    "sort_by_date",
    "sum_amounts",
    "to_amount",
]
