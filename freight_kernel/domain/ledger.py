"""
Ledger -- Derived account statements.

An ``AccountLedger`` is the chronological statement of every monetary event
on one party or supplier: charges raise the balance (credit), advances,
deductions and payments lower it (debit). Ledgers hold no state the engines
cannot rebuild from documents and bank transactions.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from freight_kernel.domain.amounts import ZERO, parse_date, sum_amounts, to_amount
from freight_kernel.domain.enums import AccountKind, DeductionType, EntryKind, coerce_enum


@dataclass(frozen=True)
class LedgerEntry:
    """
    One row of an account ledger.

    Guarantees:
        - Exactly one of ``credit_amount`` / ``debit_amount`` is non-zero
          for rows produced by the ledger builder.
        - ``net_amount`` is ``credit - debit``.
    """

    entry_id: str
    entry_date: date
    kind: EntryKind
    related_document_id: str
    related_document_no: str
    description: str
    credit_amount: Decimal = ZERO
    debit_amount: Decimal = ZERO
    running_balance: Decimal = ZERO
    related_transaction_id: str | None = None
    deduction_type: DeductionType | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entry_date", parse_date(self.entry_date, "entry.entry_date"))
        object.__setattr__(self, "kind", coerce_enum(EntryKind, self.kind))
        for name in ("credit_amount", "debit_amount", "running_balance"):
            object.__setattr__(self, name, to_amount(getattr(self, name), f"entry.{name}"))
        if self.deduction_type is not None:
            object.__setattr__(
                self, "deduction_type", coerce_enum(DeductionType, self.deduction_type)
            )

    @property
    def net_amount(self) -> Decimal:
        return self.credit_amount - self.debit_amount

    def with_running_balance(self, running_balance: Decimal) -> LedgerEntry:
        return dataclasses.replace(self, running_balance=running_balance)


@dataclass(frozen=True)
class AccountLedger:
    """
    Statement for one account.

    ``outstanding_balance`` is stored rather than computed so that a
    persisted ledger can be compared against a fresh rebuild; use
    ``is_self_consistent`` to check it against the last running balance.
    """

    account_id: str
    account_name: str
    account_kind: AccountKind
    entries: tuple[LedgerEntry, ...] = ()
    outstanding_balance: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_kind", coerce_enum(AccountKind, self.account_kind))
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(
            self,
            "outstanding_balance",
            to_amount(self.outstanding_balance, "ledger.outstanding_balance"),
        )

    @property
    def final_running_balance(self) -> Decimal:
        return self.entries[-1].running_balance if self.entries else ZERO

    @property
    def is_self_consistent(self) -> bool:
        return self.outstanding_balance == self.final_running_balance

    @property
    def document_ids(self) -> frozenset[str]:
        return frozenset(e.related_document_id for e in self.entries)

    @property
    def document_numbers(self) -> frozenset[str]:
        return frozenset(e.related_document_no for e in self.entries)

    def references(self, document_id: str, number: str) -> bool:
        """True when any entry belongs to the given document."""
        return document_id in self.document_ids or number in self.document_numbers

    def total_for(self, kind: EntryKind) -> Decimal:
        """Sum of the absolute movement of every entry of ``kind``."""
        return sum_amounts(
            e.credit_amount + e.debit_amount for e in self.entries if e.kind is kind
        )
