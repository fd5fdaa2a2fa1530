"""
freight_engines.reporting -- Payment and ledger reports.

Read-only summaries over payments and derived ledgers.  Nothing here feeds
back into balances.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from freight_kernel.domain.amounts import (
    ZERO,
    format_currency,
    round_amount,
    sum_amounts,
)
from freight_kernel.domain.documents import ChargeDocument, Payment
from freight_kernel.domain.enums import DeductionType, EntryKind
from freight_kernel.domain.ledger import AccountLedger


def summarize_payment(payment: Payment) -> str:
    """One-line human summary of a payment."""
    if payment.deductions:
        deductions = "Deductions: " + ", ".join(
            f"{d.label}: {format_currency(d.amount)}" for d in payment.deductions
        )
    else:
        deductions = "No deductions"
    return (
        f"Payment of {format_currency(payment.received_amount)} received on "
        f"{payment.payment_date:%d/%m/%Y}. {deductions}. "
        f"Remaining balance: {format_currency(payment.remaining_balance)}"
    )


def _in_range(payment: Payment, start: date | None, end: date | None) -> bool:
    if start is not None and payment.payment_date < start:
        return False
    if end is not None and payment.payment_date > end:
        return False
    return True


def deductions_by_type(
    payments: Iterable[Payment],
    start: date | None = None,
    end: date | None = None,
) -> dict[DeductionType, Decimal]:
    """Deduction totals per type over payments dated within [start, end]."""
    totals = {dtype: ZERO for dtype in DeductionType}
    for payment in payments:
        if not _in_range(payment, start, end):
            continue
        for deduction in payment.deductions:
            totals[deduction.deduction_type] += deduction.amount
    return totals


@dataclass(frozen=True)
class PaymentReport:
    payments: tuple[Payment, ...]
    total_payments: int
    total_document_amount: Decimal
    total_received: Decimal
    total_deductions: Decimal
    deductions_by_type: dict[DeductionType, Decimal]

    @property
    def net_collected(self) -> Decimal:
        return self.total_received


def payment_report(
    payments: Iterable[Payment],
    start: date | None = None,
    end: date | None = None,
) -> PaymentReport:
    selected = tuple(p for p in payments if _in_range(p, start, end))
    return PaymentReport(
        payments=selected,
        total_payments=len(selected),
        total_document_amount=sum_amounts(p.document_balance for p in selected),
        total_received=sum_amounts(p.received_amount for p in selected),
        total_deductions=sum_amounts(p.total_deductions for p in selected),
        deductions_by_type=deductions_by_type(selected),
    )


@dataclass(frozen=True)
class LedgerSummary:
    """Headline figures of one account ledger."""

    account_id: str
    document_count: int
    total_charges: Decimal
    total_advances: Decimal
    total_paid: Decimal
    total_deductions: Decimal
    outstanding_balance: Decimal
    settled_documents: int
    pending_documents: int
    partially_paid_documents: int

    @property
    def collection_efficiency(self) -> Decimal:
        """Paid amount as a percentage of charges, to two places."""
        if self.total_charges <= ZERO:
            return ZERO
        return round_amount(self.total_paid / self.total_charges * 100)


def summarize_ledger(
    ledger: AccountLedger,
    documents: Sequence[ChargeDocument],
) -> LedgerSummary:
    """
    Summarize ``ledger``; status counts come from the documents it covers.

    A pending document with at least one recorded payment counts as
    partially paid.
    """
    covered = [d for d in documents if d.document_id in ledger.document_ids]
    pending = [d for d in covered if not d.is_settled]
    return LedgerSummary(
        account_id=ledger.account_id,
        document_count=len(ledger.document_ids),
        total_charges=ledger.total_for(EntryKind.CHARGE),
        total_advances=ledger.total_for(EntryKind.ADVANCE),
        total_paid=ledger.total_for(EntryKind.PAYMENT),
        total_deductions=ledger.total_for(EntryKind.DEDUCTION),
        outstanding_balance=ledger.outstanding_balance,
        settled_documents=len(covered) - len(pending),
        pending_documents=len(pending),
        partially_paid_documents=sum(1 for d in pending if d.payments),
    )
