"""
freight_engines.balance -- Balance formulas and account recomputation.

Responsibility:
    Derive a document's outstanding balance from its charges, advances,
    deductions and the bank transactions that still link to it, and derive
    an account's cached balance and active trip count from its pending
    documents.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import freight_kernel.

Invariants enforced:
    - Non-negativity: every derived document balance is >= 0; an
      overpayment is floored at zero, never carried as a credit.
    - Full recomputation: account totals are always rebuilt from the
      current pending documents, never adjusted by a delta.
    - Received money is counted once: a linked bank transaction carries
      it, and a retained payment record carries it only when no linked
      transaction represents that payment (stamped with a transaction id
      that is not linked, or unstamped with no same-day linked
      transaction of the same amount).
    - Payment records stamped with a deleted transaction no longer count,
      neither their received amount nor their deductions.

Failure modes:
    - MalformedAmountError when a raw advance amount cannot be coerced.
    - No business failure is raised; ``check_document_balance`` reports a
      suspicious cached balance as a value.

Usage:
    from freight_engines.balance import derive_document_balance

    balance = derive_document_balance(memo, bank_transactions)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from freight_engines.tracer import traced_engine
from freight_kernel.domain.accounts import Account
from freight_kernel.domain.amounts import (
    DEFAULT_TOLERANCE,
    ZERO,
    amounts_match,
    floor_at_zero,
    format_currency,
    round_amount,
    same_day,
    sum_amounts,
    to_amount,
)
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import Advance, ChargeDocument, Payment
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.balance")

_DEFAULT_COMMISSION_RATE = Decimal("6")


def compute_document_balance(
    total_charges: Decimal,
    advances: Iterable[Advance | Decimal | int | str],
    deductions: Decimal,
) -> Decimal:
    """
    ``max(0, total_charges - sum(advances) - deductions)``.

    ``advances`` may hold ``Advance`` records or raw amounts.
    """
    advance_total = sum_amounts(
        a.amount if isinstance(a, Advance) else to_amount(a, "advance.amount")
        for a in advances
    )
    return floor_at_zero(total_charges - advance_total - deductions)


def linked_transactions(
    document: ChargeDocument,
    transactions: Iterable[BankTransaction],
) -> tuple[BankTransaction, ...]:
    """Payment transactions of the document's category whose related id is the document."""
    return tuple(t for t in transactions if t.links_to(document))


def linked_payment_total(
    document: ChargeDocument,
    transactions: Iterable[BankTransaction],
) -> Decimal:
    return sum_amounts(t.amount for t in linked_transactions(document, transactions))


def retained_payments(
    document: ChargeDocument,
    transactions: Iterable[BankTransaction],
) -> tuple[Payment, ...]:
    """
    Payment-history records that still count.

    A payment counts when it was never linked to a bank transaction or
    when its transaction is still present.
    """
    present = {t.transaction_id for t in transactions}
    return tuple(
        p for p in document.payments
        if p.transaction_id is None or p.transaction_id in present
    )


def unlinked_payments(
    document: ChargeDocument,
    transactions: Sequence[BankTransaction],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> tuple[Payment, ...]:
    """
    Retained payments whose received money no linked transaction carries.

    A stamped payment is represented when its transaction links to the
    document.  An unstamped payment is represented by a linked transaction
    of the same amount on the same day; each transaction represents at
    most one payment, and never one already claimed by a stamped payment.
    """
    retained = retained_payments(document, transactions)
    linked = linked_transactions(document, transactions)
    linked_ids = {t.transaction_id for t in linked}
    claimed = {p.transaction_id for p in retained if p.transaction_id in linked_ids}
    available = [t for t in linked if t.transaction_id not in claimed]

    unlinked: list[Payment] = []
    for payment in retained:
        if payment.transaction_id is not None:
            if payment.transaction_id not in linked_ids:
                unlinked.append(payment)
            continue
        match = next(
            (
                index for index, txn in enumerate(available)
                if amounts_match(txn.amount, payment.received_amount, tolerance)
                and same_day(txn.transaction_date, payment.payment_date)
            ),
            None,
        )
        if match is None:
            unlinked.append(payment)
        else:
            del available[match]
    return tuple(unlinked)


def unlinked_payment_total(
    document: ChargeDocument,
    transactions: Sequence[BankTransaction],
) -> Decimal:
    return sum_amounts(p.received_amount for p in unlinked_payments(document, transactions))


def document_deductions(
    document: ChargeDocument,
    transactions: Iterable[BankTransaction],
    include_settlement: bool = True,
) -> Decimal:
    """
    Everything that lowers the balance besides advances and received money.

    Intrinsic deductions (memo commission and mamul), the itemized
    deductions of retained payments and, unless ``include_settlement`` is
    false, a bill's settlement difference.
    """
    payment_deductions = sum_amounts(
        p.total_deductions for p in retained_payments(document, transactions)
    )
    total = document.intrinsic_deductions + payment_deductions
    if include_settlement:
        total += getattr(document, "settlement_difference", ZERO)
    return total


def derive_document_balance(
    document: ChargeDocument,
    transactions: Sequence[BankTransaction],
    include_settlement: bool = True,
) -> Decimal:
    """Outstanding balance of ``document`` against the given bank transactions."""
    before_payments = compute_document_balance(
        document.total_charges,
        document.advances,
        document_deductions(document, transactions, include_settlement),
    )
    received = (
        linked_payment_total(document, transactions)
        + unlinked_payment_total(document, transactions)
    )
    return floor_at_zero(before_payments - received)


@traced_engine("balance", "1.0", fingerprint_fields=("document",))
def recompute_document(
    document: ChargeDocument,
    transactions: Sequence[BankTransaction],
) -> ChargeDocument:
    """Return ``document`` with its cached balance replaced by the derived one.

    Status is left alone; settlement rules own status transitions.
    """
    balance = derive_document_balance(document, transactions)
    if balance == document.balance:
        return document
    logger.debug(
        "document_balance_recomputed",
        extra={
            "document_id": document.document_id,
            "cached_balance": str(document.balance),
            "derived_balance": str(balance),
        },
    )
    return document.with_changes(balance=balance)


def recompute_account(
    account: Account,
    pending_documents: Iterable[ChargeDocument],
) -> Account:
    """
    Rebuild an account's cached totals from its pending documents.

    ``pending_documents`` may hold other accounts' documents; only those
    the account owns are counted.
    """
    owned = [d for d in pending_documents if account.owns(d)]
    balance = sum_amounts(d.balance for d in owned)
    active_count = sum(d.active_trips for d in owned)
    return account.with_totals(balance=balance, active_count=active_count)


@traced_engine("balance", "1.0", fingerprint_fields=("accounts",))
def recompute_accounts(
    accounts: Sequence[Account],
    pending_documents: Sequence[ChargeDocument],
) -> tuple[Account, ...]:
    return tuple(recompute_account(a, pending_documents) for a in accounts)


def calculate_commission(
    freight: Decimal,
    rate: Decimal | int | str = _DEFAULT_COMMISSION_RATE,
) -> Decimal:
    """Commission at ``rate`` percent of freight, rounded to whole rupees."""
    return round_amount(to_amount(freight, "freight") * to_amount(rate, "rate") / 100, 0)


@dataclass(frozen=True)
class BalanceCheck:
    """Outcome of a cached-balance sanity check."""

    document_id: str
    is_valid: bool
    corrected_balance: Decimal | None = None
    warning: str | None = None


def check_document_balance(document: ChargeDocument) -> BalanceCheck:
    """
    Flag a cached balance that exceeds the document's total charges.

    No sequence of advances, deductions or payments can push a balance
    above the charges; when the cache says otherwise the corrected value
    is the total charges.
    """
    ceiling = document.total_charges
    if document.balance <= ceiling:
        return BalanceCheck(document_id=document.document_id, is_valid=True)

    warning = (
        f"{document.kind.value.title()} {document.number}: balance "
        f"{format_currency(document.balance)} exceeds total charges "
        f"{format_currency(ceiling)}; resetting to total charges"
    )
    logger.warning(
        "document_balance_exceeds_charges",
        extra={
            "document_id": document.document_id,
            "cached_balance": str(document.balance),
            "total_charges": str(ceiling),
        },
    )
    return BalanceCheck(
        document_id=document.document_id,
        is_valid=False,
        corrected_balance=ceiling,
        warning=warning,
    )
