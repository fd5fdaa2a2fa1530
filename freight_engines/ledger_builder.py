"""
freight_engines.ledger_builder -- Derive an account ledger from documents.

Responsibility:
    Produce the complete, chronologically ordered ledger of one party or
    supplier from the account's documents and the bank transactions that
    link to them.  The ledger is never edited in place: every change to a
    document, advance or transaction is followed by a fresh rebuild.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Shares its deduction rules with freight_engines.balance so that a
    ledger and a recomputed document balance can never disagree.

Invariants enforced:
    - Per document, rows are emitted in a fixed order: charge, advances
      (list order), commission, mamul, linked bank payments, recorded
      payments no linked transaction represents, itemized deductions of
      retained payments, settlement difference.
    - Rows are then stable-sorted by date, so same-day rows keep that
      emission order.
    - ``running_balance`` is the cumulative ``credit - debit``;
      ``outstanding_balance`` is the last running balance (0 when empty).
    - Zero-amount components produce no row.
    - Entry ids are deterministic; rebuilding twice yields equal ledgers.

Failure modes:
    - None raised for well-formed inputs; documents of other accounts or
      of the other kind are ignored.

Usage:
    from freight_engines.ledger_builder import build_ledger

    ledger = build_ledger(supplier, memos, bank_transactions)
    ledger.outstanding_balance
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from freight_engines.balance import (
    linked_transactions,
    retained_payments,
    unlinked_payments,
)
from freight_engines.tracer import traced_engine
from freight_kernel.domain.accounts import Account
from freight_kernel.domain.amounts import ZERO, sort_by_date
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import Bill, ChargeDocument, Memo
from freight_kernel.domain.enums import DeductionType, DocumentKind, EntryKind
from freight_kernel.domain.ledger import AccountLedger, LedgerEntry
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.ledger_builder")


def _row(
    document: ChargeDocument,
    entry_id: str,
    entry_date: date,
    kind: EntryKind,
    description: str,
    credit=ZERO,
    debit=ZERO,
    transaction_id: str | None = None,
    deduction_type: DeductionType | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        entry_id=entry_id,
        entry_date=entry_date,
        kind=kind,
        related_document_id=document.document_id,
        related_document_no=document.number,
        description=description,
        credit_amount=credit,
        debit_amount=debit,
        related_transaction_id=transaction_id,
        deduction_type=deduction_type,
    )


def _charge_label(document: ChargeDocument) -> str:
    label = "Bill Amount" if document.kind is DocumentKind.BILL else "Memo Amount"
    details = document.trip_details
    return f"{label} - {details}" if details else label


def document_entries(
    document: ChargeDocument,
    transactions: Sequence[BankTransaction],
) -> list[LedgerEntry]:
    """Rows contributed by one document, in emission order, without balances."""
    doc_id = document.document_id
    is_bill = document.kind is DocumentKind.BILL
    rows: list[LedgerEntry] = []

    if document.total_charges:
        rows.append(_row(
            document, f"{doc_id}:charge", document.document_date, EntryKind.CHARGE,
            _charge_label(document), credit=document.total_charges,
        ))

    default_advance = "Bill advance" if is_bill else "Memo advance"
    advance_label = "Advance Received" if is_bill else "Advance Paid"
    for index, advance in enumerate(document.advances):
        if not advance.amount:
            continue
        # Negative advances are reversals and raise the balance again.
        positive = advance.amount > ZERO
        rows.append(_row(
            document, f"{doc_id}:advance:{index}", advance.advance_date, EntryKind.ADVANCE,
            f"{advance_label} - {advance.narration or default_advance}",
            credit=ZERO if positive else -advance.amount,
            debit=advance.amount if positive else ZERO,
            transaction_id=advance.transaction_id,
        ))

    if isinstance(document, Memo):
        route = document.trip_details
        if document.commission:
            rows.append(_row(
                document, f"{doc_id}:commission", document.document_date,
                EntryKind.DEDUCTION, f"Commission Deduction - {route}",
                debit=document.commission, deduction_type=DeductionType.COMMISSION,
            ))
        if document.mamul:
            rows.append(_row(
                document, f"{doc_id}:mamul", document.document_date,
                EntryKind.DEDUCTION, f"Mamul Deduction - {route}",
                debit=document.mamul, deduction_type=DeductionType.MAMUL,
            ))

    payment_label = "Payment Received" if is_bill else "Payment Made"
    for txn in linked_transactions(document, transactions):
        if not txn.amount:
            continue
        rows.append(_row(
            document, f"{txn.transaction_id}:payment", txn.transaction_date,
            EntryKind.PAYMENT, f"{payment_label} - {txn.narration or 'Bank payment'}",
            debit=txn.amount, transaction_id=txn.transaction_id,
        ))

    for payment in unlinked_payments(document, transactions):
        if not payment.received_amount:
            continue
        rows.append(_row(
            document, f"{payment.payment_id}:ledger", payment.payment_date,
            EntryKind.PAYMENT,
            f"{payment_label} - {payment.remarks or payment.reference or 'Recorded payment'}",
            debit=payment.received_amount, transaction_id=payment.transaction_id,
        ))

    for payment in retained_payments(document, transactions):
        for deduction in payment.deductions:
            if not deduction.amount:
                continue
            dtype = deduction.deduction_type
            rows.append(_row(
                document,
                f"{doc_id}:deduction:{payment.payment_id}:{dtype.value}",
                payment.payment_date,
                EntryKind.DEDUCTION,
                f"{dtype.value.upper()} Deduction - "
                f"{deduction.description or payment.remarks or 'Payment deduction'}",
                debit=deduction.amount,
                transaction_id=payment.transaction_id,
                deduction_type=dtype,
            ))

    if isinstance(document, Bill) and document.settlement_difference:
        rows.append(_row(
            document, f"{doc_id}:settlement",
            document.settlement_date or document.document_date,
            EntryKind.DEDUCTION,
            f"Settlement Difference - {document.settlement_narration or 'Bill settled'}",
            debit=document.settlement_difference,
            deduction_type=DeductionType.OTHER,
        ))

    return rows


def restate_running_balances(entries: Iterable[LedgerEntry]) -> tuple[LedgerEntry, ...]:
    """Stable-sort by date and recompute the cumulative running balance."""
    balance = ZERO
    restated: list[LedgerEntry] = []
    for entry in sort_by_date(entries, key=lambda e: e.entry_date):
        balance += entry.net_amount
        restated.append(entry.with_running_balance(balance))
    return tuple(restated)


@traced_engine(
    "ledger_builder", "1.0",
    fingerprint_fields=("account", "documents", "bank_transactions"),
)
def build_ledger(
    account: Account,
    documents: Iterable[ChargeDocument],
    bank_transactions: Sequence[BankTransaction],
) -> AccountLedger:
    """Build the ledger of ``account`` from every document it owns."""
    owned = sort_by_date(
        (d for d in documents if account.owns(d)),
        key=lambda d: d.document_date,
    )

    rows: list[LedgerEntry] = []
    for document in owned:
        rows.extend(document_entries(document, bank_transactions))

    entries = restate_running_balances(rows)
    outstanding = entries[-1].running_balance if entries else ZERO

    logger.debug(
        "ledger_built",
        extra={
            "account_id": account.account_id,
            "document_count": len(owned),
            "entry_count": len(entries),
            "outstanding_balance": str(outstanding),
        },
    )
    return AccountLedger(
        account_id=account.account_id,
        account_name=account.name,
        account_kind=account.kind,
        entries=entries,
        outstanding_balance=outstanding,
    )


def document_history(ledger: AccountLedger, document_id: str) -> tuple[LedgerEntry, ...]:
    """The rows of ``ledger`` that belong to one document, in ledger order."""
    return tuple(e for e in ledger.entries if e.related_document_id == document_id)
