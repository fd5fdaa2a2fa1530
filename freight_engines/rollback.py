"""
freight_engines.rollback -- Undo a deleted payment or advance.

Responsibility:
    When a bank transaction is deleted after the fact, resolve the document
    it fed, strip the records it produced (payment-history entries or one
    advance), recompute the document balance from scratch against the
    remaining transactions, re-derive the settled/pending status, and
    recompute the owning account from the book's pending documents.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Built on freight_engines.balance (derivation) and
    freight_engines.settlement (status reversal).

Invariants enforced:
    - Full recomputation: the restored balance is derived from the
      document and the remaining transactions; the deleted amount is
      never added back as a delta.
    - A bill's settlement difference does not count while restoring; a
      positive restored balance means the bill is owed again.
    - Restored balance > 0: status reverts to PENDING, settlement stamps
      are cleared, and a document found among the settled collection
      moves back to pending.  Otherwise the document is updated in place.
    - ``delete_transaction`` runs the rollback before removing the
      transaction, and on failure returns every collection unchanged.

Failure modes:
    - RollbackResult(success=False, error="Linked bill not found") (or
      memo, or "... for advance rollback") when the document is absent.
    - DeletionResult(success=False, error="Bank transaction not found: <id>").
    - DocumentKindMismatchError when a transaction is handed to the wrong
      book; that is a caller bug, not a business outcome.

Usage:
    from freight_engines.rollback import delete_transaction

    result = delete_transaction(
        "txn-7", transactions, bills, memos, parties, suppliers,
    )
    if not result.success:
        show_error(result.error)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from freight_engines.balance import derive_document_balance, recompute_account
from freight_engines.settlement import revert_settlement
from freight_engines.tracer import traced_engine
from freight_kernel.domain.accounts import Account, DocumentBook, LocatedDocument
from freight_kernel.domain.amounts import DEFAULT_TOLERANCE, ZERO, amounts_match, same_day
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import Advance, ChargeDocument, Payment
from freight_kernel.domain.enums import DocumentKind, TransactionCategory
from freight_kernel.exceptions import DocumentKindMismatchError
from freight_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.rollback")


@dataclass(frozen=True)
class RollbackResult:
    """
    Outcome of one rollback.

    On failure ``book`` and ``accounts`` are the inputs, untouched, and
    ``document`` is None.
    """

    success: bool
    book: DocumentBook
    accounts: tuple[Account, ...]
    error: str | None = None
    document: ChargeDocument | None = None
    moved_to_pending: bool = False
    advance_removed: bool = False


@dataclass(frozen=True)
class DeletionResult:
    """Every collection a transaction deletion can touch, after the fact."""

    success: bool
    transactions: tuple[BankTransaction, ...]
    bills: DocumentBook
    memos: DocumentBook
    parties: tuple[Account, ...]
    suppliers: tuple[Account, ...]
    error: str | None = None
    rollback: RollbackResult | None = None


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------


def _require_book(book: DocumentBook, kind: DocumentKind, transaction_id: str) -> None:
    if book.kind is not kind:
        raise DocumentKindMismatchError(kind.value, book.kind.value, transaction_id)


def _resolve(book: DocumentBook, deleted: BankTransaction) -> LocatedDocument | None:
    return book.locate(document_id=deleted.related_id, number=deleted.related_name)


def _recompute_owner(
    accounts: Sequence[Account],
    book: DocumentBook,
    document: ChargeDocument,
) -> tuple[Account, ...]:
    updated: list[Account] = []
    found = False
    for account in accounts:
        if account.owns(document):
            account = recompute_account(account, book.pending)
            found = True
        updated.append(account)
    if not found:
        logger.warning(
            "rollback_owner_missing",
            extra={"document_id": document.document_id, "account_id": document.account_id},
        )
    return tuple(updated)


def _restore(
    book: DocumentBook,
    located: LocatedDocument,
    stripped: ChargeDocument,
    remaining: Sequence[BankTransaction],
) -> tuple[DocumentBook, ChargeDocument, bool]:
    """Re-derive balance and status for ``stripped`` and file it in the book."""
    restored = derive_document_balance(stripped, remaining, include_settlement=False)
    if restored > ZERO:
        document = revert_settlement(stripped).with_changes(balance=restored)
        if located.in_settled:
            return book.move_to_pending(document), document, True
        return book.replace(document), document, False

    document = stripped.with_changes(balance=derive_document_balance(stripped, remaining))
    return book.replace(document), document, False


def _without(
    transactions: Iterable[BankTransaction],
    deleted: BankTransaction,
) -> tuple[BankTransaction, ...]:
    return tuple(t for t in transactions if t.transaction_id != deleted.transaction_id)


# ---------------------------------------------------------------------------
# Payment rollback
# ---------------------------------------------------------------------------


def _payments_without(
    payments: tuple[Payment, ...],
    deleted: BankTransaction,
    tolerance: Decimal,
) -> tuple[Payment, ...]:
    """
    Drop the payment-history records produced by ``deleted``.

    Records stamped with its transaction id are all dropped.  When none is
    stamped, the first unstamped record with a matching amount on the same
    day is dropped instead.
    """
    stamped = [p for p in payments if p.transaction_id == deleted.transaction_id]
    if stamped:
        return tuple(p for p in payments if p.transaction_id != deleted.transaction_id)

    for index, payment in enumerate(payments):
        if (
            payment.transaction_id is None
            and amounts_match(payment.received_amount, deleted.amount, tolerance)
            and same_day(payment.payment_date, deleted.transaction_date)
        ):
            return payments[:index] + payments[index + 1:]
    return payments


@traced_engine("rollback", "1.0", fingerprint_fields=("deleted",))
def rollback_payment(
    deleted: BankTransaction,
    remaining_transactions: Sequence[BankTransaction],
    book: DocumentBook,
    accounts: Sequence[Account],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> RollbackResult:
    """Undo a deleted bill or memo payment transaction."""
    if not deleted.is_document_payment:
        raise DocumentKindMismatchError(
            book.kind.value, deleted.category.value, deleted.transaction_id
        )
    kind = DocumentKind(deleted.category.value)
    _require_book(book, kind, deleted.transaction_id)
    accounts = tuple(accounts)

    located = _resolve(book, deleted)
    if located is None:
        logger.warning(
            "payment_rollback_document_missing",
            extra={
                "transaction_id": deleted.transaction_id,
                "related_id": deleted.related_id,
                "related_name": deleted.related_name,
            },
        )
        return RollbackResult(
            success=False,
            error=f"Linked {kind.value} not found",
            book=book,
            accounts=accounts,
        )

    document = located.document
    remaining = _without(remaining_transactions, deleted)
    stripped = document.with_changes(
        payments=_payments_without(document.payments, deleted, tolerance),
    )
    new_book, updated, moved = _restore(book, located, stripped, remaining)
    new_accounts = _recompute_owner(accounts, new_book, updated)

    with LogContext.bind(document_id=document.document_id, transaction_id=deleted.transaction_id):
        logger.info(
            "payment_rolled_back",
            extra={
                "previous_balance": str(document.balance),
                "restored_balance": str(updated.balance),
                "payments_removed": len(document.payments) - len(updated.payments),
                "moved_to_pending": moved,
            },
        )
    return RollbackResult(
        success=True,
        book=new_book,
        accounts=new_accounts,
        document=updated,
        moved_to_pending=moved,
    )


# ---------------------------------------------------------------------------
# Advance rollback
# ---------------------------------------------------------------------------


def _advance_index(
    advances: tuple[Advance, ...],
    deleted: BankTransaction,
    tolerance: Decimal,
) -> int | None:
    """Index of the advance ``deleted`` created, stamped id first, then amount and day."""
    for index, advance in enumerate(advances):
        if advance.transaction_id == deleted.transaction_id:
            return index
    for index, advance in enumerate(advances):
        if (
            advance.transaction_id is None
            and amounts_match(advance.amount, deleted.amount, tolerance)
            and same_day(advance.advance_date, deleted.transaction_date)
        ):
            return index
    return None


@traced_engine("rollback", "1.0", fingerprint_fields=("deleted",))
def rollback_advance(
    deleted: BankTransaction,
    remaining_transactions: Sequence[BankTransaction],
    book: DocumentBook,
    accounts: Sequence[Account],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> RollbackResult:
    """
    Undo a deleted advance transaction.

    Credit advances feed bills, debit advances feed memos.  When no advance
    matches, the balance is still recomputed and ``advance_removed`` is
    false.
    """
    kind = deleted.advance_target
    if kind is None:
        raise DocumentKindMismatchError(
            TransactionCategory.ADVANCE.value, deleted.category.value, deleted.transaction_id
        )
    _require_book(book, kind, deleted.transaction_id)
    accounts = tuple(accounts)

    located = _resolve(book, deleted)
    if located is None:
        logger.warning(
            "advance_rollback_document_missing",
            extra={
                "transaction_id": deleted.transaction_id,
                "related_id": deleted.related_id,
                "related_name": deleted.related_name,
            },
        )
        return RollbackResult(
            success=False,
            error=f"Linked {kind.value} not found for advance rollback",
            book=book,
            accounts=accounts,
        )

    document = located.document
    index = _advance_index(document.advances, deleted, tolerance)
    if index is None:
        logger.warning(
            "advance_rollback_no_match",
            extra={
                "document_id": document.document_id,
                "transaction_id": deleted.transaction_id,
                "amount": str(deleted.amount),
            },
        )
        stripped = document
    else:
        stripped = document.with_changes(
            advances=document.advances[:index] + document.advances[index + 1:],
        )

    remaining = _without(remaining_transactions, deleted)
    new_book, updated, moved = _restore(book, located, stripped, remaining)
    new_accounts = _recompute_owner(accounts, new_book, updated)

    logger.info(
        "advance_rolled_back",
        extra={
            "document_id": document.document_id,
            "transaction_id": deleted.transaction_id,
            "advance_removed": index is not None,
            "restored_balance": str(updated.balance),
            "moved_to_pending": moved,
        },
    )
    return RollbackResult(
        success=True,
        book=new_book,
        accounts=new_accounts,
        document=updated,
        moved_to_pending=moved,
        advance_removed=index is not None,
    )


# ---------------------------------------------------------------------------
# Deletion dispatcher
# ---------------------------------------------------------------------------


def delete_transaction(
    transaction_id: str,
    transactions: Sequence[BankTransaction],
    bills: DocumentBook,
    memos: DocumentBook,
    parties: Sequence[Account],
    suppliers: Sequence[Account],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> DeletionResult:
    """
    Delete one bank transaction, rolling back its document effect first.

    Bill and memo payments roll back the linked document; credit advances
    roll back a bill advance, debit advances a memo advance.  Expense,
    transfer and other transactions have no document effect.
    """
    transactions = tuple(transactions)
    parties, suppliers = tuple(parties), tuple(suppliers)
    unchanged = DeletionResult(
        success=False,
        transactions=transactions,
        bills=bills,
        memos=memos,
        parties=parties,
        suppliers=suppliers,
    )

    deleted = next((t for t in transactions if t.transaction_id == transaction_id), None)
    if deleted is None:
        return dataclasses.replace(
            unchanged, error=f"Bank transaction not found: {transaction_id}"
        )

    remaining = _without(transactions, deleted)
    category = deleted.category
    if category is TransactionCategory.ADVANCE:
        target = deleted.advance_target
    elif deleted.is_document_payment:
        target = DocumentKind(category.value)
    else:
        target = None

    if target is None:
        logger.info(
            "transaction_deleted",
            extra={"transaction_id": transaction_id, "category": category.value},
        )
        return DeletionResult(
            success=True,
            transactions=remaining,
            bills=bills,
            memos=memos,
            parties=parties,
            suppliers=suppliers,
        )

    is_bill = target is DocumentKind.BILL
    book, accounts = (bills, parties) if is_bill else (memos, suppliers)
    if category is TransactionCategory.ADVANCE:
        rollback = rollback_advance(deleted, remaining, book, accounts, tolerance)
    else:
        rollback = rollback_payment(deleted, remaining, book, accounts, tolerance)

    if not rollback.success:
        logger.error(
            "transaction_delete_aborted",
            extra={"transaction_id": transaction_id, "reason": rollback.error},
        )
        return dataclasses.replace(unchanged, error=rollback.error, rollback=rollback)

    logger.info(
        "transaction_deleted",
        extra={"transaction_id": transaction_id, "category": category.value},
    )
    return DeletionResult(
        success=True,
        transactions=remaining,
        bills=rollback.book if is_bill else bills,
        memos=memos if is_bill else rollback.book,
        parties=rollback.accounts if is_bill else parties,
        suppliers=suppliers if is_bill else rollback.accounts,
        rollback=rollback,
    )

