"""
freight_engines.settlement -- Settled/pending status rules.

Responsibility:
    Decide when a document leaves the pending state, undo that decision,
    and keep each document in the book collection matching its status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A memo is settled (PAID) exactly when its balance is <= 0.
    - A bill is settled (RECEIVED) by an explicit action. The action
      succeeds on a zero balance, or with ``force=True``, in which case
      the remaining balance is absorbed as ``settlement_difference``.
    - Reverting clears every settlement stamp (date, narration, difference).

Failure modes:
    - SettlementResult(settled=False, reason=...) when a document cannot
      be settled; never raised.
    - DocumentNotInBookError from ``file_document`` when the book does not
      hold the document.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from freight_kernel.domain.accounts import DocumentBook
from freight_kernel.domain.amounts import ZERO, format_currency, parse_date
from freight_kernel.domain.documents import Bill, ChargeDocument, Memo
from freight_kernel.domain.enums import DocumentStatus
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.settlement")


@dataclass(frozen=True)
class SettlementResult:
    settled: bool
    document: ChargeDocument
    reason: str | None = None


def settlement_narration(remarks: str | None, total_deductions: Decimal) -> str:
    """Narration stamped on a bill settled by a payment."""
    qualifier = "deductions" if total_deductions > ZERO else "no deductions"
    return f"Payment processed with {qualifier}. {remarks or ''}".strip()


def settle_document(
    document: ChargeDocument,
    on: date,
    narration: str = "",
    force: bool = False,
) -> SettlementResult:
    """
    Move ``document`` to its settled status if the rules allow it.

    ``force`` only applies to bills; a memo with a balance is never settled.
    """
    on = parse_date(on, "settlement.on")
    if document.is_settled:
        return SettlementResult(settled=True, document=document)

    if isinstance(document, Memo):
        if document.balance > ZERO:
            return SettlementResult(
                settled=False,
                document=document,
                reason=f"Memo {document.number} still owes {format_currency(document.balance)}",
            )
        settled = document.with_changes(status=DocumentStatus.PAID, paid_date=on)
    elif isinstance(document, Bill):
        difference = document.balance if document.balance > ZERO else ZERO
        if difference and not force:
            return SettlementResult(
                settled=False,
                document=document,
                reason=(
                    f"Bill {document.number} has a remaining balance of "
                    f"{format_currency(difference)}; force settlement to absorb it"
                ),
            )
        settled = document.with_changes(
            status=DocumentStatus.RECEIVED,
            settlement_date=on,
            settlement_narration=narration,
            settlement_difference=document.settlement_difference + difference,
            balance=ZERO,
        )
    else:
        raise TypeError(f"Unsupported document type: {type(document).__name__}")

    logger.info(
        "document_settled",
        extra={
            "document_id": document.document_id,
            "document_kind": document.kind.value,
            "settled_on": on,
            "forced": force,
        },
    )
    return SettlementResult(settled=True, document=settled)


def revert_settlement(document: ChargeDocument) -> ChargeDocument:
    """Return ``document`` to PENDING with its settlement stamps cleared."""
    if isinstance(document, Bill):
        return document.with_changes(
            status=DocumentStatus.PENDING,
            settlement_date=None,
            settlement_narration="",
            settlement_difference=ZERO,
        )
    if isinstance(document, Memo):
        return document.with_changes(status=DocumentStatus.PENDING, paid_date=None)
    return document.with_changes(status=DocumentStatus.PENDING)


def file_document(book: DocumentBook, document: ChargeDocument) -> DocumentBook:
    """Store ``document`` in the collection matching its status."""
    located = book.locate(document_id=document.document_id)
    wants_settled = document.is_settled
    if located is not None and located.in_settled == wants_settled:
        return book.replace(document)
    if wants_settled:
        return book.move_to_settled(document)
    return book.move_to_pending(document)
