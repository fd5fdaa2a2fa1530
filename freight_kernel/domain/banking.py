"""
Banking -- Bank transactions and their links to charge documents.

A bank transaction in category ``bill`` or ``memo`` is the source of truth
for one payment event applied to the linked document. An ``advance``
transaction created an Advance on a bill (credit) or a memo (debit).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from freight_kernel.domain.amounts import parse_date, to_amount
from freight_kernel.domain.documents import ChargeDocument
from freight_kernel.domain.enums import (
    DocumentKind,
    TransactionCategory,
    TransactionType,
    coerce_enum,
)
from freight_kernel.exceptions import MissingFieldError

_DOCUMENT_CATEGORIES = frozenset({TransactionCategory.BILL, TransactionCategory.MEMO})


@dataclass(frozen=True)
class BankTransaction:
    """
    One atomic cash movement.

    Contract:
        ``related_id`` names the linked document's id; ``related_name``
        carries its document number as a fallback link.
    Guarantees:
        - Payment categories (bill, memo) always carry a link.
        - ``amount`` is a Decimal, ``transaction_date`` a date.
    Non-goals:
        - Does not check that the linked document exists; resolution is
          the rollback resolver's job.
    """

    transaction_id: str
    transaction_date: date
    transaction_type: TransactionType
    amount: Decimal
    category: TransactionCategory
    related_id: str | None = None
    related_name: str | None = None
    narration: str = ""
    sender_name: str = ""
    receiver_name: str = ""

    def __post_init__(self) -> None:
        if not self.transaction_id:
            raise MissingFieldError("BankTransaction", "transaction_id")
        object.__setattr__(
            self,
            "transaction_date",
            parse_date(self.transaction_date, "transaction.transaction_date"),
        )
        object.__setattr__(self, "amount", to_amount(self.amount, "transaction.amount"))
        object.__setattr__(
            self, "transaction_type", coerce_enum(TransactionType, self.transaction_type)
        )
        object.__setattr__(self, "category", coerce_enum(TransactionCategory, self.category))
        if self.category in _DOCUMENT_CATEGORIES and not self.has_link:
            raise MissingFieldError("BankTransaction", "related_id")

    @property
    def has_link(self) -> bool:
        return bool(self.related_id) or bool(self.related_name)

    @property
    def is_document_payment(self) -> bool:
        return self.category in _DOCUMENT_CATEGORIES

    @property
    def advance_target(self) -> DocumentKind | None:
        """Which document kind an advance transaction fed, if any."""
        if self.category is not TransactionCategory.ADVANCE:
            return None
        if self.transaction_type is TransactionType.CREDIT:
            return DocumentKind.BILL
        return DocumentKind.MEMO

    def links_to(self, document: ChargeDocument) -> bool:
        """True when this is a payment against ``document`` (by id)."""
        return (
            self.category.value == document.kind.value
            and self.related_id == document.document_id
        )
