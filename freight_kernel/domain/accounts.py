"""
Accounts -- Parties, suppliers and the pending/settled document books.

Responsibility:
    ``Account`` holds a counterparty's cached balance and active trip count.
    Both are recomputation targets: the only way to change them is
    ``with_totals`` fed by a fresh recomputation over pending documents.

    ``DocumentBook`` models the caller's two collections for one document
    kind, "pending" and "settled". All operations return a new book.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - DocumentKindMismatchError if a book is built with documents of the
      wrong kind.
    - DocumentNotInBookError when replacing a document the book never held.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from freight_kernel.domain.amounts import ZERO, to_amount
from freight_kernel.domain.documents import ChargeDocument
from freight_kernel.domain.enums import AccountKind, DocumentKind, coerce_enum
from freight_kernel.exceptions import (
    DocumentKindMismatchError,
    DocumentNotInBookError,
    MissingFieldError,
)


@dataclass(frozen=True)
class Account:
    """A party (owns bills) or a supplier (owns memos)."""

    account_id: str
    name: str
    kind: AccountKind
    balance: Decimal = ZERO
    active_count: int = 0

    def __post_init__(self) -> None:
        if not self.account_id:
            raise MissingFieldError("Account", "account_id")
        object.__setattr__(self, "kind", coerce_enum(AccountKind, self.kind))
        object.__setattr__(self, "balance", to_amount(self.balance, "account.balance"))

    @property
    def document_kind(self) -> DocumentKind:
        return self.kind.document_kind

    def owns(self, document: ChargeDocument) -> bool:
        return (
            document.account_id == self.account_id
            and document.kind is self.document_kind
        )

    def with_totals(self, balance: Decimal, active_count: int) -> Account:
        """Replace the cached totals with freshly recomputed values."""
        return dataclasses.replace(self, balance=balance, active_count=active_count)


class Collection(str, Enum):
    """Which of a book's two collections holds a document."""

    PENDING = "pending"
    SETTLED = "settled"


@dataclass(frozen=True)
class LocatedDocument:
    """A document together with the collection it was found in."""

    document: ChargeDocument
    collection: Collection

    @property
    def in_settled(self) -> bool:
        return self.collection is Collection.SETTLED


@dataclass(frozen=True)
class DocumentBook:
    """
    Pending and settled collections for one document kind.

    Contract:
        Every document in the book has ``kind`` equal to the book's kind.
        A document id appears in at most one collection after any
        operation of this class.
    """

    kind: DocumentKind
    pending: tuple[ChargeDocument, ...] = ()
    settled: tuple[ChargeDocument, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", coerce_enum(DocumentKind, self.kind))
        object.__setattr__(self, "pending", tuple(self.pending))
        object.__setattr__(self, "settled", tuple(self.settled))
        for document in self.pending + self.settled:
            if document.kind is not self.kind:
                raise DocumentKindMismatchError(
                    self.kind.value, document.kind.value, document.document_id
                )

    @property
    def documents(self) -> tuple[ChargeDocument, ...]:
        """Pending documents first, then settled ones."""
        return self.pending + self.settled

    def locate(
        self,
        document_id: str | None = None,
        number: str | None = None,
    ) -> LocatedDocument | None:
        """
        Find a document by id, falling back to its document number.

        The id is searched in pending then settled; only when neither holds
        it is the number searched, in the same order.
        """
        if document_id:
            found = self._find(lambda d: d.document_id == document_id)
            if found is not None:
                return found
        if number:
            return self._find(lambda d: d.number == number)
        return None

    def _find(self, predicate) -> LocatedDocument | None:
        for document in self.pending:
            if predicate(document):
                return LocatedDocument(document, Collection.PENDING)
        for document in self.settled:
            if predicate(document):
                return LocatedDocument(document, Collection.SETTLED)
        return None

    def replace(self, document: ChargeDocument) -> DocumentBook:
        """Swap in ``document`` wherever its id currently lives."""
        located = self.locate(document_id=document.document_id)
        if located is None:
            raise DocumentNotInBookError(document.document_id, self.kind.value)
        swap = lambda docs: tuple(
            document if d.document_id == document.document_id else d for d in docs
        )
        return dataclasses.replace(self, pending=swap(self.pending), settled=swap(self.settled))

    def move_to_pending(self, document: ChargeDocument) -> DocumentBook:
        return self._move(document, Collection.PENDING)

    def move_to_settled(self, document: ChargeDocument) -> DocumentBook:
        return self._move(document, Collection.SETTLED)

    def _move(self, document: ChargeDocument, target: Collection) -> DocumentBook:
        if self.locate(document_id=document.document_id) is None:
            raise DocumentNotInBookError(document.document_id, self.kind.value)
        keep = lambda docs: tuple(d for d in docs if d.document_id != document.document_id)
        pending, settled = keep(self.pending), keep(self.settled)
        if target is Collection.PENDING:
            pending = pending + (document,)
        else:
            settled = settled + (document,)
        return dataclasses.replace(self, pending=pending, settled=settled)

    def pending_for(self, account_id: str) -> tuple[ChargeDocument, ...]:
        return tuple(d for d in self.pending if d.account_id == account_id)
