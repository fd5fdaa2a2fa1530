"""Tests for accounts and document books (freight_kernel.domain.accounts)."""

from decimal import Decimal

import pytest

from freight_kernel.domain.accounts import Account, Collection, DocumentBook
from freight_kernel.domain.enums import AccountKind, DocumentKind, DocumentStatus
from freight_kernel.exceptions import (
    DocumentKindMismatchError,
    DocumentNotInBookError,
    MissingFieldError,
)


class TestAccount:
    def test_kind_maps_to_document_kind(self, party, supplier):
        assert party.document_kind is DocumentKind.BILL
        assert supplier.document_kind is DocumentKind.MEMO

    def test_owns_checks_id_and_kind(self, supplier, make_memo, make_bill):
        assert supplier.owns(make_memo())
        assert not supplier.owns(make_memo(account_id="sup-2"))
        # Same id, wrong kind of document
        assert not supplier.owns(make_bill(account_id="sup-1"))

    def test_with_totals(self, supplier):
        updated = supplier.with_totals(balance=Decimal("5400"), active_count=2)
        assert updated.balance == Decimal("5400")
        assert updated.active_count == 2
        assert supplier.balance == Decimal("0")

    def test_blank_id_rejected(self):
        with pytest.raises(MissingFieldError):
            Account("", "Nobody", AccountKind.PARTY)

    def test_kind_from_string(self):
        assert Account("p", "P", "party").kind is AccountKind.PARTY


class TestDocumentBook:
    def test_rejects_wrong_kind(self, make_bill):
        with pytest.raises(DocumentKindMismatchError):
            DocumentBook(DocumentKind.MEMO, pending=(make_bill(),))

    def test_locate_by_id_then_number(self, memo_book, make_memo):
        pending = make_memo(document_id="m-1", number="MEMO-001")
        settled = make_memo(document_id="m-2", number="MEMO-002", balance="0", status="paid")
        book = memo_book(pending=(pending,), settled=(settled,))

        found = book.locate(document_id="m-2")
        assert found.document is settled
        assert found.collection is Collection.SETTLED
        assert found.in_settled

        by_number = book.locate(document_id="missing", number="MEMO-001")
        assert by_number.document is pending
        assert by_number.collection is Collection.PENDING

        assert book.locate(document_id="missing", number="MEMO-404") is None
        assert book.locate() is None

    def test_id_wins_over_number(self, memo_book, make_memo):
        a = make_memo(document_id="m-1", number="MEMO-002")
        b = make_memo(document_id="m-2", number="MEMO-001")
        book = memo_book(pending=(a, b))
        assert book.locate(document_id="m-2", number="MEMO-002").document is b

    def test_replace_keeps_collection(self, memo_book, make_memo):
        memo = make_memo(balance="0", status="paid")
        book = memo_book(settled=(memo,))
        updated = book.replace(memo.with_changes(notes="checked"))
        assert updated.pending == ()
        assert updated.settled[0].notes == "checked"
        assert book.settled[0].notes == ""

    def test_replace_unknown_document(self, memo_book, make_memo):
        with pytest.raises(DocumentNotInBookError):
            memo_book().replace(make_memo())

    def test_move_between_collections(self, memo_book, make_memo):
        memo = make_memo()
        book = memo_book(pending=(memo,))
        paid = memo.with_changes(balance=Decimal("0"), status=DocumentStatus.PAID)

        settled_book = book.move_to_settled(paid)
        assert settled_book.pending == ()
        assert settled_book.settled == (paid,)

        back = settled_book.move_to_pending(memo)
        assert back.pending == (memo,)
        assert back.settled == ()

    def test_pending_for_account(self, memo_book, make_memo):
        mine = make_memo(document_id="m-1")
        theirs = make_memo(document_id="m-2", account_id="sup-2")
        book = memo_book(pending=(mine, theirs))
        assert book.pending_for("sup-1") == (mine,)
        assert book.documents == (mine, theirs)
