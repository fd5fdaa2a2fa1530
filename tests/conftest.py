"""
Pytest fixtures for the freight ledger test suite.

Provides:
- Factory fixtures for memos, bills, advances, payments and bank transactions
- A supplier and a party account
- Logging reset between tests so caplog sees engine records

All builders use fixed dates and deterministic ids; nothing here reads
the clock.
"""

from datetime import date
from decimal import Decimal

import pytest

from freight_engines.balance import derive_document_balance
from freight_kernel.domain.accounts import Account, DocumentBook
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import Advance, Bill, Memo, Payment, PaymentDeduction, Trip
from freight_kernel.domain.enums import AccountKind, DocumentKind
from freight_kernel.logging_config import LogContext, reset_logging

MEMO_DATE = date(2024, 1, 15)
BILL_DATE = date(2024, 2, 1)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def supplier():
    return Account("sup-1", "Sharma Roadways", AccountKind.SUPPLIER)


@pytest.fixture
def party():
    return Account("party-1", "Acme Cements", AccountKind.PARTY)


@pytest.fixture
def make_advance():
    def _make(amount="4000", advance_date=MEMO_DATE, advance_id="adv-1", **kw):
        return Advance(
            advance_id=advance_id,
            advance_date=advance_date,
            amount=Decimal(str(amount)),
            **kw,
        )

    return _make


@pytest.fixture
def make_memo():
    """Memo builder; ``balance`` defaults to the derived balance with no transactions."""

    def _make(
        document_id="m-1",
        number="MEMO-001",
        account_id="sup-1",
        document_date=MEMO_DATE,
        freight="10000",
        commission="600",
        balance=None,
        **kw,
    ):
        memo = Memo(
            document_id=document_id,
            number=number,
            account_id=account_id,
            document_date=document_date,
            freight=Decimal(str(freight)),
            commission=Decimal(str(commission)),
            origin=kw.pop("origin", "Chennai"),
            destination=kw.pop("destination", "Bangalore"),
            vehicle=kw.pop("vehicle", "TN01AB1234"),
            **kw,
        )
        if balance is None:
            balance = derive_document_balance(memo, ())
        return memo.with_changes(balance=Decimal(str(balance)))

    return _make


@pytest.fixture
def make_bill():
    """Bill builder; ``balance`` defaults to the derived balance with no transactions."""

    def _make(
        document_id="b-1",
        number="BILL-001",
        account_id="party-1",
        document_date=BILL_DATE,
        total_freight="20000",
        balance=None,
        **kw,
    ):
        trips = kw.pop(
            "trips",
            (Trip("t-1", "Chennai", "Madurai", vehicle="TN02CD5678", freight=total_freight),),
        )
        bill = Bill(
            document_id=document_id,
            number=number,
            account_id=account_id,
            document_date=document_date,
            total_freight=Decimal(str(total_freight)),
            trips=trips,
            **kw,
        )
        if balance is None:
            balance = derive_document_balance(bill, ())
        return bill.with_changes(balance=Decimal(str(balance)))

    return _make


@pytest.fixture
def make_txn():
    def _make(
        transaction_id="txn-1",
        amount="5400",
        category="memo",
        transaction_type="debit",
        transaction_date=date(2024, 1, 20),
        related_id="m-1",
        related_name=None,
        **kw,
    ):
        return BankTransaction(
            transaction_id=transaction_id,
            transaction_date=transaction_date,
            transaction_type=transaction_type,
            amount=Decimal(str(amount)),
            category=category,
            related_id=related_id,
            related_name=related_name,
            **kw,
        )

    return _make


@pytest.fixture
def make_payment():
    def _make(
        payment_id="m-1:payment:1",
        document_id="m-1",
        payment_date=date(2024, 1, 20),
        received_amount="5400",
        deductions=(),
        transaction_id=None,
        document_balance=None,
    ):
        received = Decimal(str(received_amount))
        balance = Decimal(str(document_balance)) if document_balance is not None else received
        deductions = tuple(
            d if isinstance(d, PaymentDeduction) else PaymentDeduction(d[0], Decimal(str(d[1])))
            for d in deductions
        )
        taken = sum((d.amount for d in deductions), Decimal("0"))
        return Payment(
            payment_id=payment_id,
            document_id=document_id,
            payment_date=payment_date,
            document_balance=balance,
            received_amount=received,
            difference_amount=balance - received,
            remaining_balance=max(Decimal("0"), balance - received - taken),
            deductions=deductions,
            transaction_id=transaction_id,
        )

    return _make


@pytest.fixture
def memo_book():
    def _make(pending=(), settled=()):
        return DocumentBook(DocumentKind.MEMO, pending=pending, settled=settled)

    return _make


@pytest.fixture
def bill_book():
    def _make(pending=(), settled=()):
        return DocumentBook(DocumentKind.BILL, pending=pending, settled=settled)

    return _make
