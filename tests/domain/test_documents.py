"""Tests for the charge document model (freight_kernel.domain.documents)."""

from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

import pytest

from freight_kernel.domain.documents import Advance, Bill, Memo, PaymentDeduction, Trip
from freight_kernel.domain.enums import DeductionType, DocumentKind, DocumentStatus
from freight_kernel.exceptions import (
    MalformedAmountError,
    MalformedDateError,
    MissingFieldError,
    UnknownEnumValueError,
)


class TestMemo:
    def test_charges_and_intrinsic_deductions(self, make_memo):
        memo = make_memo(detention="500", extra_charge="250", rto_amount="100", mamul="50")
        assert memo.kind is DocumentKind.MEMO
        assert memo.total_charges == Decimal("10850")
        assert memo.intrinsic_deductions == Decimal("650")

    def test_trip_details_from_route(self, make_memo):
        assert make_memo().trip_details == "Chennai to Bangalore (TN01AB1234)"
        assert make_memo(vehicle="").trip_details == "Chennai to Bangalore"

    def test_amounts_coerced_from_strings(self):
        memo = Memo(
            document_id="m-9",
            number="MEMO-009",
            account_id="sup-1",
            document_date="2024-01-15",
            freight="1500.50",
        )
        assert memo.freight == Decimal("1500.50")
        assert memo.document_date == date(2024, 1, 15)
        assert memo.status is DocumentStatus.PENDING

    def test_settled_status_normalized_to_paid(self, make_memo):
        assert make_memo(status="received").status is DocumentStatus.PAID
        assert make_memo(status="fully_paid").status is DocumentStatus.PAID

    def test_active_trips_is_one(self, make_memo):
        assert make_memo().active_trips == 1


class TestBill:
    def test_total_charges_nets_mamul(self, make_bill):
        bill = make_bill(detention="500", mamul="200")
        assert bill.total_charges == Decimal("20300")
        assert bill.intrinsic_deductions == Decimal("0")

    @pytest.mark.parametrize("legacy", ["fully_paid", "settled_with_deductions", "settled", "paid"])
    def test_legacy_statuses_read_as_received(self, make_bill, legacy):
        assert make_bill(status=legacy).status is DocumentStatus.RECEIVED

    def test_active_trips_counts_trips(self, make_bill):
        trips = (
            Trip("t-1", "Chennai", "Madurai", freight="10000"),
            Trip("t-2", "Madurai", "Trichy", freight="10000"),
        )
        assert make_bill(trips=trips).active_trips == 2
        assert make_bill(trips=()).active_trips == 1

    def test_trip_details_joined(self, make_bill):
        trips = (
            Trip("t-1", "Chennai", "Madurai", vehicle="TN02"),
            Trip("t-2", "Madurai", "Trichy"),
        )
        assert make_bill(trips=trips).trip_details == "Chennai to Madurai (TN02), Madurai to Trichy"

    def test_settled_on(self, make_bill):
        assert make_bill(settlement_date="2024-03-01").settled_on == date(2024, 3, 1)


class TestChargeDocumentShape:
    def test_frozen(self, make_memo):
        memo = make_memo()
        with pytest.raises(FrozenInstanceError):
            memo.balance = Decimal("0")

    def test_with_changes_returns_new_instance(self, make_memo):
        memo = make_memo()
        changed = memo.with_changes(balance=Decimal("1"))
        assert changed is not memo
        assert memo.balance == Decimal("9400")
        assert changed.balance == Decimal("1")

    def test_blank_id_rejected(self):
        with pytest.raises(MissingFieldError) as exc_info:
            Memo(document_id=" ", number="M", account_id="sup-1", document_date="2024-01-01")
        assert exc_info.value.field == "document_id"

    def test_bad_amount_rejected(self):
        with pytest.raises(MalformedAmountError):
            Bill(
                document_id="b-1",
                number="B",
                account_id="p-1",
                document_date="2024-01-01",
                detention="lots",
            )

    def test_bad_date_rejected(self):
        with pytest.raises(MalformedDateError):
            Memo(document_id="m-1", number="M", account_id="sup-1", document_date="yesterday")

    def test_unknown_status_rejected(self, make_memo):
        with pytest.raises(UnknownEnumValueError):
            make_memo(status="archived")

    def test_total_advances_signed(self, make_memo, make_advance):
        memo = make_memo(
            advances=(
                make_advance("4000"),
                make_advance("-500", advance_id="adv-2"),
            )
        )
        assert memo.total_advances == Decimal("3500")


class TestRecords:
    def test_advance_requires_id(self):
        with pytest.raises(MissingFieldError):
            Advance(advance_id="", advance_date="2024-01-01", amount="10")

    def test_deduction_label_defaults_to_type(self):
        deduction = PaymentDeduction("tds", "200")
        assert deduction.deduction_type is DeductionType.TDS
        assert deduction.label == "TDS Deduction"
        assert PaymentDeduction("other", "1", "Short delivery").label == "Short delivery"

    def test_payment_total_deductions(self, make_payment):
        payment = make_payment(deductions=[("tds", "200"), ("other", "100")])
        assert payment.total_deductions == Decimal("300")
