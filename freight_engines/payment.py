"""
freight_engines.payment -- Payment processor for bills and memos.

Responsibility:
    Validate a payment form against a document and, when valid, produce the
    immutable ``Payment`` record, the updated document (new balance, payment
    appended to its history) and a ledger entry describing the payment.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import freight_kernel.

Invariants enforced:
    - Validation failures are returned as values; nothing is applied.
    - ``remaining_balance = max(0, balance - received - total_deductions)``.
    - Status is never changed here; settlement is a separate decision
      (see freight_engines.settlement).
    - Ids are derived from the document id and its payment count, so the
      same inputs always produce the same records.

Failure modes:
    - PaymentResult(is_valid=False, errors=[...]) for a missing payment
      date, a negative received amount, a negative deduction, or a
      received amount above the balance with no deductions to explain it.
    - MalformedAmountError / MalformedDateError when the form itself
      carries values that are not amounts or dates.

Usage:
    from freight_engines.payment import PaymentForm, process_payment

    result = process_payment(bill, PaymentForm(
        payment_date="2024-03-01",
        received_amount="20000",
        other="300",
    ))
    if result.is_valid:
        bill = result.updated_document
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from freight_engines.tracer import traced_engine
from freight_kernel.domain.amounts import (
    ZERO,
    floor_at_zero,
    format_currency,
    parse_date,
    sum_amounts,
    to_amount,
)
from freight_kernel.domain.documents import ChargeDocument, Payment, PaymentDeduction
from freight_kernel.domain.enums import DeductionType, EntryKind
from freight_kernel.domain.ledger import LedgerEntry
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.payment")

# Form field -> deduction type and default description, in itemization order.
_DEDUCTION_FIELDS: tuple[tuple[str, DeductionType, str], ...] = (
    ("tds", DeductionType.TDS, "TDS Deduction"),
    ("mamul", DeductionType.MAMUL, "Mamul Deduction"),
    ("payment_charges", DeductionType.PAYMENT_CHARGES, "Payment Charges"),
    ("commission", DeductionType.COMMISSION, "Commission Deduction"),
    ("other", DeductionType.OTHER, "Other Deduction"),
)


@dataclass(frozen=True)
class PaymentForm:
    """What the operator entered for one payment."""

    payment_date: date | None
    received_amount: Decimal
    tds: Decimal = ZERO
    mamul: Decimal = ZERO
    payment_charges: Decimal = ZERO
    commission: Decimal = ZERO
    other: Decimal = ZERO
    method: str | None = None
    reference: str | None = None
    remarks: str | None = None
    transaction_id: str | None = None

    def __post_init__(self) -> None:
        if self.payment_date is not None:
            object.__setattr__(
                self, "payment_date", parse_date(self.payment_date, "form.payment_date")
            )
        object.__setattr__(
            self, "received_amount", to_amount(self.received_amount, "form.received_amount")
        )
        for name, _, _ in _DEDUCTION_FIELDS:
            object.__setattr__(self, name, to_amount(getattr(self, name), f"form.{name}"))

    @property
    def deduction_amounts(self) -> dict[DeductionType, Decimal]:
        return {dtype: getattr(self, name) for name, dtype, _ in _DEDUCTION_FIELDS}

    @property
    def total_deductions(self) -> Decimal:
        return sum_amounts(self.deduction_amounts.values())

    def itemized_deductions(self) -> tuple[PaymentDeduction, ...]:
        """One PaymentDeduction per strictly positive deduction field."""
        return tuple(
            PaymentDeduction(deduction_type=dtype, amount=amount, description=label)
            for name, dtype, label in _DEDUCTION_FIELDS
            if (amount := getattr(self, name)) > ZERO
        )


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class PaymentResult:
    """
    Outcome of ``process_payment``.

    When ``is_valid`` is false only ``errors`` is populated.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    payment: Payment | None = None
    updated_document: ChargeDocument | None = None
    ledger_entry: LedgerEntry | None = None


def validate_payment(document: ChargeDocument, form: PaymentForm) -> ValidationResult:
    """Check a form against a document without applying anything."""
    errors: list[str] = []

    if form.payment_date is None:
        errors.append("Payment date is required")
    if form.received_amount < ZERO:
        errors.append("Received amount cannot be negative")
    for dtype, amount in form.deduction_amounts.items():
        if amount < ZERO:
            errors.append(f"{dtype.value} deduction cannot be negative")
    if form.received_amount > document.balance and form.total_deductions == ZERO:
        errors.append(
            f"Received amount {format_currency(form.received_amount)} exceeds "
            f"balance {format_currency(document.balance)}"
        )

    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def _describe(payment: Payment, remarks: str | None) -> str:
    if payment.deductions:
        breakdown = ", ".join(
            f"{d.label}: {format_currency(d.amount)}" for d in payment.deductions
        )
        text = f"Payment received {format_currency(payment.received_amount)} ({breakdown})"
    else:
        text = f"Payment received {format_currency(payment.received_amount)}"
    return f"{text} - {remarks}" if remarks else text


@traced_engine("payment", "1.0", fingerprint_fields=("document", "form"))
def process_payment(document: ChargeDocument, form: PaymentForm) -> PaymentResult:
    """Apply one payment to a bill or memo."""
    validation = validate_payment(document, form)
    if not validation.is_valid:
        logger.info(
            "payment_rejected",
            extra={
                "document_id": document.document_id,
                "errors": list(validation.errors),
            },
        )
        return PaymentResult(is_valid=False, errors=validation.errors)

    balance = document.balance
    total_deductions = form.total_deductions
    remaining = floor_at_zero(balance - form.received_amount - total_deductions)

    payment = Payment(
        payment_id=f"{document.document_id}:payment:{len(document.payments) + 1}",
        document_id=document.document_id,
        payment_date=form.payment_date,
        document_balance=balance,
        received_amount=form.received_amount,
        difference_amount=balance - form.received_amount,
        remaining_balance=remaining,
        deductions=form.itemized_deductions(),
        method=form.method,
        reference=form.reference,
        remarks=form.remarks,
        transaction_id=form.transaction_id,
    )

    updated = document.with_changes(
        balance=remaining,
        payments=document.payments + (payment,),
    )

    # Debit, like every other reduction of the outstanding balance.
    entry = LedgerEntry(
        entry_id=f"{payment.payment_id}:ledger",
        entry_date=payment.payment_date,
        kind=EntryKind.PAYMENT,
        related_document_id=document.document_id,
        related_document_no=document.number,
        description=_describe(payment, form.remarks),
        debit_amount=form.received_amount,
        running_balance=remaining,
        related_transaction_id=form.transaction_id,
    )

    logger.info(
        "payment_processed",
        extra={
            "document_id": document.document_id,
            "payment_id": payment.payment_id,
            "received_amount": str(form.received_amount),
            "total_deductions": str(total_deductions),
            "remaining_balance": str(remaining),
        },
    )
    return PaymentResult(
        is_valid=True,
        payment=payment,
        updated_document=updated,
        ledger_entry=entry,
    )
