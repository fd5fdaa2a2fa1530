"""
Documents -- Bills, memos and the records hanging off them.

Responsibility:
    Define the charge document model as a small discriminated union:
    ``ChargeDocument`` carries the shared shape (advances, payments,
    balance, status) and ``Bill`` / ``Memo`` supply the type-specific
    charge components through ``total_charges`` and
    ``intrinsic_deductions``. Balance formulas and the ledger builder are
    written once against the shared shape.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Every monetary field is a Decimal after construction.
    - Every date field is a ``date`` after construction.
    - Collections are tuples; documents are frozen, so every change goes
      through ``with_changes`` and produces a new instance.
    - A settled status is normalized to the document's own settled status
      (``PAID`` for memos, ``RECEIVED`` for bills).

Failure modes:
    - MissingFieldError when an identifier is blank.
    - MalformedAmountError / MalformedDateError on bad field values.
    - UnknownEnumValueError on an unrecognized status or deduction type.

Usage:
    from freight_kernel.domain.documents import Memo

    memo = Memo(
        document_id="m-1",
        number="MEMO-001",
        account_id="sup-1",
        document_date="2024-01-15",
        freight="10000",
        commission="600",
        balance="9400",
    )
    memo.total_charges          # Decimal("10000")
    memo.intrinsic_deductions   # Decimal("600")
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar

from freight_kernel.domain.amounts import ZERO, parse_date, sum_amounts, to_amount
from freight_kernel.domain.enums import (
    DeductionType,
    DocumentKind,
    DocumentStatus,
    coerce_enum,
)
from freight_kernel.exceptions import MissingFieldError


def _require(entity: str, field: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingFieldError(entity, field)


@dataclass(frozen=True)
class Advance:
    """
    A partial payment recorded against one document.

    ``amount`` may be negative for reversing entries. ``transaction_id``
    is set when the code path that created the advance knew which bank
    transaction it came from.
    """

    advance_id: str
    advance_date: date
    amount: Decimal
    narration: str = ""
    transaction_id: str | None = None

    def __post_init__(self) -> None:
        _require("Advance", "advance_id", self.advance_id)
        object.__setattr__(self, "amount", to_amount(self.amount, "advance.amount"))
        object.__setattr__(
            self, "advance_date", parse_date(self.advance_date, "advance.advance_date")
        )


@dataclass(frozen=True)
class Trip:
    """One trip billed on a bill."""

    trip_id: str
    origin: str
    destination: str
    vehicle: str = ""
    cn_no: str = ""
    loading_date: date | None = None
    freight: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "freight", to_amount(self.freight, "trip.freight"))
        if self.loading_date is not None:
            object.__setattr__(
                self, "loading_date", parse_date(self.loading_date, "trip.loading_date")
            )

    @property
    def description(self) -> str:
        route = f"{self.origin} to {self.destination}"
        return f"{route} ({self.vehicle})" if self.vehicle else route


@dataclass(frozen=True)
class PaymentDeduction:
    """One itemized deduction taken against a payment."""

    deduction_type: DeductionType
    amount: Decimal
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "deduction_type", coerce_enum(DeductionType, self.deduction_type)
        )
        object.__setattr__(self, "amount", to_amount(self.amount, "deduction.amount"))

    @property
    def label(self) -> str:
        return self.description or f"{self.deduction_type.value.upper()} Deduction"


@dataclass(frozen=True)
class Payment:
    """
    Immutable record of one processed payment.

    ``document_balance`` is the document balance the payment was applied
    against; ``difference_amount`` is that balance minus the received
    amount (what the deductions had to absorb).
    """

    payment_id: str
    document_id: str
    payment_date: date
    document_balance: Decimal
    received_amount: Decimal
    difference_amount: Decimal
    remaining_balance: Decimal
    deductions: tuple[PaymentDeduction, ...] = ()
    method: str | None = None
    reference: str | None = None
    remarks: str | None = None
    transaction_id: str | None = None

    def __post_init__(self) -> None:
        _require("Payment", "payment_id", self.payment_id)
        object.__setattr__(
            self, "payment_date", parse_date(self.payment_date, "payment.payment_date")
        )
        for name in (
            "document_balance",
            "received_amount",
            "difference_amount",
            "remaining_balance",
        ):
            object.__setattr__(self, name, to_amount(getattr(self, name), f"payment.{name}"))
        object.__setattr__(self, "deductions", tuple(self.deductions))

    @property
    def total_deductions(self) -> Decimal:
        return sum_amounts(d.amount for d in self.deductions)


@dataclass(frozen=True)
class ChargeDocument:
    """
    Shared shape of bills and memos.

    Contract:
        Subclasses declare ``kind``, ``settled_status`` and the Decimal
        fields to normalize, and implement ``total_charges``.
    Guarantees:
        - ``advances`` and ``payments`` are tuples.
        - ``balance`` is a Decimal; it is a cache, recomputed by the
          engines, never an input to them.
    Non-goals:
        - Does not enforce the balance formula; the engines own that.
    """

    document_id: str
    number: str
    account_id: str
    document_date: date
    account_name: str = ""
    advances: tuple[Advance, ...] = ()
    payments: tuple[Payment, ...] = ()
    balance: Decimal = ZERO
    status: DocumentStatus = DocumentStatus.PENDING
    notes: str = ""

    kind: ClassVar[DocumentKind]
    settled_status: ClassVar[DocumentStatus]
    _amount_fields: ClassVar[tuple[str, ...]] = ()
    _optional_date_fields: ClassVar[tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        entity = type(self).__name__
        _require(entity, "document_id", self.document_id)
        _require(entity, "account_id", self.account_id)
        object.__setattr__(
            self, "document_date", parse_date(self.document_date, f"{entity}.document_date")
        )
        object.__setattr__(self, "advances", tuple(self.advances))
        object.__setattr__(self, "payments", tuple(self.payments))
        object.__setattr__(self, "balance", to_amount(self.balance, f"{entity}.balance"))

        status = coerce_enum(DocumentStatus, self.status, _LEGACY_STATUSES)
        if status.is_settled:
            status = self.settled_status
        object.__setattr__(self, "status", status)

        for name in self._amount_fields:
            object.__setattr__(self, name, to_amount(getattr(self, name), f"{entity}.{name}"))
        for name in self._optional_date_fields:
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, parse_date(value, f"{entity}.{name}"))

    @property
    def total_charges(self) -> Decimal:
        raise NotImplementedError

    @property
    def intrinsic_deductions(self) -> Decimal:
        """Deductions that belong to the document itself, not to a payment."""
        return ZERO

    @property
    def total_advances(self) -> Decimal:
        return sum_amounts(a.amount for a in self.advances)

    @property
    def active_trips(self) -> int:
        return 1

    @property
    def trip_details(self) -> str:
        return ""

    @property
    def is_settled(self) -> bool:
        return self.status.is_settled

    @property
    def settled_on(self) -> date | None:
        return None

    def with_changes(self, **changes: Any) -> ChargeDocument:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


_LEGACY_STATUSES = {
    "fully_paid": DocumentStatus.RECEIVED,
    "settled_with_deductions": DocumentStatus.RECEIVED,
    "settled": DocumentStatus.RECEIVED,
}


@dataclass(frozen=True)
class Bill(ChargeDocument):
    """
    Party-facing charge document.

    ``mamul`` is netted into ``total_charges``. Settlement is an explicit
    action that records a date and narration and may absorb a remaining
    difference as ``settlement_difference``.
    """

    trips: tuple[Trip, ...] = ()
    total_freight: Decimal = ZERO
    detention: Decimal = ZERO
    rto_amount: Decimal = ZERO
    extra_charges: Decimal = ZERO
    mamul: Decimal = ZERO
    settlement_date: date | None = None
    settlement_narration: str = ""
    settlement_difference: Decimal = ZERO

    kind: ClassVar[DocumentKind] = DocumentKind.BILL
    settled_status: ClassVar[DocumentStatus] = DocumentStatus.RECEIVED
    _amount_fields: ClassVar[tuple[str, ...]] = (
        "total_freight",
        "detention",
        "rto_amount",
        "extra_charges",
        "mamul",
        "settlement_difference",
    )
    _optional_date_fields: ClassVar[tuple[str, ...]] = ("settlement_date",)

    def __post_init__(self) -> None:
        object.__setattr__(self, "trips", tuple(self.trips))
        ChargeDocument.__post_init__(self)

    @property
    def total_charges(self) -> Decimal:
        return (
            self.total_freight
            + self.detention
            + self.rto_amount
            + self.extra_charges
            - self.mamul
        )

    @property
    def active_trips(self) -> int:
        return len(self.trips) or 1

    @property
    def trip_details(self) -> str:
        return ", ".join(trip.description for trip in self.trips)

    @property
    def settled_on(self) -> date | None:
        return self.settlement_date


@dataclass(frozen=True)
class Memo(ChargeDocument):
    """
    Supplier-facing charge document.

    Commission and mamul are deductions from the supplier's due, shown as
    separate ledger rows. Status is settled exactly when the balance
    reaches zero.
    """

    origin: str = ""
    destination: str = ""
    vehicle: str = ""
    freight: Decimal = ZERO
    detention: Decimal = ZERO
    rto_amount: Decimal = ZERO
    extra_charge: Decimal = ZERO
    commission: Decimal = ZERO
    mamul: Decimal = ZERO
    paid_date: date | None = None

    kind: ClassVar[DocumentKind] = DocumentKind.MEMO
    settled_status: ClassVar[DocumentStatus] = DocumentStatus.PAID
    _amount_fields: ClassVar[tuple[str, ...]] = (
        "freight",
        "detention",
        "rto_amount",
        "extra_charge",
        "commission",
        "mamul",
    )
    _optional_date_fields: ClassVar[tuple[str, ...]] = ("paid_date",)

    @property
    def total_charges(self) -> Decimal:
        return self.freight + self.detention + self.extra_charge + self.rto_amount

    @property
    def intrinsic_deductions(self) -> Decimal:
        return self.commission + self.mamul

    @property
    def trip_details(self) -> str:
        route = f"{self.origin} to {self.destination}"
        return f"{route} ({self.vehicle})" if self.vehicle else route

    @property
    def settled_on(self) -> date | None:
        return self.paid_date
