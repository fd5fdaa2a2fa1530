"""Enumerations shared by the freight domain model."""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from freight_kernel.exceptions import UnknownEnumValueError

E = TypeVar("E", bound=Enum)


class DocumentKind(str, Enum):
    """Discriminator for charge documents."""

    BILL = "bill"  # Party-facing
    MEMO = "memo"  # Supplier-facing


class DocumentStatus(str, Enum):
    """Lifecycle status of a charge document."""

    PENDING = "pending"
    PAID = "paid"  # Settled memo
    RECEIVED = "received"  # Settled bill

    @property
    def is_settled(self) -> bool:
        return self is not DocumentStatus.PENDING


class DeductionType(str, Enum):
    """Deductions a party may take when paying a bill."""

    TDS = "tds"
    MAMUL = "mamul"
    PAYMENT_CHARGES = "payment_charges"
    COMMISSION = "commission"
    OTHER = "other"


class TransactionType(str, Enum):
    """Direction of a bank transaction."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionCategory(str, Enum):
    """What a bank transaction pays for."""

    BILL = "bill"
    MEMO = "memo"
    ADVANCE = "advance"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    OTHER = "other"


class AccountKind(str, Enum):
    """Counterparty kind; each owns exactly one document kind."""

    PARTY = "party"
    SUPPLIER = "supplier"

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.BILL if self is AccountKind.PARTY else DocumentKind.MEMO


class EntryKind(str, Enum):
    """Kind of monetary event a ledger row records."""

    CHARGE = "charge"
    ADVANCE = "advance"
    DEDUCTION = "deduction"
    PAYMENT = "payment"


def coerce_enum(enum_cls: type[E], value: Any, aliases: dict[str, E] | None = None) -> E:
    """
    Read ``value`` as a member of ``enum_cls``.

    Members pass through, strings are matched by value (case-insensitive),
    then against ``aliases``.

    Raises:
        UnknownEnumValueError: for anything else.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        try:
            return enum_cls(key)
        except ValueError:
            if aliases and key in aliases:
                return aliases[key]
    raise UnknownEnumValueError(enum_cls.__name__, value)
