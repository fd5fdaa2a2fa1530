"""
ReconciliationPolicy schema.

The typed form of a policy YAML file.  The loader parses and validates the
YAML into this frozen dataclass; callers read its fields and pass them to
the engines as keyword arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class ReconciliationPolicy:
    """Tolerances and rates governing reconciliation."""

    policy_id: str
    version: int
    advance_match_tolerance: Decimal = Decimal("0.01")
    balance_tolerance: Decimal = Decimal("0.01")
    commission_rate: Decimal = Decimal("6")
    effective_from: date | None = None
    checksum: str = ""  # SHA-256 of the source mapping
