"""
Policy Loader (``freight_config.loader``).

Responsibility
--------------
Loads a policy YAML file and parses it into a validated
``freight_config.schema.ReconciliationPolicy``.  Callers obtain policies
through ``freight_config.get_active_policy()``; this module is the tooling
underneath it.

Invariants enforced
-------------------
* Every validation problem is collected before raising, so one
  ``PolicyValidationError`` reports all of them.
* Tolerances and rates are parsed to ``Decimal`` from their string form;
  YAML floats are rejected.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid or missing values  -> ``PolicyValidationError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from freight_config.schema import ReconciliationPolicy
from freight_kernel.exceptions import PolicyValidationError

_REQUIRED_KEYS = ("policy_id", "version")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _decimal(data: dict[str, Any], key: str, default: str, errors: list[str]) -> Decimal:
    raw = data.get(key, default)
    if isinstance(raw, float) or isinstance(raw, bool):
        errors.append(f"{key} must be quoted, got {raw!r}")
        return Decimal(default)
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        errors.append(f"{key} is not a number: {raw!r}")
        return Decimal(default)
    if not value.is_finite():
        errors.append(f"{key} must be finite, got {raw!r}")
        return Decimal(default)
    return value


def parse_policy(data: dict[str, Any], source: str = "") -> ReconciliationPolicy:
    """
    Parse and validate a policy mapping.

    Raises:
        PolicyValidationError: listing every problem found.
    """
    errors: list[str] = []

    for key in _REQUIRED_KEYS:
        if key not in data:
            errors.append(f"missing required key: {key}")

    version = data.get("version", 0)
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        errors.append(f"version must be a positive integer, got {version!r}")

    advance_tolerance = _decimal(data, "advance_match_tolerance", "0.01", errors)
    balance_tolerance = _decimal(data, "balance_tolerance", "0.01", errors)
    commission_rate = _decimal(data, "commission_rate", "6", errors)
    if advance_tolerance <= 0:
        errors.append("advance_match_tolerance must be positive")
    if balance_tolerance <= 0:
        errors.append("balance_tolerance must be positive")
    if not Decimal(0) <= commission_rate <= Decimal(100):
        errors.append("commission_rate must be between 0 and 100")

    effective_from = data.get("effective_from")
    if effective_from is not None and not isinstance(effective_from, date):
        try:
            effective_from = date.fromisoformat(str(effective_from))
        except ValueError:
            errors.append(f"effective_from is not an ISO date: {effective_from!r}")
            effective_from = None

    if errors:
        raise PolicyValidationError(errors, source)

    return ReconciliationPolicy(
        policy_id=str(data["policy_id"]),
        version=version,
        advance_match_tolerance=advance_tolerance,
        balance_tolerance=balance_tolerance,
        commission_rate=commission_rate,
        effective_from=effective_from,
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
