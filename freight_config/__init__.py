"""
freight_config -- single public entrypoint for reconciliation policy.

Responsibility:
    Provides the ONLY way to obtain policy at runtime through
    ``get_active_policy()``.  Engines never read configuration; callers
    hold the returned ``ReconciliationPolicy`` and pass its values
    (tolerances, commission rate) to engine calls as arguments.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  Sits beside
    ``freight_engines`` and imports only ``freight_kernel`` (exceptions
    and logging).

Failure modes:
    - ``FileNotFoundError`` -- the policy file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``PolicyValidationError`` -- the file parsed but its values are
      invalid; every problem is listed.

Audit relevance:
    Every successful ``get_active_policy()`` call emits a
    ``FREIGHT_CONFIG_TRACE`` log entry with the policy id, version and
    checksum, tying reconciliation runs to the policy that governed them.
"""

from __future__ import annotations

from pathlib import Path

from freight_config.loader import compute_checksum, load_yaml_file, parse_policy
from freight_config.schema import ReconciliationPolicy
from freight_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_POLICY_PATH = Path(__file__).parent / "policies" / "default.yaml"

__all__ = [
    "DEFAULT_POLICY_PATH",
    "ReconciliationPolicy",
    "compute_checksum",
    "get_active_policy",
]


def get_active_policy(path: Path | str | None = None) -> ReconciliationPolicy:
    """The ONLY public configuration entrypoint.

    Args:
        path: Policy YAML to load.  Defaults to the packaged
            ``policies/default.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        PolicyValidationError: If the policy values are invalid.
    """
    source = Path(path) if path is not None else DEFAULT_POLICY_PATH
    policy = parse_policy(load_yaml_file(source), source=str(source))

    _logger.info(
        "FREIGHT_CONFIG_TRACE",
        extra={
            "trace_type": "FREIGHT_CONFIG_TRACE",
            "policy_id": policy.policy_id,
            "policy_version": policy.version,
            "checksum": policy.checksum,
            "source": str(source),
        },
    )
    return policy
