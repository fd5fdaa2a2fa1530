"""
Module: freight_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    reconciliation engine sub-modules.  This is the canonical import
    surface for callers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import freight_kernel (and sibling engine modules).
    MUST NOT import freight_config; callers pass policy values in.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs,
      including entry and payment ids.
    - Recomputation over mutation: balances, account totals and ledgers
      are rebuilt from the full current state on every change.

Failure modes:
    - Business failures (validation, unresolvable links, integrity
      mismatches) are returned as result values.
    - Shape errors from freight_kernel.exceptions propagate.

Audit relevance:
    Public engine calls are traced via the ``@traced_engine`` decorator
    (see ``freight_engines.tracer``), emitting FREIGHT_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from freight_engines import build_ledger, process_payment, delete_transaction
"""

from freight_kernel.logging_config import get_logger

logger = get_logger("engines")

from freight_engines.aggregator import (
    build_all_ledgers,
    build_party_and_supplier_ledgers,
    refresh_ledger_for_document,
)
from freight_engines.balance import (
    BalanceCheck,
    calculate_commission,
    check_document_balance,
    compute_document_balance,
    derive_document_balance,
    document_deductions,
    linked_payment_total,
    linked_transactions,
    recompute_account,
    recompute_accounts,
    recompute_document,
    retained_payments,
    unlinked_payment_total,
    unlinked_payments,
)
from freight_engines.ledger_builder import (
    build_ledger,
    document_entries,
    document_history,
    restate_running_balances,
)
from freight_engines.migration import (
    IntegrityIssue,
    IntegrityReport,
    IntegritySummary,
    MigrationReport,
    MigrationResult,
    detect_unlinked_documents,
    migrate,
    validate_integrity,
)
from freight_engines.payment import (
    PaymentForm,
    PaymentResult,
    ValidationResult,
    process_payment,
    validate_payment,
)
from freight_engines.reporting import (
    LedgerSummary,
    PaymentReport,
    deductions_by_type,
    payment_report,
    summarize_ledger,
    summarize_payment,
)
from freight_engines.rollback import (
    DeletionResult,
    RollbackResult,
    delete_transaction,
    rollback_advance,
    rollback_payment,
)
from freight_engines.settlement import (
    SettlementResult,
    file_document,
    revert_settlement,
    settle_document,
    settlement_narration,
)
from freight_engines.tracer import traced_engine

__all__ = [
    "BalanceCheck",
    "DeletionResult",
    "IntegrityIssue",
    "IntegrityReport",
    "IntegritySummary",
    "LedgerSummary",
    "MigrationReport",
    "MigrationResult",
    "PaymentForm",
    "PaymentReport",
    "PaymentResult",
    "RollbackResult",
    "SettlementResult",
    "ValidationResult",
    "build_all_ledgers",
    "build_ledger",
    "build_party_and_supplier_ledgers",
    "calculate_commission",
    "check_document_balance",
    "compute_document_balance",
    "deductions_by_type",
    "delete_transaction",
    "derive_document_balance",
    "detect_unlinked_documents",
    "document_deductions",
    "document_entries",
    "document_history",
    "file_document",
    "linked_payment_total",
    "linked_transactions",
    "migrate",
    "payment_report",
    "process_payment",
    "recompute_account",
    "recompute_accounts",
    "recompute_document",
    "refresh_ledger_for_document",
    "restate_running_balances",
    "retained_payments",
    "revert_settlement",
    "rollback_advance",
    "rollback_payment",
    "settle_document",
    "settlement_narration",
    "summarize_ledger",
    "summarize_payment",
    "traced_engine",
    "unlinked_payment_total",
    "unlinked_payments",
    "validate_integrity",
    "validate_payment",
]
