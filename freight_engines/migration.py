"""
freight_engines.migration -- Ledger migration and integrity checking.

Responsibility:
    Bring stored ledgers up to date with documents that predate them, and
    audit stored ledgers against a fresh rebuild.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Built on freight_engines.ledger_builder / aggregator.

Invariants enforced:
    - Migration is idempotent: a second run over its own output migrates
      nothing and returns equal ledgers.
    - Per-document failures are recorded in the report, never raised.
    - Integrity checking accumulates every issue; it never stops at the
      first one.

Failure modes:
    - MigrationReport.errors lists documents whose account is missing or
      whose data could not be read.
    - IntegrityReport(is_valid=False, issues=...) for running-balance
      breaks, stale outstanding balances and entries pointing at unknown
      documents.

Usage:
    from freight_engines.migration import migrate, validate_integrity

    result = migrate(bills, stored_ledgers, parties, transactions)
    integrity = validate_integrity(result.updated_ledgers, bills, transactions)
    print(result.report.render(integrity))
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from freight_engines.aggregator import refresh_ledger_for_document
from freight_engines.ledger_builder import build_ledger, document_entries
from freight_engines.tracer import traced_engine
from freight_kernel.domain.accounts import Account
from freight_kernel.domain.amounts import DEFAULT_TOLERANCE, ZERO, amounts_match
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import ChargeDocument
from freight_kernel.domain.enums import EntryKind
from freight_kernel.domain.ledger import AccountLedger
from freight_kernel.exceptions import FreightLedgerError
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.migration")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IntegrityIssue:
    """One finding of ``validate_integrity``."""

    code: str
    account_id: str
    message: str
    entry_id: str | None = None
    expected: Decimal | None = None
    found: Decimal | None = None


@dataclass(frozen=True)
class IntegritySummary:
    total_ledgers: int = 0
    total_entries: int = 0
    charge_entries: int = 0
    advance_entries: int = 0
    deduction_entries: int = 0
    payment_entries: int = 0


@dataclass(frozen=True)
class IntegrityReport:
    is_valid: bool
    issues: tuple[IntegrityIssue, ...]
    summary: IntegritySummary


@dataclass(frozen=True)
class MigrationReport:
    documents_migrated: int = 0
    accounts_touched: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    def render(self, integrity: IntegrityReport | None = None) -> str:
        """Plain-text report for an operator."""
        lines = [
            "=== LEDGER MIGRATION REPORT ===",
            f"Documents migrated: {self.documents_migrated}",
            f"Accounts updated: {len(self.accounts_touched)}",
        ]
        if self.errors:
            lines.append("")
            lines.append(f"Errors encountered: {len(self.errors)}")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if integrity is not None:
            summary = integrity.summary
            lines += [
                "",
                "=== VALIDATION RESULTS ===",
                f"Status: {'Valid' if integrity.is_valid else 'Issues Found'}",
                f"Total Ledgers: {summary.total_ledgers}",
                f"Total Entries: {summary.total_entries}",
                f"  - Charge Entries: {summary.charge_entries}",
                f"  - Advance Entries: {summary.advance_entries}",
                f"  - Deduction Entries: {summary.deduction_entries}",
                f"  - Payment Entries: {summary.payment_entries}",
            ]
            if integrity.issues:
                lines.append("")
                lines.append("Validation Issues:")
                lines.extend(
                    f"  {i}. {issue.message}" for i, issue in enumerate(integrity.issues, 1)
                )
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class MigrationResult:
    updated_ledgers: tuple[AccountLedger, ...]
    report: MigrationReport


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


def _ledger_for(
    ledgers: Iterable[AccountLedger],
    document: ChargeDocument,
) -> AccountLedger | None:
    for ledger in ledgers:
        if (
            ledger.account_id == document.account_id
            and ledger.account_kind.document_kind is document.kind
        ):
            return ledger
    return None


def _needs_migration(
    document: ChargeDocument,
    ledgers: Sequence[AccountLedger],
    bank_transactions: Sequence[BankTransaction],
) -> bool:
    ledger = _ledger_for(ledgers, document)
    if ledger is not None and ledger.references(document.document_id, document.number):
        return False
    # A document with nothing to post never shows up in a ledger.
    return bool(document_entries(document, bank_transactions))


def detect_unlinked_documents(
    documents: Iterable[ChargeDocument],
    ledgers: Sequence[AccountLedger],
    bank_transactions: Sequence[BankTransaction] = (),
) -> int:
    """Number of documents that have rows to post but none in their account's ledger."""
    return sum(
        1 for d in documents if _needs_migration(d, ledgers, bank_transactions)
    )


@traced_engine("migration", "1.0", fingerprint_fields=("documents", "ledgers"))
def migrate(
    documents: Sequence[ChargeDocument],
    ledgers: Sequence[AccountLedger],
    accounts: Sequence[Account],
    bank_transactions: Sequence[BankTransaction] = (),
) -> MigrationResult:
    """
    Rebuild the ledger of every account holding an unlinked document.

    Linking is judged against the ledgers as given, so every unlinked
    document is counted even when several share one account.
    """
    updated = tuple(ledgers)
    migrated = 0
    touched: list[str] = []
    errors: list[str] = []
    pending_rebuild: list[ChargeDocument] = []

    for document in documents:
        label = f"{document.kind.value} {document.number}"
        try:
            if not _needs_migration(document, ledgers, bank_transactions):
                continue
            if not any(a.owns(document) for a in accounts):
                errors.append(
                    f"Account not found for {label} (account id: {document.account_id})"
                )
                continue
        except FreightLedgerError as exc:
            errors.append(f"Failed to migrate {label}: {exc}")
            continue

        migrated += 1
        if document.account_id not in touched:
            touched.append(document.account_id)
            pending_rebuild.append(document)

    for document in pending_rebuild:
        try:
            updated = refresh_ledger_for_document(
                updated, accounts, documents, bank_transactions, document
            )
        except FreightLedgerError as exc:
            errors.append(
                f"Failed to rebuild ledger for account {document.account_id}: {exc}"
            )

    report = MigrationReport(
        documents_migrated=migrated,
        accounts_touched=tuple(touched),
        errors=tuple(errors),
    )
    logger.info(
        "ledger_migration_completed",
        extra={
            "documents_migrated": migrated,
            "accounts_touched": len(touched),
            "error_count": len(errors),
        },
    )
    return MigrationResult(updated_ledgers=updated, report=report)


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------


def _check_chain(
    ledger: AccountLedger,
    tolerance: Decimal,
    issues: list[IntegrityIssue],
) -> Decimal:
    balance = ZERO
    for entry in ledger.entries:
        balance += entry.net_amount
        if not amounts_match(entry.running_balance, balance, tolerance):
            issues.append(IntegrityIssue(
                code="RUNNING_BALANCE_MISMATCH",
                account_id=ledger.account_id,
                entry_id=entry.entry_id,
                expected=balance,
                found=entry.running_balance,
                message=(
                    f"Ledger {ledger.account_name}: entry {entry.entry_id} has "
                    f"running balance {entry.running_balance}, expected {balance}"
                ),
            ))
    if not amounts_match(ledger.outstanding_balance, balance, tolerance):
        issues.append(IntegrityIssue(
            code="OUTSTANDING_BALANCE_MISMATCH",
            account_id=ledger.account_id,
            expected=balance,
            found=ledger.outstanding_balance,
            message=(
                f"Ledger {ledger.account_name}: outstanding balance "
                f"{ledger.outstanding_balance} does not match its entries ({balance})"
            ),
        ))
    return balance


@traced_engine("migration", "1.0", fingerprint_fields=("ledgers",))
def validate_integrity(
    ledgers: Sequence[AccountLedger],
    documents: Sequence[ChargeDocument],
    bank_transactions: Sequence[BankTransaction] = (),
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> IntegrityReport:
    """Audit stored ledgers: entry chain, references, and a fresh rebuild."""
    issues: list[IntegrityIssue] = []
    known = {d.document_id for d in documents}
    counts = {kind: 0 for kind in EntryKind}
    total_entries = 0

    for ledger in ledgers:
        _check_chain(ledger, tolerance, issues)

        for entry in ledger.entries:
            total_entries += 1
            counts[entry.kind] += 1
            if entry.related_document_id not in known:
                issues.append(IntegrityIssue(
                    code="UNKNOWN_DOCUMENT",
                    account_id=ledger.account_id,
                    entry_id=entry.entry_id,
                    message=(
                        f"Ledger entry {entry.entry_id} references non-existent "
                        f"document {entry.related_document_id}"
                    ),
                ))

        account = Account(ledger.account_id, ledger.account_name, ledger.account_kind)
        fresh = build_ledger(account, documents, bank_transactions)
        if not amounts_match(fresh.outstanding_balance, ledger.outstanding_balance, tolerance):
            issues.append(IntegrityIssue(
                code="STALE_LEDGER",
                account_id=ledger.account_id,
                expected=fresh.outstanding_balance,
                found=ledger.outstanding_balance,
                message=(
                    f"Ledger {ledger.account_name}: stored outstanding balance "
                    f"{ledger.outstanding_balance} differs from rebuilt "
                    f"{fresh.outstanding_balance}"
                ),
            ))

    summary = IntegritySummary(
        total_ledgers=len(ledgers),
        total_entries=total_entries,
        charge_entries=counts[EntryKind.CHARGE],
        advance_entries=counts[EntryKind.ADVANCE],
        deduction_entries=counts[EntryKind.DEDUCTION],
        payment_entries=counts[EntryKind.PAYMENT],
    )
    if issues:
        logger.warning(
            "ledger_integrity_issues",
            extra={
                "issue_count": len(issues),
                "codes": sorted({i.code for i in issues}),
            },
        )
    return IntegrityReport(is_valid=not issues, issues=tuple(issues), summary=summary)
