"""
freight_engines.aggregator -- Ledgers for every account at once.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Thin orchestration over
    freight_engines.ledger_builder.

Invariants enforced:
    - One ledger per account that owns at least one document, in the
      order the accounts were given.
    - Idempotent: the same inputs always yield equal ledgers.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from freight_engines.ledger_builder import build_ledger
from freight_engines.tracer import traced_engine
from freight_kernel.domain.accounts import Account
from freight_kernel.domain.banking import BankTransaction
from freight_kernel.domain.documents import ChargeDocument
from freight_kernel.domain.ledger import AccountLedger
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.aggregator")


@traced_engine("aggregator", "1.0", fingerprint_fields=("accounts",))
def build_all_ledgers(
    accounts: Sequence[Account],
    documents: Sequence[ChargeDocument],
    bank_transactions: Sequence[BankTransaction],
) -> tuple[AccountLedger, ...]:
    ledgers = tuple(
        build_ledger(account, documents, bank_transactions)
        for account in accounts
        if any(account.owns(d) for d in documents)
    )
    logger.info("ledgers_built", extra={"ledger_count": len(ledgers)})
    return ledgers


def build_party_and_supplier_ledgers(
    parties: Iterable[Account],
    bills: Sequence[ChargeDocument],
    suppliers: Iterable[Account],
    memos: Sequence[ChargeDocument],
    bank_transactions: Sequence[BankTransaction],
) -> tuple[tuple[AccountLedger, ...], tuple[AccountLedger, ...]]:
    """Party ledgers from bills and supplier ledgers from memos."""
    return (
        build_all_ledgers(tuple(parties), bills, bank_transactions),
        build_all_ledgers(tuple(suppliers), memos, bank_transactions),
    )


def _belongs_to(ledger: AccountLedger, account: Account) -> bool:
    # Parties and suppliers may share an id
    return ledger.account_id == account.account_id and ledger.account_kind is account.kind


def refresh_ledger_for_document(
    ledgers: Sequence[AccountLedger],
    accounts: Iterable[Account],
    documents: Sequence[ChargeDocument],
    bank_transactions: Sequence[BankTransaction],
    document: ChargeDocument,
) -> tuple[AccountLedger, ...]:
    """
    Rebuild only the ledger of the account that owns ``document``.

    The rebuilt ledger replaces the stored one in place, or is appended
    when the account had no ledger yet.  When no account owns the document
    the ledgers are returned unchanged.
    """
    owner = next((a for a in accounts if a.owns(document)), None)
    if owner is None:
        logger.warning(
            "ledger_refresh_owner_missing",
            extra={
                "document_id": document.document_id,
                "account_id": document.account_id,
            },
        )
        return tuple(ledgers)

    fresh = build_ledger(owner, documents, bank_transactions)
    refreshed = [fresh if _belongs_to(ledger, owner) else ledger for ledger in ledgers]
    if not any(_belongs_to(ledger, owner) for ledger in ledgers):
        refreshed.append(fresh)
    return tuple(refreshed)
