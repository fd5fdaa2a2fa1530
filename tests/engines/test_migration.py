"""Tests for ledger migration and integrity checks (freight_engines.migration)."""

import dataclasses
from decimal import Decimal

from freight_engines.aggregator import build_all_ledgers
from freight_engines.migration import (
    IntegrityReport,
    IntegritySummary,
    MigrationReport,
    detect_unlinked_documents,
    migrate,
    validate_integrity,
)
from freight_kernel.domain.accounts import Account
from freight_kernel.domain.enums import AccountKind
from freight_kernel.domain.ledger import AccountLedger


def _suppliers():
    return [
        Account("sup-1", "Sharma Roadways", AccountKind.SUPPLIER),
        Account("sup-2", "Kumar Transport", AccountKind.SUPPLIER),
    ]


class TestDetectUnlinked:
    def test_counts_documents_missing_from_ledgers(self, make_memo):
        linked = make_memo(document_id="m-1")
        ledgers = build_all_ledgers(_suppliers(), [linked], [])
        fresh = make_memo(document_id="m-2", number="MEMO-002")
        assert detect_unlinked_documents([linked, fresh], ledgers) == 1

    def test_document_with_nothing_to_post_is_not_unlinked(self, make_memo):
        empty = make_memo(freight="0", commission="0")
        assert detect_unlinked_documents([empty], ()) == 0

    def test_number_already_in_ledger_counts_as_linked(self, make_memo):
        posted = make_memo(document_id="m-old")
        ledgers = build_all_ledgers(_suppliers(), [posted], [])
        rekeyed = make_memo(document_id="m-new")
        assert detect_unlinked_documents([rekeyed], ledgers) == 0
        assert migrate([rekeyed], ledgers, _suppliers()).report.documents_migrated == 0

    def test_ledger_of_other_kind_does_not_count(self, make_memo):
        memo = make_memo(account_id="shared-1")
        wrong_kind = AccountLedger("shared-1", "Shared", AccountKind.PARTY)
        assert detect_unlinked_documents([memo], [wrong_kind]) == 1


class TestMigrate:
    def test_builds_missing_ledgers(self, make_memo):
        memos = [
            make_memo(document_id="m-1"),
            make_memo(document_id="m-2", number="MEMO-002"),
            make_memo(document_id="m-3", number="MEMO-003", account_id="sup-2"),
        ]
        result = migrate(memos, (), _suppliers())

        assert result.report.documents_migrated == 3
        assert result.report.accounts_touched == ("sup-1", "sup-2")
        assert result.report.errors == ()
        assert result.updated_ledgers == build_all_ledgers(_suppliers(), memos, [])

    def test_idempotent(self, make_memo, make_txn):
        memos, txns = [make_memo()], [make_txn(amount="400")]
        first = migrate(memos, (), _suppliers(), txns)
        second = migrate(memos, first.updated_ledgers, _suppliers(), txns)
        assert second.report.documents_migrated == 0
        assert second.report.accounts_touched == ()
        assert second.updated_ledgers == first.updated_ledgers

    def test_missing_account_recorded(self, make_memo):
        memos = [make_memo(), make_memo(document_id="m-9", number="MEMO-009", account_id="sup-404")]
        result = migrate(memos, (), _suppliers())
        assert result.report.documents_migrated == 1
        assert result.report.errors == (
            "Account not found for memo MEMO-009 (account id: sup-404)",
        )
        assert [ledger.account_id for ledger in result.updated_ledgers] == ["sup-1"]

    def test_existing_ledger_replaced_in_place(self, make_memo):
        old = make_memo(document_id="m-1")
        ledgers = build_all_ledgers(_suppliers(), [old], [])
        memos = [old, make_memo(document_id="m-2", number="MEMO-002")]

        result = migrate(memos, ledgers, _suppliers())

        assert len(result.updated_ledgers) == 1
        assert result.updated_ledgers[0].document_ids == {"m-1", "m-2"}
        assert result.updated_ledgers[0].outstanding_balance == Decimal("18800")


class TestValidateIntegrity:
    def test_fresh_ledgers_are_valid(self, make_memo, make_advance, make_txn):
        memos = [make_memo(advances=(make_advance("4000"),))]
        txns = [make_txn(amount="1000")]
        ledgers = build_all_ledgers(_suppliers(), memos, txns)

        report = validate_integrity(ledgers, memos, txns)

        assert report.is_valid
        assert report.issues == ()
        assert report.summary == IntegritySummary(
            total_ledgers=1,
            total_entries=4,
            charge_entries=1,
            advance_entries=1,
            deduction_entries=1,
            payment_entries=1,
        )

    def test_broken_chain_and_outstanding(self, make_memo):
        memos = [make_memo()]
        (ledger,) = build_all_ledgers(_suppliers(), memos, [])
        broken_entry = ledger.entries[1].with_running_balance(Decimal("1"))
        tampered = dataclasses.replace(
            ledger,
            entries=(ledger.entries[0], broken_entry),
            outstanding_balance=Decimal("7000"),
        )

        report = validate_integrity([tampered], memos)

        codes = [issue.code for issue in report.issues]
        assert codes == [
            "RUNNING_BALANCE_MISMATCH",
            "OUTSTANDING_BALANCE_MISMATCH",
            "STALE_LEDGER",
        ]
        assert report.issues[0].expected == Decimal("9400")
        assert report.issues[0].found == Decimal("1")
        assert not report.is_valid

    def test_unknown_document(self, make_memo):
        (ledger,) = build_all_ledgers(_suppliers(), [make_memo()], [])
        report = validate_integrity([ledger], [make_memo(document_id="m-2")])
        unknown = [i for i in report.issues if i.code == "UNKNOWN_DOCUMENT"]
        assert len(unknown) == 2
        assert "non-existent document m-1" in unknown[0].message

    def test_stale_after_new_payment(self, make_memo, make_txn, caplog):
        memos = [make_memo()]
        ledgers = build_all_ledgers(_suppliers(), memos, [])
        with caplog.at_level("WARNING", logger="freight_ledger.engines.migration"):
            report = validate_integrity(ledgers, memos, [make_txn(amount="400")])
        assert [i.code for i in report.issues] == ["STALE_LEDGER"]
        assert report.issues[0].expected == Decimal("9000")
        assert any(r.getMessage() == "ledger_integrity_issues" for r in caplog.records)


class TestReportRendering:
    def test_render_with_errors_and_validation(self):
        report = MigrationReport(
            documents_migrated=2,
            accounts_touched=("sup-1",),
            errors=("Account not found for memo MEMO-9 (account id: x)",),
        )
        integrity = IntegrityReport(
            is_valid=True,
            issues=(),
            summary=IntegritySummary(total_ledgers=1, total_entries=3, charge_entries=2,
                                     deduction_entries=1),
        )
        text = report.render(integrity)
        assert text.startswith("=== LEDGER MIGRATION REPORT ===\n")
        assert "Documents migrated: 2\n" in text
        assert "Accounts updated: 1\n" in text
        assert "  1. Account not found for memo MEMO-9 (account id: x)\n" in text
        assert "Status: Valid\n" in text
        assert "  - Charge Entries: 2\n" in text
        assert "Validation Issues" not in text

    def test_render_without_integrity(self):
        text = MigrationReport().render()
        assert "VALIDATION RESULTS" not in text
        assert "Errors encountered" not in text
