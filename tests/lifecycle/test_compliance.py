"""Tests for compliance assessment parsing and recorded compliance results."""

import pytest

from firm_docs.errors import InvalidStateTransitionError, MalformedGenerationOutputError
from firm_docs.lifecycle.compliance import (
    apply_compliance_result,
    parse_compliance_report,
    parse_regulation_recommendation,
)
from firm_docs.models.document import (
    ComplianceIssue,
    ComplianceStatus,
    Document,
    DocumentType,
    LifecycleStatus,
)


def test_bare_json() -> None:
    report = parse_compliance_report(
        '{"score": 75, "issues": [], "overallSuggestion": "ok"}', "deepseek"
    )
    assert report.score == 75
    assert report.overall_suggestion == "ok"
    assert report.provider_id == "deepseek"


def test_fenced_json_with_prose() -> None:
    raw = (
        "Here is the assessment:\n```json\n"
        '{"score": "64.6", "issues": [{"description": "No cash flow statement",'
        ' "severity": "Critical", "suggestion": "Add one"}]}\n```\nThanks.'
    )
    report = parse_compliance_report(raw, "openai")
    assert report.score == 65
    assert report.issues[0].severity == "high"


def test_json_embedded_in_text() -> None:
    report = parse_compliance_report('Result: {"score": 120} done', "openai")
    assert report.score == 100


@pytest.mark.parametrize(
    "raw",
    ["", "no json here", "[1, 2]", '{"issues": []}', '{"score": 5, "issues": "many"}'],
)
def test_unusable_output_is_malformed(raw: str) -> None:
    with pytest.raises(MalformedGenerationOutputError):
        parse_compliance_report(raw, "openai")


class TestRegulationRecommendation:
    def test_snake_case_keys_and_object_items(self) -> None:
        raw = (
            "```json\n"
            '{"accounting_standards": [{"name": "ASBE 21", "description": "Leases"}],'
            ' "risks": "Lease classification"}\n```'
        )

        result = parse_regulation_recommendation(raw, "ernie")

        assert result.accounting_standards == ["ASBE 21: Leases"]
        assert result.compliance_risks == ["Lease classification"]
        assert result.tax_regulations == []
        assert result.provider_id == "ernie"

    def test_unrecognised_keys(self) -> None:
        with pytest.raises(MalformedGenerationOutputError, match="no recognised entries"):
            parse_regulation_recommendation('{"answer": "see the standards"}', "ernie")

    def test_entries_must_be_lists(self) -> None:
        with pytest.raises(MalformedGenerationOutputError, match="must be lists"):
            parse_regulation_recommendation('{"notes": {"a": 1}}', "ernie")


class TestApplyComplianceResult:
    def _document(self, status: LifecycleStatus = LifecycleStatus.FINAL) -> Document:
        return Document(
            document_type=DocumentType.REPORT,
            human_id="R1",
            created_by="u",
            lifecycle_status=status,
        )

    def test_final_documents_accept_results(self) -> None:
        document = self._document()
        issues = [ComplianceIssue(description="x", severity="minor")]

        assert apply_compliance_result(
            document, status=ComplianceStatus.NON_COMPLIANT, issues=issues
        )
        assert document.compliance_status is ComplianceStatus.NON_COMPLIANT
        assert document.compliance_issues[0].severity == "low"
        assert document.current_version_number == 1

    def test_same_result_is_unchanged(self) -> None:
        document = self._document()
        assert not apply_compliance_result(
            document, status=ComplianceStatus.UNCHECKED, issues=None
        )
        assert document.compliance_checked_at is None

    def test_archived_is_rejected(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            apply_compliance_result(
                self._document(LifecycleStatus.ARCHIVED),
                status=ComplianceStatus.PASSED,
                issues=[],
            )
