"""Tests for prompt loading and prompt building."""

import pytest

from firm_docs.lifecycle.prompts import (
    DEFAULT_STRUCTURE,
    build_compliance_prompt,
    build_generation_prompt,
    build_recommendation_prompt,
    load_prompt,
)
from firm_docs.models.document import Document, DocumentType


@pytest.fixture
def report() -> Document:
    return Document(
        document_type=DocumentType.REPORT,
        human_id="R1",
        created_by="u",
        name="FY25 statutory audit",
        category="Audit Report",
        content="The statements present fairly.",
    )


@pytest.mark.parametrize(
    "name",
    [
        "generate",
        "generate_system",
        "compliance",
        "compliance_system",
        "recommend",
        "recommend_system",
    ],
)
def test_prompt_files_exist(name: str) -> None:
    assert load_prompt(name).strip()


def test_missing_prompt_raises() -> None:
    with pytest.raises(FileNotFoundError):
        load_prompt("does-not-exist")


def test_generation_prompt_defaults(report: Document) -> None:
    system_prompt, user_prompt = build_generation_prompt(report, {})

    assert "accounting firm" in system_prompt
    assert "Audit Report" in user_prompt
    assert "FY25 statutory audit" in user_prompt
    assert DEFAULT_STRUCTURE in user_prompt
    assert "$" not in user_prompt


def test_generation_prompt_context_fields(report: Document) -> None:
    _, user_prompt = build_generation_prompt(
        report,
        {
            "document_type": "Tax Review",
            "client_name": "Acme Ltd",
            "financial_data": {"revenue": 100, "net income": 7},
            "template": "## Scope\n## Findings",
            "instructions": "Keep it short.",
        },
        template_skeleton="## Ignored",
    )

    assert "Tax Review" in user_prompt
    assert "- net income: 7" in user_prompt
    assert "## Findings" in user_prompt
    assert "## Ignored" not in user_prompt
    assert DEFAULT_STRUCTURE not in user_prompt
    assert "Keep it short." in user_prompt


def test_compliance_prompt(report: Document) -> None:
    system_prompt, user_prompt = build_compliance_prompt(report, ["ISA 700", "IFRS 15"])

    assert "compliance" in system_prompt
    assert "- ISA 700\n- IFRS 15" in user_prompt
    assert "The statements present fairly." in user_prompt
    assert '"overallSuggestion"' in user_prompt


def test_recommendation_prompt() -> None:
    system_prompt, user_prompt = build_recommendation_prompt(
        {"project_type": "IPO audit", "business_scope": "Battery cells", "additional_info": "Listed"}
    )

    assert "regulations specialist" in system_prompt
    assert "Project type: IPO audit" in user_prompt
    assert "Client industry: not provided" in user_prompt
    assert "Additional information: Listed" in user_prompt
    assert "$" not in user_prompt


def test_recommendation_prompt_without_additional_info() -> None:
    _, user_prompt = build_recommendation_prompt({})
    assert "Additional information" not in user_prompt
