"""Parse provider compliance output and record committed compliance results."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from firm_docs.errors import InvalidStateTransitionError, MalformedGenerationOutputError
from firm_docs.models.base import utcnow
from firm_docs.models.document import (
    ComplianceIssue,
    ComplianceStatus,
    Document,
    LifecycleStatus,
)
from firm_docs.models.generation import ComplianceReport, RegulationRecommendation

_FENCED = re.compile(r"```(?:json)?\s*(?P<body>.*?)```", re.DOTALL | re.IGNORECASE)

_RECOMMENDATION_KEYS = {
    "accounting_standards": ("accountingStandards", "accounting_standards", "standards"),
    "tax_regulations": ("taxRegulations", "tax_regulations", "regulations"),
    "compliance_risks": ("complianceRisks", "compliance_risks", "risks"),
    "notes": ("notes", "considerations", "precautions"),
}


def _extract_json(raw_text: str) -> str:
    fenced = _FENCED.search(raw_text)
    if fenced:
        return fenced.group("body").strip()
    start, end = raw_text.find("{"), raw_text.rfind("}")
    if start == -1 or end < start:
        return raw_text.strip()
    return raw_text[start : end + 1]


def _load_object(raw_text: str, what: str) -> dict[str, Any]:
    if not raw_text or not raw_text.strip():
        raise MalformedGenerationOutputError(f"provider returned no {what}")
    try:
        data = json.loads(_extract_json(raw_text))
    except json.JSONDecodeError:
        raise MalformedGenerationOutputError(
            f"{what} is not valid JSON",
            details={"excerpt": raw_text[:200]},
        ) from None
    if not isinstance(data, dict):
        raise MalformedGenerationOutputError(f"{what} must be a JSON object")
    return data


def parse_compliance_report(raw_text: str, provider_id: str) -> ComplianceReport:
    """Accept bare JSON, fenced JSON or JSON surrounded by prose.

    Raises ``MalformedGenerationOutputError`` when no valid report can be read.
    """
    data = _load_object(raw_text, "compliance assessment")
    try:
        score = round(float(data.get("score")))
        return ComplianceReport(
            score=min(max(score, 0), 100),
            issues=data.get("issues") or [],
            overall_suggestion=str(
                data.get("overallSuggestion") or data.get("overall_suggestion") or ""
            ),
            provider_id=provider_id,
        )
    except (TypeError, ValueError, ValidationError) as exc:
        raise MalformedGenerationOutputError(
            "compliance assessment has an unexpected shape",
            details={"reason": str(exc).splitlines()[0]},
        ) from None


def _item_text(item: Any) -> str:
    if isinstance(item, dict):
        parts = [str(item[k]) for k in ("name", "title", "description") if item.get(k)]
        return ": ".join(parts) if parts else json.dumps(item, ensure_ascii=False)
    return str(item).strip()


def _text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise MalformedGenerationOutputError("recommendation entries must be lists")
    return [text for text in map(_item_text, value) if text]


def parse_regulation_recommendation(
    raw_text: str, provider_id: str
) -> RegulationRecommendation:
    """Read the recommendation lists, accepting camelCase or snake_case keys."""
    data = _load_object(raw_text, "regulation recommendation")
    fields = {}
    for field, keys in _RECOMMENDATION_KEYS.items():
        value = next((data[key] for key in keys if key in data), None)
        fields[field] = _text_list(value)
    if not any(fields.values()):
        raise MalformedGenerationOutputError(
            "regulation recommendation has no recognised entries",
            details={"keys": sorted(data)},
        )
    return RegulationRecommendation(**fields, provider_id=provider_id)


def apply_compliance_result(
    document: Document,
    *,
    status: ComplianceStatus,
    issues: Sequence[ComplianceIssue] | None,
) -> bool:
    """Store a reviewed compliance outcome; ``issues=None`` keeps the current list.

    Does not create a revision: compliance metadata is not document content.
    """
    if document.lifecycle_status is LifecycleStatus.ARCHIVED:
        raise InvalidStateTransitionError("archived documents cannot be re-assessed")
    new_issues = document.compliance_issues if issues is None else list(issues)
    if status is document.compliance_status and new_issues == document.compliance_issues:
        return False
    document.compliance_status = status
    document.compliance_issues = new_issues
    document.compliance_checked_at = utcnow()
    return True
