"""Prompt loader and builders for generation and compliance requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from firm_docs.models.document import Document

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"

DEFAULT_STRUCTURE = (
    "Include these main sections:\n"
    "1. Title and purpose\n"
    "2. Executive summary\n"
    "3. Findings and analysis\n"
    "4. Conclusions and recommendations\n"
    "5. Appendix (if applicable)"
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load the markdown prompt file ``prompts/<name>.md``.

    Raises ``FileNotFoundError`` if the prompt file does not exist.
    """
    path = PROMPTS_DIR / f"{name}.md"
    text = path.read_text(encoding="utf-8")
    logger.debug("Prompt loaded — name=%s path=%s", name, path)
    return text


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _financial_block(data: Any) -> str:
    if not data:
        return ""
    if isinstance(data, Mapping):
        lines = [f"- {key}: {value}" for key, value in data.items()]
    else:
        lines = [f"- {_text(data)}"]
    return "Financial data:\n" + "\n".join(lines)


def build_generation_prompt(
    document: Document,
    context_fields: Mapping[str, Any],
    *,
    template_skeleton: str | None = None,
) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for drafting ``document``.

    An explicit ``template`` context field wins over ``template_skeleton``;
    with neither, the default section list is requested.
    """
    skeleton = _text(context_fields.get("template")) or _text(template_skeleton)
    structure = (
        "Follow this template structure, filling it with the information above:\n"
        + skeleton
        if skeleton
        else DEFAULT_STRUCTURE
    )
    user_prompt = Template(load_prompt("generate")).safe_substitute(
        document_type=_text(context_fields.get("document_type")) or document.declared_type,
        client_name=_text(context_fields.get("client_name")) or "not provided",
        project_name=_text(context_fields.get("project_name")) or document.name or "not provided",
        financial_data=_financial_block(context_fields.get("financial_data")),
        structure=structure,
        instructions=_text(context_fields.get("instructions")),
    )
    return load_prompt("generate_system").strip(), user_prompt.strip()


def build_compliance_prompt(
    document: Document, regulations: Sequence[str]
) -> tuple[str, str]:
    user_prompt = Template(load_prompt("compliance")).safe_substitute(
        document_type=document.declared_type,
        regulations="\n".join(f"- {regulation}" for regulation in regulations),
        content=document.content,
    )
    return load_prompt("compliance_system").strip(), user_prompt.strip()


def build_recommendation_prompt(context_fields: Mapping[str, Any]) -> tuple[str, str]:
    additional = _text(context_fields.get("additional_info"))
    user_prompt = Template(load_prompt("recommend")).safe_substitute(
        project_type=_text(context_fields.get("project_type")) or "not provided",
        industry=_text(context_fields.get("industry")) or "not provided",
        business_scope=_text(context_fields.get("business_scope")) or "not provided",
        additional_info=f"Additional information: {additional}" if additional else "",
    )
    return load_prompt("recommend_system").strip(), user_prompt.strip()
