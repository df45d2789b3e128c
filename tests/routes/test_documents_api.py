"""HTTP tests for the document routes."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from firm_docs.app import create_app
from firm_docs.config import AppConfig, Settings
from firm_docs.database.store import InMemoryRecordStore
from firm_docs.errors import GenerationUnavailableError, RevisionIntegrityError
from firm_docs.providers.registry import ProviderRegistry

GENERATED_TEXT = "# Opinion\nUnqualified.\n\n# Basis\nWe audited."

AUTHOR = {"X-User-Id": "u-author", "X-User-Role": "staff"}
ALICE = {"X-User-Id": "alice", "X-User-Role": "staff"}
BOB = {"X-User-Id": "bob", "X-User-Role": "staff"}
PARTNER = {"X-User-Id": "u-partner", "X-User-Role": "partner"}


@pytest.fixture
def adapter() -> AsyncMock:
    return AsyncMock(return_value=GENERATED_TEXT)


@pytest.fixture
def client(adapter: AsyncMock):
    settings = Settings(
        app=AppConfig(env="test", secret_key="test-secret", trust_identity_headers=True)
    )
    registry = ProviderRegistry({"fake": adapter}, timeout_seconds=5, unconfigured=["ernie"])
    with patch("firm_docs.app.configure_logging"):
        app = create_app(settings, store=InMemoryRecordStore(), registry=registry)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


def _create_report(client: TestClient, content: str = "draft text") -> dict:
    response = client.post(
        "/documents/report",
        json={"content": content, "category": "Audit Report", "name": "FY25"},
        headers=AUTHOR,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
def test_requires_identity(client: TestClient) -> None:
    response = client.get("/documents")
    assert response.status_code == 401


@pytest.mark.unit
def test_create_and_fetch_by_human_id(client: TestClient) -> None:
    created = _create_report(client)

    assert created["lifecycle_status"] == "draft"
    assert created["current_version_number"] == 1
    assert "etag" not in created

    response = client.get(f"/documents/{created['human_id']}", headers=AUTHOR)
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


@pytest.mark.unit
def test_list_filters_by_type(client: TestClient) -> None:
    _create_report(client)
    client.post("/documents/template", json={"content": "# A"}, headers=AUTHOR)

    reports = client.get("/documents", headers=AUTHOR).json()
    templates = client.get("/documents", params={"type": "template"}, headers=AUTHOR).json()

    assert [d["document_type"] for d in reports] == ["report"]
    assert [d["human_id"] for d in templates] == ["T001"]


@pytest.mark.unit
def test_unknown_document_uses_error_envelope(client: TestClient) -> None:
    response = client.get("/documents/missing", headers=AUTHOR)

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["kind"] == "NotFound"
    assert "missing" in error["message"]


@pytest.mark.unit
def test_edit_and_history(client: TestClient) -> None:
    document = _create_report(client)

    response = client.put(
        f"/documents/{document['id']}",
        json={"content": "second", "changeNote": "tightened wording"},
        headers=AUTHOR,
    )
    assert response.status_code == 200
    assert response.json()["current_version_number"] == 2

    history = client.get(f"/documents/{document['id']}/versions", headers=AUTHOR).json()
    assert [r["version_number"] for r in history] == [2, 1]
    assert history[0]["change_note"] == "tightened wording"

    restored = client.post(
        f"/documents/{document['id']}/versions/1/restore", headers=AUTHOR
    ).json()
    assert restored["content"] == "draft text"
    assert restored["current_version_number"] == 3


@pytest.mark.unit
def test_review_flow_and_final_is_read_only(client: TestClient) -> None:
    document = _create_report(client)
    url = f"/documents/{document['id']}"

    assigned = client.post(f"{url}/reviewers", json={"userIds": ["alice", "bob"]}, headers=AUTHOR)
    assert assigned.json()["lifecycle_status"] == "in_review"

    outcome = client.post(f"{url}/review", json={"judgment": "approved"}, headers=ALICE).json()
    assert outcome["lifecycle_status"] == "in_review"
    assert {r["user_id"]: r["judgment"] for r in outcome["reviewers"]} == {
        "alice": "approved",
        "bob": "pending",
    }

    outcome = client.post(f"{url}/review", json={"judgment": "approved"}, headers=BOB).json()
    assert outcome["lifecycle_status"] == "final"

    response = client.put(url, json={"content": "too late"}, headers=AUTHOR)
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "InvalidStateTransition"


@pytest.mark.unit
def test_non_reviewer_cannot_judge(client: TestClient) -> None:
    document = _create_report(client)
    url = f"/documents/{document['id']}"
    client.post(f"{url}/reviewers", json={"user_ids": ["alice"]}, headers=AUTHOR)

    response = client.post(f"{url}/review", json={"judgment": "approved"}, headers=BOB)

    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "Forbidden"


@pytest.mark.unit
def test_finalize_and_reopen_require_senior_role(client: TestClient) -> None:
    document = _create_report(client)
    url = f"/documents/{document['id']}"

    assert client.post(f"{url}/finalize", headers=AUTHOR).status_code == 403
    assert client.post(f"{url}/finalize", headers=PARTNER).json()["lifecycle_status"] == "final"
    assert client.post(f"{url}/reopen", headers=PARTNER).json()["lifecycle_status"] == "draft"


@pytest.mark.unit
def test_delete(client: TestClient) -> None:
    document = _create_report(client)

    response = client.delete(f"/documents/{document['id']}", headers=AUTHOR)

    assert response.status_code == 204
    assert client.get(f"/documents/{document['id']}", headers=AUTHOR).status_code == 404


@pytest.mark.unit
def test_referenced_template_delete_conflict(client: TestClient) -> None:
    template = client.post("/documents/template", json={"content": "# A"}, headers=AUTHOR).json()
    client.post("/documents/report", json={"templateId": template["human_id"]}, headers=AUTHOR)

    response = client.delete(f"/documents/{template['id']}", headers=PARTNER)

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["kind"] == "ReferentialConflict"
    assert error["details"] == {"references": 1}


@pytest.mark.unit
def test_duplicate_template(client: TestClient) -> None:
    template = client.post(
        "/documents/template", json={"content": "# A", "name": "Base"}, headers=AUTHOR
    ).json()

    response = client.post(f"/documents/{template['id']}/duplicate", json={}, headers=AUTHOR)

    assert response.status_code == 201
    assert response.json()["name"] == "Base (copy)"


@pytest.mark.unit
def test_generate_preview(client: TestClient, adapter: AsyncMock) -> None:
    document = _create_report(client)

    response = client.post(
        f"/documents/{document['id']}/generate",
        json={"providerId": "fake", "contextFields": {"client_name": "Acme"}},
        headers=AUTHOR,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["provider_id"] == "fake"
    assert [s["title"] for s in body["sections"]] == ["Opinion", "Basis"]
    assert "Acme" in adapter.await_args.args[1]
    unchanged = client.get(f"/documents/{document['id']}", headers=AUTHOR).json()
    assert unchanged["current_version_number"] == 1


@pytest.mark.unit
def test_generate_unavailable_reports_phase(client: TestClient, adapter: AsyncMock) -> None:
    adapter.side_effect = GenerationUnavailableError(
        "fake", "upstream returned HTTP 503", upstream_status=503, body_excerpt="busy"
    )
    document = _create_report(client)

    response = client.post(
        f"/documents/{document['id']}/generate", json={"provider_id": "fake"}, headers=AUTHOR
    )

    assert response.status_code == 502
    error = response.json()["error"]
    assert error["kind"] == "GenerationUnavailable"
    assert error["details"]["phase"] == "preview"
    assert error["details"]["upstream_status"] == 503


@pytest.mark.unit
def test_generate_with_unconfigured_provider(client: TestClient) -> None:
    document = _create_report(client)

    response = client.post(
        f"/documents/{document['id']}/generate", json={"provider_id": "ernie"}, headers=AUTHOR
    )

    assert response.status_code == 502
    assert "not configured" in response.json()["error"]["message"]


@pytest.mark.unit
def test_compliance(client: TestClient, adapter: AsyncMock) -> None:
    adapter.return_value = '{"score": 71.6, "issues": [{"description": "x", "severity": "minor"}]}'
    document = _create_report(client)

    response = client.post(
        f"/documents/{document['id']}/compliance",
        json={"providerId": "fake", "regulations": ["ISA 700"]},
        headers=AUTHOR,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 72
    assert body["issues"][0]["severity"] == "low"


@pytest.mark.unit
def test_integrity_failure_is_a_generic_500(client: TestClient) -> None:
    engine = client.app.state.engine
    with patch.object(
        engine, "get_document", AsyncMock(side_effect=RevisionIntegrityError("gap at 3"))
    ):
        response = client.get("/documents/anything", headers=AUTHOR)

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["kind"] == "InternalError"
    assert "gap" not in error["message"]


@pytest.mark.unit
def test_record_compliance_result(client: TestClient) -> None:
    document = _create_report(client)
    url = f"/documents/{document['id']}/compliance"
    body = {
        "complianceStatus": "needs_changes",
        "complianceIssues": [{"description": "No going concern note", "severity": "high"}],
    }

    assert client.put(url, json=body, headers=AUTHOR).status_code == 403
    response = client.put(url, json=body, headers=PARTNER)

    assert response.status_code == 200
    recorded = response.json()
    assert recorded["compliance_status"] == "needs_changes"
    assert recorded["compliance_issues"][0]["severity"] == "high"
    assert recorded["current_version_number"] == 1


@pytest.mark.unit
def test_deactivated_template_cannot_be_used(client: TestClient) -> None:
    template = client.post("/documents/template", json={"content": "# A"}, headers=AUTHOR).json()

    response = client.patch(
        f"/documents/{template['id']}/active", json={"isActive": False}, headers=AUTHOR
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = client.post(
        "/documents/report", json={"templateId": template["human_id"]}, headers=AUTHOR
    )
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "InvalidStateTransition"


@pytest.mark.unit
def test_regulation_recommendations(client: TestClient, adapter: AsyncMock) -> None:
    adapter.return_value = '{"accountingStandards": ["ASBE 14"], "taxRegulations": ["CIT Law"]}'

    response = client.post(
        "/regulations/recommendations",
        json={"providerId": "fake", "projectType": "Annual audit", "industry": "Retail"},
        headers=AUTHOR,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["accounting_standards"] == ["ASBE 14"]
    assert body["tax_regulations"] == ["CIT Law"]
    assert "Retail" in adapter.await_args.args[1]


@pytest.mark.unit
def test_regulation_recommendations_require_identity(client: TestClient) -> None:
    response = client.post("/regulations/recommendations", json={"provider_id": "fake"})
    assert response.status_code == 401
