from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient

from juriscloud.auth.utils import create_confirmation_token, create_storage_token
from juriscloud.documents.routes import get_documents_bucket
from juriscloud.gateway.storage import LocalStorageBucket
from main import app

EMAIL = "avocat@cabinet-martin.fr"
PASSWORD = "motdepasse"
PDF = b"%PDF-1.4 contrat"


@pytest.fixture
def client(tmp_path):
    bucket = LocalStorageBucket("case-documents", root=str(tmp_path / "storage"))
    app.dependency_overrides[get_documents_bucket] = lambda: bucket
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def headers(client):
    response = client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD, "first_name": "Claire"})
    assert response.status_code == 201
    user = response.json()["user"]
    confirmed = client.get("/auth/confirm", params={"token": create_confirmation_token(user["id"])})
    assert confirmed.status_code == 200
    response = client.post("/auth/sign-in", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['session']['access_token']}"}


def _create_case(client, headers, **extra):
    payload = {"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil", **extra}
    response = client.post("/cases/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["message"] == "JurisCloud API"


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["Cross-Origin-Opener-Policy"] == "same-origin-allow-popups"


def test_sign_up_without_confirmation_returns_no_session(client):
    response = client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 201
    assert response.json()["session"] is None
    assert response.json()["user"]["status"] == "pending"

    denied = client.post("/auth/sign-in", json={"email": EMAIL, "password": PASSWORD})
    assert denied.status_code == 401
    assert denied.json()["detail"] == "Email not confirmed"


def test_duplicate_sign_up(client, headers):
    response = client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 400
    assert response.json()["detail"] == "User already registered"


def test_me_and_sign_out(client, headers):
    assert client.get("/auth/me", headers=headers).json()["email"] == EMAIL
    assert client.post("/auth/sign-out", headers=headers).status_code == 204
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_protected_routes_need_a_token(client):
    assert client.get("/cases/").status_code in (401, 403)
    assert client.get("/cases/", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_case_crud(client, headers):
    case = _create_case(client, headers)
    assert case["status"] == "Ouvert"
    assert case["priority"] == "Normale"

    response = client.patch(f"/cases/{case['id']}", json={"status": "En cours"}, headers=headers)
    assert response.json()["status"] == "En cours"

    assert client.get(f"/cases/{case['id']}", headers=headers).json()["title"] == "Martin vs Dupont"
    assert client.delete(f"/cases/{case['id']}", headers=headers).status_code == 204
    assert client.get(f"/cases/{case['id']}", headers=headers).status_code == 404


def test_invalid_payload_is_rejected(client, headers):
    response = client.post("/cases/", json={"title": "", "case_type": "Civil"}, headers=headers)
    assert response.status_code == 422


def test_duplicate_case_number_is_a_bad_request(client, headers):
    _create_case(client, headers)
    response = client.post(
        "/cases/", json={"title": "Autre", "case_number": "DOS-2024-001", "case_type": "Civil"}, headers=headers
    )
    assert response.status_code == 400


def test_list_pages_and_search(client, headers):
    for index in range(11):
        _create_case(client, headers, title=f"Dossier {index}", case_number=f"DOS-{index:03d}")

    first = client.get("/cases/", params={"page": 1}, headers=headers).json()
    assert first["total_count"] == 11
    assert len(first["items"]) == 9
    assert first["total_pages"] == 2
    assert first["page_window"] == [1, 2]

    second = client.get("/cases/", params={"page": 2}, headers=headers).json()
    assert len(second["items"]) == 2

    found = client.get("/cases/", params={"search": "dossier 10"}, headers=headers).json()
    assert found["total_count"] == 1
    assert found["items"][0]["case_number"] == "DOS-010"

    empty = client.get("/cases/", params={"search": "introuvable"}, headers=headers).json()
    assert empty["items"] == []
    assert empty["empty_title"] == "Aucun dossier trouvé"


def test_task_status_endpoint(client, headers):
    task = client.post("/tasks/", json={"title": "Déposer les conclusions", "due_date": "2020-01-01T09:00:00"},
                       headers=headers).json()
    response = client.patch(f"/tasks/{task['id']}/status", json={"status": "Terminé"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["completed_at"] is not None


def test_invoice_totals_and_lines(client, headers):
    customer = client.post("/clients/", json={"client_type": "Entreprise", "company_name": "ACME SAS"},
                           headers=headers).json()
    invoice = client.post("/invoices/", json={
        "invoice_number": "FAC-2024-001",
        "client_id": customer["id"],
        "issue_date": "2024-03-01",
        "due_date": "2024-03-31",
        "lines": [{"description": "Consultation", "quantity": 4, "unit_price": 250}],
    }, headers=headers).json()
    assert float(invoice["subtotal"]) == 1000
    assert float(invoice["tax_amount"]) == 200
    assert float(invoice["total_amount"]) == 1200

    lines = client.get(f"/invoices/{invoice['id']}/lines", headers=headers).json()
    assert len(lines) == 1


def test_documents_upload_download_and_delete(client, headers):
    case = _create_case(client, headers)
    base = f"/cases/{case['id']}/documents/"

    listing = client.get(base, headers=headers).json()
    assert listing["documents"] == []
    assert len(listing["missing"]) == 6

    response = client.post(
        base,
        files={"file": ("contrat.pdf", PDF, "application/pdf")},
        data={"category": "Contrats", "title": "Contrat cadre"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    document = response.json()
    assert document["document_type"] == "Contrats"

    listing = client.get(base, headers=headers).json()
    assert "Contrats" not in listing["missing"]
    assert {"category": "Contrats", "present": True} in listing["checklist"]

    signed = client.get(f"{base}{document['id']}/signed-url", headers=headers).json()
    parts = urlsplit(signed["signed_url"])
    download = client.get(f"{parts.path}?{parts.query}")
    assert download.status_code == 200
    assert download.content == PDF

    assert client.delete(f"{base}{document['id']}", headers=headers).status_code == 204
    assert client.get(base, headers=headers).json()["documents"] == []


def test_upload_rejects_other_formats(client, headers):
    case = _create_case(client, headers)
    response = client.post(
        f"/cases/{case['id']}/documents/",
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
        headers=headers,
    )
    assert response.status_code == 400


def test_storage_download_checks_the_signature(client):
    path = "user/case/Contrats/abc-contrat.pdf"
    other = create_storage_token("case-documents", "user/case/Contrats/other.pdf", 60)
    assert client.get(f"/storage/case-documents/{path}", params={"token": other}).status_code == 403
    assert client.get(f"/storage/case-documents/{path}", params={"token": "forged"}).status_code == 403
    assert client.get(f"/storage/elsewhere/{path}", params={"token": other}).status_code == 404


def test_dashboard_stats(client, headers):
    _create_case(client, headers)
    _create_case(client, headers, case_number="DOS-2024-002", title="Succession", status="Fermé")
    client.post("/clients/", json={"last_name": "Durand"}, headers=headers)

    stats = client.get("/dashboard/stats", headers=headers).json()
    assert stats["active_cases"] == 1
    assert stats["new_cases_this_month"] == 2
    assert stats["clients"] == 1
    assert stats["individual_clients"] == 1
    assert len(stats["recent_cases"]) == 2


def test_communications_endpoints(client, headers):
    created = client.post("/communications/", json={
        "communication_type": "Email",
        "direction": "Sortant",
        "subject": "Envoi du projet de contrat",
    }, headers=headers)
    assert created.status_code == 201, created.text
    communication = created.json()
    assert communication["communication_date"] is not None

    listing = client.get("/communications/", params={"search": "contrat"}, headers=headers).json()
    assert [row["id"] for row in listing["items"]] == [communication["id"]]

    assert client.post("/communications/", json={"communication_type": "Appel"}, headers=headers).status_code == 422
    assert client.delete(f"/communications/{communication['id']}", headers=headers).status_code == 204
    assert client.get("/communications/", headers=headers).json()["empty_title"] == "Aucune communication"


def test_client_update_checks_the_type(client, headers):
    person = client.post("/clients/", json={"last_name": "Durand"}, headers=headers).json()
    response = client.patch(f"/clients/{person['id']}", json={"client_type": "Entreprise"}, headers=headers)
    assert response.status_code == 422
