import os

import pytest

from juriscloud.documents.checklist import CATEGORIES, checklist, missing_categories, missing_summary
from juriscloud.documents.service import (
    CaseDocuments, CaseDocumentsService, InvalidUploadError, build_storage_path, sanitize_filename, validate_upload
)
from juriscloud.gateway.errors import GatewayError, NotFoundError, StorageError
from juriscloud.gateway.query import GatewayResponse, TableQuery
from juriscloud.gateway.storage import LocalStorageBucket
from juriscloud.models import DocumentCategory, StorageState
from juriscloud.resources.controller import ResourceListController
from juriscloud.resources.specs import CASES

PDF = b"%PDF-1.4 conclusions"


def test_missing_categories_keep_declared_order():
    existing = [DocumentCategory.EXHIBITS, DocumentCategory.CONTRACTS, DocumentCategory.OTHER, DocumentCategory.EXHIBITS]
    assert missing_categories(existing) == [
        DocumentCategory.LETTERS,
        DocumentCategory.EVIDENCE,
        DocumentCategory.PLEADINGS,
    ]


def test_missing_categories_from_a_subset():
    # Categories A..F with A and B present leave C, D, E, F
    a, b, c, d, e, f = CATEGORIES
    assert missing_categories([b.value, a.value]) == [c, d, e, f]


def test_checklist_and_summary():
    assert checklist([]) == [(category, False) for category in CATEGORIES]
    assert missing_summary(CATEGORIES) == ""
    assert missing_summary([DocumentCategory.CONTRACTS]).startswith("5 document(s) manquant(s)")


def test_storage_path_is_namespaced():
    path = build_storage_path("user-1", "case-1", DocumentCategory.CONTRACTS, "Mon contrat (v2).pdf", uid="abc")
    assert path == "user-1/case-1/Contrats/abc-Mon_contrat__v2_.pdf"
    assert sanitize_filename("é à.docx") == "___.docx"


def test_validate_upload():
    validate_upload("conclusions.pdf", PDF)
    validate_upload("scan", PDF, content_type="application/pdf")
    with pytest.raises(InvalidUploadError):
        validate_upload("photo.png", PDF, content_type="image/png")
    with pytest.raises(InvalidUploadError):
        validate_upload("gros.pdf", b"x" * 11, max_size=10)


@pytest.fixture
async def case(gateway, session):
    controller = ResourceListController(CASES, gateway, session)
    return await controller.create({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})


@pytest.fixture
def service(gateway, session, bucket):
    return CaseDocumentsService(gateway, bucket, session.user_id)


async def test_upload_stores_object_then_row(service, bucket, case):
    document = await service.upload(case.id, "conclusions.pdf", PDF, "application/pdf",
                                    category=DocumentCategory.PLEADINGS)

    assert document.title == "conclusions.pdf"
    assert document.file_size == len(PDF)
    assert document.legal_case_id == case.id
    assert document.file_url.startswith(f"{service.user_id}/{case.id}/Plaidoiries/")
    assert await bucket.download(document.file_url) == PDF
    assert [row.id for row in await service.list(case.id)] == [document.id]


async def test_upload_to_unknown_case_stores_nothing(service, bucket, tmp_path):
    with pytest.raises(NotFoundError):
        await service.upload("no-such-case", "conclusions.pdf", PDF)
    assert not os.path.exists(bucket.root)


async def test_failed_row_insert_removes_the_object(service, bucket, case, monkeypatch):
    original = TableQuery.execute_sync

    def failing(self):
        if self._table_name == "documents" and self._operation == "insert":
            return GatewayResponse(error=GatewayError("insert failed"))
        return original(self)

    monkeypatch.setattr(TableQuery, "execute_sync", failing)
    with pytest.raises(GatewayError):
        await service.upload(case.id, "conclusions.pdf", PDF)

    stored = [name for _, _, files in os.walk(bucket.root) for name in files]
    assert stored == []


async def test_signed_url_for_local_bucket(service, case):
    document = await service.upload(case.id, "contrat.pdf", PDF, category=DocumentCategory.CONTRACTS)
    url = await service.signed_url(document.id, 60)
    assert "/storage/case-documents/" in url
    assert "token=" in url


async def test_delete_removes_object_and_row(service, bucket, case):
    document = await service.upload(case.id, "contrat.pdf", PDF)
    await service.delete(document.id)
    assert await service.list(case.id) == []
    with pytest.raises(NotFoundError):
        await bucket.download(document.file_url)


async def test_failed_row_delete_restores_the_object(service, bucket, case, monkeypatch):
    document = await service.upload(case.id, "contrat.pdf", PDF)
    original = TableQuery.execute_sync

    def failing(self):
        if self._table_name == "documents" and self._operation == "delete":
            return GatewayResponse(error=GatewayError("delete failed"))
        return original(self)

    monkeypatch.setattr(TableQuery, "execute_sync", failing)
    with pytest.raises(GatewayError):
        await service.delete(document.id)

    assert await bucket.download(document.file_url) == PDF
    assert (await service.get(document.id)).storage_state == StorageState.STORED


class NoRestoreBucket(LocalStorageBucket):
    async def upload(self, path, content, content_type=None, upsert=False):
        if upsert:
            raise StorageError("bucket unavailable")
        return await super().upload(path, content, content_type, upsert)


async def test_unrestorable_object_flags_the_row(gateway, session, case, tmp_path, monkeypatch):
    bucket = NoRestoreBucket("case-documents", root=str(tmp_path / "storage"))
    service = CaseDocumentsService(gateway, bucket, session.user_id)
    document = await service.upload(case.id, "contrat.pdf", PDF)
    original = TableQuery.execute_sync

    def failing(self):
        if self._table_name == "documents" and self._operation == "delete":
            return GatewayResponse(error=GatewayError("delete failed"))
        return original(self)

    monkeypatch.setattr(TableQuery, "execute_sync", failing)
    with pytest.raises(GatewayError):
        await service.delete(document.id)

    flagged = await service.get(document.id)
    assert flagged.storage_state == StorageState.MISSING
    with pytest.raises(NotFoundError):
        await service.signed_url(document.id)


async def test_documents_are_private_to_their_owner(gateway, service, case, bucket):
    document = await service.upload(case.id, "contrat.pdf", PDF)
    intruder = CaseDocumentsService(gateway, bucket, "someone-else")
    with pytest.raises(NotFoundError):
        await intruder.get(document.id)
    assert await intruder.list(case.id) == []


async def test_panel_requires_checklist_confirmation(service, case, notifier):
    panel = CaseDocuments(service, case.id, notifier)
    await panel.load()
    assert panel.missing_categories == CATEGORIES

    assert await panel.upload("contrat.pdf", PDF) is None
    assert notifier.last.title == "Checklist requise"

    panel.start_upload()
    assert panel.show_checklist is True
    assert panel.upload_unlocked is False
    panel.confirm_checklist()
    assert panel.upload_unlocked is True

    document = await panel.upload("contrat.pdf", PDF, category=DocumentCategory.CONTRACTS, title="Contrat cadre")
    assert document.title == "Contrat cadre"
    assert notifier.last.title == "Téléversement réussi"
    assert DocumentCategory.CONTRACTS not in panel.missing_categories


async def test_panel_reports_rejected_files(service, case, notifier):
    panel = CaseDocuments(service, case.id, notifier)
    panel.start_upload()
    panel.confirm_checklist()
    assert await panel.upload(None, None) is None
    assert notifier.last.title == "Fichier requis"
    assert await panel.upload("photo.png", PDF, content_type="image/png") is None
    assert notifier.last.title == "Échec du téléversement"
    assert notifier.last.description == "Formats acceptés : PDF, DOC, DOCX."


async def test_panel_delete_updates_local_list_only_on_success(service, case, notifier, monkeypatch):
    panel = CaseDocuments(service, case.id, notifier)
    panel.start_upload()
    panel.confirm_checklist()
    document = await panel.upload("contrat.pdf", PDF)
    original = TableQuery.execute_sync

    def failing(self):
        if self._table_name == "documents" and self._operation == "delete":
            return GatewayResponse(error=GatewayError("delete failed"))
        return original(self)

    monkeypatch.setattr(TableQuery, "execute_sync", failing)
    assert await panel.delete(document) is False
    assert [d.id for d in panel.documents] == [document.id]
    assert notifier.last.title == "Suppression impossible"

    monkeypatch.setattr(TableQuery, "execute_sync", original)
    assert await panel.delete(document) is True
    assert panel.documents == []
    assert notifier.last.title == "Supprimé"
