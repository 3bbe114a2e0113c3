"""Per-case documents: an object in the documents bucket plus a metadata row.

Each mutation touches storage and the table. When the second step fails the
first one is undone so the two never disagree silently:

* upload, then insert the row; a failed insert removes the object;
* snapshot, remove the object, then delete the row; a failed row delete
  re-uploads the snapshot, and if that fails too the row is flagged
  ``storage_state=missing`` for reconciliation.
"""

import logging
import os
import re
import uuid
from typing import List, Optional

from juriscloud.config import MAX_UPLOAD_SIZE, SIGNED_URL_TTL
from juriscloud.documents.checklist import missing_categories
from juriscloud.documents.schemas import DocumentRow
from juriscloud.gateway.errors import GatewayError, NotFoundError
from juriscloud.gateway.query import Gateway
from juriscloud.gateway.storage import StorageBucket
from juriscloud.models import DocumentCategory, StorageState
from juriscloud.notifications import Notifier

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx"}
ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")


class InvalidUploadError(ValueError):
    pass


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_CHARS.sub("_", filename)


def build_storage_path(user_id: str, case_id: str, category: DocumentCategory, filename: str,
                       uid: Optional[str] = None) -> str:
    return f"{user_id}/{case_id}/{category.value}/{uid or uuid.uuid4()}-{sanitize_filename(filename)}"


def validate_upload(filename: str, content: bytes, content_type: Optional[str] = None,
                    max_size: int = MAX_UPLOAD_SIZE) -> None:
    if not filename or content is None:
        raise InvalidUploadError("Sélectionnez un fichier à téléverser.")
    extension = os.path.splitext(filename)[1].lower()
    if extension not in ALLOWED_EXTENSIONS and content_type not in ALLOWED_MIME_TYPES:
        raise InvalidUploadError("Formats acceptés : PDF, DOC, DOCX.")
    if len(content) > max_size:
        raise InvalidUploadError(f"Le fichier dépasse la taille maximale de {max_size // (1024 * 1024)} Mo.")


class CaseDocumentsService:

    def __init__(self, gateway: Gateway, bucket: StorageBucket, user_id: str, max_size: int = MAX_UPLOAD_SIZE):
        self.gateway = gateway.for_user(user_id)
        self.bucket = bucket
        self.user_id = user_id
        self.max_size = max_size

    async def _ensure_case(self, case_id: str) -> dict:
        response = await (
            self.gateway.table("legal_cases").select("id, client_id").eq("id", case_id).maybe_single().execute()
        )
        case = response.raise_for_error().data
        if case is None:
            raise NotFoundError("Dossier introuvable", code="not_found")
        return case

    async def list(self, case_id: str) -> List[DocumentRow]:
        response = await (
            self.gateway.table("documents")
            .select("*")
            .eq("legal_case_id", case_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [DocumentRow.model_validate(row) for row in response.raise_for_error().data]

    async def get(self, document_id: str) -> DocumentRow:
        response = await self.gateway.table("documents").select("*").eq("id", document_id).maybe_single().execute()
        row = response.raise_for_error().data
        if row is None:
            raise NotFoundError("Document introuvable", code="not_found")
        return DocumentRow.model_validate(row)

    async def upload(self, case_id: str, filename: str, content: bytes, content_type: Optional[str] = None,
                     category: DocumentCategory = DocumentCategory.OTHER, title: Optional[str] = None,
                     client_id: Optional[str] = None) -> DocumentRow:
        validate_upload(filename, content, content_type, self.max_size)
        case = await self._ensure_case(case_id)
        category = DocumentCategory(category)
        path = build_storage_path(self.user_id, case_id, category, filename)

        await self.bucket.upload(path, content, content_type=content_type, upsert=False)

        payload = {
            "user_id": self.user_id,
            "legal_case_id": case_id,
            "client_id": client_id or case.get("client_id"),
            "title": (title or "").strip() or filename,
            "document_type": category,
            "description": None,
            "file_name": filename,
            "file_url": path,
            "mime_type": content_type or None,
            "file_size": len(content),
            "is_confidential": True,
        }
        response = await self.gateway.table("documents").insert(payload).execute()
        if response.error is not None:
            logger.error(f"Document row insert failed, removing uploaded object {path}")
            try:
                await self.bucket.remove([path])
            except GatewayError as e:
                logger.error(f"Could not remove orphaned object {path}: {e.message}")
            raise response.error

        logger.info(f"Uploaded document {path} ({len(content)} bytes)")
        return DocumentRow.model_validate(response.data[0])

    async def signed_url(self, document_id: str, expires_in: int = SIGNED_URL_TTL) -> str:
        document = await self.get(document_id)
        if document.storage_state == StorageState.MISSING or not document.file_url:
            raise NotFoundError("Fichier manquant", code="not_found")
        return await self.bucket.create_signed_url(document.file_url, expires_in)

    async def delete(self, document_id: str) -> DocumentRow:
        document = await self.get(document_id)
        path = document.file_url
        snapshot = None
        if path:
            try:
                snapshot = await self.bucket.download(path)
            except NotFoundError:
                logger.warning(f"Object {path} already gone, deleting row only")
                path = None
        if path:
            await self.bucket.remove([path])

        response = await self.gateway.table("documents").delete().eq("id", document_id).execute()
        if response.error is None:
            logger.info(f"Deleted document {document_id}")
            return document

        logger.error(f"Document row delete failed after removing {path}: {response.error.message}")
        if path and snapshot is not None:
            try:
                await self.bucket.upload(path, snapshot, content_type=document.mime_type, upsert=True)
                logger.info(f"Restored object {path}")
            except GatewayError as e:
                logger.error(f"Restoring {path} failed, flagging row as missing: {e.message}")
                flagged = await (
                    self.gateway.table("documents")
                    .update({"storage_state": StorageState.MISSING})
                    .eq("id", document_id)
                    .execute()
                )
                if flagged.error is not None:
                    logger.error(f"Could not flag document {document_id}: {flagged.error.message}")
        raise response.error


class CaseDocuments:
    """Documents panel of one case.

    Uploading is gated: ``start_upload`` shows the category checklist and
    only ``confirm_checklist`` unlocks the upload form. The local list only
    changes after a whole mutation succeeded.
    """

    def __init__(self, service: CaseDocumentsService, case_id: str, notifier: Optional[Notifier] = None,
                 client_id: Optional[str] = None):
        self.service = service
        self.case_id = case_id
        self.client_id = client_id
        self.notifier = notifier or Notifier()
        self.documents: List[DocumentRow] = []
        self.loading = True
        self.show_checklist = False
        self.confirmed = False

    async def load(self) -> None:
        try:
            self.documents = await self.service.list(self.case_id)
        except GatewayError as e:
            logger.error(f"Loading documents of case {self.case_id} failed: {e.message}")
            self.notifier.error("Erreur", "Chargement des documents impossible")
        finally:
            self.loading = False

    @property
    def existing_categories(self) -> List[DocumentCategory]:
        return [document.document_type for document in self.documents]

    @property
    def missing_categories(self) -> List[DocumentCategory]:
        return missing_categories(self.existing_categories)

    def start_upload(self) -> None:
        self.show_checklist = True
        self.confirmed = False

    def confirm_checklist(self) -> None:
        self.confirmed = True
        self.show_checklist = False

    def cancel_checklist(self) -> None:
        self.show_checklist = False

    @property
    def upload_unlocked(self) -> bool:
        return self.confirmed

    async def upload(self, filename: Optional[str], content: Optional[bytes], content_type: Optional[str] = None,
                     category: DocumentCategory = DocumentCategory.OTHER,
                     title: Optional[str] = None) -> Optional[DocumentRow]:
        if not self.confirmed:
            self.notifier.error("Checklist requise", "Confirmez la liste des documents requis avant de téléverser.")
            return None
        if not filename or content is None:
            self.notifier.error("Fichier requis", "Sélectionnez un fichier à téléverser.")
            return None
        try:
            document = await self.service.upload(
                self.case_id, filename, content, content_type=content_type,
                category=category, title=title, client_id=self.client_id
            )
        except (GatewayError, InvalidUploadError) as e:
            self.notifier.error("Échec du téléversement", getattr(e, "message", str(e)))
            return None
        self.notifier.success("Téléversement réussi", "Le document a été ajouté.")
        await self.load()
        return document

    async def download_url(self, document: DocumentRow) -> Optional[str]:
        try:
            return await self.service.signed_url(document.id)
        except GatewayError as e:
            self.notifier.error("Téléchargement impossible", e.message)
            return None

    async def delete(self, document: DocumentRow) -> bool:
        try:
            await self.service.delete(document.id)
        except GatewayError as e:
            self.notifier.error("Suppression impossible", e.message)
            return False
        self.documents = [d for d in self.documents if d.id != document.id]
        self.notifier.success("Supprimé", "Le document a été supprimé.")
        return True
