from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from fastapi.responses import Response
from typing import Optional
import mimetypes
import logging

from juriscloud.auth.dependencies import get_current_user, get_user_gateway
from juriscloud.auth.schemas import AuthUser
from juriscloud.auth.utils import decode_token
from juriscloud.config import DOCUMENTS_BUCKET, SIGNED_URL_TTL
from juriscloud.documents.checklist import checklist, missing_categories
from juriscloud.documents.schemas import ChecklistItem, DocumentListResponse, DocumentRow, SignedUrlResponse
from juriscloud.documents.service import CaseDocumentsService, InvalidUploadError
from juriscloud.gateway.errors import GatewayError, to_http_exception
from juriscloud.gateway.query import Gateway
from juriscloud.gateway.storage import StorageBucket, get_storage_bucket
from juriscloud.models import DocumentCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases/{case_id}/documents", tags=["Documents"])
storage_router = APIRouter(prefix="/storage", tags=["Storage"])


def get_documents_bucket() -> StorageBucket:
    return get_storage_bucket(DOCUMENTS_BUCKET)


def get_documents_service(
    current_user: AuthUser = Depends(get_current_user),
    gateway: Gateway = Depends(get_user_gateway),
    bucket: StorageBucket = Depends(get_documents_bucket)
) -> CaseDocumentsService:
    return CaseDocumentsService(gateway, bucket, current_user.id)


async def _document_of_case(service: CaseDocumentsService, case_id: str, document_id: str) -> DocumentRow:
    document = await service.get(document_id)
    if document.legal_case_id != case_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document introuvable")
    return document

# =====================================================
# CASE DOCUMENTS
# =====================================================

@router.get("/", response_model=DocumentListResponse)
async def list_documents(case_id: str, service: CaseDocumentsService = Depends(get_documents_service)):
    """Documents of a case with the category checklist."""
    try:
        documents = await service.list(case_id)
    except GatewayError as e:
        raise to_http_exception(e)
    existing = [document.document_type for document in documents]
    return DocumentListResponse(
        documents=documents,
        checklist=[ChecklistItem(category=category, present=present) for category, present in checklist(existing)],
        missing=missing_categories(existing),
    )


@router.post("/", response_model=DocumentRow, status_code=status.HTTP_201_CREATED)
async def upload_document(
    case_id: str,
    file: UploadFile = File(...),
    category: DocumentCategory = Form(DocumentCategory.OTHER),
    title: Optional[str] = Form(None),
    service: CaseDocumentsService = Depends(get_documents_service)
):
    content = await file.read()
    content_type = file.content_type or mimetypes.guess_type(file.filename or "")[0]
    try:
        return await service.upload(
            case_id, file.filename, content,
            content_type=content_type, category=category, title=title
        )
    except InvalidUploadError as e:
        logger.warning(f"Rejected upload for case {case_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GatewayError as e:
        raise to_http_exception(e)


@router.get("/{document_id}/signed-url", response_model=SignedUrlResponse)
async def document_signed_url(
    case_id: str,
    document_id: str,
    service: CaseDocumentsService = Depends(get_documents_service)
):
    try:
        await _document_of_case(service, case_id, document_id)
        url = await service.signed_url(document_id, SIGNED_URL_TTL)
    except GatewayError as e:
        raise to_http_exception(e)
    return SignedUrlResponse(signed_url=url, expires_in=SIGNED_URL_TTL)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    case_id: str,
    document_id: str,
    service: CaseDocumentsService = Depends(get_documents_service)
):
    try:
        await _document_of_case(service, case_id, document_id)
        await service.delete(document_id)
    except GatewayError as e:
        raise to_http_exception(e)

# =====================================================
# SIGNED DOWNLOADS (local bucket)
# =====================================================

@storage_router.get("/{bucket}/{path:path}")
async def signed_download(bucket: str, path: str, token: str,
                          store: StorageBucket = Depends(get_documents_bucket)):
    if bucket != store.name:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bucket not found")
    payload = decode_token(token, expected_type="storage")
    if payload is None or payload.get("bucket") != bucket or payload.get("path") != path:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired signature")
    try:
        content = await store.download(path)
    except GatewayError as e:
        raise to_http_exception(e)
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    filename = path.rsplit("/", 1)[-1]
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
