from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from juriscloud.models import DocumentCategory, StorageState

class DocumentRow(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    document_type: DocumentCategory
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    is_confidential: Optional[bool] = None
    version: Optional[int] = None
    storage_state: StorageState = StorageState.STORED
    legal_case_id: Optional[str] = None
    client_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ChecklistItem(BaseModel):
    category: DocumentCategory
    present: bool

class DocumentListResponse(BaseModel):
    documents: list[DocumentRow]
    checklist: list[ChecklistItem]
    missing: list[DocumentCategory]

class SignedUrlResponse(BaseModel):
    signed_url: str
    expires_in: int
