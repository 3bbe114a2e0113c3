from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import ClassVar, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
from juriscloud.models import (
    AppointmentStatus, CaseStatus, ClientType, CommunicationDirection, InvoiceStatus, Priority, TaskStatus, TaskType
)

# Select values that mean "no related row"
REFERENCE_FIELDS = {"client_id", "legal_case_id", "assigned_to"}
NO_REFERENCE = {"", "none", "null"}


class FormModel(BaseModel):
    """Base for create/update payloads.

    Blank strings become None, blank references ("none" in selects) too, and
    fields listed in REQUIRED reject blank values with the given message.
    """
    REQUIRED: ClassVar[Dict[str, str]] = {}

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, value, info):
        if isinstance(value, str):
            value = value.strip()
            if value == "" or (info.field_name in REFERENCE_FIELDS and value.lower() in NO_REFERENCE):
                value = None
        if value is None and info.field_name in cls.REQUIRED:
            raise ValueError(cls.REQUIRED[info.field_name])
        return value

    @classmethod
    def required_message(cls, field: str) -> str:
        return cls.REQUIRED.get(field, "Champ requis")


# =====================================================
# CLIENTS
# =====================================================

class ClientCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {"client_type": "Type de client requis"}

    client_type: ClientType = ClientType.INDIVIDUAL
    first_name: Optional[str] = None
    last_name: Optional[str] = Field(None, validate_default=True)
    company_name: Optional[str] = Field(None, validate_default=True)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = "France"
    registration_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("last_name")
    @classmethod
    def individual_needs_last_name(cls, value, info):
        if value is None and info.data.get("client_type") == ClientType.INDIVIDUAL:
            raise ValueError("Nom requis")
        return value

    @field_validator("company_name")
    @classmethod
    def organization_needs_company_name(cls, value, info):
        if value is None and info.data.get("client_type") == ClientType.ORGANIZATION:
            raise ValueError("Nom de l'entreprise requis")
        return value

class ClientUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = ClientCreate.REQUIRED

    client_type: Optional[ClientType] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = Field(None, validate_default=True)
    company_name: Optional[str] = Field(None, validate_default=True)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    registration_number: Optional[str] = None
    notes: Optional[str] = None

    # Only checked when the update sets client_type
    @field_validator("last_name")
    @classmethod
    def individual_needs_last_name(cls, value, info):
        if value is None and info.data.get("client_type") == ClientType.INDIVIDUAL:
            raise ValueError("Nom requis")
        return value

    @field_validator("company_name")
    @classmethod
    def organization_needs_company_name(cls, value, info):
        if value is None and info.data.get("client_type") == ClientType.ORGANIZATION:
            raise ValueError("Nom de l'entreprise requis")
        return value

class ClientRef(BaseModel):
    id: Optional[str] = None
    client_type: Optional[ClientType] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None

class ClientRow(BaseModel):
    id: str
    user_id: str
    client_type: ClientType
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    registration_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# =====================================================
# CASES
# =====================================================

class CaseCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {
        "title": "Titre requis",
        "case_number": "Numéro de dossier requis",
        "case_type": "Type de dossier requis",
    }

    title: str
    case_number: str
    case_type: str
    status: CaseStatus = CaseStatus.OPEN
    priority: Priority = Priority.NORMAL
    client_id: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opposing_party: Optional[str] = None
    court_name: Optional[str] = None
    estimated_value: Optional[Decimal] = None
    actual_value: Optional[Decimal] = None

class CaseUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = CaseCreate.REQUIRED

    title: Optional[str] = None
    case_number: Optional[str] = None
    case_type: Optional[str] = None
    status: Optional[CaseStatus] = None
    priority: Optional[Priority] = None
    client_id: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opposing_party: Optional[str] = None
    court_name: Optional[str] = None
    estimated_value: Optional[Decimal] = None
    actual_value: Optional[Decimal] = None

class CaseRef(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    case_number: Optional[str] = None

class CaseRow(BaseModel):
    id: str
    user_id: str
    case_number: str
    title: str
    case_type: str
    status: CaseStatus
    priority: Priority
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    opposing_party: Optional[str] = None
    court_name: Optional[str] = None
    estimated_value: Optional[Decimal] = None
    actual_value: Optional[Decimal] = None
    client_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    clients: Optional[ClientRef] = None

    class Config:
        from_attributes = True

# =====================================================
# TASKS
# =====================================================

class TaskCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {
        "title": "Titre requis",
        "task_type": "Type de tâche requis",
    }

    title: str
    description: Optional[str] = None
    task_type: str = TaskType.GENERAL.value
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.NORMAL
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    legal_case_id: Optional[str] = None

class TaskUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = TaskCreate.REQUIRED

    title: Optional[str] = None
    description: Optional[str] = None
    task_type: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    legal_case_id: Optional[str] = None

class TaskStatusUpdate(BaseModel):
    status: TaskStatus

class TaskRow(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    task_type: str
    status: TaskStatus
    priority: Priority
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    legal_case_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    legal_cases: Optional[CaseRef] = None

    class Config:
        from_attributes = True

# =====================================================
# INVOICES
# =====================================================

class InvoiceLineCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {"description": "Description requise"}

    description: str
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal = Field(..., ge=0)

class InvoiceLineRow(BaseModel):
    id: str
    invoice_id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal

class InvoiceCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {
        "invoice_number": "Numéro de facture requis",
        "client_id": "Client requis",
        "issue_date": "Date d'émission requise",
        "due_date": "Date d'échéance requise",
    }

    invoice_number: str
    client_id: str
    legal_case_id: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date
    due_date: date
    lines: Optional[List[InvoiceLineCreate]] = None
    subtotal: Optional[Decimal] = Field(None, ge=0, validate_default=True)
    tax_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("subtotal")
    @classmethod
    def subtotal_or_lines(cls, value, info):
        if value is None and not info.data.get("lines"):
            raise ValueError("Montant HT requis")
        return value

class InvoiceUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = InvoiceCreate.REQUIRED

    invoice_number: Optional[str] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None

class InvoiceRow(BaseModel):
    id: str
    user_id: str
    invoice_number: str
    status: InvoiceStatus
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    client_id: str
    legal_case_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    clients: Optional[ClientRef] = None
    legal_cases: Optional[CaseRef] = None

    class Config:
        from_attributes = True

# =====================================================
# APPOINTMENTS
# =====================================================

class AppointmentCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {
        "title": "Titre requis",
        "start_datetime": "Date et heure de début requises",
        "end_datetime": "Date et heure de fin requises",
        "appointment_type": "Type de rendez-vous requis",
    }

    title: str
    start_datetime: datetime
    end_datetime: datetime
    appointment_type: str = "Consultation"
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

class AppointmentUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = AppointmentCreate.REQUIRED

    title: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    appointment_type: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

class AppointmentRow(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime
    location: Optional[str] = None
    status: AppointmentStatus
    appointment_type: str
    notes: Optional[str] = None
    reminder_sent: Optional[bool] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    clients: Optional[ClientRef] = None
    legal_cases: Optional[CaseRef] = None

    class Config:
        from_attributes = True

# =====================================================
# COMMUNICATIONS
# =====================================================

class CommunicationCreate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = {
        "communication_type": "Type de communication requis",
        "direction": "Sens requis",
    }

    communication_type: str
    direction: CommunicationDirection
    subject: Optional[str] = None
    content: Optional[str] = None
    contact_person: Optional[str] = None
    communication_date: Optional[datetime] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None

class CommunicationUpdate(FormModel):
    REQUIRED: ClassVar[Dict[str, str]] = CommunicationCreate.REQUIRED

    communication_type: Optional[str] = None
    direction: Optional[CommunicationDirection] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    contact_person: Optional[str] = None
    communication_date: Optional[datetime] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[date] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None

class CommunicationRow(BaseModel):
    id: str
    user_id: str
    communication_type: str
    direction: CommunicationDirection
    subject: Optional[str] = None
    content: Optional[str] = None
    contact_person: Optional[str] = None
    communication_date: datetime
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[date] = None
    client_id: Optional[str] = None
    legal_case_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    clients: Optional[ClientRef] = None

    class Config:
        from_attributes = True
