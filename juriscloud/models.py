from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, ForeignKey, Enum, Numeric, BigInteger, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from juriscloud.database import Base
import enum
import uuid


def utcnow() -> datetime:
    """Naive UTC timestamp with microsecond resolution."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def enum_column(enum_cls, **kwargs):
    return Column(
        Enum(enum_cls, values_callable=_enum_values, native_enum=False, length=32),
        **kwargs
    )

# =====================================================
# ENUMS
# =====================================================
# Values are persisted in the firm's language.

class ProfileStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"

class ClientType(str, enum.Enum):
    INDIVIDUAL = "Particulier"
    ORGANIZATION = "Entreprise"

class CaseStatus(str, enum.Enum):
    OPEN = "Ouvert"
    IN_PROGRESS = "En cours"
    CLOSED = "Fermé"
    SUSPENDED = "Suspendu"

class Priority(str, enum.Enum):
    URGENT = "Urgente"
    HIGH = "Haute"
    NORMAL = "Normale"
    LOW = "Basse"

class TaskStatus(str, enum.Enum):
    TODO = "À faire"
    IN_PROGRESS = "En cours"
    DONE = "Terminé"
    CANCELLED = "Annulé"

class TaskType(str, enum.Enum):
    GENERAL = "Général"
    RESEARCH = "Recherche"
    DRAFTING = "Rédaction"
    PLEADING = "Plaidoirie"
    MEETING = "Réunion"
    PHONE_CALL = "Appel téléphonique"
    ADMINISTRATIVE = "Administrative"

class InvoiceStatus(str, enum.Enum):
    DRAFT = "Brouillon"
    SENT = "Envoyée"
    PAID = "Payée"
    OVERDUE = "En retard"
    CANCELLED = "Annulée"

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "Programmé"
    CONFIRMED = "Confirmé"
    CANCELLED = "Annulé"
    COMPLETED = "Terminé"

class DocumentCategory(str, enum.Enum):
    CONTRACTS = "Contrats"
    EXHIBITS = "Pièces"
    LETTERS = "Courriers"
    EVIDENCE = "Preuves"
    PLEADINGS = "Plaidoiries"
    OTHER = "Autres"

class StorageState(str, enum.Enum):
    STORED = "stored"
    MISSING = "missing"

class CommunicationDirection(str, enum.Enum):
    INBOUND = "Entrant"
    OUTBOUND = "Sortant"

# =====================================================
# USERS & AUTHENTICATION
# =====================================================

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), unique=True, nullable=False, index=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    company_name = Column(String(255))
    phone = Column(String(30))
    status = enum_column(ProfileStatus, default=ProfileStatus.PENDING, nullable=False)
    email_confirmed_at = Column(DateTime)
    last_sign_in_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, default=utcnow, nullable=False)

# =====================================================
# CLIENTS & CASES
# =====================================================

class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    client_type = enum_column(ClientType, nullable=False, default=ClientType.INDIVIDUAL)
    first_name = Column(String(100))
    last_name = Column(String(100))
    company_name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(30))
    address = Column(Text)
    city = Column(String(100))
    postal_code = Column(String(20))
    country = Column(String(100), default="France")
    registration_number = Column(String(50))
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    cases = relationship("LegalCase", back_populates="client")

class LegalCase(Base):
    __tablename__ = "legal_cases"
    __table_args__ = (UniqueConstraint("user_id", "case_number", name="uq_legal_cases_user_case_number"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    case_number = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    case_type = Column(String(100), nullable=False)
    status = enum_column(CaseStatus, default=CaseStatus.OPEN, nullable=False, index=True)
    priority = enum_column(Priority, default=Priority.NORMAL, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    opposing_party = Column(String(255))
    court_name = Column(String(255))
    estimated_value = Column(Numeric(12, 2))
    actual_value = Column(Numeric(12, 2))
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    client = relationship("Client", back_populates="cases")
    tasks = relationship("Task", back_populates="legal_case")
    documents = relationship("Document", back_populates="legal_case")

# =====================================================
# TASKS
# =====================================================

class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    task_type = Column(String(100), nullable=False, default=TaskType.GENERAL.value)
    status = enum_column(TaskStatus, default=TaskStatus.TODO, nullable=False, index=True)
    priority = enum_column(Priority, default=Priority.NORMAL, nullable=False)
    due_date = Column(DateTime, index=True)
    completed_at = Column(DateTime)
    reminder_date = Column(DateTime)
    assigned_to = Column(String(36))
    legal_case_id = Column(String(36), ForeignKey("legal_cases.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    legal_case = relationship("LegalCase", back_populates="tasks")

# =====================================================
# BILLING
# =====================================================

class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    invoice_number = Column(String(50), nullable=False, index=True)
    status = enum_column(InvoiceStatus, default=InvoiceStatus.DRAFT, nullable=False, index=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(50))
    payment_date = Column(Date)
    notes = Column(Text)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    legal_case_id = Column(String(36), ForeignKey("legal_cases.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    lines = relationship("InvoiceLine", back_populates="invoice", cascade="all, delete-orphan")

class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id = Column(String(36), primary_key=True, default=new_id)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    invoice = relationship("Invoice", back_populates="lines")

# =====================================================
# APPOINTMENTS
# =====================================================

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False)
    location = Column(String(255))
    status = enum_column(AppointmentStatus, default=AppointmentStatus.SCHEDULED, nullable=False, index=True)
    appointment_type = Column(String(100), nullable=False, default="Consultation")
    notes = Column(Text)
    reminder_sent = Column(Boolean, default=False)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    legal_case_id = Column(String(36), ForeignKey("legal_cases.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

# =====================================================
# DOCUMENTS & COMMUNICATIONS
# =====================================================

class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    document_type = enum_column(DocumentCategory, nullable=False, index=True)
    file_name = Column(String(255))
    file_url = Column(String(500))  # Storage path inside the documents bucket
    file_size = Column(BigInteger)
    mime_type = Column(String(100))
    is_confidential = Column(Boolean, default=True)
    version = Column(Integer, default=1)
    storage_state = enum_column(StorageState, default=StorageState.STORED, nullable=False)
    legal_case_id = Column(String(36), ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    legal_case = relationship("LegalCase", back_populates="documents")

class Communication(Base):
    __tablename__ = "communications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    communication_type = Column(String(50), nullable=False)
    direction = enum_column(CommunicationDirection, nullable=False)
    subject = Column(String(255))
    content = Column(Text)
    contact_person = Column(String(255))
    communication_date = Column(DateTime, default=utcnow, nullable=False, index=True)
    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    legal_case_id = Column(String(36), ForeignKey("legal_cases.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
