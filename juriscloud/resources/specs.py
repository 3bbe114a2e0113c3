"""Parameters of each managed resource screen."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple, Type

from pydantic import BaseModel

from juriscloud.models import (
    AppointmentStatus, CaseStatus, ClientType, InvoiceStatus, Priority, TaskStatus, TaskType, utcnow
)
from juriscloud.resources import schemas
from juriscloud.resources.service import InvoiceService, ResourceService, TaskService

CLIENT_EMBED = "clients(id, first_name, last_name, company_name, client_type)"
CASE_EMBED = "legal_cases(id, title, case_number)"
SEARCH_HINT = "Essayez de modifier votre recherche"


@dataclass(frozen=True)
class ResourceCopy:
    """User facing wording of one resource."""
    created: str
    created_description: str
    updated: str
    updated_description: str
    deleted: str
    deleted_description: str
    confirm_delete: str
    load_error: str
    empty: str
    empty_description: str
    empty_search: str
    save_error: str = "Création impossible"
    update_error: str = "Modification impossible"
    delete_error: str = "Suppression impossible"


@dataclass(frozen=True)
class ResourceSpec:
    name: str
    table: str
    label: str
    select: str
    search_columns: Tuple[str, ...]
    order_by: str
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    row_model: Type[BaseModel]
    copy: ResourceCopy
    descending: bool = False
    nulls_last: Optional[bool] = None
    defaults: Callable[[], Dict[str, Any]] = field(default=dict)
    service_class: Type[ResourceService] = ResourceService

    def service(self, gateway, user_id: str) -> ResourceService:
        return self.service_class(gateway, self, user_id)

    def empty_state(self, search_term: str) -> Tuple[str, str]:
        if search_term.strip():
            return self.copy.empty_search, SEARCH_HINT
        return self.copy.empty, self.copy.empty_description


def _case_defaults() -> Dict[str, Any]:
    return {"status": CaseStatus.OPEN, "priority": Priority.NORMAL, "start_date": date.today()}


def _client_defaults() -> Dict[str, Any]:
    return {"client_type": ClientType.INDIVIDUAL, "country": "France"}


def _task_defaults() -> Dict[str, Any]:
    return {"status": TaskStatus.TODO, "priority": Priority.NORMAL, "task_type": TaskType.GENERAL.value}


def _invoice_defaults() -> Dict[str, Any]:
    return {"status": InvoiceStatus.DRAFT, "tax_rate": Decimal("0.20"), "paid_amount": Decimal("0")}


def _appointment_defaults() -> Dict[str, Any]:
    return {"status": AppointmentStatus.SCHEDULED, "appointment_type": "Consultation"}


def _communication_defaults() -> Dict[str, Any]:
    return {"communication_date": utcnow()}


CASES = ResourceSpec(
    name="cases",
    table="legal_cases",
    label="Dossier",
    select=f"*, {CLIENT_EMBED}",
    search_columns=("title", "case_number", "case_type"),
    order_by="created_at",
    descending=True,
    create_schema=schemas.CaseCreate,
    update_schema=schemas.CaseUpdate,
    row_model=schemas.CaseRow,
    defaults=_case_defaults,
    copy=ResourceCopy(
        created="Dossier créé",
        created_description="Nouveau dossier ajouté avec succès.",
        updated="Dossier modifié",
        updated_description="Le dossier a été modifié avec succès.",
        deleted="Dossier supprimé",
        deleted_description="Le dossier a été supprimé avec succès.",
        confirm_delete="Supprimer ce dossier ? Cette action est irréversible.",
        load_error="Impossible de charger les dossiers",
        empty="Aucun dossier",
        empty_description="Commencez par créer votre premier dossier juridique",
        empty_search="Aucun dossier trouvé",
    ),
)

CLIENTS = ResourceSpec(
    name="clients",
    table="clients",
    label="Client",
    select="*",
    search_columns=("first_name", "last_name", "company_name", "email", "phone"),
    order_by="created_at",
    descending=True,
    create_schema=schemas.ClientCreate,
    update_schema=schemas.ClientUpdate,
    row_model=schemas.ClientRow,
    defaults=_client_defaults,
    copy=ResourceCopy(
        created="Client créé",
        created_description="Nouveau client ajouté avec succès.",
        updated="Client modifié",
        updated_description="Le client a été modifié avec succès.",
        deleted="Client supprimé",
        deleted_description="Le client a été supprimé avec succès.",
        confirm_delete="Supprimer ce client ? Cette action est irréversible.",
        load_error="Impossible de charger les clients",
        empty="Aucun client",
        empty_description="Commencez par ajouter votre premier client",
        empty_search="Aucun client trouvé",
    ),
)

TASKS = ResourceSpec(
    name="tasks",
    table="tasks",
    label="Tâche",
    select=f"*, {CASE_EMBED}",
    search_columns=("title", "description", "task_type"),
    order_by="due_date",
    nulls_last=True,
    create_schema=schemas.TaskCreate,
    update_schema=schemas.TaskUpdate,
    row_model=schemas.TaskRow,
    defaults=_task_defaults,
    service_class=TaskService,
    copy=ResourceCopy(
        created="Tâche créée",
        created_description="La nouvelle tâche a été créée avec succès",
        updated="Tâche modifiée",
        updated_description="La tâche a été modifiée avec succès",
        deleted="Tâche supprimée",
        deleted_description="La tâche a été supprimée avec succès",
        confirm_delete="Supprimer cette tâche ? Cette action est irréversible.",
        load_error="Impossible de charger les tâches",
        empty="Aucune tâche",
        empty_description="Commencez par créer votre première tâche",
        empty_search="Aucune tâche trouvée",
        save_error="Impossible de sauvegarder la tâche",
        update_error="Impossible de mettre à jour la tâche",
    ),
)

INVOICES = ResourceSpec(
    name="invoices",
    table="invoices",
    label="Facture",
    select=f"*, {CLIENT_EMBED}, {CASE_EMBED}",
    search_columns=("invoice_number", "notes"),
    order_by="created_at",
    descending=True,
    create_schema=schemas.InvoiceCreate,
    update_schema=schemas.InvoiceUpdate,
    row_model=schemas.InvoiceRow,
    defaults=_invoice_defaults,
    service_class=InvoiceService,
    copy=ResourceCopy(
        created="Facture créée",
        created_description="Nouvelle facture ajoutée avec succès.",
        updated="Facture modifiée",
        updated_description="La facture a été modifiée avec succès.",
        deleted="Facture supprimée",
        deleted_description="La facture a été supprimée avec succès.",
        confirm_delete="Supprimer cette facture ? Cette action est irréversible.",
        load_error="Impossible de charger les factures",
        empty="Aucune facture",
        empty_description="Commencez par créer votre première facture",
        empty_search="Aucune facture trouvée",
    ),
)

APPOINTMENTS = ResourceSpec(
    name="appointments",
    table="appointments",
    label="Rendez-vous",
    select=f"*, {CLIENT_EMBED}, {CASE_EMBED}",
    search_columns=("title", "description", "location"),
    order_by="start_datetime",
    create_schema=schemas.AppointmentCreate,
    update_schema=schemas.AppointmentUpdate,
    row_model=schemas.AppointmentRow,
    defaults=_appointment_defaults,
    copy=ResourceCopy(
        created="Rendez-vous créé",
        created_description="Nouveau rendez-vous ajouté avec succès.",
        updated="Rendez-vous modifié",
        updated_description="Le rendez-vous a été modifié avec succès.",
        deleted="Rendez-vous supprimé",
        deleted_description="Le rendez-vous a été supprimé avec succès.",
        confirm_delete="Supprimer ce rendez-vous ? Cette action est irréversible.",
        load_error="Impossible de charger les rendez-vous",
        empty="Aucun rendez-vous programmé",
        empty_description="Commencez par créer votre premier rendez-vous client.",
        empty_search="Aucun rendez-vous trouvé",
    ),
)

COMMUNICATIONS = ResourceSpec(
    name="communications",
    table="communications",
    label="Communication",
    select=f"*, {CLIENT_EMBED}",
    search_columns=("subject", "content", "contact_person"),
    order_by="communication_date",
    descending=True,
    create_schema=schemas.CommunicationCreate,
    update_schema=schemas.CommunicationUpdate,
    row_model=schemas.CommunicationRow,
    defaults=_communication_defaults,
    copy=ResourceCopy(
        created="Communication enregistrée",
        created_description="Nouvelle communication ajoutée avec succès.",
        updated="Communication modifiée",
        updated_description="La communication a été modifiée avec succès.",
        deleted="Communication supprimée",
        deleted_description="La communication a été supprimée avec succès.",
        confirm_delete="Supprimer cette communication ? Cette action est irréversible.",
        load_error="Impossible de charger les communications",
        empty="Aucune communication",
        empty_description="Commencez par enregistrer votre premier échange client",
        empty_search="Aucune communication trouvée",
    ),
)

RESOURCES = {spec.name: spec for spec in (CASES, CLIENTS, TASKS, INVOICES, APPOINTMENTS, COMMUNICATIONS)}
