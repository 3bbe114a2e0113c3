"""Derived values shown on the resource screens."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from juriscloud.models import ClientType, InvoiceStatus, TaskStatus, utcnow

UNASSIGNED_CLIENT = "Client non assigné"
UNNAMED_COMPANY = "Entreprise sans nom"
UNNAMED_CLIENT = "Client sans nom"

BYTE_UNITS = ["o", "Ko", "Mo", "Go", "To"]


def _get(obj: Any, key: str):
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def client_display_name(client: Any) -> str:
    """Organizations show their company name, individuals first and last name."""
    if client is None:
        return UNASSIGNED_CLIENT
    if _get(client, "client_type") == ClientType.ORGANIZATION:
        return _get(client, "company_name") or UNNAMED_COMPANY
    name = " ".join(part for part in (_get(client, "first_name"), _get(client, "last_name")) if part)
    return name or UNNAMED_CLIENT


def is_task_overdue(task: Any, now: Optional[datetime] = None) -> bool:
    due = _get(task, "due_date")
    if due is None or _get(task, "status") == TaskStatus.DONE:
        return False
    return due < (now or utcnow())


def group_tasks(tasks: Iterable[Any], now: Optional[datetime] = None) -> Dict[str, List[Any]]:
    tasks = list(tasks)
    return {
        "todo": [task for task in tasks if _get(task, "status") == TaskStatus.TODO],
        "in_progress": [task for task in tasks if _get(task, "status") == TaskStatus.IN_PROGRESS],
        "done": [task for task in tasks if _get(task, "status") == TaskStatus.DONE],
        "overdue": [task for task in tasks if is_task_overdue(task, now)],
    }


def is_invoice_overdue(invoice: Any, today: Optional[date] = None) -> bool:
    if _get(invoice, "status") in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
        return False
    due = _get(invoice, "due_date")
    return due is not None and due < (today or date.today())


@dataclass
class InvoiceSummary:
    revenue: Decimal
    paid_count: int
    pending: Decimal
    sent_count: int
    overdue_amount: Decimal
    overdue_count: int
    total_count: int


def invoice_summary(invoices: Iterable[Any], today: Optional[date] = None) -> InvoiceSummary:
    invoices = list(invoices)
    paid = [inv for inv in invoices if _get(inv, "status") == InvoiceStatus.PAID]
    sent = [inv for inv in invoices if _get(inv, "status") == InvoiceStatus.SENT]
    overdue = [inv for inv in invoices if is_invoice_overdue(inv, today)]

    def total(items):
        return sum((Decimal(str(_get(inv, "total_amount") or 0)) for inv in items), Decimal("0"))

    return InvoiceSummary(
        revenue=total(paid),
        paid_count=len(paid),
        pending=total(sent),
        sent_count=len(sent),
        overdue_amount=total(overdue),
        overdue_count=len(overdue),
        total_count=len(invoices),
    )


def client_counts(clients: Iterable[Any]) -> Dict[str, int]:
    clients = list(clients)
    return {
        "total": len(clients),
        "individuals": sum(1 for c in clients if _get(c, "client_type") == ClientType.INDIVIDUAL),
        "organizations": sum(1 for c in clients if _get(c, "client_type") == ClientType.ORGANIZATION),
    }


def format_bytes(size: Optional[int]) -> str:
    if size is None:
        return "-"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{value:.2f} {BYTE_UNITS[index]}"


def format_currency(amount) -> str:
    """French euro formatting, e.g. ``1 200,00 €``."""
    text = f"{Decimal(str(amount or 0)):,.2f}"
    return text.replace(",", " ").replace(".", ",") + " €"
