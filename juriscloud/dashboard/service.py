import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from juriscloud.gateway.query import Gateway
from juriscloud.models import AppointmentStatus, CaseStatus, InvoiceStatus, TaskStatus, utcnow
from juriscloud.resources.views import client_counts, invoice_summary, is_task_overdue

logger = logging.getLogger(__name__)

ACTIVE_CASE_STATUSES = [CaseStatus.OPEN, CaseStatus.IN_PROGRESS]
RECENT_LIMIT = 5


@dataclass
class DashboardStats:
    active_cases: int = 0
    new_cases_this_month: int = 0
    clients: int = 0
    individual_clients: int = 0
    organization_clients: int = 0
    open_tasks: int = 0
    overdue_tasks: int = 0
    appointments_today: int = 0
    month_revenue: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    overdue_amount: Decimal = Decimal("0")
    recent_cases: List[dict] = field(default_factory=list)
    upcoming_appointments: List[dict] = field(default_factory=list)


def month_start(today: date) -> date:
    return today.replace(day=1)


class DashboardService:
    """Figures of the signed in user's practice, computed from their own rows."""

    def __init__(self, gateway: Gateway, user_id: str):
        self.gateway = gateway.for_user(user_id)
        self.user_id = user_id

    async def _count(self, table: str, build=None) -> int:
        query = self.gateway.table(table).select("id", count="exact", head=True)
        if build is not None:
            query = build(query)
        response = await query.execute()
        return response.raise_for_error().count or 0

    async def _rows(self, table: str, columns: str, build=None) -> List[dict]:
        query = self.gateway.table(table).select(columns)
        if build is not None:
            query = build(query)
        response = await query.execute()
        return response.raise_for_error().data

    async def stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or utcnow()
        today = now.date()
        first_of_month = month_start(today)
        day_start = datetime.combine(today, time.min)
        day_end = day_start + timedelta(days=1)

        active_cases = await self._count(
            "legal_cases", lambda q: q.in_("status", ACTIVE_CASE_STATUSES)
        )
        new_cases = await self._count(
            "legal_cases", lambda q: q.gte("created_at", datetime.combine(first_of_month, time.min))
        )
        clients = client_counts(await self._rows("clients", "id, client_type"))

        tasks = await self._rows(
            "tasks", "id, status, due_date",
            lambda q: q.in_("status", [TaskStatus.TODO, TaskStatus.IN_PROGRESS])
        )
        appointments_today = await self._count(
            "appointments",
            lambda q: q.gte("start_datetime", day_start).lt("start_datetime", day_end)
            .neq("status", AppointmentStatus.CANCELLED)
        )

        invoices = await self._rows("invoices", "id, status, due_date, total_amount, payment_date, issue_date")
        paid_this_month = [
            invoice for invoice in invoices
            if invoice["status"] == InvoiceStatus.PAID
            and (invoice["payment_date"] or invoice["issue_date"]) >= first_of_month
        ]
        summary = invoice_summary(invoices, today)

        recent_cases = await self._rows(
            "legal_cases", "id, title, case_number, status, created_at, clients(first_name, last_name, company_name, client_type)",
            lambda q: q.order("created_at", desc=True).limit(RECENT_LIMIT)
        )
        upcoming = await self._rows(
            "appointments", "id, title, start_datetime, location, status",
            lambda q: q.gte("start_datetime", now).neq("status", AppointmentStatus.CANCELLED)
            .order("start_datetime").limit(RECENT_LIMIT)
        )

        stats = DashboardStats(
            active_cases=active_cases,
            new_cases_this_month=new_cases,
            clients=clients["total"],
            individual_clients=clients["individuals"],
            organization_clients=clients["organizations"],
            open_tasks=len(tasks),
            overdue_tasks=sum(1 for task in tasks if is_task_overdue(task, now)),
            appointments_today=appointments_today,
            month_revenue=invoice_summary(paid_this_month, today).revenue,
            pending_amount=summary.pending,
            overdue_amount=summary.overdue_amount,
            recent_cases=recent_cases,
            upcoming_appointments=upcoming,
        )
        logger.info(f"Computed dashboard for user {self.user_id}: {active_cases} active cases")
        return stats
