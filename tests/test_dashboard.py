from datetime import date, timedelta
from decimal import Decimal

from juriscloud.dashboard.service import DashboardService
from juriscloud.models import AppointmentStatus, CaseStatus, ClientType, InvoiceStatus, TaskStatus, utcnow
from juriscloud.resources.controller import ResourceListController
from juriscloud.resources.specs import APPOINTMENTS, CASES, CLIENTS, INVOICES, TASKS


async def test_dashboard_counts_only_the_users_rows(gateway, session):
    now = utcnow()
    cases = ResourceListController(CASES, gateway, session)
    await cases.create({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})
    await cases.create({"title": "Succession Leroy", "case_number": "DOS-2024-002", "case_type": "Famille",
                        "status": CaseStatus.CLOSED})

    clients = ResourceListController(CLIENTS, gateway, session)
    person = await clients.create({"last_name": "Durand"})
    await clients.create({"client_type": ClientType.ORGANIZATION, "company_name": "ACME SAS"})

    tasks = ResourceListController(TASKS, gateway, session)
    await tasks.create({"title": "En retard", "due_date": now - timedelta(days=1)})
    await tasks.create({"title": "À venir", "due_date": now + timedelta(days=3)})
    await tasks.create({"title": "Fini", "status": TaskStatus.DONE})

    appointments = ResourceListController(APPOINTMENTS, gateway, session)
    await appointments.create({"title": "Rendez-vous client", "start_datetime": now + timedelta(days=2),
                               "end_datetime": now + timedelta(days=2, hours=1)})
    await appointments.create({"title": "Annulé", "start_datetime": now + timedelta(days=1),
                               "end_datetime": now + timedelta(days=1, hours=1),
                               "status": AppointmentStatus.CANCELLED})

    invoices = ResourceListController(INVOICES, gateway, session)
    today = now.date()
    await invoices.create({"invoice_number": "FAC-1", "client_id": person.id, "issue_date": today,
                           "due_date": today, "subtotal": "1000", "status": InvoiceStatus.PAID,
                           "payment_date": today})
    await invoices.create({"invoice_number": "FAC-2", "client_id": person.id, "issue_date": today,
                           "due_date": date(2000, 1, 1), "subtotal": "100", "status": InvoiceStatus.SENT})

    stats = await DashboardService(gateway, session.user_id).stats(now)

    assert stats.active_cases == 1
    assert stats.new_cases_this_month == 2
    assert (stats.clients, stats.individual_clients, stats.organization_clients) == (2, 1, 1)
    assert stats.open_tasks == 2
    assert stats.overdue_tasks == 1
    assert stats.month_revenue == Decimal("1200")
    assert stats.pending_amount == Decimal("120")
    assert stats.overdue_amount == Decimal("120")
    assert [row["title"] for row in stats.recent_cases] == ["Succession Leroy", "Martin vs Dupont"]
    assert [row["title"] for row in stats.upcoming_appointments] == ["Rendez-vous client"]

    empty = await DashboardService(gateway, "someone-else").stats(now)
    assert empty.active_cases == 0
    assert empty.recent_cases == []
