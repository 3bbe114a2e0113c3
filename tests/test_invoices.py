from datetime import date, timedelta
from decimal import Decimal

import pytest

from juriscloud.gateway.query import TableQuery, GatewayResponse
from juriscloud.gateway.errors import GatewayError
from juriscloud.models import ClientType, InvoiceStatus
from juriscloud.resources.controller import ResourceListController
from juriscloud.resources.service import compute_totals
from juriscloud.resources.specs import CLIENTS, INVOICES
from juriscloud.resources.views import format_currency, invoice_summary, is_invoice_overdue


@pytest.fixture
async def client_row(gateway, session):
    clients = ResourceListController(CLIENTS, gateway, session)
    return await clients.create({"client_type": ClientType.ORGANIZATION, "company_name": "ACME SAS"})


def _invoice(client_id, **extra):
    return {
        "invoice_number": "FAC-2024-001",
        "client_id": client_id,
        "issue_date": date.today(),
        "due_date": date.today() + timedelta(days=30),
        **extra,
    }


def test_compute_totals_rounds_to_the_cent():
    assert compute_totals(Decimal("1000"), Decimal("0.20")) == (Decimal("200.00"), Decimal("1200.00"))
    assert compute_totals("99.99", "0.055") == (Decimal("5.50"), Decimal("105.49"))


async def test_invoice_totals_are_computed_on_create(gateway, session, client_row):
    controller = ResourceListController(INVOICES, gateway, session)
    invoice = await controller.create(_invoice(client_row.id, subtotal="1000", tax_rate="0.20"))

    assert invoice.tax_amount == Decimal("200")
    assert invoice.total_amount == Decimal("1200")
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.paid_amount == Decimal("0")
    assert invoice.clients.company_name == "ACME SAS"


async def test_default_tax_rate(gateway, session, client_row):
    controller = ResourceListController(INVOICES, gateway, session)
    invoice = await controller.create(_invoice(client_row.id, subtotal="1000"))
    assert invoice.tax_rate == Decimal("0.20")
    assert invoice.total_amount == Decimal("1200")


async def test_lines_make_the_subtotal(gateway, session, client_row):
    controller = ResourceListController(INVOICES, gateway, session)
    invoice = await controller.create(_invoice(client_row.id, lines=[
        {"description": "Consultation", "quantity": "2", "unit_price": "150"},
        {"description": "Rédaction d'acte", "quantity": "1", "unit_price": "700"},
    ]))
    assert invoice.subtotal == Decimal("1000")
    assert invoice.total_amount == Decimal("1200")

    lines = await INVOICES.service(gateway, session.user_id).lines(invoice.id)
    assert sorted(Decimal(line["total_price"]) for line in lines) == [Decimal("300"), Decimal("700")]


async def test_failed_lines_remove_the_invoice(gateway, session, client_row, monkeypatch):
    original = TableQuery.execute_sync

    def failing(self):
        if self._table_name == "invoice_lines" and self._operation == "insert":
            return GatewayResponse(error=GatewayError("insert failed"))
        return original(self)

    monkeypatch.setattr(TableQuery, "execute_sync", failing)
    controller = ResourceListController(INVOICES, gateway, session)
    invoice = await controller.create(_invoice(client_row.id, lines=[
        {"description": "Consultation", "quantity": "1", "unit_price": "150"},
    ]))

    assert invoice is None
    await controller.fetch()
    assert controller.total_count == 0


async def test_update_keeps_total_consistent(gateway, session, client_row):
    controller = ResourceListController(INVOICES, gateway, session)
    invoice = await controller.create(_invoice(client_row.id, subtotal="1000"))

    updated = await controller.update(invoice.id, {"subtotal": "500"})
    assert updated.tax_amount == Decimal("100")
    assert updated.total_amount == Decimal("600")

    updated = await controller.update(invoice.id, {"tax_rate": "0"})
    assert updated.total_amount == Decimal("500")


async def test_invoice_requires_subtotal_or_lines(gateway, session, client_row, notifier):
    controller = ResourceListController(INVOICES, gateway, session)
    assert await controller.create(_invoice(client_row.id)) is None
    assert notifier.last.description == "Montant HT requis"


def test_overdue_invoice():
    yesterday = date.today() - timedelta(days=1)
    assert is_invoice_overdue({"status": InvoiceStatus.SENT, "due_date": yesterday})
    assert not is_invoice_overdue({"status": InvoiceStatus.PAID, "due_date": yesterday})
    assert not is_invoice_overdue({"status": InvoiceStatus.CANCELLED, "due_date": yesterday})
    assert not is_invoice_overdue({"status": InvoiceStatus.SENT, "due_date": date.today()})


def test_invoice_summary():
    yesterday = date.today() - timedelta(days=1)
    summary = invoice_summary([
        {"status": InvoiceStatus.PAID, "total_amount": Decimal("1200"), "due_date": yesterday},
        {"status": InvoiceStatus.SENT, "total_amount": Decimal("300"), "due_date": yesterday},
        {"status": InvoiceStatus.DRAFT, "total_amount": Decimal("50"), "due_date": date.today()},
    ])
    assert summary.revenue == Decimal("1200")
    assert summary.pending == Decimal("300")
    assert summary.overdue_amount == Decimal("300")
    assert summary.overdue_count == 1
    assert summary.total_count == 3


def test_format_currency():
    assert format_currency(Decimal("1200")) == "1 200,00 €"
    assert format_currency(None) == "0,00 €"
