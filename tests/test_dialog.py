from juriscloud.models import ClientType, Priority
from juriscloud.resources.controller import ResourceListController
from juriscloud.resources.dialog import CREATE, EDIT, ResourceDialog
from juriscloud.resources.specs import CASES, CLIENTS


def accept(message):
    return True


async def test_create_dialog_is_seeded_with_defaults(gateway, session):
    dialog = ResourceDialog(ResourceListController(CLIENTS, gateway, session))
    assert dialog.mode == CREATE
    assert dialog.values["client_type"] == ClientType.INDIVIDUAL
    assert dialog.values["country"] == "France"


async def test_invalid_submit_keeps_inline_errors_and_skips_the_gateway(gateway, session, monkeypatch):
    controller = ResourceListController(CASES, gateway, session)
    dialog = ResourceDialog(controller)
    dialog.show()

    async def unexpected(fields):
        raise AssertionError("create must not be called")

    monkeypatch.setattr(controller, "create", unexpected)
    row = await dialog.submit({"title": "  ", "case_type": "Civil"})

    assert row is None
    assert dialog.open is True
    assert dialog.errors["title"] == "Titre requis"
    assert dialog.errors["case_number"] == "Numéro de dossier requis"
    assert "case_type" not in dialog.errors


async def test_company_client_needs_company_name(gateway, session):
    dialog = ResourceDialog(ResourceListController(CLIENTS, gateway, session))
    row = await dialog.submit({"client_type": ClientType.ORGANIZATION, "company_name": ""})
    assert row is None
    assert dialog.errors["company_name"] == "Nom de l'entreprise requis"


async def test_set_clears_the_field_error(gateway, session):
    dialog = ResourceDialog(ResourceListController(CASES, gateway, session))
    await dialog.submit({})
    assert "title" in dialog.errors
    dialog.set("title", "Martin vs Dupont")
    assert "title" not in dialog.errors


async def test_valid_submit_creates_then_closes_and_resets(gateway, session):
    controller = ResourceListController(CASES, gateway, session)
    dialog = ResourceDialog(controller)
    dialog.show()
    assert controller.dialog_open is True

    row = await dialog.submit({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})

    assert row.case_number == "DOS-2024-001"
    assert dialog.open is False
    assert controller.dialog_open is False
    assert "title" not in dialog.values
    assert controller.rows[0].id == row.id


async def test_edit_dialog_updates_the_row(gateway, session):
    controller = ResourceListController(CASES, gateway, session)
    created = await controller.create({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})

    dialog = ResourceDialog(controller, created)
    assert dialog.mode == EDIT
    assert dialog.values["title"] == "Martin vs Dupont"

    row = await dialog.submit({"priority": Priority.URGENT})

    assert row.id == created.id
    assert row.priority == Priority.URGENT
    assert controller.total_count == 1


async def test_edit_dialog_delete_is_confirmed(gateway, session):
    controller = ResourceListController(CASES, gateway, session, confirm=accept)
    created = await controller.create({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})
    dialog = ResourceDialog(controller, created)
    dialog.show()
    assert await dialog.delete() is True
    assert dialog.open is False
    assert controller.total_count == 0
