#!/usr/bin/env python3
"""
JurisCloud CLI: the practice screens in a terminal, run against the configured database
"""

import argparse
import asyncio
import logging
import mimetypes
import os
from typing import List, Optional

from juriscloud.config import LOG_LEVEL, SESSION_FILE
from juriscloud.database import init_db
from juriscloud.documents.checklist import checklist, missing_summary
from juriscloud.documents.service import CaseDocuments, CaseDocumentsService
from juriscloud.gateway.auth import AuthGateway
from juriscloud.gateway.errors import GatewayError
from juriscloud.gateway.query import Gateway
from juriscloud.gateway.storage import get_storage_bucket
from juriscloud.models import DocumentCategory, TaskStatus
from juriscloud.notifications import Notifier, Toast
from juriscloud.resources.controller import ResourceListController, make_controller
from juriscloud.resources.dialog import ResourceDialog
from juriscloud.resources.specs import RESOURCES
from juriscloud.resources.views import (
    client_display_name, format_bytes, format_currency, is_invoice_overdue, is_task_overdue
)
from juriscloud.routing import MENU, resolve
from juriscloud.session import SessionContext


def present(toast: Toast):
    icon = "❌" if toast.variant == "destructive" else "✅"
    line = f"{icon} {toast.title}"
    if toast.description:
        line += f" - {toast.description}"
    print(line)


def read_token() -> Optional[str]:
    if not os.path.exists(SESSION_FILE):
        return None
    with open(SESSION_FILE, "r", encoding="utf-8") as f:
        return f.read().strip() or None


def write_token(token: Optional[str]):
    if token:
        with open(SESSION_FILE, "w", encoding="utf-8") as f:
            f.write(token)
    elif os.path.exists(SESSION_FILE):
        os.remove(SESSION_FILE)


def ask_confirmation(message: str) -> bool:
    answer = input(f"⚠️  {message} [o/N] ")
    return answer.strip().lower() in ("o", "oui", "y", "yes")


def parse_fields(pairs: List[str]) -> dict:
    """``key=value`` arguments to a dict of form values."""
    fields = {}
    for pair in pairs:
        if "=" not in pair:
            raise SystemExit(f"❌ Expected key=value, got '{pair}'")
        key, value = pair.split("=", 1)
        fields[key.strip()] = value
    return fields

# =====================================================
# CARDS
# =====================================================

def card_lines(resource: str, row) -> List[str]:
    if resource == "cases":
        return [
            f"📁 {row.title}",
            f"   N° {row.case_number} · {row.case_type}",
            f"   Statut: {row.status.value} · Priorité: {row.priority.value}",
            f"   Client: {client_display_name(row.clients)}",
            f"   Ouvert le {row.start_date.isoformat()}",
        ]
    if resource == "clients":
        return [
            f"👤 {client_display_name(row)} ({row.client_type.value})",
            f"   ✉️  {row.email or '-'} · ☎️  {row.phone or '-'}",
            f"   {row.city or ''} {row.country or ''}".rstrip(),
        ]
    if resource == "tasks":
        due = row.due_date.strftime("%d/%m/%Y %H:%M") if row.due_date else "Pas d'échéance"
        lines = [
            f"📝 {row.title}",
            f"   {row.task_type} · {row.status.value} · Priorité: {row.priority.value}",
            f"   Échéance: {due}",
        ]
        if is_task_overdue(row):
            lines.append("   ⏰ En retard")
        if row.legal_cases:
            lines.append(f"   Dossier: {row.legal_cases.title}")
        return lines
    if resource == "invoices":
        lines = [
            f"💶 Facture {row.invoice_number} · {row.status.value}",
            f"   Client: {client_display_name(row.clients)}",
            f"   HT {format_currency(row.subtotal)} · TVA {format_currency(row.tax_amount)} · "
            f"TTC {format_currency(row.total_amount)}",
            f"   Échéance: {row.due_date.isoformat()}",
        ]
        if is_invoice_overdue(row):
            lines.append("   ⏰ En retard")
        return lines
    if resource == "appointments":
        return [
            f"📅 {row.title} ({row.appointment_type})",
            f"   {row.start_datetime.strftime('%d/%m/%Y %H:%M')} → {row.end_datetime.strftime('%H:%M')}",
            f"   {row.status.value} · {row.location or 'Lieu non précisé'}",
        ]
    return [
        f"💬 {row.subject or row.communication_type} ({row.direction.value})",
        f"   {row.communication_date.strftime('%d/%m/%Y %H:%M')} · {row.contact_person or '-'}",
    ]


def render_list(controller: ResourceListController):
    spec = controller.spec
    print(f"\n{spec.label} · {controller.total_count} résultat(s)")
    if controller.search_term:
        print(f"🔍 Recherche: '{controller.search_term}'")
    print("=" * 80)
    if controller.is_empty:
        title, description = controller.empty_state
        print(f"\n   {title}")
        print(f"   {description}\n")
        return
    for row in controller.rows:
        for line in card_lines(spec.name, row):
            print(line)
        print(f"   id: {row.id}")
        print("-" * 80)
    if controller.total_pages > 1:
        pages = " ".join(
            f"[{number}]" if number == controller.page else str(number)
            for number in controller.page_window
        )
        print(f"📄 Page {controller.page} sur {controller.total_pages}:  {pages}")

# =====================================================
# COMMANDS
# =====================================================

class App:
    """Session, gateway and notifier shared by the commands of one run."""

    def __init__(self):
        self.notifier = Notifier(presenter=present)
        self.gateway = Gateway()
        self.auth = AuthGateway(self.gateway)
        self.session = SessionContext(self.auth, self.notifier, navigate=self.navigate)

    def navigate(self, path: str):
        resolution = resolve(path, signed_in=self.session.user is not None)
        print(f"➡️  {resolution.path}")

    async def start(self) -> bool:
        await self.session.restore(read_token())
        return self.session.user is not None

    def require_user(self) -> bool:
        if self.session.user is None:
            print("🔒 Connectez-vous d'abord: juriscloud_cli.py sign-in EMAIL PASSWORD")
            return False
        return True

    def controller(self, resource: str, confirm=None) -> ResourceListController:
        return make_controller(
            RESOURCES[resource], self.gateway, self.session,
            notifier=self.notifier, confirm=confirm
        )

    def documents(self, case_id: str) -> CaseDocuments:
        service = CaseDocumentsService(self.gateway, get_storage_bucket(), self.session.user_id)
        return CaseDocuments(service, case_id, self.notifier)


async def sign_up(app: App, args):
    profile = {"first_name": args.first_name, "last_name": args.last_name, "company_name": args.company}
    await app.session.sign_up(args.email, args.password, profile)
    write_token(app.session.access_token)


async def confirm_account(app: App, args):
    if args.token:
        user = await app.auth.verify_email(args.token)
    else:
        # Operator override: no proof of mailbox ownership
        user = await app.auth.confirm_user(args.email)
    print(f"✅ Compte {user.email} confirmé")


async def sign_in(app: App, args):
    if await app.session.sign_in(args.email, args.password) is None:
        write_token(app.session.access_token)


async def sign_out(app: App, args):
    await app.session.sign_out()
    write_token(None)


async def whoami(app: App, args):
    if app.require_user():
        user = app.session.user
        print(f"👤 {user.display_name} <{user.email}>")
        for path, label in MENU:
            print(f"   {path:<15} {label}")


async def open_path(app: App, args):
    resolution = resolve(args.path, signed_in=app.session.user is not None)
    if resolution.redirected_from:
        print(f"↪️  {resolution.redirected_from} → {resolution.path}")
    print(f"🖥️  Écran: {resolution.screen}")


async def list_rows(app: App, args):
    if not app.require_user():
        return
    controller = app.controller(args.resource)
    controller.search_term = args.search or ""
    await controller.mount()
    if args.page > 1:
        await controller.set_page(args.page)
    render_list(controller)
    controller.unmount()


async def create_row(app: App, args):
    if not app.require_user():
        return
    controller = app.controller(args.resource)
    dialog = ResourceDialog(controller)
    dialog.show()
    row = await dialog.submit(parse_fields(args.fields))
    if row is None:
        for field, message in dialog.errors.items():
            print(f"❌ {field}: {message}")
        return
    for line in card_lines(args.resource, row):
        print(line)
    print(f"   id: {row.id}")


async def update_row(app: App, args):
    if not app.require_user():
        return
    controller = app.controller(args.resource)
    row = await controller.update(args.id, parse_fields(args.fields))
    if row is not None:
        for line in card_lines(args.resource, row):
            print(line)


async def delete_row(app: App, args):
    if not app.require_user():
        return
    confirm = (lambda message: True) if args.yes else ask_confirmation
    controller = app.controller(args.resource, confirm=confirm)
    await controller.delete(args.id)


async def task_status(app: App, args):
    if not app.require_user():
        return
    controller = app.controller("tasks")
    await controller.mark_status(args.id, TaskStatus(args.status))


async def list_documents(app: App, args):
    if not app.require_user():
        return
    panel = app.documents(args.case_id)
    await panel.load()
    print(f"\n📂 Documents du dossier {args.case_id}")
    print("=" * 80)
    for category, present_ in checklist(panel.existing_categories):
        print(f"   {'✅' if present_ else '⬜'} {category.value}")
    summary = missing_summary(panel.existing_categories)
    if summary:
        print(f"\n⚠️  {summary}")
    print("-" * 80)
    for document in panel.documents:
        print(f"📄 {document.title} ({document.document_type.value})")
        print(f"   {document.file_name} · {format_bytes(document.file_size)} · id: {document.id}")


async def upload_document(app: App, args):
    if not app.require_user():
        return
    panel = app.documents(args.case_id)
    await panel.load()
    panel.start_upload()
    summary = missing_summary(panel.existing_categories)
    if summary:
        print(f"⚠️  {summary}")
    if not (args.yes or ask_confirmation("Continuer vers le téléversement ?")):
        panel.cancel_checklist()
        return
    panel.confirm_checklist()
    with open(args.file, "rb") as f:
        content = f.read()
    await panel.upload(
        os.path.basename(args.file), content,
        content_type=mimetypes.guess_type(args.file)[0],
        category=DocumentCategory(args.category), title=args.title
    )


async def document_url(app: App, args):
    if not app.require_user():
        return
    panel = app.documents(args.case_id)
    document = await panel.service.get(args.document_id)
    url = await panel.download_url(document)
    if url:
        print(f"🔗 {url}")


async def delete_document(app: App, args):
    if not app.require_user():
        return
    panel = app.documents(args.case_id)
    document = await panel.service.get(args.document_id)
    if args.yes or ask_confirmation(f"Supprimer le document {document.title} ?"):
        await panel.delete(document)


COMMANDS = {
    "sign-up": sign_up,
    "confirm": confirm_account,
    "sign-in": sign_in,
    "sign-out": sign_out,
    "whoami": whoami,
    "open": open_path,
    "list": list_rows,
    "create": create_row,
    "update": update_row,
    "delete": delete_row,
    "task-status": task_status,
    "documents": list_documents,
    "upload": upload_document,
    "document-url": document_url,
    "delete-document": delete_document,
}


async def run(args):
    init_db()
    app = App()
    await app.start()
    try:
        await COMMANDS[args.command](app, args)
    except GatewayError as e:
        print(f"❌ {e.message}")
    finally:
        app.session.close()


def main():
    parser = argparse.ArgumentParser(description="JurisCloud CLI Tool")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    resources = sorted(RESOURCES)

    # Account commands
    signup_parser = subparsers.add_parser("sign-up", help="Create an account")
    signup_parser.add_argument("email")
    signup_parser.add_argument("password")
    signup_parser.add_argument("--first-name")
    signup_parser.add_argument("--last-name")
    signup_parser.add_argument("--company")

    confirm_parser = subparsers.add_parser("confirm", help="Confirm an account's email with the token from its link")
    confirm_target = confirm_parser.add_mutually_exclusive_group(required=True)
    confirm_target.add_argument("--token", help="Token from the confirmation link")
    confirm_target.add_argument("--email", help="Operator override: confirm this account without a token")

    signin_parser = subparsers.add_parser("sign-in", help="Sign in and keep the session")
    signin_parser.add_argument("email")
    signin_parser.add_argument("password")

    subparsers.add_parser("sign-out", help="Sign out")
    subparsers.add_parser("whoami", help="Show the signed in user")

    open_parser = subparsers.add_parser("open", help="Resolve a route")
    open_parser.add_argument("path")

    # Resource commands
    list_parser = subparsers.add_parser("list", help="List rows of a resource")
    list_parser.add_argument("resource", choices=resources)
    list_parser.add_argument("--page", type=int, default=1, help="Page number")
    list_parser.add_argument("--search", help="Search term")

    create_parser = subparsers.add_parser("create", help="Create a row from key=value fields")
    create_parser.add_argument("resource", choices=resources)
    create_parser.add_argument("fields", nargs="*")

    update_parser = subparsers.add_parser("update", help="Update a row from key=value fields")
    update_parser.add_argument("resource", choices=resources)
    update_parser.add_argument("id")
    update_parser.add_argument("fields", nargs="*")

    delete_parser = subparsers.add_parser("delete", help="Delete a row")
    delete_parser.add_argument("resource", choices=resources)
    delete_parser.add_argument("id")
    delete_parser.add_argument("--yes", action="store_true", help="Skip the confirmation")

    status_parser = subparsers.add_parser("task-status", help="Change a task's status")
    status_parser.add_argument("id")
    status_parser.add_argument("status", nargs="?", default=TaskStatus.DONE.value,
                               choices=[status.value for status in TaskStatus])

    # Document commands
    documents_parser = subparsers.add_parser("documents", help="Documents and checklist of a case")
    documents_parser.add_argument("case_id")

    upload_parser = subparsers.add_parser("upload", help="Upload a document to a case")
    upload_parser.add_argument("case_id")
    upload_parser.add_argument("file")
    upload_parser.add_argument("--category", default=DocumentCategory.OTHER.value,
                               choices=[category.value for category in DocumentCategory])
    upload_parser.add_argument("--title")
    upload_parser.add_argument("--yes", action="store_true", help="Confirm the checklist")

    url_parser = subparsers.add_parser("document-url", help="Signed download URL of a document")
    url_parser.add_argument("case_id")
    url_parser.add_argument("document_id")

    delete_document_parser = subparsers.add_parser("delete-document", help="Delete a document")
    delete_document_parser.add_argument("case_id")
    delete_document_parser.add_argument("document_id")
    delete_document_parser.add_argument("--yes", action="store_true", help="Skip the confirmation")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(run(args))

if __name__ == "__main__":
    main()
