"""List screen state for one resource: paging, search and CRUD with notifications."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from juriscloud.config import PAGE_SIZE
from juriscloud.gateway.errors import GatewayError
from juriscloud.gateway.query import Gateway
from juriscloud.models import TaskStatus
from juriscloud.notifications import Notifier
from juriscloud.resources import views
from juriscloud.resources.pagination import page_window, total_pages
from juriscloud.resources.service import Fields, ResourceService
from juriscloud.resources.specs import ResourceSpec, TASKS
from juriscloud.session import SessionContext

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


def first_error(error: ValidationError) -> str:
    message = error.errors()[0]["msg"]
    return message.replace("Value error, ", "", 1)


def _decline(message: str) -> bool:
    return False


class ResourceListController:

    def __init__(self, spec: ResourceSpec, gateway: Gateway, session: SessionContext,
                 notifier: Optional[Notifier] = None, confirm: Optional[Confirm] = None,
                 page_size: int = PAGE_SIZE):
        self.spec = spec
        self.gateway = gateway
        self.session = session
        self.notifier = notifier or session.notifier
        self.confirm = confirm or _decline
        self.page_size = page_size

        self.page = 1
        self.search_term = ""
        self.rows: List[BaseModel] = []
        self.total_count = 0
        self.loading = False
        self.dialog_open = False

        self._request_seq = 0
        self._mounted = False
        self._unsubscribe = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    def service(self) -> ResourceService:
        return self.spec.service(self.gateway, self.user_id)

    # Lifecycle

    async def mount(self) -> None:
        self._mounted = True
        self._unsubscribe = self.session.subscribe(self._on_user_change)
        await self.fetch()

    def unmount(self) -> None:
        self._mounted = False
        # Responses still in flight are dropped
        self._request_seq += 1
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_user_change(self, user) -> None:
        self.page = 1
        self.rows = []
        self.total_count = 0
        if user is None:
            self._request_seq += 1
            self.loading = False
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._pending = loop.create_task(self.fetch())

    # Loading

    async def fetch(self) -> None:
        if self.user_id is None:
            self.rows = []
            self.total_count = 0
            self.loading = False
            return

        self._request_seq += 1
        seq = self._request_seq
        self.loading = True
        try:
            page = await self.service().fetch_page(self.page, self.page_size, self.search_term)
        except GatewayError as e:
            if seq != self._request_seq:
                return
            logger.error(f"Loading {self.spec.table} failed: {e.message}")
            self.notifier.error("Erreur", self.spec.copy.load_error)
            self.loading = False
            return
        if seq != self._request_seq:
            logger.debug(f"Discarding stale {self.spec.table} response #{seq}")
            return
        self.rows = page.rows
        self.total_count = page.total_count
        self.loading = False

    async def set_page(self, page: int) -> None:
        self.page = min(max(page, 1), self.total_pages)
        await self.fetch()

    async def set_search(self, term: str) -> None:
        self.search_term = term or ""
        self.page = 1
        await self.fetch()

    # Dialog

    def open_dialog(self) -> None:
        self.dialog_open = True

    def close_dialog(self) -> None:
        self.dialog_open = False

    # Mutations

    async def create(self, fields: Fields) -> Optional[BaseModel]:
        copy = self.spec.copy
        try:
            row = await self.service().create(fields)
        except ValidationError as e:
            self.notifier.error("Erreur", first_error(e))
            return None
        except GatewayError as e:
            logger.error(f"Creating {self.spec.table} row failed: {e.message}")
            self.notifier.error("Erreur", copy.save_error)
            return None
        self.notifier.success(copy.created, copy.created_description)
        self.dialog_open = False
        self.page = 1
        await self.fetch()
        return row

    async def update(self, row_id: str, fields: Fields) -> Optional[BaseModel]:
        copy = self.spec.copy
        try:
            row = await self.service().update(row_id, fields)
        except ValidationError as e:
            self.notifier.error("Erreur", first_error(e))
            return None
        except GatewayError as e:
            logger.error(f"Updating {self.spec.table} row {row_id} failed: {e.message}")
            self.notifier.error("Erreur", copy.update_error)
            return None
        self.notifier.success(copy.updated, copy.updated_description)
        self.dialog_open = False
        await self.fetch()
        return row

    async def _confirmed(self, message: str) -> bool:
        answer = self.confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def delete(self, row_id: str) -> bool:
        copy = self.spec.copy
        if not await self._confirmed(copy.confirm_delete):
            return False
        try:
            await self.service().delete(row_id)
        except GatewayError as e:
            logger.error(f"Deleting {self.spec.table} row {row_id} failed: {e.message}")
            self.notifier.error("Erreur", copy.delete_error)
            return False
        self.notifier.success(copy.deleted, copy.deleted_description)
        if len(self.rows) == 1 and self.page > 1:
            self.page -= 1
        await self.fetch()
        return True

    # Presentation

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count, self.page_size)

    @property
    def page_window(self) -> List[int]:
        return page_window(self.page, self.total_pages)

    @property
    def is_empty(self) -> bool:
        return not self.loading and not self.rows

    @property
    def empty_state(self) -> Tuple[str, str]:
        return self.spec.empty_state(self.search_term)


class TaskListController(ResourceListController):

    async def mark_status(self, row_id: str, status: TaskStatus) -> Optional[BaseModel]:
        try:
            row = await self.service().mark_status(row_id, status)
        except GatewayError as e:
            logger.error(f"Updating task {row_id} status failed: {e.message}")
            self.notifier.error("Erreur", self.spec.copy.update_error)
            return None
        if status == TaskStatus.DONE:
            self.notifier.success("Tâche complétée", "La tâche a été marquée comme terminée")
        else:
            self.notifier.success("Tâche mise à jour", f"Statut : {status.value}")
        await self.fetch()
        return row

    async def mark_as_completed(self, row_id: str) -> Optional[BaseModel]:
        return await self.mark_status(row_id, TaskStatus.DONE)

    @property
    def overdue(self) -> List[BaseModel]:
        return [task for task in self.rows if views.is_task_overdue(task)]

    @property
    def groups(self) -> Dict[str, List[BaseModel]]:
        return views.group_tasks(self.rows)


def make_controller(spec: ResourceSpec, gateway: Gateway, session: SessionContext, **kwargs) -> ResourceListController:
    controller_class = TaskListController if spec is TASKS else ResourceListController
    return controller_class(spec, gateway, session, **kwargs)
