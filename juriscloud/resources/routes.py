from fastapi import APIRouter, Depends, status, Query
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import logging

from juriscloud.auth.dependencies import get_current_user, get_user_gateway
from juriscloud.auth.schemas import AuthUser
from juriscloud.config import PAGE_SIZE
from juriscloud.gateway.errors import GatewayError, to_http_exception
from juriscloud.gateway.query import Gateway
from juriscloud.resources.pagination import page_window
from juriscloud.resources.schemas import InvoiceLineRow, TaskStatusUpdate
from juriscloud.resources.service import InvoiceService, TaskService
from juriscloud.resources.specs import INVOICES, RESOURCES, TASKS, ResourceSpec

logger = logging.getLogger(__name__)


class PageResponse(BaseModel):
    items: List[Dict[str, Any]]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    page_window: List[int]
    empty_title: Optional[str] = None
    empty_description: Optional[str] = None


def build_router(spec: ResourceSpec) -> APIRouter:
    """List/create/get/update/delete endpoints of one resource."""
    router = APIRouter(prefix=f"/{spec.name}", tags=[spec.label])
    create_schema = spec.create_schema
    update_schema = spec.update_schema

    @router.get("/", response_model=PageResponse)
    async def list_rows(
        page: int = Query(1, ge=1),
        page_size: int = Query(PAGE_SIZE, ge=1, le=100),
        search: str = "",
        current_user: AuthUser = Depends(get_current_user),
        gateway: Gateway = Depends(get_user_gateway)
    ):
        service = spec.service(gateway, current_user.id)
        try:
            result = await service.fetch_page(page, page_size, search)
        except GatewayError as e:
            raise to_http_exception(e)
        empty_title, empty_description = spec.empty_state(search) if not result.rows else (None, None)
        return PageResponse(
            items=[row.model_dump(mode="json") for row in result.rows],
            total_count=result.total_count,
            page=page,
            page_size=page_size,
            total_pages=result.total_pages,
            page_window=page_window(page, result.total_pages),
            empty_title=empty_title,
            empty_description=empty_description,
        )

    @router.post("/", status_code=status.HTTP_201_CREATED)
    async def create_row(
        payload: create_schema,
        current_user: AuthUser = Depends(get_current_user),
        gateway: Gateway = Depends(get_user_gateway)
    ):
        try:
            row = await spec.service(gateway, current_user.id).create(payload)
        except GatewayError as e:
            raise to_http_exception(e)
        return row.model_dump(mode="json")

    @router.get("/{row_id}")
    async def get_row(
        row_id: str,
        current_user: AuthUser = Depends(get_current_user),
        gateway: Gateway = Depends(get_user_gateway)
    ):
        try:
            row = await spec.service(gateway, current_user.id).get(row_id)
        except GatewayError as e:
            raise to_http_exception(e)
        return row.model_dump(mode="json")

    @router.patch("/{row_id}")
    async def update_row(
        row_id: str,
        payload: update_schema,
        current_user: AuthUser = Depends(get_current_user),
        gateway: Gateway = Depends(get_user_gateway)
    ):
        try:
            row = await spec.service(gateway, current_user.id).update(row_id, payload)
        except GatewayError as e:
            raise to_http_exception(e)
        return row.model_dump(mode="json")

    @router.delete("/{row_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_row(
        row_id: str,
        current_user: AuthUser = Depends(get_current_user),
        gateway: Gateway = Depends(get_user_gateway)
    ):
        try:
            await spec.service(gateway, current_user.id).delete(row_id)
        except GatewayError as e:
            raise to_http_exception(e)

    if spec is TASKS:
        @router.patch("/{row_id}/status")
        async def update_task_status(
            row_id: str,
            payload: TaskStatusUpdate,
            current_user: AuthUser = Depends(get_current_user),
            gateway: Gateway = Depends(get_user_gateway)
        ):
            service: TaskService = spec.service(gateway, current_user.id)
            try:
                row = await service.mark_status(row_id, payload.status)
            except GatewayError as e:
                raise to_http_exception(e)
            return row.model_dump(mode="json")

    if spec is INVOICES:
        @router.get("/{row_id}/lines", response_model=List[InvoiceLineRow])
        async def list_invoice_lines(
            row_id: str,
            current_user: AuthUser = Depends(get_current_user),
            gateway: Gateway = Depends(get_user_gateway)
        ):
            service: InvoiceService = spec.service(gateway, current_user.id)
            try:
                return await service.lines(row_id)
            except GatewayError as e:
                raise to_http_exception(e)

    return router


routers = [build_router(spec) for spec in RESOURCES.values()]
