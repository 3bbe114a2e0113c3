import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from juriscloud.gateway.errors import GatewayError, NotFoundError
from juriscloud.gateway.query import Gateway, search_filter
from juriscloud.models import TaskStatus, utcnow
from juriscloud.resources.pagination import page_range, total_pages

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

Fields = Union[Dict[str, Any], BaseModel]


@dataclass
class Page:
    rows: List[BaseModel] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 9

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count, self.page_size)


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(subtotal, tax_rate) -> Tuple[Decimal, Decimal]:
    """Return ``(tax_amount, total_amount)`` rounded to the cent."""
    subtotal = money(subtotal)
    tax_amount = money(subtotal * Decimal(str(tax_rate)))
    return tax_amount, subtotal + tax_amount


class ResourceService:
    """Owner scoped CRUD over one table, described by a ResourceSpec."""

    def __init__(self, gateway: Gateway, spec, user_id: str):
        self.spec = spec
        self.user_id = user_id
        self.gateway = gateway.for_user(user_id)

    def _table(self):
        return self.gateway.table(self.spec.table)

    def _row(self, data: Dict[str, Any]) -> BaseModel:
        try:
            return self.spec.row_model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected {self.spec.table} row shape: {e}")
            raise GatewayError(f"Invalid {self.spec.table} row", code="invalid_row", original_error=e)

    def validate_create(self, fields: Fields) -> BaseModel:
        if isinstance(fields, self.spec.create_schema):
            return fields
        if isinstance(fields, BaseModel):
            fields = fields.model_dump(exclude_unset=True)
        return self.spec.create_schema.model_validate(fields)

    def validate_update(self, fields: Fields) -> BaseModel:
        if isinstance(fields, self.spec.update_schema):
            return fields
        if isinstance(fields, BaseModel):
            fields = fields.model_dump(exclude_unset=True)
        return self.spec.update_schema.model_validate(fields)

    async def fetch_page(self, page: int, page_size: int, search_term: str = "") -> Page:
        start, end = page_range(page, page_size)
        query = (
            self._table()
            .select(self.spec.select, count="exact")
            .eq("user_id", self.user_id)
        )
        term = (search_term or "").strip()
        if term:
            query = query.or_(search_filter(self.spec.search_columns, term))
        query = query.order(self.spec.order_by, desc=self.spec.descending, nulls_last=self.spec.nulls_last)
        if self.spec.order_by != "created_at":
            query = query.order("created_at", desc=True)
        response = await query.range(start, end).execute()
        response.raise_for_error()
        rows = [self._row(data) for data in response.data]
        return Page(rows=rows, total_count=response.count or 0, page=page, page_size=page_size)

    async def get(self, row_id: str) -> BaseModel:
        response = await self._table().select(self.spec.select).eq("id", row_id).maybe_single().execute()
        if response.raise_for_error().data is None:
            raise NotFoundError(f"{self.spec.label} introuvable", code="not_found")
        return self._row(response.data)

    def prepare_insert(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return values

    def prepare_update(self, values: Dict[str, Any], current: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return values

    async def create(self, fields: Fields) -> BaseModel:
        model = self.validate_create(fields)
        values = {**self.spec.defaults(), **model.model_dump(exclude_none=True)}
        values = self.prepare_insert(values)
        values["user_id"] = self.user_id
        response = await self._table().insert(values).execute()
        created = response.raise_for_error().data[0]
        logger.info(f"Created {self.spec.table} row {created['id']} for user {self.user_id}")
        return await self.get(created["id"])

    async def update(self, row_id: str, fields: Fields) -> BaseModel:
        model = self.validate_update(fields)
        current = (await self.get(row_id)).model_dump()
        values = self.prepare_update(model.model_dump(exclude_unset=True), current)
        if values:
            response = await self._table().update(values).eq("id", row_id).execute()
            if not response.raise_for_error().data:
                raise NotFoundError(f"{self.spec.label} introuvable", code="not_found")
            logger.info(f"Updated {self.spec.table} row {row_id}")
        return await self.get(row_id)

    async def delete(self, row_id: str) -> Dict[str, Any]:
        response = await self._table().delete().eq("id", row_id).execute()
        deleted = response.raise_for_error().data
        if not deleted:
            raise NotFoundError(f"{self.spec.label} introuvable", code="not_found")
        logger.info(f"Deleted {self.spec.table} row {row_id}")
        return deleted[0]


class TaskService(ResourceService):

    def prepare_update(self, values, current=None):
        # Entering Done stamps completion, leaving it clears the stamp
        if "status" in values and "completed_at" not in values:
            was_done = current is not None and current["status"] == TaskStatus.DONE
            is_done = values["status"] == TaskStatus.DONE
            if is_done and not was_done:
                values["completed_at"] = utcnow()
            elif was_done and not is_done:
                values["completed_at"] = None
        return values

    def prepare_insert(self, values):
        if values.get("status") == TaskStatus.DONE and not values.get("completed_at"):
            values["completed_at"] = utcnow()
        return values

    async def mark_status(self, row_id: str, status: TaskStatus) -> BaseModel:
        return await self.update(row_id, {"status": status})


class InvoiceService(ResourceService):
    """Invoices keep ``total_amount = subtotal + tax_amount`` on every write."""

    def prepare_insert(self, values):
        lines = values.pop("lines", None)
        if lines:
            values["subtotal"] = sum((money(line["total_price"]) for line in lines), Decimal("0"))
        values["tax_amount"], values["total_amount"] = compute_totals(values["subtotal"], values["tax_rate"])
        values["subtotal"] = money(values["subtotal"])
        return values

    def prepare_update(self, values, current=None):
        if current is not None and ("subtotal" in values or "tax_rate" in values):
            subtotal = values.get("subtotal", current["subtotal"])
            tax_rate = values.get("tax_rate", current["tax_rate"])
            values["tax_amount"], values["total_amount"] = compute_totals(subtotal, tax_rate)
        return values

    async def create(self, fields: Fields) -> BaseModel:
        model = self.validate_create(fields)
        lines = [
            {
                "description": line.description,
                "quantity": line.quantity,
                "unit_price": money(line.unit_price),
                "total_price": money(line.quantity * line.unit_price),
            }
            for line in (model.lines or [])
        ]
        values = {**self.spec.defaults(), **model.model_dump(exclude_none=True, exclude={"lines"})}
        values["lines"] = lines
        values = self.prepare_insert(values)
        values["user_id"] = self.user_id
        response = await self._table().insert(values).execute()
        invoice = response.raise_for_error().data[0]

        if lines:
            rows = [{**line, "invoice_id": invoice["id"]} for line in lines]
            inserted = await self.gateway.table("invoice_lines").insert(rows).execute()
            if inserted.error is not None:
                logger.error(f"Invoice lines insert failed, removing invoice {invoice['id']}")
                await self._table().delete().eq("id", invoice["id"]).execute()
                raise inserted.error
        logger.info(f"Created invoice {invoice['id']} total {invoice['total_amount']}")
        return await self.get(invoice["id"])

    async def lines(self, invoice_id: str) -> List[Dict[str, Any]]:
        await self.get(invoice_id)
        response = await (
            self.gateway.table("invoice_lines")
            .select("*")
            .eq("invoice_id", invoice_id)
            .order("created_at")
            .execute()
        )
        return response.raise_for_error().data


async def load_client_options(gateway: Gateway, user_id: str) -> List[Dict[str, Any]]:
    """Clients offered in the reference selects of the dialogs."""
    response = await (
        gateway.for_user(user_id).table("clients")
        .select("id, first_name, last_name, company_name, client_type")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return response.raise_for_error().data


async def load_case_options(gateway: Gateway, user_id: str) -> List[Dict[str, Any]]:
    response = await (
        gateway.for_user(user_id).table("legal_cases")
        .select("id, title, case_number")
        .eq("user_id", user_id)
        .order("title")
        .execute()
    )
    return response.raise_for_error().data
