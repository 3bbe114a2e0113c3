import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from juriscloud.resources.controller import ResourceListController

logger = logging.getLogger(__name__)

CREATE = "create"
EDIT = "edit"


def field_errors(error: ValidationError, schema) -> Dict[str, str]:
    """One message per field, in the schema's wording for missing values."""
    errors = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "__all__"
        if field in errors:
            continue
        if item["type"] == "missing":
            errors[field] = schema.required_message(field)
        else:
            errors[field] = item["msg"].replace("Value error, ", "", 1)
    return errors


class ResourceDialog:
    """Create/edit form bound to a list controller.

    Invalid values stay in the form with inline errors and never reach the
    gateway. A valid submit creates or updates one row, then the dialog
    closes and resets.
    """

    def __init__(self, controller: ResourceListController, row: Optional[BaseModel] = None):
        self.controller = controller
        self.spec = controller.spec
        self.row_id = getattr(row, "id", None)
        self.mode = EDIT if row is not None else CREATE
        self._row = row
        self.values: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.submitting = False
        self.open = False
        self.reset()

    def _seed(self) -> Dict[str, Any]:
        schema = self.spec.create_schema
        if self._row is None:
            return {
                name: info.default
                for name, info in schema.model_fields.items()
                if not info.is_required()
            }
        data = self._row.model_dump()
        return {name: data.get(name) for name in schema.model_fields if name in data}

    def reset(self) -> None:
        self.values = self._seed()
        self.errors = {}

    def show(self) -> None:
        self.open = True
        self.controller.open_dialog()

    def close(self) -> None:
        self.open = False
        self.controller.close_dialog()
        self.reset()

    def set(self, field: str, value: Any) -> None:
        self.values[field] = value
        self.errors.pop(field, None)

    def validate(self, values: Optional[Dict[str, Any]] = None) -> Optional[BaseModel]:
        candidate = {**self.values, **(values or {})}
        self.values = candidate
        try:
            model = self.spec.create_schema.model_validate(candidate)
        except ValidationError as e:
            self.errors = field_errors(e, self.spec.create_schema)
            return None
        self.errors = {}
        return model

    async def submit(self, values: Optional[Dict[str, Any]] = None) -> Optional[BaseModel]:
        model = self.validate(values)
        if model is None:
            logger.debug(f"{self.spec.name} form rejected: {self.errors}")
            return None
        self.submitting = True
        try:
            if self.mode == EDIT:
                row = await self.controller.update(self.row_id, model.model_dump(exclude={"lines"}))
            else:
                row = await self.controller.create(model)
        finally:
            self.submitting = False
        if row is not None:
            self.close()
        return row

    async def delete(self) -> bool:
        if self.mode != EDIT:
            return False
        deleted = await self.controller.delete(self.row_id)
        if deleted:
            self.close()
        return deleted
