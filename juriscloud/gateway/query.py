"""Table query builder over the relational store.

Mirrors the hosted data API the screens were written against::

    response = await (
        gateway.table("legal_cases")
        .select("*, clients(first_name, last_name)", count="exact")
        .eq("user_id", user_id)
        .or_(search_filter(["title", "case_number"], "dupont"))
        .order("created_at", desc=True)
        .range(0, 8)
        .execute()
    )
    response.data, response.count, response.error

Rows of tables carrying a ``user_id`` column are only visible to, and only
writable by, the gateway's user unless the gateway runs with the service role.
"""

import enum
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Date, DateTime, Numeric, delete, false, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from juriscloud.database import Base, new_session
from juriscloud.gateway.errors import ConstraintError, GatewayError, PermissionDeniedError

logger = logging.getLogger(__name__)

OWNER_COLUMN = "user_id"
_EMBED_RE = re.compile(r"^(\w+)\s*\((.*)\)$", re.S)
_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is", "in"}


@dataclass
class GatewayResponse:
    data: Any = None
    error: Optional[GatewayError] = None
    count: Optional[int] = None

    def raise_for_error(self) -> "GatewayResponse":
        if self.error is not None:
            raise self.error
        return self


# =====================================================
# PARSING HELPERS
# =====================================================

def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on ``sep`` outside parentheses and double quotes."""
    parts = []
    current = []
    depth = 0
    quoted = False
    previous = ""
    for ch in text:
        if ch == '"' and previous != "\\":
            quoted = not quoted
        elif not quoted and ch == "(":
            depth += 1
        elif not quoted and ch == ")":
            depth -= 1
        if ch == sep and depth == 0 and not quoted:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        previous = ch
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def parse_columns(columns: str) -> Tuple[List[str], Dict[str, List[str]]]:
    """Parse ``"*, clients(first_name, last_name)"`` into plain and embedded columns."""
    plain = []
    embeds = {}
    for item in split_top_level(columns or "*"):
        match = _EMBED_RE.match(item)
        if match:
            nested, _ = parse_columns(match.group(2))
            embeds[match.group(1)] = nested or ["*"]
        else:
            plain.append(item)
    return plain, embeds


def parse_predicate(expression: str) -> Tuple[str, str, Any]:
    """Parse ``column.operator.value`` as used inside ``or_`` filters."""
    try:
        column, operator, value = expression.split(".", 2)
    except ValueError:
        raise GatewayError(f'"failed to parse logic tree ({expression})"', code="PGRST100")
    if operator not in _OPERATORS:
        raise GatewayError(f'unknown operator "{operator}" in filter "{expression}"', code="PGRST100")
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('\\"', '"')
    if operator == "is":
        value = {"null": None, "true": True, "false": False}.get(value.lower(), value)
    elif operator == "in":
        value = [item.strip('"') for item in split_top_level(value.strip("()"))]
    return column, operator, value


def ilike_pattern(term: str) -> str:
    """Substring pattern for ``ilike`` with LIKE wildcards in ``term`` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_filter(columns: Sequence[str], term: str) -> str:
    """Build an ``or_`` expression matching ``term`` in any of ``columns``."""
    quoted = '"%s"' % ilike_pattern(term).replace('"', '\\"')
    return ",".join(f"{column}.ilike.{quoted}" for column in columns)


def _coerce(column, value):
    if value is None or isinstance(value, enum.Enum):
        return value
    column_type = column.type
    if isinstance(column_type, DateTime):
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        if isinstance(value, datetime) and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(column_type, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            return date.fromisoformat(value[:10])
        return value
    if isinstance(column_type, Numeric) and isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise GatewayError(f'invalid input syntax for type numeric: "{value}"', code="22P02")
    return value


def _foreign_key_between(source, target) -> Optional[Tuple[str, str]]:
    for fk in source.foreign_keys:
        if fk.column.table is target:
            return fk.parent.name, fk.column.name
    return None


def _primary_key(table):
    return list(table.primary_key.columns)[0]


def _project(row: Optional[Dict[str, Any]], columns: List[str]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    if "*" in columns:
        return dict(row)
    return {name: row.get(name) for name in columns}


# =====================================================
# QUERY BUILDER
# =====================================================

class TableQuery:
    def __init__(self, gateway: "Gateway", table_name: str):
        self._gateway = gateway
        self._table_name = table_name
        self._operation = "select"
        self._columns = "*"
        self._count = None
        self._head = False
        self._payload: List[Dict[str, Any]] = []
        self._filters: List[Tuple[str, Any, Any]] = []
        self._order: List[Tuple[str, bool, Optional[bool]]] = []
        self._offset = None
        self._limit = None
        self._single = False

    # Operations

    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "TableQuery":
        self._operation = "select"
        self._columns = columns
        self._count = count
        self._head = head
        return self

    def insert(self, rows) -> "TableQuery":
        self._operation = "insert"
        self._payload = list(rows) if isinstance(rows, (list, tuple)) else [rows]
        return self

    def update(self, fields: Dict[str, Any]) -> "TableQuery":
        self._operation = "update"
        self._payload = [dict(fields)]
        return self

    def delete(self) -> "TableQuery":
        self._operation = "delete"
        return self

    # Filters

    def eq(self, column: str, value) -> "TableQuery":
        self._filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value) -> "TableQuery":
        self._filters.append(("neq", column, value))
        return self

    def gt(self, column: str, value) -> "TableQuery":
        self._filters.append(("gt", column, value))
        return self

    def gte(self, column: str, value) -> "TableQuery":
        self._filters.append(("gte", column, value))
        return self

    def lt(self, column: str, value) -> "TableQuery":
        self._filters.append(("lt", column, value))
        return self

    def lte(self, column: str, value) -> "TableQuery":
        self._filters.append(("lte", column, value))
        return self

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        self._filters.append(("ilike", column, pattern))
        return self

    def in_(self, column: str, values) -> "TableQuery":
        self._filters.append(("in", column, list(values)))
        return self

    def is_(self, column: str, value) -> "TableQuery":
        self._filters.append(("is", column, value))
        return self

    def or_(self, expression: str) -> "TableQuery":
        self._filters.append(("or", expression, None))
        return self

    # Modifiers

    def order(self, column: str, desc: bool = False, nulls_last: Optional[bool] = None) -> "TableQuery":
        self._order.append((column, desc, nulls_last))
        return self

    def range(self, start: int, end: int) -> "TableQuery":
        self._offset = max(start, 0)
        self._limit = max(end - start + 1, 0)
        return self

    def limit(self, count: int) -> "TableQuery":
        self._limit = count
        return self

    def maybe_single(self) -> "TableQuery":
        self._single = True
        return self

    async def execute(self) -> GatewayResponse:
        return await run_in_threadpool(self.execute_sync)

    def execute_sync(self) -> GatewayResponse:
        try:
            table = self._gateway.table_for(self._table_name)
            with self._gateway.session_factory() as db:
                if self._operation == "select":
                    data, count = self._run_select(db, table)
                elif self._operation == "insert":
                    data, count = self._run_insert(db, table), None
                elif self._operation == "update":
                    data, count = self._run_update(db, table), None
                else:
                    data, count = self._run_delete(db, table), None
            if self._single:
                data = data[0] if data else None
            return GatewayResponse(data=data, count=count)
        except IntegrityError as exc:
            error = ConstraintError(str(exc.orig), code="23505", original_error=exc)
        except SQLAlchemyError as exc:
            error = GatewayError(str(exc), original_error=exc)
        except (ValueError, TypeError) as exc:
            error = GatewayError(f"Invalid query: {exc}", code="PGRST100", original_error=exc)
        except GatewayError as exc:
            error = exc
        logger.warning("Gateway %s on %s failed: %s", self._operation, self._table_name, error.message)
        return GatewayResponse(error=error)

    # Statement building

    def _column(self, table, name: str):
        if name not in table.c:
            raise GatewayError(f"column {table.name}.{name} does not exist", code="42703")
        return table.c[name]

    def _predicate(self, table, column_name: str, operator: str, value):
        column = self._column(table, column_name)
        if operator == "in":
            return column.in_([_coerce(column, item) for item in value])
        if operator == "is":
            return column.is_(value)
        if operator in ("ilike", "like"):
            method = column.ilike if operator == "ilike" else column.like
            return method(value, escape="\\")
        value = _coerce(column, value)
        if operator == "eq":
            return column == value
        if operator == "neq":
            return column != value
        if operator == "gt":
            return column > value
        if operator == "gte":
            return column >= value
        if operator == "lt":
            return column < value
        if operator == "lte":
            return column <= value
        raise GatewayError(f'unknown operator "{operator}"', code="PGRST100")

    def _conditions(self, table) -> list:
        conditions = []
        owner = self._gateway.owner_condition(table)
        if owner is not None:
            conditions.append(owner)
        for operator, first, second in self._filters:
            if operator == "or":
                clauses = [
                    self._predicate(table, *parse_predicate(expression))
                    for expression in split_top_level(first)
                ]
                if clauses:
                    conditions.append(or_(*clauses))
            else:
                conditions.append(self._predicate(table, first, operator, second))
        return conditions

    def _select_ids(self, db, table, ids: List[str]) -> List[Dict[str, Any]]:
        if not ids:
            return []
        key = _primary_key(table)
        rows = {
            row[key.name]: dict(row)
            for row in db.execute(select(table).where(key.in_(ids))).mappings()
        }
        return [rows[row_id] for row_id in ids if row_id in rows]

    def _run_select(self, db, table):
        plain, embeds = parse_columns(self._columns)
        if not plain or "*" in plain:
            names = [column.name for column in table.c]
        else:
            names = plain
        columns = [self._column(table, name) for name in names]

        # Embedding needs the join columns even when they were not requested
        hidden = []
        for relation in embeds:
            related = self._gateway.table_for(relation)
            forward = _foreign_key_between(table, related)
            reverse = _foreign_key_between(related, table)
            if forward is None and reverse is None:
                raise GatewayError(
                    f"Could not find a relationship between '{table.name}' and '{relation}'",
                    code="PGRST200"
                )
            join_column = forward[0] if forward else reverse[1]
            if join_column not in names and join_column not in hidden:
                hidden.append(join_column)
                columns.append(self._column(table, join_column))

        conditions = self._conditions(table)
        count = None
        if self._count:
            count = db.execute(select(func.count()).select_from(table).where(*conditions)).scalar_one()
        if self._head:
            return [], count

        statement = select(*columns).where(*conditions)
        for column_name, descending, nulls_last in self._order:
            column = self._column(table, column_name)
            clause = column.desc() if descending else column.asc()
            if nulls_last is True:
                clause = clause.nulls_last()
            elif nulls_last is False:
                clause = clause.nulls_first()
            statement = statement.order_by(clause)
        if self._offset:
            statement = statement.offset(self._offset)
        if self._limit is not None:
            statement = statement.limit(self._limit)

        rows = [dict(row) for row in db.execute(statement).mappings()]
        for relation, relation_columns in embeds.items():
            self._attach(db, table, rows, relation, relation_columns)
        for row in rows:
            for name in hidden:
                row.pop(name, None)
        return rows, count

    def _attach(self, db, table, rows, relation: str, relation_columns: List[str]):
        related = self._gateway.table_for(relation)
        forward = _foreign_key_between(table, related)
        if forward:
            local, remote = forward
        else:
            remote, local = _foreign_key_between(related, table)
        keys = {row[local] for row in rows if row.get(local) is not None}
        matches = []
        if keys:
            conditions = [related.c[remote].in_(keys)]
            owner = self._gateway.owner_condition(related)
            if owner is not None:
                conditions.append(owner)
            matches = [dict(row) for row in db.execute(select(related).where(*conditions)).mappings()]

        if forward:
            by_key = {match[remote]: match for match in matches}
            for row in rows:
                row[relation] = _project(by_key.get(row.get(local)), relation_columns)
        else:
            grouped: Dict[Any, List[Dict[str, Any]]] = {}
            for match in matches:
                grouped.setdefault(match[remote], []).append(_project(match, relation_columns))
            for row in rows:
                row[relation] = grouped.get(row.get(local), [])

    def _prepare_values(self, table, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {name: _coerce(self._column(table, name), value) for name, value in raw.items()}

    def _run_insert(self, db, table):
        key = _primary_key(table)
        rows = []
        for raw in self._payload:
            values = self._prepare_values(table, raw)
            self._gateway.check_owner(table, values)
            if values.get(key.name) is None:
                values[key.name] = str(uuid.uuid4())
            rows.append(values)
        with db.begin():
            for values in rows:
                db.execute(insert(table).values(**values))
        return self._select_ids(db, table, [values[key.name] for values in rows])

    def _run_update(self, db, table):
        if not self._filters:
            raise GatewayError("UPDATE requires a WHERE clause", code="21000")
        key = _primary_key(table)
        values = self._prepare_values(table, self._payload[0])
        if OWNER_COLUMN in values:
            self._gateway.check_owner(table, values)
        conditions = self._conditions(table)
        with db.begin():
            ids = [row_id for (row_id,) in db.execute(select(key).where(*conditions))]
            if ids and values:
                db.execute(update(table).where(key.in_(ids)).values(**values))
        return self._select_ids(db, table, ids)

    def _run_delete(self, db, table):
        if not self._filters:
            raise GatewayError("DELETE requires a WHERE clause", code="21000")
        key = _primary_key(table)
        conditions = self._conditions(table)
        with db.begin():
            rows = [dict(row) for row in db.execute(select(table).where(*conditions)).mappings()]
            if rows:
                db.execute(delete(table).where(key.in_([row[key.name] for row in rows])))
        return rows


# =====================================================
# GATEWAY
# =====================================================

class Gateway:
    """Entry point of the data API, scoped to one user or to the service role."""

    def __init__(self, session_factory=None, user_id: Optional[str] = None, service_role: bool = False):
        self.session_factory = session_factory or new_session
        self.user_id = user_id
        self.service_role = service_role

    def for_user(self, user_id: Optional[str]) -> "Gateway":
        return Gateway(self.session_factory, user_id=user_id)

    def service(self) -> "Gateway":
        return Gateway(self.session_factory, service_role=True)

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    def table_for(self, name: str):
        # Register the models on Base.metadata
        import juriscloud.models  # noqa: F401

        table = Base.metadata.tables.get(name)
        if table is None:
            raise GatewayError(f'relation "public.{name}" does not exist', code="42P01")
        return table

    def owner_condition(self, table):
        if self.service_role or OWNER_COLUMN not in table.c:
            return None
        if self.user_id is None:
            return false()
        return table.c[OWNER_COLUMN] == self.user_id

    def check_owner(self, table, values: Dict[str, Any]) -> None:
        if self.service_role or OWNER_COLUMN not in table.c:
            return
        owner = values.get(OWNER_COLUMN) or self.user_id
        if self.user_id is None or owner != self.user_id:
            raise PermissionDeniedError(
                f'new row violates row-level security policy for table "{table.name}"',
                code="42501"
            )
        values[OWNER_COLUMN] = owner


def get_gateway() -> Gateway:
    return Gateway()
