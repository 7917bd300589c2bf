"""
Shared pieces for resource models: Odoo value helpers, the adapter base class
and the list/delete response envelopes.
"""

from datetime import date, datetime
from typing import Any, ClassVar, Dict, Generic, List, NamedTuple, Optional, TypeVar

from pydantic import BaseModel, Field

DtoT = TypeVar("DtoT", bound=BaseModel)

ODOO_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class Relational(NamedTuple):
    id: Optional[int]
    name: Optional[str]


def unpack_relational(value: Any) -> Relational:
    """
    Split an Odoo many2one value.

    Odoo returns `[id, display_name]` for a set relation and `False` for an
    empty one; a bare id is accepted too.
    """
    if isinstance(value, (list, tuple)):
        record_id = value[0] if len(value) > 0 else None
        name = value[1] if len(value) > 1 else None
        return Relational(record_id or None, name or None)
    if value is False or value is None:
        return Relational(None, None)
    return Relational(value, None)


def odoo_value(value: Any, default: Any = None) -> Any:
    """Odoo uses False for "no value" on non-boolean fields."""
    if value is False or value is None:
        return default
    return value


class Adapter(Generic[DtoT]):
    """
    Translate between raw Odoo records and API DTOs.

    Subclasses set `field_map` (DTO field -> Odoo field) and implement
    `to_dto`. Only fields listed in `field_map` are ever written to Odoo.
    """

    field_map: ClassVar[Dict[str, str]] = {}

    def to_dto(self, record: Dict[str, Any]) -> DtoT:
        raise NotImplementedError

    def to_dto_list(self, records: List[Dict[str, Any]]) -> List[DtoT]:
        return [self.to_dto(r) for r in records or []]

    def to_odoo(self, data: Any, *, partial: bool = False) -> Dict[str, Any]:
        """
        Odoo write values for a create/update payload.

        Full writes drop fields left as None; partial writes keep exactly the
        fields the caller set.
        """
        if isinstance(data, BaseModel):
            payload = (
                data.model_dump(exclude_unset=True)
                if partial
                else data.model_dump(exclude_none=True)
            )
        else:
            payload = {
                k: v for k, v in dict(data or {}).items() if partial or v is not None
            }

        values: Dict[str, Any] = {}
        for dto_field, odoo_field in self.field_map.items():
            if dto_field not in payload:
                continue
            value = payload[dto_field]
            # Odoo clears fields with False.
            values[odoo_field] = False if value is None else _to_wire(value)
        return values


def _to_wire(value: Any) -> Any:
    # Odoo expects server-format strings for date and datetime fields.
    if isinstance(value, datetime):
        return value.strftime(ODOO_DATETIME_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    return value


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedResponse(BaseModel, Generic[DtoT]):
    success: bool = True
    data: List[DtoT] = Field(default_factory=list)
    pagination: Pagination


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
