"""Pydantic models for expenses (hr.expense)."""

import datetime as dt
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PositiveInt

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "name",
    "employee_id",
    "total_amount",
    "state",
    "date",
    "payment_state",
    "create_date",
]


class Expense(BaseModel):
    id: int
    name: Optional[str] = None
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    total: Optional[float] = None
    state: Optional[str] = None
    payment_state: Optional[str] = None
    date: Optional[str] = None
    created_at: Optional[str] = None


class ExpenseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    employee_id: PositiveInt
    total: float = Field(..., ge=0)
    date: Optional[dt.date] = None
    state: Optional[str] = None
    payment_state: Optional[str] = None


class ExpenseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    employee_id: Optional[PositiveInt] = None
    total: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None
    state: Optional[str] = None
    payment_state: Optional[str] = None


class ExpenseAdapter(Adapter[Expense]):
    field_map = {
        "name": "name",
        "employee_id": "employee_id",
        "total": "total_amount",
        "state": "state",
        "payment_state": "payment_state",
        "date": "date",
    }

    def to_dto(self, record: Dict[str, Any]) -> Expense:
        employee = unpack_relational(record.get("employee_id"))
        return Expense(
            id=record["id"],
            name=odoo_value(record.get("name")),
            employee_id=employee.id,
            employee_name=employee.name,
            total=odoo_value(record.get("total_amount")),
            state=odoo_value(record.get("state")),
            payment_state=odoo_value(record.get("payment_state")),
            date=odoo_value(record.get("date")),
            created_at=odoo_value(record.get("create_date")),
        )
