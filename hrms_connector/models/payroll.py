"""Pydantic models for payslips (hr.payslip)."""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, PositiveInt

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "number",
    "employee_id",
    "date_from",
    "date_to",
    "state",
    "amount_total",
    "create_date",
]


class Payslip(BaseModel):
    id: int
    number: Optional[str] = None
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    state: Optional[str] = None
    total: Optional[float] = None
    created_at: Optional[str] = None


class PayslipCreate(BaseModel):
    employee_id: PositiveInt
    date_from: date
    date_to: date
    state: Optional[str] = None


class PayslipUpdate(BaseModel):
    employee_id: Optional[PositiveInt] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    state: Optional[str] = None


class PayslipAdapter(Adapter[Payslip]):
    # amount_total is computed by Odoo and never written.
    field_map = {
        "employee_id": "employee_id",
        "date_from": "date_from",
        "date_to": "date_to",
        "state": "state",
    }

    def to_dto(self, record: Dict[str, Any]) -> Payslip:
        employee = unpack_relational(record.get("employee_id"))
        return Payslip(
            id=record["id"],
            number=odoo_value(record.get("number")),
            employee_id=employee.id,
            employee_name=employee.name,
            date_from=odoo_value(record.get("date_from")),
            date_to=odoo_value(record.get("date_to")),
            state=odoo_value(record.get("state")),
            total=odoo_value(record.get("amount_total")),
            created_at=odoo_value(record.get("create_date")),
        )
