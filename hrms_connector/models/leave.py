"""
Pydantic models for leave requests (hr.leave).

Exposed over HTTP as "timeoff".
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "employee_id",
    "holiday_status_id",
    "date_from",
    "date_to",
    "number_of_days",
    "state",
    "create_date",
]

LeaveState = Literal["draft", "confirm", "refuse", "validate1", "validate", "cancel"]


class Leave(BaseModel):
    id: int
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    type_id: Optional[int] = None
    type_name: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    days: Optional[float] = None
    state: Optional[str] = None
    created_at: Optional[str] = None


class LeaveCreate(BaseModel):
    employee_id: PositiveInt
    type_id: PositiveInt = Field(..., description="Leave type (hr.leave.type) ID")
    date_from: datetime
    date_to: datetime
    days: Optional[float] = Field(None, gt=0)
    state: Optional[LeaveState] = None


class LeaveUpdate(BaseModel):
    employee_id: Optional[PositiveInt] = None
    type_id: Optional[PositiveInt] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    days: Optional[float] = Field(None, gt=0)
    state: Optional[LeaveState] = None


class LeaveAdapter(Adapter[Leave]):
    field_map = {
        "employee_id": "employee_id",
        "type_id": "holiday_status_id",
        "date_from": "date_from",
        "date_to": "date_to",
        "days": "number_of_days",
        "state": "state",
    }

    def to_dto(self, record: Dict[str, Any]) -> Leave:
        employee = unpack_relational(record.get("employee_id"))
        leave_type = unpack_relational(record.get("holiday_status_id"))
        return Leave(
            id=record["id"],
            employee_id=employee.id,
            employee_name=employee.name,
            type_id=leave_type.id,
            type_name=leave_type.name,
            date_from=odoo_value(record.get("date_from")),
            date_to=odoo_value(record.get("date_to")),
            days=odoo_value(record.get("number_of_days")),
            state=odoo_value(record.get("state")),
            created_at=odoo_value(record.get("create_date")),
        )
