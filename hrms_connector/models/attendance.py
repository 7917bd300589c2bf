"""Pydantic models for attendance records (hr.attendance)."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, PositiveInt, model_validator

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "employee_id",
    "check_in",
    "check_out",
    "worked_hours",
    "create_date",
]


class Attendance(BaseModel):
    id: int
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    worked_hours: Optional[float] = None
    created_at: Optional[str] = None


class AttendanceCreate(BaseModel):
    employee_id: PositiveInt
    check_in: datetime
    check_out: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_order(self) -> "AttendanceCreate":
        if self.check_out is not None and self.check_out < self.check_in:
            raise ValueError("check_out must not be earlier than check_in")
        return self


class AttendanceUpdate(BaseModel):
    employee_id: Optional[PositiveInt] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None


class AttendanceAdapter(Adapter[Attendance]):
    field_map = {
        "employee_id": "employee_id",
        "check_in": "check_in",
        "check_out": "check_out",
    }

    def to_dto(self, record: Dict[str, Any]) -> Attendance:
        employee = unpack_relational(record.get("employee_id"))
        return Attendance(
            id=record["id"],
            employee_id=employee.id,
            employee_name=employee.name,
            check_in=odoo_value(record.get("check_in")),
            check_out=odoo_value(record.get("check_out")),
            worked_hours=odoo_value(record.get("worked_hours")),
            created_at=odoo_value(record.get("create_date")),
        )
