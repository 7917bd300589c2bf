"""
Pydantic models for employees (hr.employee).

These models define the API contract for employee CRUD operations and the
adapter that maps them to and from raw Odoo records.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "name",
    "work_email",
    "work_phone",
    "mobile_phone",
    "job_id",
    "department_id",
    "parent_id",
    "work_location",
    "active",
    "create_date",
    "write_date",
]

# Optional leading +, up to three digit groups separated by space, dot or dash.
PHONE_PATTERN = r"^$|^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"
EMAIL_PATTERN = r"^$|^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Employee(BaseModel):
    """Employee as returned by the API."""

    id: int
    name: str
    email: str = ""
    phone: str = ""
    mobile: str = ""
    job_title: Optional[str] = None
    job_id: Optional[int] = None
    department: Optional[str] = None
    department_id: Optional[int] = None
    manager: Optional[str] = None
    manager_id: Optional[int] = None
    work_location: str = ""
    join_date: Optional[str] = None
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class EmployeeCreate(BaseModel):
    """Model for creating a new employee."""

    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, description="Work email")
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="Work phone")
    mobile: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="Mobile phone")
    job_id: Optional[PositiveInt] = None
    department_id: Optional[PositiveInt] = None
    manager_id: Optional[PositiveInt] = None
    work_location: Optional[str] = Field(None, max_length=200)
    join_date: Optional[date] = None
    active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the name is trimmed and still long enough."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v


class EmployeeUpdate(BaseModel):
    """Model for updating an employee (all fields optional)."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    mobile: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    job_id: Optional[PositiveInt] = None
    department_id: Optional[PositiveInt] = None
    manager_id: Optional[PositiveInt] = None
    work_location: Optional[str] = Field(None, max_length=200)
    join_date: Optional[date] = None
    active: Optional[bool] = None


class EmployeeAdapter(Adapter[Employee]):
    field_map = {
        "name": "name",
        "email": "work_email",
        "phone": "work_phone",
        "mobile": "mobile_phone",
        "work_location": "work_location",
        "join_date": "join_date",
        "job_id": "job_id",
        "department_id": "department_id",
        "manager_id": "parent_id",
        "active": "active",
    }

    def to_dto(self, record: Dict[str, Any]) -> Employee:
        job = unpack_relational(record.get("job_id"))
        department = unpack_relational(record.get("department_id"))
        manager = unpack_relational(record.get("parent_id"))
        active = record.get("active")
        return Employee(
            id=record["id"],
            name=odoo_value(record.get("name"), ""),
            email=odoo_value(record.get("work_email"), ""),
            phone=odoo_value(record.get("work_phone"), ""),
            mobile=odoo_value(record.get("mobile_phone"), ""),
            job_title=job.name,
            job_id=job.id,
            department=department.name,
            department_id=department.id,
            manager=manager.name,
            manager_id=manager.id,
            work_location=odoo_value(record.get("work_location"), ""),
            join_date=odoo_value(record.get("join_date")),
            active=True if active is None else bool(active),
            created_at=odoo_value(record.get("create_date")),
            updated_at=odoo_value(record.get("write_date")),
        )
