"""
Pydantic models for job applicants (hr.applicant).

Exposed over HTTP as "recruitment".
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PositiveInt

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational
from hrms_connector.models.employee import EMAIL_PATTERN

DEFAULT_FIELDS = [
    "id",
    "name",
    "email_from",
    "partner_name",
    "job_id",
    "department_id",
    "stage_id",
    "create_date",
]


class Applicant(BaseModel):
    id: int
    name: Optional[str] = None
    applicant_name: Optional[str] = None
    email: Optional[str] = None
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    stage_id: Optional[int] = None
    stage_name: Optional[str] = None
    created_at: Optional[str] = None


class ApplicantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Application subject")
    applicant_name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    job_id: Optional[PositiveInt] = None
    department_id: Optional[PositiveInt] = None
    stage_id: Optional[PositiveInt] = None


class ApplicantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    applicant_name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    job_id: Optional[PositiveInt] = None
    department_id: Optional[PositiveInt] = None
    stage_id: Optional[PositiveInt] = None


class ApplicantAdapter(Adapter[Applicant]):
    field_map = {
        "name": "name",
        "applicant_name": "partner_name",
        "email": "email_from",
        "job_id": "job_id",
        "department_id": "department_id",
        "stage_id": "stage_id",
    }

    def to_dto(self, record: Dict[str, Any]) -> Applicant:
        job = unpack_relational(record.get("job_id"))
        department = unpack_relational(record.get("department_id"))
        stage = unpack_relational(record.get("stage_id"))
        return Applicant(
            id=record["id"],
            name=odoo_value(record.get("name")),
            applicant_name=odoo_value(record.get("partner_name")),
            email=odoo_value(record.get("email_from")),
            job_id=job.id,
            job_title=job.name,
            department_id=department.id,
            department_name=department.name,
            stage_id=stage.id,
            stage_name=stage.name,
            created_at=odoo_value(record.get("create_date")),
        )
