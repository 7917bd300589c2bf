"""
Model Registry

Declares every HTTP resource the connector exposes and wires each one to its
Odoo model, repository and service.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel

from hrms_connector.connectors.odoo_client import OdooRpc
from hrms_connector.core.record_cache import RecordCache
from hrms_connector.core.repository import OdooRepository
from hrms_connector.core.service import MAX_PAGE_LIMIT, EmployeeService, OdooModelService
from hrms_connector.models import applicant, attendance, employee, expense, invoice, leave, payroll
from hrms_connector.models.common import Adapter
from hrms_connector.models.connection import OdooConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDefinition:
    """One REST resource backed by one Odoo model."""

    path: str
    tag: str
    model_type: str
    dto: Type[BaseModel]
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    adapter: Adapter
    default_fields: Tuple[str, ...] = ()
    # Query parameters accepted as equality filters on the list endpoint.
    filter_fields: Tuple[str, ...] = ()
    service_class: Type[OdooModelService] = field(default=OdooModelService)


RESOURCES: List[ResourceDefinition] = [
    ResourceDefinition(
        path="employees",
        tag="Employees",
        model_type="employee",
        dto=employee.Employee,
        create_model=employee.EmployeeCreate,
        update_model=employee.EmployeeUpdate,
        adapter=employee.EmployeeAdapter(),
        default_fields=tuple(employee.DEFAULT_FIELDS),
        filter_fields=("department_id", "job_id", "parent_id", "active"),
        service_class=EmployeeService,
    ),
    ResourceDefinition(
        path="attendance",
        tag="Attendance",
        model_type="attendance",
        dto=attendance.Attendance,
        create_model=attendance.AttendanceCreate,
        update_model=attendance.AttendanceUpdate,
        adapter=attendance.AttendanceAdapter(),
        default_fields=tuple(attendance.DEFAULT_FIELDS),
        filter_fields=("employee_id",),
    ),
    ResourceDefinition(
        path="timeoff",
        tag="TimeOff",
        model_type="leave",
        dto=leave.Leave,
        create_model=leave.LeaveCreate,
        update_model=leave.LeaveUpdate,
        adapter=leave.LeaveAdapter(),
        default_fields=tuple(leave.DEFAULT_FIELDS),
        filter_fields=("employee_id", "state"),
    ),
    ResourceDefinition(
        path="payroll",
        tag="Payroll",
        model_type="payslip",
        dto=payroll.Payslip,
        create_model=payroll.PayslipCreate,
        update_model=payroll.PayslipUpdate,
        adapter=payroll.PayslipAdapter(),
        default_fields=tuple(payroll.DEFAULT_FIELDS),
        filter_fields=("employee_id", "state"),
    ),
    ResourceDefinition(
        path="expenses",
        tag="Expenses",
        model_type="expense",
        dto=expense.Expense,
        create_model=expense.ExpenseCreate,
        update_model=expense.ExpenseUpdate,
        adapter=expense.ExpenseAdapter(),
        default_fields=tuple(expense.DEFAULT_FIELDS),
        filter_fields=("employee_id", "state"),
    ),
    ResourceDefinition(
        path="invoices",
        tag="Invoices",
        model_type="invoice",
        dto=invoice.Invoice,
        create_model=invoice.InvoiceCreate,
        update_model=invoice.InvoiceUpdate,
        adapter=invoice.InvoiceAdapter(),
        default_fields=tuple(invoice.DEFAULT_FIELDS),
        filter_fields=("partner_id", "payment_state", "move_type"),
    ),
    ResourceDefinition(
        path="recruitment",
        tag="Recruitment",
        model_type="applicant",
        dto=applicant.Applicant,
        create_model=applicant.ApplicantCreate,
        update_model=applicant.ApplicantUpdate,
        adapter=applicant.ApplicantAdapter(),
        default_fields=tuple(applicant.DEFAULT_FIELDS),
        filter_fields=("job_id", "department_id", "stage_id"),
    ),
]


class ModelRegistry:
    """
    Resolves logical model types to Odoo model names and builds the
    repository/service pair for each resource. Repositories are cached per
    model type.
    """

    def __init__(
        self,
        config: OdooConfig,
        rpc: OdooRpc,
        *,
        cache: Optional[RecordCache] = None,
        max_limit: int = MAX_PAGE_LIMIT,
    ):
        self.config = config
        self.rpc = rpc
        self.cache = cache
        self.max_limit = max_limit
        self._repositories: Dict[str, OdooRepository] = {}

    def model_name(self, model_type: str) -> str:
        name = self.config.model_name(model_type)
        if not name:
            raise ValueError(f"Unknown model type: {model_type}")
        return name

    def repository(self, model_type: str) -> OdooRepository:
        repo = self._repositories.get(model_type)
        if repo is None:
            repo = OdooRepository(self.rpc, self.model_name(model_type))
            self._repositories[model_type] = repo
        return repo

    def service(self, definition: ResourceDefinition) -> OdooModelService:
        return definition.service_class(
            self.repository(definition.model_type),
            definition.adapter,
            default_fields=definition.default_fields,
            cache=self.cache,
            max_limit=self.max_limit,
        )

    def build_services(
        self, definitions: Iterable[ResourceDefinition] = RESOURCES
    ) -> Dict[str, OdooModelService]:
        services = {d.path: self.service(d) for d in definitions}
        logger.info("Registered %d Odoo resources: %s", len(services), ", ".join(services))
        return services
