"""
API routes for Odoo-backed resources.

Every resource in the model registry gets the same CRUD surface:

    GET    /{resource}          list (page, limit, equality filters)
    GET    /{resource}/{id}     read one
    POST   /{resource}          create
    PUT    /{resource}/{id}     update the provided fields
    PATCH  /{resource}/{id}     partial update (explicit nulls clear fields)
    DELETE /{resource}/{id}     delete

Employees add lookups by department, manager, job and email, a name search
and (de)activation.
"""

import logging
from typing import Any, Callable, Dict, Iterable

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from hrms_connector.api.error_handling import http_exception
from hrms_connector.config import settings
from hrms_connector.core.model_registry import RESOURCES, ResourceDefinition
from hrms_connector.core.service import EmployeeService, OdooModelService
from hrms_connector.models.common import DeleteResponse, PaginatedResponse

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = settings.PAGINATION_DEFAULT_LIMIT


def service_dependency(path: str) -> Callable[[Request], OdooModelService]:
    """FastAPI dependency returning the service registered for `path` on app.state."""

    def get_service(request: Request) -> OdooModelService:
        services: Dict[str, OdooModelService] = getattr(request.app.state, "services", None) or {}
        service = services.get(path)
        if service is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Service for '{path}' is not available",
            )
        return service

    return get_service


def _coerce_query_value(raw: str) -> Any:
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered.isdigit():
        return int(lowered)
    return raw


def query_filters(request: Request, allowed: Iterable[str]) -> Dict[str, Any]:
    """Equality filters from the query string, restricted to `allowed` fields."""
    filters: Dict[str, Any] = {}
    for name in allowed:
        raw = request.query_params.get(name)
        if raw is None or raw == "":
            continue
        filters[name] = _coerce_query_value(raw)
    return filters


def add_crud_routes(router: APIRouter, definition: ResourceDefinition) -> APIRouter:
    dto = definition.dto
    create_model = definition.create_model
    update_model = definition.update_model
    get_service = service_dependency(definition.path)
    noun = definition.path

    @router.get("/", response_model=PaginatedResponse[dto])
    async def list_records(
        request: Request,
        page: int = Query(1, description="1-indexed page number"),
        limit: int = Query(DEFAULT_LIMIT, description="Records per page"),
        service: OdooModelService = Depends(get_service),
    ):
        try:
            filters = query_filters(request, definition.filter_fields)
            return await service.get_all(page, limit, filters)
        except Exception as e:
            raise http_exception(f"list {noun}", e)

    @router.get("/{record_id}", response_model=dto)
    async def get_record(record_id: int, service: OdooModelService = Depends(get_service)):
        try:
            return await service.get_by_id(record_id)
        except Exception as e:
            raise http_exception(f"get {noun} record", e)

    @router.post("/", response_model=dto, status_code=status.HTTP_201_CREATED)
    async def create_record(data: create_model, service: OdooModelService = Depends(get_service)):
        try:
            record = await service.create(data)
            logger.info("Created %s record %s", noun, getattr(record, "id", None))
            return record
        except Exception as e:
            raise http_exception(f"create {noun} record", e)

    @router.put("/{record_id}", response_model=dto)
    async def update_record(
        record_id: int, data: update_model, service: OdooModelService = Depends(get_service)
    ):
        try:
            return await service.update(record_id, data)
        except Exception as e:
            raise http_exception(f"update {noun} record", e)

    @router.patch("/{record_id}", response_model=dto)
    async def patch_record(
        record_id: int, data: update_model, service: OdooModelService = Depends(get_service)
    ):
        try:
            return await service.update(record_id, data, partial=True)
        except Exception as e:
            raise http_exception(f"patch {noun} record", e)

    @router.delete("/{record_id}", response_model=DeleteResponse)
    async def delete_record(record_id: int, service: OdooModelService = Depends(get_service)):
        try:
            return await service.delete(record_id)
        except Exception as e:
            raise http_exception(f"delete {noun} record", e)

    return router


def build_resource_router(definition: ResourceDefinition) -> APIRouter:
    return add_crud_routes(APIRouter(), definition)


def build_employee_router(definition: ResourceDefinition) -> APIRouter:
    """
    Employee router. Fixed-path lookups are registered before the CRUD routes
    so "/active" or "/search" never reach "/{record_id}".
    """
    router = APIRouter()
    dto = definition.dto
    get_service = service_dependency(definition.path)

    @router.get("/active", response_model=PaginatedResponse[dto])
    async def list_active_employees(
        page: int = Query(1),
        limit: int = Query(DEFAULT_LIMIT),
        service: EmployeeService = Depends(get_service),
    ):
        try:
            return await service.get_active(page, limit)
        except Exception as e:
            raise http_exception("list active employees", e)

    @router.get("/search", response_model=PaginatedResponse[dto])
    async def search_employees(
        name: str = Query(..., description="Case-insensitive name fragment"),
        page: int = Query(1),
        limit: int = Query(DEFAULT_LIMIT),
        service: EmployeeService = Depends(get_service),
    ):
        try:
            return await service.search_by_name(name, page, limit)
        except Exception as e:
            raise http_exception("search employees", e)

    @router.get("/department/{department_id}", response_model=PaginatedResponse[dto])
    async def list_employees_by_department(
        department_id: int,
        page: int = Query(1),
        limit: int = Query(DEFAULT_LIMIT),
        service: EmployeeService = Depends(get_service),
    ):
        try:
            return await service.get_by_department(department_id, page, limit)
        except Exception as e:
            raise http_exception("list employees by department", e)

    @router.get("/manager/{manager_id}", response_model=PaginatedResponse[dto])
    async def list_employees_by_manager(
        manager_id: int,
        page: int = Query(1),
        limit: int = Query(DEFAULT_LIMIT),
        service: EmployeeService = Depends(get_service),
    ):
        try:
            return await service.get_by_manager(manager_id, page, limit)
        except Exception as e:
            raise http_exception("list employees by manager", e)

    @router.get("/job/{job_id}", response_model=PaginatedResponse[dto])
    async def list_employees_by_job(
        job_id: int,
        page: int = Query(1),
        limit: int = Query(DEFAULT_LIMIT),
        service: EmployeeService = Depends(get_service),
    ):
        try:
            return await service.get_by_job(job_id, page, limit)
        except Exception as e:
            raise http_exception("list employees by job", e)

    @router.get("/email/{email}", response_model=dto)
    async def get_employee_by_email(email: str, service: EmployeeService = Depends(get_service)):
        try:
            return await service.get_by_email(email)
        except Exception as e:
            raise http_exception("get employee by email", e)

    @router.post("/{record_id}/deactivate", response_model=dto)
    async def deactivate_employee(record_id: int, service: EmployeeService = Depends(get_service)):
        try:
            return await service.deactivate(record_id)
        except Exception as e:
            raise http_exception("deactivate employee", e)

    @router.post("/{record_id}/reactivate", response_model=dto)
    async def reactivate_employee(record_id: int, service: EmployeeService = Depends(get_service)):
        try:
            return await service.reactivate(record_id)
        except Exception as e:
            raise http_exception("reactivate employee", e)

    return add_crud_routes(router, definition)


def build_routers(definitions: Iterable[ResourceDefinition] = RESOURCES) -> Dict[str, APIRouter]:
    """One router per resource path."""
    routers: Dict[str, APIRouter] = {}
    for definition in definitions:
        if definition.service_class is EmployeeService:
            routers[definition.path] = build_employee_router(definition)
        else:
            routers[definition.path] = build_resource_router(definition)
    return routers
