"""
Odoo Model Service

Business layer over an OdooRepository: input validation, pagination, filter to
domain translation, DTO conversion and the read-through record cache.
"""

import asyncio
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from hrms_connector.core.errors import (
    AppError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from hrms_connector.core.record_cache import RecordCache
from hrms_connector.core.repository import OdooRepository
from hrms_connector.models.common import Adapter

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100


def validate_id(value: Any, field: str = "id") -> int:
    """Return `value` as a positive int or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: must be a positive integer", [field])
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: must be a positive integer", [field]) from None
    if numeric != value and str(numeric) != str(value).strip():
        raise ValidationError(f"Invalid {field}: must be a positive integer", [field])
    if numeric <= 0:
        raise ValidationError(f"Invalid {field}: must be a positive integer", [field])
    return numeric


def build_domain(filters: Optional[Dict[str, Any]]) -> list:
    """Equality domain for every filter with a non-empty value."""
    domain = []
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        domain.append((key, "=", value))
    return domain


class OdooModelService:
    """
    Generic CRUD service for one Odoo model.

    Operational errors (AppError) propagate unchanged; anything unexpected is
    wrapped in ServiceError.
    """

    def __init__(
        self,
        repository: OdooRepository,
        adapter: Optional[Adapter] = None,
        *,
        default_fields: Optional[Sequence[str]] = None,
        cache: Optional[RecordCache] = None,
        max_limit: int = MAX_PAGE_LIMIT,
        logger: Optional[logging.Logger] = None,
    ):
        if repository is None:
            raise ValueError("repository is required for OdooModelService")
        self.repository = repository
        self.adapter = adapter
        self.default_fields = list(default_fields or [])
        self.cache = cache
        self.max_limit = max_limit
        self.logger = logger or logging.getLogger(__name__)

    @property
    def model_name(self) -> str:
        return self.repository.model_name

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_pagination(self, page: Any, limit: Any) -> tuple[int, int]:
        try:
            page_n = int(page)
        except (TypeError, ValueError):
            raise ValidationError("Invalid page: must be a positive integer", ["page"]) from None
        if page_n < 1:
            raise ValidationError("Invalid page: must be a positive integer", ["page"])

        try:
            limit_n = int(limit)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Invalid limit: must be between 1 and {self.max_limit}", ["limit"]
            ) from None
        if limit_n < 1 or limit_n > self.max_limit:
            raise ValidationError(
                f"Invalid limit: must be between 1 and {self.max_limit}", ["limit"]
            )
        return page_n, limit_n

    def _to_dto(self, record: Dict[str, Any]) -> Any:
        return self.adapter.to_dto(record) if self.adapter else record

    def _to_dto_list(self, records: List[Dict[str, Any]]) -> List[Any]:
        return self.adapter.to_dto_list(records) if self.adapter else list(records)

    def _to_odoo(self, data: Any, *, partial: bool = False) -> Dict[str, Any]:
        if self.adapter:
            return self.adapter.to_odoo(data, partial=partial)
        if hasattr(data, "model_dump"):
            return data.model_dump(exclude_unset=partial)
        return dict(data)

    @staticmethod
    def _pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
        return {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
            "has_next": page * limit < total,
            "has_prev": page > 1,
        }

    def _fail(self, message: str, exc: Exception) -> AppError:
        if isinstance(exc, AppError):
            return exc
        return ServiceError(message, exc)

    async def _cache_get(self, record_id: int) -> Any:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(self.model_name, record_id)
        except Exception as e:
            self.logger.warning("Cache read failed for %s:%s: %s", self.model_name, record_id, e)
            return None

    async def _cache_set(self, record_id: int, value: Any) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(self.model_name, record_id, value)
        except Exception as e:
            self.logger.warning("Cache write failed for %s:%s: %s", self.model_name, record_id, e)

    async def _cache_invalidate(self, record_id: int) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.invalidate(self.model_name, record_id)
        except Exception as e:
            self.logger.warning(
                "Cache invalidation failed for %s:%s: %s", self.model_name, record_id, e
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_all(
        self,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        List records page by page.

        Args:
            page: 1-indexed page number
            limit: Page size (1..max_limit)
            filters: Field -> value equality filters; empty values are ignored

        Returns:
            {"success": True, "data": [...], "pagination": {...}}
        """
        page_n, limit_n = self._validate_pagination(page, limit)
        return await self.get_by_domain(build_domain(filters), page_n, limit_n)

    async def get_by_domain(
        self, domain: Iterable, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT
    ) -> Dict[str, Any]:
        page_n, limit_n = self._validate_pagination(page, limit)
        domain = list(domain)
        offset = (page_n - 1) * limit_n
        self.logger.info(
            "Listing %s page=%d limit=%d domain=%s", self.model_name, page_n, limit_n, domain
        )
        try:
            records, total = await asyncio.gather(
                self.repository.find_all(domain, self.default_fields, limit_n, offset),
                self.repository.count(domain),
            )
            data = self._to_dto_list(records)
        except Exception as e:
            self.logger.error("Failed to list %s: %s", self.model_name, e)
            raise self._fail("Failed to fetch records", e) from e

        return {
            "success": True,
            "data": data,
            "pagination": self._pagination(page_n, limit_n, total),
        }

    async def get_by_field(
        self, field: str, value: Any, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT
    ) -> Dict[str, Any]:
        """Paginated records where `field` equals the positive id `value`."""
        record_id = validate_id(value, field)
        return await self.get_by_domain([(field, "=", record_id)], page, limit)

    async def get_by_id(self, record_id: Any) -> Any:
        record_id = validate_id(record_id)

        cached = await self._cache_get(record_id)
        if cached is not None:
            return cached

        try:
            record = await self.repository.find_by_id(record_id, self.default_fields)
            if not record:
                raise NotFoundError(
                    f"{self.model_name} with ID {record_id} not found",
                    self.model_name,
                    record_id,
                )
            dto = self._to_dto(record)
        except NotFoundError:
            raise
        except Exception as e:
            self.logger.error("Failed to get %s %s: %s", self.model_name, record_id, e)
            raise self._fail(f"Failed to fetch record with ID {record_id}", e) from e

        await self._cache_set(record_id, dto)
        return dto

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, data: Any) -> Any:
        values = self._to_odoo(data)
        self.logger.info("Creating %s", self.model_name)
        try:
            record_id = await self.repository.create(values)
        except Exception as e:
            self.logger.error("Failed to create %s: %s", self.model_name, e)
            raise self._fail("Failed to create record", e) from e
        return await self.get_by_id(record_id)

    async def update(self, record_id: Any, data: Any, *, partial: bool = False) -> Any:
        """
        Write `data` to an existing record and return the fresh DTO.

        With `partial`, only fields the caller explicitly set are written.
        """
        record_id = validate_id(record_id)
        await self.get_by_id(record_id)

        values = self._to_odoo(data, partial=partial)
        if not values:
            raise ValidationError("No fields to update")

        try:
            await self.repository.update(record_id, values)
        except Exception as e:
            self.logger.error("Failed to update %s %s: %s", self.model_name, record_id, e)
            raise self._fail(f"Failed to update record with ID {record_id}", e) from e
        finally:
            await self._cache_invalidate(record_id)

        return await self.get_by_id(record_id)

    async def delete(self, record_id: Any) -> Dict[str, Any]:
        record_id = validate_id(record_id)
        await self.get_by_id(record_id)

        try:
            await self.repository.delete(record_id)
        except Exception as e:
            self.logger.error("Failed to delete %s %s: %s", self.model_name, record_id, e)
            raise self._fail(f"Failed to delete record with ID {record_id}", e) from e
        finally:
            await self._cache_invalidate(record_id)

        return {
            "success": True,
            "message": f"Record with ID {record_id} deleted successfully",
        }


class EmployeeService(OdooModelService):
    """Employee lookups beyond plain CRUD."""

    async def get_by_department(self, department_id: Any, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT):
        return await self.get_by_field("department_id", department_id, page, limit)

    async def get_by_manager(self, manager_id: Any, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT):
        return await self.get_by_field("parent_id", manager_id, page, limit)

    async def get_by_job(self, job_id: Any, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT):
        return await self.get_by_field("job_id", job_id, page, limit)

    async def get_active(self, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT):
        return await self.get_by_domain([("active", "=", True)], page, limit)

    async def search_by_name(self, name: str, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT):
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError("Search term must be at least 2 characters", ["name"])
        return await self.get_by_domain([("name", "ilike", name)], page, limit)

    async def get_by_email(self, email: str) -> Any:
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required", ["email"])
        try:
            records = await self.repository.find_by(
                [("work_email", "=", email)], self.default_fields, limit=1
            )
        except Exception as e:
            raise self._fail(f"Failed to fetch employee by email {email}", e) from e
        if not records:
            raise NotFoundError(
                f"Employee with email {email} not found", self.model_name, email
            )
        return self._to_dto(records[0])

    async def _set_active(self, employee_id: Any, active: bool) -> Any:
        employee_id = validate_id(employee_id)
        await self.get_by_id(employee_id)
        try:
            await self.repository.update(employee_id, {"active": active})
        except Exception as e:
            raise self._fail(f"Failed to update employee {employee_id}", e) from e
        finally:
            await self._cache_invalidate(employee_id)
        return await self.get_by_id(employee_id)

    async def deactivate(self, employee_id: Any) -> Any:
        return await self._set_active(employee_id, False)

    async def reactivate(self, employee_id: Any) -> Any:
        return await self._set_active(employee_id, True)
