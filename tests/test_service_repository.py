"""
Tests for OdooRepository, OdooModelService, adapters and the record cache.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pydantic
import pytest

from hrms_connector.core.errors import (
    NotFoundError,
    OdooConnectionError,
    PoolTimeoutError,
    RepositoryError,
    ServiceError,
    ValidationError,
)
from hrms_connector.core.record_cache import RecordCache
from hrms_connector.core.repository import OdooRepository
from hrms_connector.core.service import EmployeeService, OdooModelService, build_domain, validate_id
from hrms_connector.models.common import unpack_relational
from hrms_connector.models.employee import DEFAULT_FIELDS, EmployeeAdapter, EmployeeCreate, EmployeeUpdate
from hrms_connector.models.leave import LeaveAdapter

EMPLOYEE_RECORD = {
    "id": 7,
    "name": "Ada Lovelace",
    "work_email": "ada@example.com",
    "work_phone": False,
    "mobile_phone": "+44 20 7946 0958",
    "job_id": [3, "Engineer"],
    "department_id": [2, "R&D"],
    "parent_id": False,
    "work_location": "London",
    "active": True,
    "create_date": "2024-01-02 09:00:00",
    "write_date": False,
}


def _make_rpc(**overrides) -> AsyncMock:
    rpc = AsyncMock()
    rpc.search_read = AsyncMock(return_value=[EMPLOYEE_RECORD])
    rpc.search_count = AsyncMock(return_value=1)
    rpc.read = AsyncMock(return_value=[EMPLOYEE_RECORD])
    rpc.create = AsyncMock(return_value=7)
    rpc.write = AsyncMock(return_value=True)
    rpc.unlink = AsyncMock(return_value=True)
    for name, value in overrides.items():
        setattr(rpc, name, value)
    return rpc


def _make_service(rpc=None, cache=None, cls=EmployeeService):
    repo = OdooRepository(rpc or _make_rpc(), "hr.employee")
    return cls(repo, EmployeeAdapter(), default_fields=DEFAULT_FIELDS, cache=cache)


# ============================================================================
# Helpers and adapters
# ============================================================================


def test_unpack_relational():
    assert unpack_relational([4, "Sales"]) == (4, "Sales")
    assert unpack_relational(False) == (None, None)
    assert unpack_relational(None) == (None, None)
    assert unpack_relational(9) == (9, None)


def test_build_domain_skips_empty_values():
    assert build_domain({"state": "draft", "employee_id": 5, "x": "", "y": None}) == [
        ("state", "=", "draft"),
        ("employee_id", "=", 5),
    ]


@pytest.mark.parametrize("bad", [0, -1, "abc", 1.5, None, True])
def test_validate_id_rejects_non_positive_integers(bad):
    with pytest.raises(ValidationError):
        validate_id(bad)


def test_validate_id_accepts_numeric_strings():
    assert validate_id("12") == 12


def test_employee_adapter_maps_odoo_record():
    dto = EmployeeAdapter().to_dto(EMPLOYEE_RECORD)

    assert dto.email == "ada@example.com"
    assert dto.phone == ""
    assert dto.job_title == "Engineer"
    assert dto.department_id == 2
    assert dto.manager_id is None
    assert dto.updated_at is None


def test_employee_adapter_full_and_partial_writes():
    adapter = EmployeeAdapter()

    full = adapter.to_odoo(EmployeeCreate(name="Grace Hopper", department_id=2))
    assert full == {"name": "Grace Hopper", "department_id": 2, "active": True}

    partial = adapter.to_odoo(EmployeeUpdate(email=None, manager_id=4), partial=True)
    assert partial == {"work_email": False, "parent_id": 4}


def test_leave_adapter_serializes_datetimes():
    from datetime import datetime

    values = LeaveAdapter().to_odoo(
        {"employee_id": 1, "type_id": 2, "date_from": datetime(2024, 5, 1, 8, 30)}
    )
    assert values == {
        "employee_id": 1,
        "holiday_status_id": 2,
        "date_from": "2024-05-01 08:30:00",
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "A"},
        {"name": "Valid Name", "email": "not-an-email"},
        {"name": "Valid Name", "phone": "call me"},
        {"name": "Valid Name", "department_id": 0},
        {"name": "Valid Name", "work_location": "x" * 201},
    ],
)
def test_employee_create_validation(payload):
    with pytest.raises(pydantic.ValidationError):
        EmployeeCreate(**payload)


# ============================================================================
# Repository
# ============================================================================


def test_repository_requires_rpc_and_model():
    with pytest.raises(ValueError):
        OdooRepository(None, "hr.employee")
    with pytest.raises(ValueError):
        OdooRepository(_make_rpc(), "")


@pytest.mark.asyncio
async def test_repository_find_all_uses_search_read():
    rpc = _make_rpc()
    repo = OdooRepository(rpc, "hr.employee")

    records = await repo.find_all([("active", "=", True)], ["name"], limit=10, offset=20)

    assert records == [EMPLOYEE_RECORD]
    rpc.search_read.assert_awaited_once_with(
        "hr.employee", [("active", "=", True)], ["name"], {"limit": 10, "offset": 20}
    )


@pytest.mark.asyncio
async def test_repository_find_by_id_returns_none_when_missing():
    repo = OdooRepository(_make_rpc(read=AsyncMock(return_value=[])), "hr.employee")
    assert await repo.find_by_id(99) is None


@pytest.mark.asyncio
async def test_repository_passes_connection_errors_through():
    err = PoolTimeoutError()
    repo = OdooRepository(_make_rpc(search_count=AsyncMock(side_effect=err)), "hr.employee")

    with pytest.raises(PoolTimeoutError):
        await repo.count()


@pytest.mark.asyncio
async def test_repository_wraps_unexpected_errors():
    repo = OdooRepository(_make_rpc(create=AsyncMock(side_effect=KeyError("x"))), "hr.employee")

    with pytest.raises(RepositoryError) as exc_info:
        await repo.create({"name": "x"})

    assert exc_info.value.operation == "create"
    assert isinstance(exc_info.value.original_error, KeyError)


@pytest.mark.asyncio
async def test_repository_exists():
    repo = OdooRepository(_make_rpc(), "hr.employee")
    assert await repo.exists(7) is True

    failing = OdooRepository(
        _make_rpc(read=AsyncMock(side_effect=OdooConnectionError("down"))), "hr.employee"
    )
    assert await failing.exists(7) is False


# ============================================================================
# Service
# ============================================================================


@pytest.mark.asyncio
async def test_get_all_paginates_and_filters():
    rpc = _make_rpc(search_count=AsyncMock(return_value=120))
    service = _make_service(rpc)

    result = await service.get_all(page=2, limit=50, filters={"department_id": 2, "job_id": ""})

    assert result["success"] is True
    assert result["pagination"] == {
        "page": 2,
        "limit": 50,
        "total": 120,
        "total_pages": 3,
        "has_next": True,
        "has_prev": True,
    }
    args = rpc.search_read.await_args.args
    assert args[1] == [("department_id", "=", 2)]
    assert args[3] == {"limit": 50, "offset": 50}
    assert result["data"][0].name == "Ada Lovelace"


@pytest.mark.asyncio
@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101), ("x", 10)])
async def test_get_all_rejects_bad_pagination(page, limit):
    service = _make_service()
    with pytest.raises(ValidationError):
        await service.get_all(page=page, limit=limit)


@pytest.mark.asyncio
async def test_get_by_id_not_found():
    service = _make_service(_make_rpc(read=AsyncMock(return_value=[])))

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_by_id(5)

    assert exc_info.value.status_code == 404
    assert exc_info.value.identifier == 5


@pytest.mark.asyncio
async def test_get_by_id_uses_cache_and_update_invalidates():
    rpc = _make_rpc()
    service = _make_service(rpc, cache=RecordCache(ttl_seconds=60))

    await service.get_by_id(7)
    await service.get_by_id(7)
    assert rpc.read.await_count == 1

    await service.update(7, EmployeeUpdate(name="Ada King"), partial=True)
    rpc.write.assert_awaited_once_with("hr.employee", [7], {"name": "Ada King"})
    # Fresh read after the write.
    assert rpc.read.await_count == 2


@pytest.mark.asyncio
async def test_create_reads_back_record():
    rpc = _make_rpc()
    service = _make_service(rpc)

    dto = await service.create(EmployeeCreate(name="Ada Lovelace", email="ada@example.com"))

    assert dto.id == 7
    values = rpc.create.await_args.args[1]
    assert values["work_email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_update_without_fields_is_rejected():
    service = _make_service()
    with pytest.raises(ValidationError):
        await service.update(7, EmployeeUpdate(), partial=True)


@pytest.mark.asyncio
async def test_delete_checks_existence_then_unlinks():
    rpc = _make_rpc()
    service = _make_service(rpc)

    result = await service.delete(7)

    assert result == {"success": True, "message": "Record with ID 7 deleted successfully"}
    rpc.unlink.assert_awaited_once_with("hr.employee", [7])


@pytest.mark.asyncio
async def test_delete_missing_record_raises_not_found():
    rpc = _make_rpc(read=AsyncMock(return_value=[]))
    service = _make_service(rpc)

    with pytest.raises(NotFoundError):
        await service.delete(7)
    rpc.unlink.assert_not_awaited()


@pytest.mark.asyncio
async def test_connection_errors_propagate_unchanged():
    rpc = _make_rpc(search_read=AsyncMock(side_effect=OdooConnectionError("down")))
    service = _make_service(rpc, cls=OdooModelService)

    with pytest.raises(OdooConnectionError):
        await service.get_all()


@pytest.mark.asyncio
async def test_get_all_converts_page_through_adapter_list():
    adapter = EmployeeAdapter()
    adapter.to_dto_list = MagicMock(wraps=adapter.to_dto_list)
    repo = OdooRepository(_make_rpc(), "hr.employee")
    service = OdooModelService(repo, adapter, default_fields=DEFAULT_FIELDS)

    result = await service.get_all()

    adapter.to_dto_list.assert_called_once_with([EMPLOYEE_RECORD])
    assert result["data"][0].email == "ada@example.com"


@pytest.mark.asyncio
async def test_get_all_without_adapter_returns_raw_records():
    service = OdooModelService(OdooRepository(_make_rpc(), "hr.employee"))

    result = await service.get_all()

    assert result["data"] == [EMPLOYEE_RECORD]


@pytest.mark.asyncio
async def test_app_errors_propagate_unchanged():
    err = RepositoryError("boom", KeyError("x"), "create")
    rpc = _make_rpc()
    service = _make_service(rpc)
    service.repository.create = AsyncMock(side_effect=err)

    with pytest.raises(RepositoryError) as exc_info:
        await service.create(EmployeeCreate(name="Ada Lovelace"))

    assert exc_info.value is err


@pytest.mark.asyncio
async def test_unexpected_errors_become_service_errors():
    service = _make_service()
    service.adapter = EmployeeAdapter()
    service.adapter.to_dto = lambda record: 1 / 0

    with pytest.raises(ServiceError):
        await service.get_by_id(7)


@pytest.mark.asyncio
async def test_employee_lookups_build_domains():
    rpc = _make_rpc()
    service = _make_service(rpc)

    await service.get_by_department(2)
    assert rpc.search_read.await_args.args[1] == [("department_id", "=", 2)]

    await service.get_by_manager("4")
    assert rpc.search_read.await_args.args[1] == [("parent_id", "=", 4)]

    await service.search_by_name("ada")
    assert rpc.search_read.await_args.args[1] == [("name", "ilike", "ada")]

    with pytest.raises(ValidationError):
        await service.get_by_job(0)


@pytest.mark.asyncio
async def test_deactivate_writes_active_flag():
    rpc = _make_rpc()
    service = _make_service(rpc)

    await service.deactivate(7)

    rpc.write.assert_awaited_once_with("hr.employee", [7], {"active": False})


# ============================================================================
# Record cache
# ============================================================================


@pytest.mark.asyncio
async def test_record_cache_expires_entries():
    now = [1000.0]
    cache = RecordCache(ttl_seconds=5, clock=lambda: now[0])

    await cache.set("hr.employee", 1, "value")
    assert await cache.get("hr.employee", 1) == "value"

    now[0] += 6
    assert await cache.get("hr.employee", 1) is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_record_cache_clear_by_model():
    cache = RecordCache(ttl_seconds=60)
    await cache.set("hr.employee", 1, "a")
    await cache.set("hr.leave", 1, "b")

    await cache.clear("hr.employee")

    assert await cache.get("hr.employee", 1) is None
    assert await cache.get("hr.leave", 1) == "b"
