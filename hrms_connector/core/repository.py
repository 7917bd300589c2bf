"""
Odoo Repository

Data access for one Odoo model. Every call goes through an OdooRpc (normally the
connection pool), so repositories never hold a connection themselves.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from hrms_connector.connectors.odoo_client import OdooRpc
from hrms_connector.core.errors import AppError, RepositoryError

logger = logging.getLogger(__name__)


class OdooRepository:
    """CRUD and query operations for a single Odoo model."""

    def __init__(self, rpc: OdooRpc, model_name: str, logger: Optional[logging.Logger] = None):
        if rpc is None:
            raise ValueError("An Odoo RPC client is required for OdooRepository")
        if not model_name:
            raise ValueError("model_name is required for OdooRepository")

        self.rpc = rpc
        self.model_name = model_name
        self.logger = logger or logging.getLogger(__name__)

    def _wrap(self, operation: str, message: str, exc: Exception) -> AppError:
        if isinstance(exc, AppError):
            return exc
        return RepositoryError(message, exc, operation)

    async def find_all(
        self,
        domain: Optional[list] = None,
        fields: Optional[Sequence[str]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Search and read in one call.

        Args:
            domain: Odoo domain, e.g. [("department_id", "=", 3)]
            fields: Fields to return (all when empty)
            limit: Maximum number of records
            offset: Records to skip

        Returns:
            List of raw Odoo records
        """
        self.logger.debug(
            "[%s] Finding records domain=%s limit=%d offset=%d",
            self.model_name,
            domain,
            limit,
            offset,
        )
        try:
            records = await self.rpc.search_read(
                self.model_name,
                list(domain or []),
                fields,
                {"limit": limit, "offset": offset},
            )
        except Exception as e:
            self.logger.error("[%s] Failed to find records: %s", self.model_name, e)
            raise self._wrap("find_all", f"Failed to fetch {self.model_name} records", e) from e

        self.logger.debug("[%s] Found %d records", self.model_name, len(records))
        return records

    async def find_by_id(
        self, record_id: int, fields: Optional[Sequence[str]] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            result = await self.rpc.read(self.model_name, [record_id], fields)
        except Exception as e:
            self.logger.error(
                "[%s] Failed to find record by ID %s: %s", self.model_name, record_id, e
            )
            raise self._wrap(
                "find_by_id", f"Failed to fetch {self.model_name} by ID {record_id}", e
            ) from e

        if not result:
            self.logger.debug("[%s] No record found with ID %s", self.model_name, record_id)
            return None
        return result[0]

    async def find_by(
        self, domain: list, fields: Optional[Sequence[str]] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        return await self.find_all(domain, fields, limit, 0)

    async def create(self, values: Dict[str, Any]) -> int:
        self.logger.info("[%s] Creating record", self.model_name)
        try:
            record_id = await self.rpc.create(self.model_name, values)
        except Exception as e:
            self.logger.error("[%s] Failed to create record: %s", self.model_name, e)
            raise self._wrap("create", f"Failed to create {self.model_name} record", e) from e

        self.logger.info("[%s] Created record with ID %s", self.model_name, record_id)
        return record_id

    async def update(self, record_id: int, values: Dict[str, Any]) -> bool:
        self.logger.info("[%s] Updating record ID %s", self.model_name, record_id)
        try:
            return await self.rpc.write(self.model_name, [record_id], values)
        except Exception as e:
            self.logger.error(
                "[%s] Failed to update record ID %s: %s", self.model_name, record_id, e
            )
            raise self._wrap(
                "update", f"Failed to update {self.model_name} record with ID {record_id}", e
            ) from e

    async def delete(self, record_id: int) -> bool:
        self.logger.info("[%s] Deleting record ID %s", self.model_name, record_id)
        try:
            return await self.rpc.unlink(self.model_name, [record_id])
        except Exception as e:
            self.logger.error(
                "[%s] Failed to delete record ID %s: %s", self.model_name, record_id, e
            )
            raise self._wrap(
                "delete", f"Failed to delete {self.model_name} record with ID {record_id}", e
            ) from e

    async def count(self, domain: Optional[list] = None) -> int:
        try:
            return await self.rpc.search_count(self.model_name, list(domain or []))
        except Exception as e:
            self.logger.error("[%s] Failed to count records: %s", self.model_name, e)
            raise self._wrap("count", f"Failed to count {self.model_name} records", e) from e

    async def exists(self, record_id: int) -> bool:
        """True if the record can be read; lookup failures count as missing."""
        try:
            record = await self.find_by_id(record_id, ["id"])
        except AppError as e:
            self.logger.warning(
                "[%s] Existence check for ID %s failed: %s", self.model_name, record_id, e
            )
            return False
        return record is not None
