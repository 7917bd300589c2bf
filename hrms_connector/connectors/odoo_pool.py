"""
Odoo Connection Pool Manager

Keeps a bounded set of authenticated Odoo sessions, hands them out one owner at
a time, queues callers (FIFO, with a timeout) when the pool is at capacity, and
evicts surplus idle sessions back down to the configured minimum.

All state lives on one event loop and mutates only between awaits, so no lock
guards the collections.
"""

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager, suppress
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, TypeVar

from hrms_connector.connectors.odoo_client import OdooClient
from hrms_connector.core.errors import (
    OdooConnectionError,
    PoolClosedError,
    PoolConfigurationError,
    PoolInitializationError,
    PoolTimeoutError,
)
from hrms_connector.models.connection import OdooConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[OdooConfig, logging.Logger], OdooClient]

# Resolves a waiter that should open a session itself instead of receiving one.
_CREATE = object()


def _default_client_factory(config: OdooConfig, log: logging.Logger) -> OdooClient:
    return OdooClient(config, log)


class OdooConnectionPool:
    """
    Connection pool for Odoo sessions with FIFO queueing and idle eviction.
    """

    def __init__(
        self,
        config: Optional[OdooConfig],
        logger: Optional[logging.Logger] = None,
        *,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize the pool. No connection is opened until `initialize()` or
        the first `acquire()`.

        Args:
            config: Odoo endpoint, credentials and pool sizing (required)
            logger: Logger for pool and client messages (module logger by default)
            client_factory: Builds one unconnected session; tests inject fakes here
        """
        if config is None:
            raise PoolConfigurationError(
                "OdooConnectionPool requires an OdooConfig; none was provided"
            )

        self.config = config
        self.pool_config = config.pool
        self.logger = logger or logging.getLogger(__name__)
        self._client_factory: ClientFactory = client_factory or _default_client_factory

        self._available: List[OdooClient] = []
        self._active: Set[OdooClient] = set()
        self._waiters: deque[asyncio.Future] = deque()
        # At most one pending idle check per available connection.
        self._idle_handles: Dict[OdooClient, asyncio.TimerHandle] = {}
        # Creations in flight count toward max_connections.
        self._pending_creates: int = 0
        self._background: Set[asyncio.Task] = set()
        self._closed = False

        self._stats: Dict[str, int] = self._empty_stats()

        self.logger.info(
            "Initialized Odoo pool for %s (min=%d, max=%d, idle_timeout=%.1fs, connection_timeout=%.1fs)",
            config.connection_string,
            self.pool_config.min_connections,
            self.pool_config.max_connections,
            self.pool_config.idle_timeout,
            self.pool_config.connection_timeout,
        )

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            "created": 0,
            "acquired": 0,
            "released": 0,
            "destroyed": 0,
            "queued_requests": 0,
        }

    @property
    def closed(self) -> bool:
        return self._closed

    def _total(self) -> int:
        return len(self._available) + len(self._active) + self._pending_creates

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Open sessions until the pool holds `min_connections`.

        Sessions that authenticate are kept even when others fail.

        Raises:
            PoolInitializationError: If any session could not be created
            PoolClosedError: If the pool has been destroyed
        """
        if self._closed:
            raise PoolClosedError()

        missing = self.pool_config.min_connections - self._total()
        if missing <= 0:
            self.logger.debug("Pool already holds its minimum connections")
            return

        self.logger.info("Creating %d initial Odoo connections...", missing)
        results = await asyncio.gather(
            *(self._create_connection() for _ in range(missing)),
            return_exceptions=True,
        )

        created: List[OdooClient] = []
        errors: List[str] = []
        interrupt: Optional[BaseException] = None
        for result in results:
            if isinstance(result, Exception):
                self.logger.error("Failed to create initial connection: %s", result)
                errors.append(str(result))
            elif isinstance(result, BaseException):
                interrupt = result
            else:
                created.append(result)

        if self._closed:
            await self._disconnect_all(created)
            raise PoolClosedError()

        self._available.extend(created)
        self.logger.info(
            "Connection pool initialized with %d connections", len(self._available)
        )

        if interrupt is not None:
            raise interrupt
        if errors:
            message = f"Failed to create {len(errors)}/{missing} connections during pool initialization"
            self.logger.error("%s. First error: %s", message, errors[0][:200])
            raise PoolInitializationError(message, errors=errors)

    async def _create_connection(self) -> OdooClient:
        self._pending_creates += 1
        succeeded = False
        try:
            client = self._client_factory(self.config, self.logger)
            await client.connect()
            succeeded = True
        except OdooConnectionError:
            raise
        except Exception as e:
            raise OdooConnectionError("Failed to create Odoo connection", e) from e
        finally:
            self._pending_creates -= 1
            if not succeeded:
                self._offer_capacity_to_waiter()

        self._stats["created"] += 1
        self.logger.debug("Created new Odoo connection: %s", id(client))
        return client

    def _offer_capacity_to_waiter(self) -> None:
        """
        Let the oldest live waiter open its own session when a slot is free.

        The slot is reserved in `_pending_creates` until the waiter resumes.
        """
        if self._closed or self._total() >= self.pool_config.max_connections:
            return
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._pending_creates += 1
            waiter.set_result(_CREATE)
            self.logger.debug(
                "Creation slot freed; queued request will open its own connection (queue=%d)",
                len(self._waiters),
            )
            return

    async def destroy(self) -> None:
        """
        Close the pool: fail queued waiters, cancel idle timers and disconnect
        every tracked session. Safe to call repeatedly.
        """
        first_close = not self._closed
        self._closed = True

        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(PoolClosedError())

        for handle in self._idle_handles.values():
            handle.cancel()
        self._idle_handles.clear()

        connections = [*self._available, *self._active]
        self._available.clear()
        self._active.clear()

        if connections:
            self.logger.info("Destroying Odoo pool: closing %d connections", len(connections))
        await self._disconnect_all(connections)

        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

        if first_close:
            self.logger.info("Odoo connection pool destroyed")

    async def _disconnect_all(self, connections: Sequence[OdooClient]) -> None:
        if not connections:
            return
        results = await asyncio.gather(
            *(conn.disconnect() for conn in connections), return_exceptions=True
        )
        for conn, result in zip(connections, results):
            self._stats["destroyed"] += 1
            if isinstance(result, BaseException):
                self.logger.warning(
                    "Error disconnecting Odoo connection %s: %s", id(conn), result
                )

    # Parity with the session client surface.
    async def connect(self) -> None:
        await self.initialize()

    async def disconnect(self) -> None:
        await self.destroy()

    def is_connected(self) -> bool:
        return not self._closed and (len(self._available) + len(self._active)) > 0

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    async def acquire(self) -> OdooClient:
        """
        Check out a session.

        Reuses an idle session, opens a new one while under `max_connections`,
        or queues until one is released.

        Raises:
            PoolTimeoutError: Queued longer than `connection_timeout`
            PoolClosedError: Pool destroyed before or while waiting
            OdooConnectionError: A new session failed to authenticate
        """
        self._stats["acquired"] += 1

        if self._closed:
            raise PoolClosedError()

        if self._available:
            conn = self._available.pop()
            self._cancel_idle_check(conn)
            self._active.add(conn)
            self.logger.debug(
                "Acquired idle connection %s (available=%d, active=%d)",
                id(conn),
                len(self._available),
                len(self._active),
            )
            return conn

        if self._total() < self.pool_config.max_connections:
            return await self._open_active_connection()

        return await self._wait_for_connection()

    async def _open_active_connection(self) -> OdooClient:
        conn = await self._create_connection()
        if self._closed:
            await self._disconnect_all([conn])
            raise PoolClosedError()
        self._active.add(conn)
        self.logger.debug(
            "Acquired new connection %s (active=%d)", id(conn), len(self._active)
        )
        return conn

    async def _wait_for_connection(self) -> OdooClient:
        self._stats["queued_requests"] += 1
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future = loop.create_future()
        timer = loop.call_later(
            self.pool_config.connection_timeout, self._expire_waiter, waiter
        )
        self._waiters.append(waiter)
        self.logger.debug(
            "Pool exhausted (max=%d); queued request (queue=%d)",
            self.pool_config.max_connections,
            len(self._waiters),
        )

        try:
            result = await waiter
        except asyncio.CancelledError:
            # Handed a connection or a creation slot just before being cancelled: give it back.
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                handed = waiter.result()
                if handed is _CREATE:
                    self._pending_creates -= 1
                    self._offer_capacity_to_waiter()
                else:
                    self.release(handed)
            raise
        finally:
            timer.cancel()
            with suppress(ValueError):
                self._waiters.remove(waiter)

        if result is _CREATE:
            self._pending_creates -= 1
            if self._closed:
                raise PoolClosedError()
            return await self._open_active_connection()
        return result

    def _expire_waiter(self, waiter: asyncio.Future) -> None:
        if waiter.done():
            return
        with suppress(ValueError):
            self._waiters.remove(waiter)
        self.logger.warning(
            "Timed out after %.1fs waiting for an Odoo connection",
            self.pool_config.connection_timeout,
        )
        waiter.set_exception(PoolTimeoutError())

    def release(self, connection: OdooClient) -> None:
        """
        Return a checked-out session.

        The oldest live waiter receives it directly; otherwise it becomes idle
        and is scheduled for an idle check.
        """
        if connection not in self._active:
            self.logger.warning(
                "Attempted to release connection %s that is not active", id(connection)
            )
            return

        self._stats["released"] += 1

        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            waiter.set_result(connection)
            self.logger.debug(
                "Handed connection %s to queued request (queue=%d)",
                id(connection),
                len(self._waiters),
            )
            return

        self._active.discard(connection)
        self._available.append(connection)
        self._schedule_idle_check(connection)
        self.logger.debug(
            "Released connection %s (available=%d, active=%d)",
            id(connection),
            len(self._available),
            len(self._active),
        )

    def _schedule_idle_check(self, connection: OdooClient) -> None:
        self._cancel_idle_check(connection)
        loop = asyncio.get_running_loop()
        self._idle_handles[connection] = loop.call_later(
            self.pool_config.idle_timeout, self._evict_if_idle, connection
        )

    def _cancel_idle_check(self, connection: OdooClient) -> None:
        handle = self._idle_handles.pop(connection, None)
        if handle is not None:
            handle.cancel()

    def _evict_if_idle(self, connection: OdooClient) -> None:
        self._idle_handles.pop(connection, None)
        if connection not in self._available:
            return
        if len(self._available) <= self.pool_config.min_connections:
            return

        self._available.remove(connection)
        self._stats["destroyed"] += 1
        self.logger.debug(
            "Evicting idle connection %s (available=%d)", id(connection), len(self._available)
        )
        task = asyncio.get_running_loop().create_task(self._disconnect_evicted(connection))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _disconnect_evicted(self, connection: OdooClient) -> None:
        try:
            await connection.disconnect()
        except Exception as e:
            self.logger.warning("Error disconnecting idle connection %s: %s", id(connection), e)

    @asynccontextmanager
    async def connection(self):
        """
        Check out a session for the duration of the block.

        Usage:
            async with pool.connection() as conn:
                await conn.search("hr.employee")
        """
        conn = await self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    async def with_connection(self, fn: Callable[[OdooClient], Awaitable[T]]) -> T:
        async with self.connection() as conn:
            return await fn(conn)

    # ------------------------------------------------------------------
    # RPC verbs
    # ------------------------------------------------------------------

    async def execute(
        self,
        model: str,
        method: str,
        params: Optional[Sequence[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        async with self.connection() as conn:
            return await conn.execute(model, method, params, kwargs)

    async def search(
        self, model: str, domain: Optional[list] = None, options: Optional[Dict[str, Any]] = None
    ) -> List[int]:
        async with self.connection() as conn:
            return await conn.search(model, domain, options)

    async def read(
        self, model: str, ids: Sequence[int], fields: Optional[Sequence[str]] = None
    ) -> List[Dict[str, Any]]:
        async with self.connection() as conn:
            return await conn.read(model, ids, fields)

    async def search_read(
        self,
        model: str,
        domain: Optional[list] = None,
        fields: Optional[Sequence[str]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        async with self.connection() as conn:
            return await conn.search_read(model, domain, fields, options)

    async def search_count(self, model: str, domain: Optional[list] = None) -> int:
        async with self.connection() as conn:
            return await conn.search_count(model, domain)

    async def create(self, model: str, values: Dict[str, Any]) -> int:
        async with self.connection() as conn:
            return await conn.create(model, values)

    async def write(self, model: str, ids: Sequence[int], values: Dict[str, Any]) -> bool:
        async with self.connection() as conn:
            return await conn.write(model, ids, values)

    async def unlink(self, model: str, ids: Sequence[int]) -> bool:
        async with self.connection() as conn:
            return await conn.unlink(model, ids)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics."""
        return {
            **self._stats,
            "available": len(self._available),
            "active": len(self._active),
            "total": len(self._available) + len(self._active),
            "queued": len(self._waiters),
            "pending_creates": self._pending_creates,
            "min_connections": self.pool_config.min_connections,
            "max_connections": self.pool_config.max_connections,
            "closed": self._closed,
        }

    def reset_stats(self) -> None:
        self._stats = self._empty_stats()


# Process-wide pool; the FastAPI lifespan creates it and tears it down.
_default_pool: Optional[OdooConnectionPool] = None


def get_default_pool(
    config: Optional[OdooConfig] = None, logger: Optional[logging.Logger] = None
) -> OdooConnectionPool:
    """
    Get or create the process-wide pool.

    The first call must supply `config`; later calls return the same pool and
    ignore their arguments.

    Raises:
        PoolConfigurationError: First call made without configuration
    """
    global _default_pool
    if _default_pool is None:
        if config is None:
            raise PoolConfigurationError(
                "Odoo configuration is required the first time the pool is requested"
            )
        _default_pool = OdooConnectionPool(config, logger)
    return _default_pool


async def reset_default_pool() -> None:
    """Destroy and forget the process-wide pool."""
    global _default_pool
    pool, _default_pool = _default_pool, None
    if pool is not None:
        await pool.destroy()
