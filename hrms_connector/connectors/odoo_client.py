"""
Odoo RPC Session Client

One authenticated XML-RPC session against an Odoo database: authenticate with
exponential-backoff retry, then execute arbitrary model methods.

The XML-RPC library is synchronous; every remote call runs in a thread executor
so the event loop is never blocked.
"""

import asyncio
import logging
import xmlrpc.client
from concurrent.futures import Executor
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from hrms_connector.core.errors import OdooConnectionError
from hrms_connector.models.connection import OdooConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class OdooRpc(Protocol):
    """
    RPC verbs shared by OdooClient and OdooConnectionPool.

    Repositories depend on this protocol only, so they work the same against a
    single session or the pool.
    """

    async def execute(
        self,
        model: str,
        method: str,
        params: Optional[Sequence[Any]] = None,
        kwargs: Optional[dict[str, Any]] = None,
    ) -> Any: ...

    async def search(self, model: str, domain: Optional[list] = None, options: Optional[dict[str, Any]] = None) -> list[int]: ...

    async def read(self, model: str, ids: Sequence[int], fields: Optional[Sequence[str]] = None) -> list[dict[str, Any]]: ...

    async def search_read(
        self,
        model: str,
        domain: Optional[list] = None,
        fields: Optional[Sequence[str]] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]: ...

    async def search_count(self, model: str, domain: Optional[list] = None) -> int: ...

    async def create(self, model: str, values: dict[str, Any]) -> int: ...

    async def write(self, model: str, ids: Sequence[int], values: dict[str, Any]) -> bool: ...

    async def unlink(self, model: str, ids: Sequence[int]) -> bool: ...


class OdooTransport(Protocol):
    """Blocking transport: the two XML-RPC endpoints Odoo exposes."""

    def authenticate(self) -> int: ...

    def execute_kw(
        self,
        uid: int,
        model: str,
        method: str,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> Any: ...


class _TimeoutTransport(xmlrpc.client.Transport):
    def __init__(self, timeout: float):
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self._timeout
        return conn


class _SafeTimeoutTransport(xmlrpc.client.SafeTransport):
    def __init__(self, timeout: float):
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self._timeout
        return conn


class XmlRpcTransport:
    """Odoo external API over xmlrpc.client (/xmlrpc/2/common and /xmlrpc/2/object)."""

    def __init__(self, config: OdooConfig):
        self._config = config
        transport_cls = _SafeTimeoutTransport if config.protocol == "https" else _TimeoutTransport
        self._common = xmlrpc.client.ServerProxy(
            f"{config.url}/xmlrpc/2/common",
            transport=transport_cls(config.request_timeout),
            allow_none=True,
        )
        self._object = xmlrpc.client.ServerProxy(
            f"{config.url}/xmlrpc/2/object",
            transport=transport_cls(config.request_timeout),
            allow_none=True,
        )

    def authenticate(self) -> int:
        uid = self._common.authenticate(
            self._config.database, self._config.username, self._config.password, {}
        )
        # Odoo answers False (not a fault) for bad credentials.
        if not uid:
            raise PermissionError(
                f"Odoo rejected credentials for {self._config.username!r} "
                f"on database {self._config.database!r}"
            )
        return int(uid)

    def execute_kw(
        self,
        uid: int,
        model: str,
        method: str,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> Any:
        return self._object.execute_kw(
            self._config.database,
            uid,
            self._config.password,
            model,
            method,
            args,
            kwargs,
        )


TransportFactory = Callable[[OdooConfig], OdooTransport]


class OdooClient:
    """
    A single authenticated Odoo session.

    Not safe for concurrent use: the pool guarantees one owner at a time.
    """

    def __init__(
        self,
        config: OdooConfig,
        logger: Optional[logging.Logger] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        executor: Executor | None = None,
    ):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self._transport_factory: TransportFactory = transport_factory or XmlRpcTransport
        self._executor = executor
        self._transport: Optional[OdooTransport] = None
        self.uid: Optional[int] = None
        self.connected = False

    def _run_in_executor(self, func, *args):
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, func, *args)

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def connect(self) -> None:
        """Authenticate if not already connected."""
        if self.connected and self.uid is not None:
            return

        self.logger.info("Connecting to Odoo at %s", self.config.connection_string)
        self._transport = self._transport_factory(self.config)
        try:
            self.uid = await self.authenticate_with_retry()
        except OdooConnectionError:
            self._transport = None
            self.logger.error("Failed to connect to Odoo at %s", self.config.connection_string)
            raise

        self.connected = True
        self.logger.info(
            "Connected to Odoo (uid=%s, database=%s)", self.uid, self.config.database
        )

    async def authenticate_with_retry(self) -> int:
        """
        Authenticate, retrying with exponential backoff.

        Returns:
            int: Authenticated Odoo user id

        Raises:
            OdooConnectionError: After `max_attempts` failures, wrapping the last error
        """
        if self._transport is None:
            self._transport = self._transport_factory(self.config)
        transport = self._transport

        policy = self.config.retry
        last_error: Optional[BaseException] = None

        for attempt in range(1, policy.max_attempts + 1):
            try:
                self.logger.debug("Authentication attempt %d/%d", attempt, policy.max_attempts)
                return await self._run_in_executor(transport.authenticate)
            except Exception as e:
                last_error = e
                self.logger.warning(
                    "Authentication attempt %d/%d failed: %s", attempt, policy.max_attempts, e
                )
                if attempt < policy.max_attempts:
                    delay = policy.delay_for(attempt)
                    self.logger.info("Retrying authentication in %.2fs...", delay)
                    await self._sleep(delay)

        raise OdooConnectionError(
            f"Failed to authenticate after {policy.max_attempts} attempts",
            last_error,
        ) from last_error

    async def execute(
        self,
        model: str,
        method: str,
        params: Optional[Sequence[Any]] = None,
        kwargs: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Call `model.method(*params, **kwargs)` on the Odoo server.

        Connects first if the session is not authenticated.
        """
        await self.connect()
        transport = self._transport
        uid = self.uid
        if transport is None or uid is None:
            raise OdooConnectionError(
                f"Not connected while executing {model}.{method}", model=model, method=method
            )

        args = list(params or [])
        kw = dict(kwargs or {})
        self.logger.debug("Executing %s.%s args=%s kwargs=%s", model, method, args, kw)
        try:
            return await self._run_in_executor(
                transport.execute_kw, uid, model, method, args, kw
            )
        except Exception as e:
            self.logger.error("Failed to execute %s.%s: %s", model, method, e)
            raise OdooConnectionError(
                f"Failed to execute {model}.{method}", e, model=model, method=method
            ) from e

    async def search(self, model: str, domain: Optional[list] = None, options: Optional[dict[str, Any]] = None) -> list[int]:
        return await self.execute(model, "search", [domain or []], options)

    async def read(self, model: str, ids: Sequence[int], fields: Optional[Sequence[str]] = None) -> list[dict[str, Any]]:
        kwargs = {"fields": list(fields)} if fields else {}
        return await self.execute(model, "read", [list(ids)], kwargs)

    async def search_read(
        self,
        model: str,
        domain: Optional[list] = None,
        fields: Optional[Sequence[str]] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        kwargs = dict(options or {})
        if fields:
            kwargs["fields"] = list(fields)
        return await self.execute(model, "search_read", [domain or []], kwargs)

    async def search_count(self, model: str, domain: Optional[list] = None) -> int:
        return await self.execute(model, "search_count", [domain or []])

    async def create(self, model: str, values: dict[str, Any]) -> int:
        return await self.execute(model, "create", [values])

    async def write(self, model: str, ids: Sequence[int], values: dict[str, Any]) -> bool:
        return await self.execute(model, "write", [list(ids), values])

    async def unlink(self, model: str, ids: Sequence[int]) -> bool:
        return await self.execute(model, "unlink", [list(ids)])

    async def disconnect(self) -> None:
        """Drop the session. Safe to call repeatedly."""
        if self.connected or self.uid is not None:
            self.logger.debug("Disconnecting Odoo session uid=%s", self.uid)
        self.connected = False
        self.uid = None
        self._transport = None

    def is_connected(self) -> bool:
        return self.connected and self.uid is not None
