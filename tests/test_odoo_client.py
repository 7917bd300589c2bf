"""
Unit tests for OdooClient.

Uses an in-memory transport so no Odoo server is needed.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from hrms_connector.connectors import odoo_client
from hrms_connector.connectors.odoo_client import OdooClient, OdooRpc
from hrms_connector.core.errors import OdooConnectionError
from hrms_connector.models.connection import OdooConfig, RetryPolicy

pytestmark = pytest.mark.asyncio


class FakeTransport:
    """Scripted transport: `auth_results` items are uids or exceptions."""

    def __init__(self, auth_results=None, execute_result=None, execute_error=None):
        self.auth_results = list(auth_results if auth_results is not None else [7])
        self.auth_calls = 0
        self.execute_result = execute_result
        self.execute_error = execute_error
        self.calls = []

    def authenticate(self):
        self.auth_calls += 1
        result = self.auth_results.pop(0) if len(self.auth_results) > 1 else self.auth_results[0]
        if isinstance(result, BaseException):
            raise result
        return result

    def execute_kw(self, uid, model, method, args, kwargs):
        self.calls.append((uid, model, method, args, kwargs))
        if self.execute_error is not None:
            raise self.execute_error
        return self.execute_result


def _make_client(transport, **retry):
    policy = RetryPolicy(**{"max_attempts": 3, "delay": 0.1, "backoff_multiplier": 2, **retry})
    config = OdooConfig(retry=policy)
    client = OdooClient(config, transport_factory=lambda _cfg: transport)
    client._sleep = AsyncMock()
    return client


async def test_connect_retries_with_exponential_backoff():
    transport = FakeTransport([ConnectionRefusedError("down"), TimeoutError("slow"), 42])
    client = _make_client(transport)

    await client.connect()

    assert transport.auth_calls == 3
    assert client.uid == 42
    assert client.is_connected()
    delays = [call.args[0] for call in client._sleep.await_args_list]
    assert delays == pytest.approx([0.1, 0.2])


async def test_connect_raises_after_exhausting_attempts():
    last = ConnectionRefusedError("still down")
    transport = FakeTransport([OSError("a"), OSError("b"), last])
    client = _make_client(transport)

    with pytest.raises(OdooConnectionError) as exc_info:
        await client.connect()

    assert exc_info.value.original_error is last
    assert exc_info.value.__cause__ is last
    assert exc_info.value.status_code == 503
    assert transport.auth_calls == 3
    # No sleep after the final attempt.
    assert client._sleep.await_count == 2
    assert not client.is_connected()


async def test_connect_is_noop_when_authenticated():
    transport = FakeTransport([5])
    client = _make_client(transport)

    await client.connect()
    await client.connect()

    assert transport.auth_calls == 1


async def test_execute_connects_lazily_and_passes_arguments():
    transport = FakeTransport([3], execute_result=[{"id": 1}])
    client = _make_client(transport)

    result = await client.execute("hr.employee", "search_read", [[]], {"limit": 5})

    assert result == [{"id": 1}]
    assert transport.calls == [(3, "hr.employee", "search_read", [[]], {"limit": 5})]


async def test_execute_wraps_transport_errors_with_context():
    transport = FakeTransport([3], execute_error=ConnectionResetError("reset"))
    client = _make_client(transport)

    with pytest.raises(OdooConnectionError) as exc_info:
        await client.execute("hr.leave", "read", [[1]])

    err = exc_info.value
    assert err.model == "hr.leave"
    assert err.method == "read"
    assert isinstance(err.original_error, ConnectionResetError)


async def test_verbs_use_odoo_argument_layout():
    transport = FakeTransport([9], execute_result=True)
    client = _make_client(transport)

    await client.search("hr.job", [("name", "=", "Dev")], {"limit": 2})
    await client.read("hr.job", [1, 2], ["name"])
    await client.search_read("hr.job", None, ["name"], {"offset": 10})
    await client.search_count("hr.job")
    await client.create("hr.job", {"name": "QA"})
    await client.write("hr.job", [4], {"name": "Ops"})
    await client.unlink("hr.job", [4])

    layouts = [(method, args, kwargs) for _, _, method, args, kwargs in transport.calls]
    assert layouts == [
        ("search", [[("name", "=", "Dev")]], {"limit": 2}),
        ("read", [[1, 2]], {"fields": ["name"]}),
        ("search_read", [[]], {"offset": 10, "fields": ["name"]}),
        ("search_count", [[]], {}),
        ("create", [{"name": "QA"}], {}),
        ("write", [[4], {"name": "Ops"}], {}),
        ("unlink", [[4]], {}),
    ]


async def test_disconnect_is_idempotent():
    client = _make_client(FakeTransport([1]))
    await client.connect()

    await client.disconnect()
    await client.disconnect()

    assert client.uid is None
    assert not client.is_connected()


async def test_client_satisfies_rpc_protocol():
    client = _make_client(FakeTransport())
    assert isinstance(client, OdooRpc)


# ============================================================================
# XML-RPC transport
# ============================================================================


class FakeServerProxy:
    """Stands in for xmlrpc.client.ServerProxy; records how it was built."""

    instances = []
    uid = 12

    def __init__(self, uri, transport=None, allow_none=False):
        self.uri = uri
        self.transport = transport
        self.allow_none = allow_none
        FakeServerProxy.instances.append(self)

    def authenticate(self, database, username, password, user_agent_env):
        return FakeServerProxy.uid


@pytest.fixture
def server_proxy(monkeypatch):
    FakeServerProxy.instances = []
    FakeServerProxy.uid = 12
    monkeypatch.setattr(odoo_client.xmlrpc.client, "ServerProxy", FakeServerProxy)
    return FakeServerProxy


async def test_transport_uses_plain_http_endpoints(server_proxy):
    odoo_client.XmlRpcTransport(OdooConfig(host="erp", port=8069))

    uris = [proxy.uri for proxy in server_proxy.instances]
    assert uris == ["http://erp:8069/xmlrpc/2/common", "http://erp:8069/xmlrpc/2/object"]
    assert all(type(p.transport) is odoo_client._TimeoutTransport for p in server_proxy.instances)


async def test_transport_selects_tls_for_https(server_proxy):
    odoo_client.XmlRpcTransport(OdooConfig(protocol="https", host="erp", port=443))

    assert server_proxy.instances[0].uri == "https://erp:443/xmlrpc/2/common"
    assert all(
        isinstance(p.transport, odoo_client._SafeTimeoutTransport) for p in server_proxy.instances
    )


async def test_transport_authenticate_returns_uid(server_proxy):
    transport = odoo_client.XmlRpcTransport(OdooConfig())
    assert transport.authenticate() == 12


async def test_transport_rejects_false_uid(server_proxy):
    server_proxy.uid = False
    transport = odoo_client.XmlRpcTransport(OdooConfig(username="svc", database="hr"))

    with pytest.raises(PermissionError, match="rejected credentials"):
        transport.authenticate()


async def test_rejected_credentials_surface_as_connection_error(server_proxy):
    server_proxy.uid = False
    client = OdooClient(OdooConfig(retry=RetryPolicy(max_attempts=2, delay=0.1)))
    client._sleep = AsyncMock()

    with pytest.raises(OdooConnectionError) as exc_info:
        await client.connect()

    assert isinstance(exc_info.value.__cause__, PermissionError)
    assert client._sleep.await_count == 1
