"""Shared test fixtures.

FakeTransport stands in for ZabbixTransport so the session and retry logic
can be tested without a Zabbix server.
"""

import asyncio
from typing import Any, Callable, Dict, Optional

import pytest

from datasource.client import ZabbixAPI
from datasource.config import ConnectionOptions
from datasource.errors import ZabbixAPIError

URL = "http://zabbix.test/api_jsonrpc.php"

SESSION_TERMINATED = "Session terminated, re-login, please."


class FakeTransport:
    """Scripted transport.

    - tokens handed out by login() are the only ones request() accepts
    - handlers map an RPC method to a value or to a callable(params)
    - login_gate, when set, holds every login until the event fires
    - delays, consumed one per request() call in call order, adds that many
      extra scheduler ticks before the call is answered
    """

    def __init__(self):
        self.requests = []
        self.login_calls = 0
        self.version_calls = 0
        self.valid_tokens = set()
        self.handlers: Dict[str, Any] = {}
        self.login_error: Optional[Exception] = None
        self.login_gate: Optional[asyncio.Event] = None
        self.reject_all = False
        self.delays = []
        self.closed = False

    def on(self, method: str, handler: Any):
        self.handlers[method] = handler

    def calls_to(self, method: str):
        return [r for r in self.requests if r["method"] == method]

    async def request(self, url, method, params, options, auth=None):
        self.requests.append({"url": url, "method": method, "params": params, "auth": auth})
        for _ in range(self.delays.pop(0) if self.delays else 0):
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        if auth == "":
            raise ZabbixAPIError("Not authorised.", data="Not authorised.")
        if self.reject_all or auth not in self.valid_tokens:
            raise ZabbixAPIError("Invalid params.", code=-32602, data=SESSION_TERMINATED)

        handler = self.handlers.get(method)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(params)
        return handler

    async def login(self, url, username, password, options):
        self.login_calls += 1
        if self.login_gate is not None:
            await self.login_gate.wait()
        await asyncio.sleep(0)
        if self.login_error is not None:
            raise self.login_error
        token = f"token-{self.login_calls}"
        self.valid_tokens.add(token)
        return token

    async def get_version(self, url, options):
        self.version_calls += 1
        return "3.0.4"

    async def close(self):
        self.closed = True


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def api(transport):
    return ZabbixAPI(URL, "Admin", "zabbix", transport=transport)


@pytest.fixture
def authed_api(transport):
    """API whose session already holds a token the fake accepts."""
    api = ZabbixAPI(URL, "Admin", "zabbix", transport=transport)
    transport.valid_tokens.add("token-0")
    api.session.session.token = "token-0"
    return api


@pytest.fixture
def options():
    return ConnectionOptions()
