from typing import Any, Optional


class ZabbixAPIError(Exception):
    """Failure reported by the Zabbix API or the transport talking to it."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def __str__(self):
        if self.data and self.data != self.message:
            return f"{self.message} {self.data}"
        return self.message


class ZabbixTransportError(ZabbixAPIError):
    """Network failure, bad HTTP status or a malformed JSON-RPC response."""


class ZabbixAuthError(ZabbixAPIError):
    """The server keeps rejecting the session after re-login."""


class ZabbixLoginError(ZabbixAuthError):
    """The login call itself failed."""
