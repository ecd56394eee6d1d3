from .client import ZabbixAPI
from .config import ConnectionOptions, DatasourceSettings
from .errors import (
    ZabbixAPIError,
    ZabbixAuthError,
    ZabbixLoginError,
    ZabbixTransportError,
)

__all__ = [
    "ZabbixAPI",
    "ConnectionOptions",
    "DatasourceSettings",
    "ZabbixAPIError",
    "ZabbixAuthError",
    "ZabbixLoginError",
    "ZabbixTransportError",
]
