import asyncio
from typing import Any, Dict, List, Optional

from .config import ConnectionOptions, DatasourceSettings
from .dispatcher import RequestDispatcher
from .session import SessionManager
from .transport import ZabbixTransport


def group_by_value_type(items: List[Dict[str, Any]]) -> Dict[Any, List[Any]]:
    """Map value_type -> itemids, ordered by value type."""
    groups: Dict[Any, List[Any]] = {}
    for item in items:
        groups.setdefault(item["value_type"], []).append(item["itemid"])
    return dict(sorted(groups.items(), key=lambda kv: int(kv[0])))


class ZabbixAPI:
    """Zabbix API wrapper for one configured datasource.

    Holds the connection settings and the session, re-authenticates
    transparently and provides the high-level queries the dashboard needs.
    """

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        basic_auth: bool = False,
        with_credentials: bool = False,
        *,
        options: Optional[ConnectionOptions] = None,
        transport: Optional[ZabbixTransport] = None,
        auth_retries: int = 1,
    ):
        self.url = url
        self.username = username
        self.password = password

        if options is None:
            options = ConnectionOptions(basic_auth=basic_auth, with_credentials=with_credentials)
        self.request_options = options

        self._owns_transport = transport is None
        self.transport = transport or ZabbixTransport()
        self.session = SessionManager(self.transport, url, username, password, options)
        self.dispatcher = RequestDispatcher(
            self.transport, url, options, self.session, auth_retries=auth_retries
        )

    @classmethod
    def from_settings(
        cls, settings: DatasourceSettings, transport: Optional[ZabbixTransport] = None
    ) -> "ZabbixAPI":
        return cls(
            settings.url,
            settings.username,
            settings.password,
            options=settings.options,
            transport=transport,
            auth_retries=settings.auth_retries,
        )

    async def close(self):
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    @property
    def auth(self) -> str:
        return self.session.token

    ##################
    # Core methods   #
    ##################

    async def request(self, method: str, params=None) -> Any:
        return await self.dispatcher.request(method, params)

    async def login_once(self) -> str:
        return await self.session.login_once()

    async def login(self) -> str:
        """Get a fresh authentication token without storing it."""
        return await self.session.login()

    async def get_version(self) -> str:
        return await self.transport.get_version(self.url, self.request_options)

    ##################
    # API methods    #
    ##################

    async def get_groups(self):
        return await self.request("hostgroup.get", {
            "output": ["name"],
            "sortfield": "name"
        })

    async def get_hosts(self):
        return await self.request("host.get", {
            "output": ["name", "host"],
            "sortfield": "name",
            "selectGroups": []
        })

    async def get_applications(self):
        return await self.request("application.get", {
            "output": ["name"],
            "sortfield": "name",
            "selectHosts": []
        })

    async def get_items(self):
        return await self.request("item.get", {
            "output": ["name", "key_", "value_type", "hostid", "status", "state"],
            "sortfield": "name",
            "selectApplications": []
        })

    async def _get_by_value_type(self, method, type_param, items, time_from, time_till):
        async def fetch(value_type, itemids):
            params = {
                "output": "extend",
                type_param: value_type,
                "itemids": itemids,
                "sortfield": "clock",
                "sortorder": "ASC",
                "time_from": time_from
            }
            # Relative queries (e.g. last hour) don't include an end time
            if time_till:
                params["time_till"] = time_till
            return await self.request(method, params)

        groups = group_by_value_type(items)
        results = await asyncio.gather(
            *(fetch(value_type, itemids) for value_type, itemids in groups.items())
        )
        return [row for rows in results for row in rows or []]

    async def get_history(self, items, time_from, time_till=None) -> List[Dict[str, Any]]:
        """Query history.get once per value type and flatten the results.

        :param items: Zabbix item dicts with at least itemid and value_type
        :param time_from: start time in seconds
        :param time_till: end time in seconds, falsy for an open-ended query
        """
        return await self._get_by_value_type("history.get", "history", items, time_from, time_till)

    async def get_trends(self, items, time_from, time_till=None) -> List[Dict[str, Any]]:
        """Same as get_history, against trend.get."""
        return await self._get_by_value_type("trend.get", "trend", items, time_from, time_till)

    async def get_it_service(self, serviceids=None):
        return await self.request("service.get", {
            "output": "extend",
            "serviceids": serviceids
        })

    async def get_sla(self, serviceids, time_from, time_to):
        return await self.request("service.getsla", {
            "serviceids": serviceids,
            "intervals": [{"from": time_from, "to": time_to}]
        })

    async def get_triggers(self, limit, sortfield, groupids, hostids, applicationids, name):
        params = {
            "output": "extend",
            "expandDescription": True,
            "expandData": True,
            "monitored": True,
            "filter": {"value": 1},
            "search": {"description": name},
            "searchWildcardsEnabled": False,
            "groupids": groupids,
            "hostids": hostids,
            "applicationids": applicationids,
            "limit": limit,
            "sortfield": "lastchange",
            "sortorder": "DESC"
        }
        if sortfield:
            params["sortfield"] = sortfield

        return await self.request("trigger.get", params)

    async def get_acknowledges(self, triggerids, time_from):
        events = await self.request("event.get", {
            "output": "extend",
            "objectids": triggerids,
            "acknowledged": True,
            "select_acknowledges": "extend",
            "sortfield": "clock",
            "sortorder": "DESC",
            "time_from": time_from
        })
        return [ack for event in events or [] for ack in event.get("acknowledges") or []]
