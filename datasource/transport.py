import logging
from typing import Any, Optional

import httpx

from .config import ConnectionOptions
from .errors import ZabbixAPIError, ZabbixTransportError

logger = logging.getLogger(__name__)

NOT_AUTHORISED = "Not authorised."


class ZabbixTransport:
    """JSON-RPC transport over a shared httpx.AsyncClient.

    `auth` semantics for `request`:
      - a non-empty string is sent as the session token
      - "" means the caller has no session yet; rejected without network I/O
      - None marks an unauthenticated method (user.login, apiinfo.version)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient()
        self.req_id = 1

    async def close(self):
        await self.client.aclose()

    async def request(
        self,
        url: str,
        method: str,
        params: Any,
        options: ConnectionOptions,
        auth: Optional[str] = None,
    ) -> Any:
        if auth == "":
            raise ZabbixAPIError(NOT_AUTHORISED, data=NOT_AUTHORISED)

        current_id = self.req_id
        self.req_id += 1

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": current_id,
        }
        if auth:
            payload["auth"] = auth

        headers = {"Content-Type": "application/json-rpc"}
        basic = None
        if options.basic_auth:
            basic = httpx.BasicAuth(options.http_user or "", options.http_password or "")

        logger.debug("-> %s id=%s", method, current_id)
        try:
            if basic is not None:
                response = await self.client.post(
                    url, json=payload, headers=headers, auth=basic, timeout=options.timeout
                )
            else:
                response = await self.client.post(
                    url, json=payload, headers=headers, timeout=options.timeout
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ZabbixTransportError(
                f"HTTP {e.response.status_code} from Zabbix API", code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise ZabbixTransportError(f"Request failed: {e}") from e
        finally:
            if not options.with_credentials:
                self.client.cookies.clear()

        try:
            data = response.json()
        except ValueError as e:
            raise ZabbixTransportError(
                f"{method}: response is not JSON", data=response.text[:200]
            ) from e

        if not isinstance(data, dict):
            raise ZabbixTransportError(f"{method}: unexpected response", data=data)

        if "error" in data:
            err = data["error"]
            if not isinstance(err, dict):
                raise ZabbixTransportError(f"{method}: malformed error object", data=err)
            raise ZabbixAPIError(
                err.get("message", "Zabbix API error"),
                code=err.get("code"),
                data=err.get("data"),
            )

        if "result" not in data:
            raise ZabbixTransportError(f"{method}: response has no result", data=data)

        return data["result"]

    async def login(
        self, url: str, username: str, password: str, options: ConnectionOptions
    ) -> str:
        params = {options.login_user_field: username, "password": password}
        return await self.request(url, "user.login", params, options, None)

    async def get_version(self, url: str, options: ConnectionOptions) -> str:
        return await self.request(url, "apiinfo.version", [], options, None)
