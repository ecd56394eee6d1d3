import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from .config import ConnectionOptions
from .errors import ZabbixAPIError, ZabbixAuthError
from .session import SessionManager
from .transport import ZabbixTransport

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES = frozenset(
    (
        "Session terminated, re-login, please.",
        "Not authorised.",
        "Not authorized.",
    )
)


def is_auth_error(error: ZabbixAPIError) -> bool:
    # Zabbix puts the detail in "data" and a generic text in "message"
    return error.data in AUTH_ERROR_MESSAGES or error.message in AUTH_ERROR_MESSAGES


@dataclass
class Query:
    method: str
    params: Union[Dict[str, Any], List[Any]] = field(default_factory=dict)


class RequestDispatcher:
    def __init__(
        self,
        transport: ZabbixTransport,
        url: str,
        options: ConnectionOptions,
        session: SessionManager,
        auth_retries: int = 1,
    ):
        self.transport = transport
        self.url = url
        self.options = options
        self.session = session
        self.auth_retries = auth_retries

    async def request(self, method: str, params=None) -> Any:
        query = Query(method, params if params is not None else {})
        return await self.dispatch(query, self.auth_retries)

    async def dispatch(self, query: Query, retries_left: int) -> Any:
        token = self.session.token
        try:
            return await self.transport.request(
                self.url, query.method, query.params, self.options, token
            )
        except ZabbixAPIError as e:
            if not is_auth_error(e):
                raise
            if retries_left <= 0:
                raise ZabbixAuthError(
                    f"{query.method}: still not authorised after re-login",
                    code=e.code,
                    data=e.data,
                ) from e
            logger.debug("%s: session rejected (%s), re-logging in", query.method, e)

        # The rejected token may already have been replaced by a login this
        # call did not wait for; only log in if it is still current.
        if self.session.pending or self.session.token == token:
            await self.session.login_once()
        else:
            logger.debug("%s: session renewed meanwhile, retrying", query.method)
        return await self.dispatch(query, retries_left - 1)
