import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .config import ConnectionOptions
from .errors import ZabbixAPIError, ZabbixLoginError
from .transport import ZabbixTransport

logger = logging.getLogger(__name__)


def _retrieve_exception(task: asyncio.Task):
    # Every waiter may have been cancelled before the login failed
    if not task.cancelled():
        task.exception()


class SessionState(enum.Enum):
    ANONYMOUS = "anonymous"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"


@dataclass
class Session:
    token: str = ""
    state: SessionState = SessionState.ANONYMOUS


class SessionManager:
    """Owns the auth token and coalesces concurrent logins into one call."""

    def __init__(
        self,
        transport: ZabbixTransport,
        url: str,
        username: str,
        password: str,
        options: ConnectionOptions,
    ):
        self.transport = transport
        self.url = url
        self.username = username
        self.password = password
        self.options = options
        self.session = Session()
        self._login_task: Optional[asyncio.Task] = None

    @property
    def token(self) -> str:
        return self.session.token

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def pending(self) -> bool:
        return self._login_task is not None

    async def login(self) -> str:
        """Issue a fresh login. Does not touch the stored session."""
        return await self.transport.login(self.url, self.username, self.password, self.options)

    async def login_once(self) -> str:
        """Log in, or wait for the login already in flight.

        Every caller attached to the same attempt gets the same token, or the
        same ZabbixLoginError.
        """
        if self._login_task is None:
            self.session.state = SessionState.PENDING
            self._login_task = asyncio.ensure_future(self._login_and_store())
            self._login_task.add_done_callback(_retrieve_exception)
        else:
            logger.debug("login already in flight, waiting for it")

        # A cancelled waiter must not cancel the login shared with the others
        return await asyncio.shield(self._login_task)

    async def _login_and_store(self) -> str:
        logger.info("logging in to %s as %s", self.url, self.username)
        try:
            token = await self.login()
            # No await between storing the token and clearing the slot
            self.session.token = token
            self.session.state = SessionState.AUTHENTICATED
            logger.info("login to %s succeeded", self.url)
            return token
        except ZabbixAPIError as e:
            self.session.state = SessionState.ANONYMOUS
            raise ZabbixLoginError(
                f"Login to {self.url} failed: {e}", code=e.code, data=e.data
            ) from e
        except BaseException:
            self.session.state = SessionState.ANONYMOUS
            raise
        finally:
            self._login_task = None
