import os
from typing import Optional

from pydantic import BaseModel, Field

# Configuration with Defaults
ZABBIX_URL = os.getenv("ZABBIX_URL", "http://localhost/zabbix/api_jsonrpc.php")
ZABBIX_USER = os.getenv("ZABBIX_USER", "Admin")
ZABBIX_PASS = os.getenv("ZABBIX_PASS", "zabbix")


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConnectionOptions(BaseModel):
    basic_auth: bool = False
    with_credentials: bool = False
    # Sent in the Authorization header when basic_auth is on
    http_user: Optional[str] = None
    http_password: Optional[str] = None
    timeout: float = 30.0
    # "user" before Zabbix 5.4, "username" from 5.4 on
    login_user_field: str = "username"


class DatasourceSettings(BaseModel):
    url: str = ZABBIX_URL
    username: str = ZABBIX_USER
    password: str = ZABBIX_PASS
    options: ConnectionOptions = Field(default_factory=ConnectionOptions)
    auth_retries: int = Field(default=1, ge=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "DatasourceSettings":
        """Read settings from the process environment at call time."""
        options = ConnectionOptions(
            basic_auth=env_flag("ZABBIX_BASIC_AUTH"),
            with_credentials=env_flag("ZABBIX_WITH_CREDENTIALS"),
            http_user=os.getenv("ZABBIX_HTTP_USER"),
            http_password=os.getenv("ZABBIX_HTTP_PASS"),
            timeout=float(os.getenv("ZABBIX_TIMEOUT", "30")),
            login_user_field=os.getenv("ZABBIX_LOGIN_USER_FIELD", "username"),
        )
        return cls(
            url=os.getenv("ZABBIX_URL", ZABBIX_URL),
            username=os.getenv("ZABBIX_USER", ZABBIX_USER),
            password=os.getenv("ZABBIX_PASS", ZABBIX_PASS),
            options=options,
            auth_retries=int(os.getenv("ZABBIX_AUTH_RETRIES", "1")),
            log_level=os.getenv("DATASOURCE_LOG_LEVEL", "INFO"),
        )
