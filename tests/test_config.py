import logging

import pytest
from pydantic import ValidationError

from datasource.config import DatasourceSettings, env_flag
from datasource.log import setup_logging


def test_from_env(monkeypatch):
    monkeypatch.setenv("ZABBIX_URL", "https://zbx.example.com/api_jsonrpc.php")
    monkeypatch.setenv("ZABBIX_USER", "grafana")
    monkeypatch.setenv("ZABBIX_PASS", "secret")
    monkeypatch.setenv("ZABBIX_BASIC_AUTH", "yes")
    monkeypatch.setenv("ZABBIX_HTTP_USER", "web")
    monkeypatch.setenv("ZABBIX_WITH_CREDENTIALS", "0")
    monkeypatch.setenv("ZABBIX_AUTH_RETRIES", "2")

    settings = DatasourceSettings.from_env()

    assert settings.url == "https://zbx.example.com/api_jsonrpc.php"
    assert settings.username == "grafana"
    assert settings.options.basic_auth is True
    assert settings.options.http_user == "web"
    assert settings.options.with_credentials is False
    assert settings.auth_retries == 2


@pytest.mark.parametrize("value,expected", [
    ("1", True), ("TRUE", True), ("on", True), ("no", False), ("", False),
])
def test_env_flag(monkeypatch, value, expected):
    monkeypatch.setenv("SOME_FLAG", value)
    assert env_flag("SOME_FLAG") is expected


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("SOME_FLAG", raising=False)
    assert env_flag("SOME_FLAG", default=True) is True


def test_negative_retries_rejected():
    with pytest.raises(ValidationError):
        DatasourceSettings(auth_retries=-1)


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("debug")
        setup_logging("debug")
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert root.level == logging.DEBUG
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)
        if hasattr(root, "_datasource_configured"):
            del root._datasource_configured


def test_login_user_field(monkeypatch):
    monkeypatch.delenv("ZABBIX_LOGIN_USER_FIELD", raising=False)
    assert DatasourceSettings.from_env().options.login_user_field == "username"

    monkeypatch.setenv("ZABBIX_LOGIN_USER_FIELD", "user")
    assert DatasourceSettings.from_env().options.login_user_field == "user"
