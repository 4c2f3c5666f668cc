import base64
import logging

import pytest


ENV_VARS = ("SMS_API_CONFIG", "SMS_API_KEY", "SMS_API_BASE_URL", "SMS_WEBHOOK_SECRET",
            "LOG_LEVEL", "LOG_FILE")


def make_secret(key: bytes = b"deadbeef") -> str:
    return "whsec_" + base64.b64encode(key).decode("ascii")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the user's real config and environment out of every test"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return tmp_path


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
