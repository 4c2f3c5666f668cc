import json
import os
from pathlib import Path

import pytest
import requests

from sms_sdk.cli import main
from sms_sdk.webhooks import sign_webhook

from conftest import make_secret

BODY = b'{"event":"sms.delivered"}'


@pytest.fixture(autouse=True)
def _logging(restore_root_logging):
    yield


def fake_api(monkeypatch, status: int, body):
    calls = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs))
        response = requests.Response()
        response.status_code = status
        response.reason = "OK" if status < 400 else "Error"
        response._content = json.dumps(body).encode()
        return response

    monkeypatch.setattr(requests.Session, "request", fake_request)
    return calls


def test_init_writes_private_config(tmp_path: Path, capsys):
    config_dir = tmp_path / "conf"
    rc = main(["init", "--config-dir", str(config_dir), "--api-key", "sk_cli",
               "--webhook-secret", make_secret()])
    assert rc == 0

    path = config_dir / "config.json"
    data = json.loads(path.read_text())
    assert data["api_key"] == "sk_cli"
    assert data["base_url"] == "https://api.sms-sdk.dev"
    assert "default_sender" not in data
    if os.name == "posix":
        assert (path.stat().st_mode & 0o777) == 0o600

    # Second run without --force refuses to overwrite
    assert main(["init", "--config-dir", str(config_dir), "--api-key", "other"]) == 1
    assert json.loads(path.read_text())["api_key"] == "sk_cli"
    assert main(["init", "--config-dir", str(config_dir), "--api-key", "other", "--force"]) == 0
    assert json.loads(path.read_text())["api_key"] == "other"


def test_send(monkeypatch, capsys):
    monkeypatch.setenv("SMS_API_KEY", "sk_env")
    calls = fake_api(monkeypatch, 201, {"id": "msg_42", "status": "queued"})

    rc = main(["send", "+15550100", "build finished", "--idempotency-key", "k1"])

    assert rc == 0
    method, url, kwargs = calls[0]
    assert (method, url) == ("POST", "https://api.sms-sdk.dev/v1/messages")
    assert kwargs["json"] == {"to": "+15550100", "text": "build finished"}
    assert kwargs["headers"] == {"Idempotency-Key": "k1"}
    assert "msg_42" in capsys.readouterr().out


def test_send_reports_api_error(monkeypatch, capsys):
    monkeypatch.setenv("SMS_API_KEY", "sk_env")
    fake_api(monkeypatch, 400, {"error": "text too long"})

    assert main(["send", "+15550100", "x"]) == 1
    assert "text too long" in capsys.readouterr().err


def test_send_without_api_key(capsys):
    assert main(["send", "+15550100", "x"]) == 1
    assert "api_key" in capsys.readouterr().err


def test_verify_send_and_check(monkeypatch, capsys):
    monkeypatch.setenv("SMS_API_KEY", "sk_env")
    fake_api(monkeypatch, 201, {"id": "ver_1", "to": "+15550100", "status": "pending"})
    assert main(["verify-send", "+15550100", "--code-length", "6"]) == 0
    assert "pending" in capsys.readouterr().out

    fake_api(monkeypatch, 200, {"to": "+15550100", "status": "approved"})
    assert main(["verify-check", "+15550100", "123456"]) == 0
    assert "approved" in capsys.readouterr().out

    fake_api(monkeypatch, 200, {"to": "+15550100", "status": "pending", "valid": False})
    assert main(["verify-check", "+15550100", "000000"]) == 1


def test_webhook_verify_exit_codes(tmp_path: Path, monkeypatch, capsys):
    body_file = tmp_path / "body.json"
    body_file.write_bytes(BODY)
    secret = make_secret()
    header = sign_webhook(BODY, secret)

    assert main(["webhook-verify", str(body_file), "--signature", header, "--secret", secret]) == 0
    assert "valid" in capsys.readouterr().out

    other = make_secret(b"another")
    assert main(["webhook-verify", str(body_file), "--signature", header, "--secret", other]) == 1

    assert main(["webhook-verify", str(body_file), "--signature", header, "--secret", "bogus"]) == 2

    # Secret from the environment
    monkeypatch.setenv("SMS_WEBHOOK_SECRET", secret)
    assert main(["webhook-verify", str(body_file), "--signature", header]) == 0


def test_webhook_verify_reads_secret_from_config(tmp_path: Path):
    body_file = tmp_path / "body.json"
    body_file.write_bytes(BODY)
    secret = make_secret(b"from-config")
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"webhook_secret": secret}))

    header = sign_webhook(BODY, secret)
    assert main(["webhook-verify", str(body_file), "--signature", header,
                 "--config", str(config_path)]) == 0


def test_webhook_verify_without_secret(tmp_path: Path, capsys):
    body_file = tmp_path / "body.json"
    body_file.write_bytes(BODY)
    assert main(["webhook-verify", str(body_file), "--signature", "t=1,v1=00"]) == 2
    assert "no webhook secret" in capsys.readouterr().err


def test_unknown_log_level_is_a_usage_error(tmp_path: Path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--log-level", "bogus", "init", "--config-dir", str(tmp_path / "c")])
    assert excinfo.value.code == 2
    assert "invalid choice" in capsys.readouterr().err

    assert main(["--log-level", "debug", "init", "--config-dir", str(tmp_path / "c")]) == 0


def test_unknown_log_level_from_environment(monkeypatch):
    from sms_sdk.logging_config import setup_logging

    monkeypatch.setenv("LOG_LEVEL", "bogus")
    with pytest.raises(ValueError, match="Unknown log level"):
        setup_logging()
