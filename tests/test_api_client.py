import json
from unittest import mock

import pytest
import requests

from sms_sdk import (
    SMSAPIClient, SMSAPIConfig, send_sms, send_verification_code, check_verification_code,
)
from sms_sdk.errors import SMSAPIConnectionError, SMSAPIError


def make_response(status: int, body, reason: str = "OK") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if isinstance(body, (bytes, str)):
        response._content = body.encode() if isinstance(body, str) else body
    else:
        response._content = json.dumps(body).encode()
    response.headers["Content-Type"] = "application/json"
    return response


def make_client(**config_kwargs):
    config_kwargs.setdefault("api_key", "sk_test_123")
    config_kwargs.setdefault("base_url", "https://api.test/")
    config = SMSAPIConfig(**config_kwargs)
    session = requests.Session()
    return SMSAPIClient(config, session=session), session


def test_send_message_posts_json_with_api_key():
    client, session = make_client()
    reply = {"id": "msg_1", "to": "+15550100", "text": "hi", "status": "queued",
             "from": "ACME", "created_at": "2024-01-01T00:00:00Z", "segments": 1}

    with mock.patch.object(session, "request", return_value=make_response(201, reply)) as request:
        message = client.messages.send("+15550100", "hi", sender="ACME", idempotency_key="idem-1")

    request.assert_called_once_with(
        "POST",
        "https://api.test/v1/messages",
        json={"to": "+15550100", "text": "hi", "from": "ACME"},
        headers={"Idempotency-Key": "idem-1"},
        timeout=30.0,
    )
    assert session.headers["X-API-Key"] == "sk_test_123"
    assert session.headers["User-Agent"].startswith("sms-sdk/")
    assert message.id == "msg_1"
    assert message.status == "queued"
    assert message.sender == "ACME"
    # Unknown fields are kept in raw
    assert message.raw["segments"] == 1


def test_send_message_uses_default_sender_and_omits_idempotency_header():
    client, session = make_client(default_sender="+15559999", timeout=5)

    with mock.patch.object(session, "request", return_value=make_response(200, {"id": "m"})) as request:
        client.messages.send("+15550100", "hello", metadata={"order": 7})

    _, kwargs = request.call_args
    assert kwargs["json"] == {"to": "+15550100", "text": "hello", "from": "+15559999",
                              "metadata": {"order": 7}}
    assert kwargs["headers"] == {}
    assert kwargs["timeout"] == 5.0


@pytest.mark.parametrize("to,text", [("", "hi"), ("+1555", "")])
def test_send_message_validates_before_request(to, text):
    client, session = make_client()
    with mock.patch.object(session, "request") as request:
        with pytest.raises(ValueError):
            client.messages.send(to, text)
    request.assert_not_called()


def test_api_error_carries_status_and_parsed_body():
    client, session = make_client()
    body = {"error": "invalid phone number", "code": "invalid_to"}

    with mock.patch.object(session, "request",
                           return_value=make_response(422, body, "Unprocessable Entity")):
        with pytest.raises(SMSAPIError) as excinfo:
            client.messages.send("nope", "hi")

    assert excinfo.value.status_code == 422
    assert excinfo.value.body == body
    assert excinfo.value.message == "invalid phone number"
    assert str(excinfo.value) == "[422] invalid phone number"


def test_api_error_with_non_json_body():
    client, session = make_client()
    with mock.patch.object(session, "request",
                           return_value=make_response(502, "<html>Bad Gateway</html>", "Bad Gateway")):
        with pytest.raises(SMSAPIError) as excinfo:
            client.verifications.send_code("+15550100")

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == "<html>Bad Gateway</html>"


def test_api_error_with_empty_body_uses_reason():
    client, session = make_client()
    with mock.patch.object(session, "request",
                           return_value=make_response(401, b"", "Unauthorized")):
        with pytest.raises(SMSAPIError) as excinfo:
            client.verifications.check_code("+15550100", "123456")

    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Unauthorized"


def test_connection_error_is_wrapped():
    client, session = make_client()
    failure = requests.exceptions.ConnectTimeout("timed out")
    with mock.patch.object(session, "request", side_effect=failure):
        with pytest.raises(SMSAPIConnectionError) as excinfo:
            client.messages.send("+15550100", "hi")
    assert excinfo.value.__cause__ is failure


def test_send_code():
    client, session = make_client()
    reply = {"id": "ver_1", "to": "+15550100", "status": "pending", "channel": "sms",
             "expires_at": "2024-01-01T00:10:00Z"}

    with mock.patch.object(session, "request", return_value=make_response(201, reply)) as request:
        verification = client.verifications.send_code("+15550100", locale="en", code_length=6)

    args, kwargs = request.call_args
    assert args == ("POST", "https://api.test/v1/verifications")
    assert kwargs["json"] == {"to": "+15550100", "channel": "sms", "locale": "en", "code_length": 6}
    assert verification.id == "ver_1"
    assert verification.status == "pending"
    assert verification.expires_at == "2024-01-01T00:10:00Z"


def test_send_code_rejects_unknown_channel():
    client, session = make_client()
    with mock.patch.object(session, "request") as request:
        with pytest.raises(ValueError):
            client.verifications.send_code("+15550100", channel="pigeon")
    request.assert_not_called()


@pytest.mark.parametrize("reply,valid", [
    ({"to": "+15550100", "status": "approved"}, True),
    ({"to": "+15550100", "status": "pending"}, False),
    ({"to": "+15550100", "status": "pending", "valid": True}, True),
    ({"to": "+15550100", "status": "expired", "valid": False}, False),
])
def test_check_code(reply, valid):
    client, session = make_client()
    with mock.patch.object(session, "request", return_value=make_response(200, reply)) as request:
        check = client.verifications.check_code("+15550100", "123456")

    args, kwargs = request.call_args
    assert args == ("POST", "https://api.test/v1/verifications/check")
    assert kwargs["json"] == {"to": "+15550100", "code": "123456"}
    assert check.valid is valid
    assert check.status == reply["status"]


def test_context_manager_closes_session():
    client, session = make_client()
    with mock.patch.object(session, "close") as close:
        with client:
            pass
    close.assert_called_once_with()


def test_module_level_helpers(monkeypatch):
    config = SMSAPIConfig(api_key="sk_test_123", base_url="https://api.test")
    calls = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs["json"]))
        if url.endswith("/messages"):
            return make_response(201, {"id": "msg_2", "status": "queued"})
        return make_response(200, {"status": "approved"})

    monkeypatch.setattr(requests.Session, "request", fake_request)

    assert send_sms(config, "+15550100", "hi").id == "msg_2"
    assert check_verification_code(config, "+15550100", "000000").valid is True
    assert [c[1] for c in calls] == ["https://api.test/v1/messages",
                                     "https://api.test/v1/verifications/check"]


def test_send_verification_code_helper_passes_every_option(monkeypatch):
    config = SMSAPIConfig(api_key="sk_test_123", base_url="https://api.test")
    calls = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs))
        return make_response(201, {"id": "ver_2", "status": "pending"})

    monkeypatch.setattr(requests.Session, "request", fake_request)

    verification = send_verification_code(config, "+15550100", channel="voice", locale="de",
                                          code_length=8, idempotency_key="idem-7")

    assert verification.id == "ver_2"
    method, url, kwargs = calls[0]
    assert (method, url) == ("POST", "https://api.test/v1/verifications")
    assert kwargs["json"] == {"to": "+15550100", "channel": "voice", "locale": "de", "code_length": 8}
    assert kwargs["headers"] == {"Idempotency-Key": "idem-7"}
