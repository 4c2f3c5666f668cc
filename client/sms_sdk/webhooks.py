"""
Webhook signature verification

The SMS service signs every webhook it delivers. The signature header looks like

    X-Webhook-Signature: t=1700000000,v1=5257a869e7ecebeda32affa62cdca3fa51cad7e77a0e56ff536d0ce8e108d8bd

where ``v1`` is the hex HMAC-SHA256 of ``"<t>.<raw body>"`` keyed with the
decoded signing secret (``whsec_`` followed by base64 key bytes).

Usage:
    from sms_sdk.webhooks import verify_webhook

    if not verify_webhook(request.get_data(), request.headers["X-Webhook-Signature"], secret):
        abort(401)

A rejected signature is a normal ``False`` result. A secret that cannot be
decoded raises ``WebhookSecretError`` since it points at a setup problem, not
at a forged request.
"""

import base64
import binascii
import json
import logging
import re
import time
from typing import Dict, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .errors import WebhookPayloadError, WebhookSecretError, WebhookVerificationError
from .models import WebhookEvent

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
SECRET_PREFIX = "whsec_"
DEFAULT_TOLERANCE_SECONDS = 300

Body = Union[bytes, str]

# Unix seconds stay below 12 digits for the next ~30000 years
MAX_TIMESTAMP_DIGITS = 12
SIGNATURE_RE = re.compile(r"[0-9a-f]{64}")


def decode_secret(secret: str) -> bytes:
    """Strip the ``whsec_`` marker and return the raw key bytes.

    Raises:
        WebhookSecretError: marker missing, empty key, or invalid base64
    """
    if not isinstance(secret, str) or not secret.startswith(SECRET_PREFIX):
        raise WebhookSecretError(f"Webhook secret must start with '{SECRET_PREFIX}'")

    encoded = secret[len(SECRET_PREFIX):]
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise WebhookSecretError(f"Webhook secret is not valid base64: {e}") from e

    if not key:
        raise WebhookSecretError("Webhook secret contains no key material")
    return key


def parse_signature_header(header_value: Optional[str]) -> Dict[str, str]:
    """Split ``k1=v1,k2=v2`` into a dict. Tokens without ``=`` are skipped."""
    fields = {}
    if not header_value:
        return fields

    for token in header_value.split(","):
        key, sep, value = token.partition("=")
        if not sep:
            continue
        fields[key.strip()] = value.strip()
    return fields


def _as_bytes(raw_body: Body) -> bytes:
    if isinstance(raw_body, str):
        return raw_body.encode("utf-8")
    return bytes(raw_body)


def _signer(key: bytes, timestamp: str, body: bytes) -> hmac.HMAC:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(timestamp.encode("ascii") + b"." + body)
    return h


def _verify_with_key(key: bytes, raw_body: Body, header_value: Optional[str],
                     tolerance: int, now: Optional[float]) -> bool:
    fields = parse_signature_header(header_value)
    timestamp = fields.get("t")
    signature = fields.get("v1")
    if not timestamp or not signature:
        logger.debug("Webhook signature header missing t or v1")
        return False

    if not (timestamp.isascii() and timestamp.isdigit()) or len(timestamp) > MAX_TIMESTAMP_DIGITS:
        logger.debug("Webhook timestamp is not numeric")
        return False

    current = time.time() if now is None else now
    # Future timestamps (negative age) are accepted without a bound
    age = current - int(timestamp)
    if age > tolerance:
        logger.debug(f"Webhook timestamp outside tolerance ({age:.0f}s > {tolerance}s)")
        return False

    # Exactly the lowercase hex digest the service emits
    if not SIGNATURE_RE.fullmatch(signature):
        logger.debug("Webhook v1 signature is not 64 lowercase hex characters")
        return False
    expected = bytes.fromhex(signature)

    # HMAC.verify compares in constant time
    try:
        _signer(key, timestamp, _as_bytes(raw_body)).verify(expected)
    except InvalidSignature:
        logger.debug("Webhook signature mismatch")
        return False
    return True


def verify_webhook(raw_body: Body, header_value: Optional[str], secret: str,
                   tolerance: int = DEFAULT_TOLERANCE_SECONDS,
                   now: Optional[float] = None) -> bool:
    """
    Check that a webhook request is authentic and fresh.

    Args:
        raw_body: The request body exactly as received (bytes, or str that
            will be UTF-8 encoded). Never pass a re-serialized JSON body.
        header_value: Value of the ``X-Webhook-Signature`` header
        secret: Signing secret, ``whsec_`` + base64 key
        tolerance: Maximum accepted age of the signed timestamp, in seconds
        now: Current unix time, defaults to ``time.time()``

    Returns:
        bool: True if the signature matches and the timestamp is fresh

    Raises:
        WebhookSecretError: if ``secret`` cannot be decoded
    """
    key = decode_secret(secret)
    return _verify_with_key(key, raw_body, header_value, tolerance, now)


def sign_webhook(raw_body: Body, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a ``t=...,v1=...`` header for ``raw_body``, as the service does."""
    key = decode_secret(secret)
    if timestamp is None:
        timestamp = int(time.time())
    ts = str(timestamp)
    digest = _signer(key, ts, _as_bytes(raw_body)).finalize().hex()
    return f"t={ts},v1={digest}"


def parse_event_body(raw_body: Body) -> WebhookEvent:
    try:
        data = json.loads(_as_bytes(raw_body))
    except (UnicodeDecodeError, ValueError) as e:
        raise WebhookPayloadError(f"Webhook body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    return WebhookEvent.from_dict(data)


def construct_event(raw_body: Body, header_value: Optional[str], secret: str,
                    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
                    now: Optional[float] = None) -> WebhookEvent:
    """
    Verify a webhook and parse its body.

    Raises:
        WebhookSecretError: if ``secret`` cannot be decoded
        WebhookVerificationError: if the signature is invalid or stale
        WebhookPayloadError: if the verified body is not a JSON object
    """
    if not verify_webhook(raw_body, header_value, secret, tolerance, now):
        raise WebhookVerificationError(header=header_value)
    return parse_event_body(raw_body)


class WebhookVerifier:
    """Verifier bound to one secret. The secret is decoded once, up front."""

    def __init__(self, secret: str, tolerance: int = DEFAULT_TOLERANCE_SECONDS):
        self._key = decode_secret(secret)
        self.tolerance = tolerance

    def verify(self, raw_body: Body, header_value: Optional[str],
               now: Optional[float] = None) -> bool:
        return _verify_with_key(self._key, raw_body, header_value, self.tolerance, now)

    def construct_event(self, raw_body: Body, header_value: Optional[str],
                        now: Optional[float] = None) -> WebhookEvent:
        if not self.verify(raw_body, header_value, now):
            raise WebhookVerificationError(header=header_value)
        return parse_event_body(raw_body)
