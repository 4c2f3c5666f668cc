"""
SMS API Client Module

This module provides the HTTP transport for the SMS API: it attaches the API
key, serializes request bodies to JSON and turns non-2xx responses into
``SMSAPIError``. The endpoint wrappers live in ``messages`` and
``verifications`` and are reachable as ``client.messages`` and
``client.verifications``.
"""

import logging
from typing import Any, Dict, Optional

import requests

from . import __version__
from .config import SMSAPIConfig
from .errors import SMSAPIConnectionError, SMSAPIError
from .messages import MessagesAPI
from .models import Message, Verification, VerificationCheck
from .verifications import VerificationsAPI

logger = logging.getLogger(__name__)

API_PREFIX = "/v1"
API_KEY_HEADER = "X-API-Key"
IDEMPOTENCY_HEADER = "Idempotency-Key"


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ('error', 'message', 'detail'):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get('message'), str):
                return value['message']
    elif isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return default


class SMSAPIClient:
    """Client for the SMS API"""

    def __init__(self, config: SMSAPIConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or requests.Session()
        self._session.headers.update({
            API_KEY_HEADER: config.api_key,
            "Accept": "application/json",
            "User-Agent": f"sms-sdk/{__version__}",
        })
        self.messages = MessagesAPI(self)
        self.verifications = VerificationsAPI(self)

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close the HTTP session"""
        self.close()

    def close(self):
        self._session.close()

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{API_PREFIX}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json_body: Optional[Dict[str, Any]] = None,
                idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Issue one request against the API and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Route below ``/v1``
            json_body: Request body, sent as JSON
            idempotency_key: Forwarded as the ``Idempotency-Key`` header

        Returns:
            Dict: Parsed response body ({} for an empty body)

        Raises:
            SMSAPIError: the API answered with a non-2xx status
            SMSAPIConnectionError: no response was received
        """
        url = self._url(path)
        headers = {}
        if idempotency_key:
            headers[IDEMPOTENCY_HEADER] = idempotency_key

        logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                json=json_body,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise SMSAPIConnectionError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = response.text

        if not response.ok:
            message = _error_message(body, response.reason or "HTTP error")
            logger.warning(f"{method} {url} returned {response.status_code}: {message}")
            raise SMSAPIError(message, response.status_code, body)

        if not isinstance(body, dict):
            raise SMSAPIError("Unexpected non-object response body", response.status_code, body)

        logger.debug(f"{method} {url} returned {response.status_code}")
        return body


def send_sms(api_config: SMSAPIConfig, to: str, text: str, sender: Optional[str] = None,
             idempotency_key: Optional[str] = None) -> Message:
    """
    Send an SMS message

    Args:
        api_config: SMS API configuration
        to: Recipient phone number (E.164)
        text: The message to send
        sender: Optional sender number or alphanumeric id
        idempotency_key: Optional idempotency key

    Returns:
        Message: The accepted message
    """
    with SMSAPIClient(api_config) as client:
        return client.messages.send(to, text, sender=sender, idempotency_key=idempotency_key)


def send_verification_code(api_config: SMSAPIConfig, to: str, channel: str = "sms",
                           locale: Optional[str] = None, code_length: Optional[int] = None,
                           idempotency_key: Optional[str] = None) -> Verification:
    """Start a phone-number verification by sending a code to ``to``"""
    with SMSAPIClient(api_config) as client:
        return client.verifications.send_code(to, channel=channel, locale=locale,
                                              code_length=code_length,
                                              idempotency_key=idempotency_key)


def check_verification_code(api_config: SMSAPIConfig, to: str, code: str) -> VerificationCheck:
    """Check the code the user typed for ``to``"""
    with SMSAPIClient(api_config) as client:
        return client.verifications.check_code(to, code)
