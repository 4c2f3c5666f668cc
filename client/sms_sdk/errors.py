"""
Exception types raised by the SMS SDK.

Authentication failures of webhook signatures are NOT exceptions: the verifier
returns ``False`` for them. Everything here signals either a misconfiguration
on the caller's side or a failed call to the remote API.
"""

from typing import Any, Optional


class SMSSDKError(Exception):
    """Base class for all SDK errors"""


class ConfigError(SMSSDKError, ValueError):
    """Invalid or incomplete client configuration"""


class WebhookSecretError(ConfigError):
    """The webhook signing secret could not be decoded"""


class SMSAPIError(SMSSDKError):
    """The SMS API answered with a non-2xx status"""

    def __init__(self, message: str, status_code: int, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self):
        return f"[{self.status_code}] {self.message}"


class SMSAPIConnectionError(SMSSDKError):
    """The request never produced an HTTP response (DNS, TLS, timeout...)"""


class WebhookError(SMSSDKError):
    """Base class for errors raised while building a webhook event"""


class WebhookVerificationError(WebhookError):
    """The webhook signature did not verify"""

    def __init__(self, message: str = "Webhook signature verification failed",
                 header: Optional[str] = None):
        super().__init__(message)
        self.header = header


class WebhookPayloadError(WebhookError):
    """The signed webhook body is not a JSON object"""
