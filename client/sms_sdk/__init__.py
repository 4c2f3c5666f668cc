"""
SMS SDK

A Python client library for the SMS API: outbound SMS, phone-number
verification, and webhook signature verification.
"""

__version__ = "0.1.0"

from .api_client import SMSAPIClient, send_sms, send_verification_code, check_verification_code
from .config import SMSAPIConfig, parse_endpoint_info
from .errors import (
    SMSSDKError, ConfigError, SMSAPIError, SMSAPIConnectionError,
    WebhookError, WebhookSecretError, WebhookVerificationError, WebhookPayloadError,
)
from .models import Message, Verification, VerificationCheck, WebhookEvent
from .webhooks import WebhookVerifier, verify_webhook, construct_event, sign_webhook

__all__ = [
    'SMSAPIConfig',
    'SMSAPIClient',
    'send_sms',
    'send_verification_code',
    'check_verification_code',
    'parse_endpoint_info',
    'Message',
    'Verification',
    'VerificationCheck',
    'WebhookEvent',
    'WebhookVerifier',
    'verify_webhook',
    'construct_event',
    'sign_webhook',
    'SMSSDKError',
    'ConfigError',
    'SMSAPIError',
    'SMSAPIConnectionError',
    'WebhookError',
    'WebhookSecretError',
    'WebhookVerificationError',
    'WebhookPayloadError',
]
