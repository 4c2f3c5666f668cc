"""Phone-number verification endpoints (send-code / check-code)"""

import logging
from typing import Optional

from .logging_config import log_sms_event
from .models import CheckCodeRequest, SendCodeRequest, Verification, VerificationCheck

logger = logging.getLogger(__name__)

CHANNELS = ("sms", "voice", "whatsapp")


class VerificationsAPI:
    """Wrapper for ``/v1/verifications``"""

    def __init__(self, client):
        self._client = client

    def send_code(self, to: str, channel: str = "sms", locale: Optional[str] = None,
                  code_length: Optional[int] = None,
                  idempotency_key: Optional[str] = None) -> Verification:
        """
        Send a verification code to a phone number

        Args:
            to: Phone number to verify
            channel: Delivery channel, one of ``CHANNELS``
            locale: Language of the code message (e.g. ``en``)
            code_length: Number of digits, server default when omitted
            idempotency_key: Forwarded as ``Idempotency-Key``

        Returns:
            Verification: The pending verification
        """
        if not to:
            raise ValueError("to is required")
        if channel not in CHANNELS:
            raise ValueError(f"channel must be one of {', '.join(CHANNELS)}")

        request = SendCodeRequest(to=to, channel=channel, locale=locale, code_length=code_length)
        logger.debug(f"Requesting {channel} verification code for {to}")

        try:
            data = self._client.request("POST", "/verifications", request.to_dict(),
                                        idempotency_key=idempotency_key)
        except Exception as e:
            log_sms_event('verification_send', success=False, error=str(e))
            raise

        verification = Verification.from_dict(data)
        log_sms_event('verification_send', message_id=verification.id, status=verification.status)
        return verification

    def check_code(self, to: str, code: str) -> VerificationCheck:
        """
        Check a code entered by the user

        An incorrect code is not an error: the result has ``valid=False``.
        """
        if not to:
            raise ValueError("to is required")
        if not code:
            raise ValueError("code is required")

        request = CheckCodeRequest(to=to, code=code)
        data = self._client.request("POST", "/verifications/check", request.to_dict())

        check = VerificationCheck.from_dict(data)
        log_sms_event('verification_check', message_id=check.id, status=check.status)
        return check
