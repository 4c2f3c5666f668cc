"""Outbound SMS endpoint"""

import logging
from typing import Any, Dict, Optional

from .logging_config import log_sms_event
from .models import Message, SendMessageRequest

logger = logging.getLogger(__name__)


class MessagesAPI:
    """Wrapper for ``POST /v1/messages``"""

    def __init__(self, client):
        self._client = client

    def send(self, to: str, text: str, sender: Optional[str] = None,
             callback_url: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None,
             idempotency_key: Optional[str] = None) -> Message:
        """
        Send an SMS message

        Args:
            to: Recipient phone number
            text: Message body
            sender: Sender number or id (defaults to ``config.default_sender``)
            callback_url: Per-message status webhook URL
            metadata: Free-form data echoed back in webhooks
            idempotency_key: Makes retried sends safe on the server side

        Returns:
            Message: The message as accepted by the API
        """
        if not to:
            raise ValueError("to is required")
        if not text:
            raise ValueError("text is required")

        request = SendMessageRequest(
            to=to,
            text=text,
            sender=sender or self._client.config.default_sender,
            callback_url=callback_url,
            metadata=metadata,
        )
        logger.debug(f"Sending SMS to {to} ({len(text)} chars)")

        try:
            data = self._client.request("POST", "/messages", request.to_dict(),
                                        idempotency_key=idempotency_key)
        except Exception as e:
            log_sms_event('sms_send', success=False, error=str(e))
            raise

        message = Message.from_dict(data)
        log_sms_event('sms_send', message_id=message.id, status=message.status)
        return message
