"""
Typed request and response shapes for the SMS API.

Requests serialize with ``to_dict()`` into the JSON body the API expects.
Responses are built with ``from_dict()``, which ignores fields it does not know
and keeps the untouched mapping in ``raw``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class SendMessageRequest:
    to: str
    text: str
    sender: Optional[str] = None
    callback_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "to": self.to,
            "text": self.text,
            "from": self.sender,
            "callback_url": self.callback_url,
            "metadata": self.metadata,
        })


@dataclass
class Message:
    """An outbound SMS as reported by the API"""
    id: str
    to: str
    text: str
    status: str
    sender: Optional[str] = None
    created_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            id=str(data.get("id", "")),
            to=data.get("to", ""),
            text=data.get("text", ""),
            status=data.get("status", "unknown"),
            sender=data.get("from"),
            created_at=data.get("created_at"),
            raw=dict(data),
        )


@dataclass
class SendCodeRequest:
    to: str
    channel: str = "sms"
    locale: Optional[str] = None
    code_length: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "to": self.to,
            "channel": self.channel,
            "locale": self.locale,
            "code_length": self.code_length,
        })


@dataclass
class Verification:
    """A verification started with send-code"""
    id: str
    to: str
    status: str
    channel: Optional[str] = None
    expires_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Verification":
        return cls(
            id=str(data.get("id", "")),
            to=data.get("to", ""),
            status=data.get("status", "unknown"),
            channel=data.get("channel"),
            expires_at=data.get("expires_at"),
            raw=dict(data),
        )


@dataclass
class CheckCodeRequest:
    to: str
    code: str

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to, "code": self.code}


@dataclass
class VerificationCheck:
    """Result of check-code"""
    to: str
    status: str
    valid: bool
    id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationCheck":
        status = data.get("status", "unknown")
        valid = data.get("valid") is True or status == "approved"
        return cls(
            to=data.get("to", ""),
            status=status,
            valid=valid,
            id=data.get("id"),
            raw=dict(data),
        )


@dataclass
class WebhookEvent:
    """A verified webhook callback, e.g. ``sms.delivered``"""
    id: Optional[str]
    type: str
    data: Dict[str, Any]
    created_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebhookEvent":
        # Some payloads carry the event name under "event" instead of "type"
        event_type = data.get("type") or data.get("event") or "unknown"
        payload = data.get("data")
        return cls(
            id=data.get("id"),
            type=event_type,
            data=payload if isinstance(payload, dict) else {},
            created_at=data.get("created_at"),
            raw=dict(data),
        )
