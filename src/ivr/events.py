"""
Inbound FreeClimb webhook payloads.

FreeClimb POSTs a JSON body for every call or message event. Only the fields
the menu flow reads are kept; anything missing parses to an empty value so a
malformed body behaves like a caller who pressed nothing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _text(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass
class CallEvent:
    """Parsed call webhook (incoming call, GetDigits result, redirect)."""
    call_id: str = ""
    account_id: str = ""
    from_number: str = ""
    to_number: str = ""
    call_status: str = ""
    request_type: str = ""
    digits: Optional[str] = None

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "CallEvent":
        """Parse from a webhook body."""
        digits = body.get("digits")
        if digits is not None and not isinstance(digits, str):
            digits = str(digits)
        return cls(
            call_id=_text(body, "callId"),
            account_id=_text(body, "accountId"),
            from_number=_text(body, "from"),
            to_number=_text(body, "to"),
            call_status=_text(body, "callStatus"),
            request_type=_text(body, "requestType"),
            digits=digits,
        )


@dataclass
class SmsEvent:
    """Parsed inbound SMS webhook."""
    from_number: str = ""
    to_number: str = ""
    text: str = ""
    message_id: str = ""

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "SmsEvent":
        """Parse from a webhook body."""
        return cls(
            from_number=_text(body, "from"),
            to_number=_text(body, "to"),
            text=_text(body, "text"),
            message_id=_text(body, "messageId"),
        )
