# scamguard/validator.py
"""
Input validation for inbound request bodies.

Only presence/emptiness is checked; values are passed through unchanged.
Defaults for user_id / ip_address exist to satisfy the non-null audit columns
and carry no identity meaning.
"""

from typing import Any, Dict, Mapping, Sequence

from scamguard.schemas import Envelope, ANONYMOUS_USER_ID, DEFAULT_IP_ADDRESS

CHAT_ROLES = ("user", "assistant")
SAVE_CHAT_MISSING = "Missing fields: user_id, role, message"


class ValidationError(ValueError):
    """A required request field is missing or empty."""

    def __init__(self, missing: str, message: str):
        super().__init__(message)
        self.missing = missing
        self.message = message


def _present(value: Any) -> bool:
    # None, "", False and 0 all count as missing
    return value not in (None, "", False, 0)


def _as_mapping(body: Any) -> Mapping[str, Any]:
    return body if isinstance(body, Mapping) else {}


def validate_request(body: Any, fields: Sequence[str], missing_error: str) -> Envelope:
    """
    Build an Envelope from a raw JSON body.

    fields: accepted names for the primary text, in priority order
            (e.g. ("input_text", "input")).
    missing_error: message echoed to the caller when none of them is usable.
    """
    data = _as_mapping(body)
    text = next((data[f] for f in fields if _present(data.get(f))), None)
    if text is None:
        raise ValidationError(missing=fields[0], message=missing_error)

    user_id = data.get("user_id")
    ip_address = data.get("ip_address")
    return Envelope(
        text=text,
        user_id=user_id if _present(user_id) else ANONYMOUS_USER_ID,
        ip_address=ip_address if _present(ip_address) else DEFAULT_IP_ADDRESS,
        user_supplied=_present(user_id),
    )


def validate_chat_save(body: Any) -> Envelope:
    data: Dict[str, Any] = dict(_as_mapping(body))
    for name in ("user_id", "role", "message"):
        if not _present(data.get(name)):
            raise ValidationError(missing=name, message=SAVE_CHAT_MISSING)
    if data["role"] not in CHAT_ROLES:
        raise ValidationError(missing="role", message="Invalid role: must be 'user' or 'assistant'")
    return Envelope(
        text=data["message"],
        user_id=data["user_id"],
        role=data["role"],
        user_supplied=True,
    )
