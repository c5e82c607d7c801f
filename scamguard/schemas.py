# scamguard/schemas.py
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel

ANONYMOUS_USER_ID = "anonymous_user"
DEFAULT_IP_ADDRESS = "0.0.0.0"


class Envelope(BaseModel):
    """Normalized request fields handed from the validator to the pipeline."""
    # values are passed through as sent, no coercion
    text: Any
    user_id: Any = ANONYMOUS_USER_ID
    ip_address: Any = DEFAULT_IP_ADDRESS
    role: Optional[Literal["user", "assistant"]] = None
    # False when user_id was filled with the anonymous default
    user_supplied: bool = False


class ScamClassification(BaseModel):
    label: Literal["scam", "safe", "unknown"] = "unknown"
    # 0-100; clamped by the interpreter
    confidence: Union[int, float] = 0
    reason: str = "No reason available"

    @property
    def is_flagged(self) -> bool:
        return self.label == "scam"
