# scamguard/audit.py
"""
Best-effort audit logging.

AuditLogger.record() writes rows and reports what happened; it never raises,
so a logging outage cannot change the response already decided upstream.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from scamguard import monitoring
from scamguard.schemas import Envelope, ScamClassification


@dataclass
class AuditOutcome:
    ok: bool
    written: int = 0
    errors: List[str] = field(default_factory=list)


class AuditLogger:
    def __init__(self, store):
        self.store = store

    def record(self, collection: str, rows: List[Dict[str, Any]]) -> AuditOutcome:
        outcome = AuditOutcome(ok=True)
        # rows are written independently; a lost second row is acceptable
        for row in rows:
            try:
                result = self.store.insert_row(collection, row)
                error = None if result.ok else (result.error or "insert failed")
            except Exception as e:
                error = str(e)
            if error is None:
                outcome.written += 1
                monitoring.inc_audit_write(collection, "success")
            else:
                outcome.ok = False
                outcome.errors.append(error)
                monitoring.inc_audit_write(collection, "fail")

        if outcome.ok:
            monitoring.logger.info("Audit rows written",
                                   extra={"collection": collection, "rows": outcome.written})
        else:
            monitoring.logger.warning("Audit write failed",
                                      extra={"collection": collection, "rows": outcome.written,
                                             "errors": outcome.errors})
        return outcome


# ---------------------------------------------------------------------------
# Row builders, one per audit shape
# ---------------------------------------------------------------------------
def scam_rows(envelope: Envelope, result: ScamClassification) -> List[Dict[str, Any]]:
    return [{
        "user_id": envelope.user_id,
        "message": envelope.text,
        "scan_result": json.dumps(result.model_dump()),
        "label": result.label,
        "confidence": result.confidence,
        "ip_address": envelope.ip_address,
        "is_flagged": result.is_flagged,
    }]


def chat_exchange_rows(envelope: Envelope, reply: str) -> List[Dict[str, Any]]:
    # anonymous exchanges are not kept in chat history
    if not envelope.user_supplied:
        return []
    return [
        {"user_id": envelope.user_id, "role": "user", "message": envelope.text},
        {"user_id": envelope.user_id, "role": "assistant", "message": reply},
    ]


def generation_rows(envelope: Envelope, output: str) -> List[Dict[str, Any]]:
    return [{
        "user_id": envelope.user_id,
        "ip_address": envelope.ip_address,
        "input_text": envelope.text,
        "output_text": output,
    }]
