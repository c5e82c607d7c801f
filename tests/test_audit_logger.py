# tests/test_audit_logger.py
from scamguard.audit import AuditLogger, scam_rows, chat_exchange_rows, generation_rows
from scamguard.schemas import Envelope, ScamClassification

from conftest import FakeStore


class ExplodingStore:
    def insert_row(self, collection, row):
        raise RuntimeError("socket closed")


def test_record_writes_all_rows():
    store = FakeStore()
    outcome = AuditLogger(store).record("chat_history", [{"a": 1}, {"a": 2}])
    assert outcome.ok is True
    assert outcome.written == 2
    assert outcome.errors == []
    assert len(store.rows) == 2


def test_record_reports_failures_without_raising():
    outcome = AuditLogger(FakeStore(fail=True)).record("scam_detection_logs", [{"a": 1}])
    assert outcome.ok is False
    assert outcome.written == 0
    assert outcome.errors == ["connection refused"]


def test_record_swallows_store_exceptions():
    outcome = AuditLogger(ExplodingStore()).record("summarization_logs", [{"a": 1}])
    assert outcome.ok is False
    assert outcome.errors == ["socket closed"]


def test_record_continues_after_partial_failure():
    store = FakeStore(fail_after=1)
    outcome = AuditLogger(store).record("chat_history", [{"a": 1}, {"a": 2}])
    assert outcome.ok is False
    assert outcome.written == 1


def test_scam_row_flag_follows_label():
    env = Envelope(text="win a car", user_id="u1", ip_address="1.2.3.4", user_supplied=True)
    flagged = scam_rows(env, ScamClassification(label="scam", confidence=90, reason="prize bait"))[0]
    assert flagged["is_flagged"] is True
    assert flagged["user_id"] == "u1"
    assert flagged["ip_address"] == "1.2.3.4"
    assert flagged["message"] == "win a car"
    unknown = scam_rows(env, ScamClassification())[0]
    assert unknown["is_flagged"] is False
    assert unknown["label"] == "unknown"


def test_chat_rows_only_for_identified_users():
    anon = Envelope(text="hi")
    assert chat_exchange_rows(anon, "hello") == []
    known = Envelope(text="hi", user_id="u1", user_supplied=True)
    rows = chat_exchange_rows(known, "hello")
    assert [r["role"] for r in rows] == ["user", "assistant"]
    assert [r["message"] for r in rows] == ["hi", "hello"]


def test_generation_row_shape():
    env = Envelope(text="describe it")
    assert generation_rows(env, "done") == [{
        "user_id": "anonymous_user",
        "ip_address": "0.0.0.0",
        "input_text": "describe it",
        "output_text": "done",
    }]
