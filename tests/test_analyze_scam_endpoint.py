# tests/test_analyze_scam_endpoint.py
import json


SCAM_PAYLOAD = {"label": "scam", "confidence": 92, "reason": "urgency + payment request"}


def test_analyze_scam_structured_result(client, completion, store):
    completion.content = json.dumps(SCAM_PAYLOAD)
    r = client.post("/analyze-scam", json={"message": "Send me $500 via gift card now"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "result": SCAM_PAYLOAD}

    # structured output requested, input carried verbatim in the user message
    call = completion.calls[0]
    assert call["json_mode"] is True
    assert call["messages"][0]["role"] == "system"
    assert call["messages"][-1] == {"role": "user", "content": "Send me $500 via gift card now"}

    assert len(store.rows) == 1
    collection, row = store.rows[0]
    assert collection == "scam_detection_logs"
    assert row["is_flagged"] is True
    assert row["label"] == "scam"
    assert row["confidence"] == 92
    assert json.loads(row["scan_result"]) == SCAM_PAYLOAD


def test_analyze_scam_safe_is_not_flagged(client, completion, store):
    completion.content = json.dumps({"label": "safe", "confidence": 75, "reason": "greeting"})
    r = client.post("/analyze-scam", json={"message": "Happy birthday!"})
    assert r.status_code == 200
    assert store.rows[0][1]["is_flagged"] is False


def test_analyze_scam_missing_message(client, completion, store):
    r = client.post("/analyze-scam", json={"user_id": "u1"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Message required"}
    assert completion.calls == []
    assert store.rows == []


def test_analyze_scam_non_json_completion_degrades(client, completion):
    completion.content = "This looks like a scam to me."
    r = client.post("/analyze-scam", json={"message": "You won a prize"})
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "result": {"label": "unknown", "confidence": 0, "reason": "Model returned non-JSON response."},
    }


def test_analyze_scam_upstream_failure(client, completion, store):
    completion.error = "Incorrect API key provided"
    r = client.post("/analyze-scam", json={"message": "hello"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Incorrect API key provided"}
    assert store.rows == []


def test_analyze_scam_audit_failure_still_succeeds(client, completion, store):
    store.fail = True
    completion.content = json.dumps(SCAM_PAYLOAD)
    r = client.post("/analyze-scam", json={"message": "Send me $500 via gift card now"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["result"] == SCAM_PAYLOAD


def test_anonymous_requests_log_sentinel_defaults(client, completion, store):
    completion.content = json.dumps(SCAM_PAYLOAD)
    for _ in range(2):
        assert client.post("/analyze-scam", json={"message": "same message"}).status_code == 200
    assert len(store.rows) == 2
    for _, row in store.rows:
        assert row["user_id"] == "anonymous_user"
        assert row["ip_address"] == "0.0.0.0"


def test_invalid_json_body(client, completion):
    r = client.post("/analyze-scam", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert completion.calls == []


def test_empty_body_is_rejected(client, completion):
    r = client.post("/analyze-scam", content=b"", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid JSON body"}
    assert completion.calls == []
