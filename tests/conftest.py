# tests/conftest.py
"""
Shared fakes for the completion client and row store, injected through
create_app() so no test talks to a real LLM or database unless it asks to.
"""
import itertools
import pytest
from fastapi.testclient import TestClient

from scamguard.app import create_app
from scamguard.db import WriteResult
from scamguard.llm_wrapper import UpstreamError


class FakeCompletion:
    def __init__(self, content="", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def invoke_completion(self, messages, json_mode=False):
        self.calls.append({"messages": messages, "json_mode": json_mode})
        if self.error is not None:
            raise UpstreamError(self.error)
        return self.content


class FakeStore:
    def __init__(self, fail=False, fail_after=None):
        self.fail = fail
        self.fail_after = fail_after
        self.rows = []
        self._ids = itertools.count(1)

    def insert_row(self, collection, row):
        if self.fail or (self.fail_after is not None and len(self.rows) >= self.fail_after):
            return WriteResult(ok=False, error="connection refused")
        self.rows.append((collection, dict(row)))
        return WriteResult(ok=True, row_id=next(self._ids))


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(completion, store):
    return TestClient(create_app(completion=completion, store=store))
