# scamguard/llm_wrapper.py
"""
Centralized LLM wrapper. Supports OpenAI and Anthropic backends (async clients).
Backends return a standardized dict:
{
  "text": "<assistant text>",
  "model": "<model used>",
  "response_id": "<model response id if available>"
}

Configuration (env vars):
  LLM_PROVIDER=openai|anthropic   (default: auto-detect based on available keys)
  OPENAI_API_KEY=...
  ANTHROPIC_API_KEY=...
  LLM_MODEL=...                   (default: depends on provider)
  LLM_MAX_TOKENS=...              (default: 1024)
  MOCK_OPENAI=true                (mock mode for dev)

Usage:
  from scamguard.llm_wrapper import LLMCompletionClient
  client = LLMCompletionClient()
  text = await client.invoke_completion(messages, json_mode=True)
"""

import json
import os
import time
from typing import Dict, Any, Optional, List

from scamguard.monitoring import logger

MOCK_OPENAI = os.getenv("MOCK_OPENAI", "false").lower() in ("1", "true", "yes")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()

# Auto-detect provider: explicit > openai if key present > anthropic
_explicit_provider = os.getenv("LLM_PROVIDER", "").strip().lower()
if _explicit_provider in ("anthropic", "claude"):
    LLM_PROVIDER = "anthropic"
elif _explicit_provider in ("openai", "gpt"):
    LLM_PROVIDER = "openai"
elif OPENAI_API_KEY:
    LLM_PROVIDER = "openai"
elif ANTHROPIC_API_KEY:
    LLM_PROVIDER = "anthropic"
else:
    LLM_PROVIDER = "openai"

# Default models per provider
_ANTHROPIC_DEFAULT = "claude-sonnet-4-20250514"
_OPENAI_DEFAULT = "gpt-4o-mini"

DEFAULT_MODEL = os.getenv(
    "LLM_MODEL",
    _ANTHROPIC_DEFAULT if LLM_PROVIDER == "anthropic" else _OPENAI_DEFAULT
)
DEFAULT_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1024"))

JSON_ONLY_INSTRUCTION = "Respond with a single JSON object and nothing else."


class UpstreamError(RuntimeError):
    """The completion service call failed or was rejected."""


def make_sdk_client(provider: str = None):
    """Build the provider SDK client. One per process; it owns an HTTP connection pool."""
    provider = provider or LLM_PROVIDER
    if provider == "anthropic":
        from anthropic import AsyncAnthropic
        return AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
    from openai import AsyncOpenAI
    return AsyncOpenAI(api_key=OPENAI_API_KEY)


# ---------------------------------------------------------------------------
# Anthropic backend
# ---------------------------------------------------------------------------
async def _real_anthropic_chat(client, messages: List[Dict[str, str]], model: str,
                               max_tokens: int = DEFAULT_MAX_TOKENS,
                               json_mode: bool = False) -> Dict[str, Any]:
    # Anthropic uses a separate system param, not a system message in messages list
    system_text = ""
    chat_messages = []
    for m in messages:
        if m["role"] == "system":
            system_text += m["content"] + "\n"
        else:
            chat_messages.append({"role": m["role"], "content": m["content"]})
    if json_mode:
        # no response_format switch on this API
        system_text += JSON_ONLY_INSTRUCTION

    kwargs = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": chat_messages,
    }
    if system_text.strip():
        kwargs["system"] = system_text.strip()

    resp = await client.messages.create(**kwargs)

    text = ""
    for block in resp.content:
        if hasattr(block, "text"):
            text += block.text

    rid = getattr(resp, "id", None)
    return {"text": text, "model": model, "response_id": rid}


# ---------------------------------------------------------------------------
# OpenAI backend
# ---------------------------------------------------------------------------
def _openai_request_kwargs(messages: List[Dict[str, str]], model: str,
                           max_tokens: int, json_mode: bool) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    return kwargs


async def _real_openai_chat_completion(client, messages: List[Dict[str, str]], model: str,
                                       max_tokens: int = DEFAULT_MAX_TOKENS,
                                       json_mode: bool = False) -> Dict[str, Any]:
    resp = await client.chat.completions.create(
        **_openai_request_kwargs(messages, model, max_tokens, json_mode)
    )
    choices = getattr(resp, "choices", [])
    text = choices[0].message.content if choices else ""
    rid = getattr(resp, "id", None)
    return {"text": text, "model": model, "response_id": rid}


# ---------------------------------------------------------------------------
# Mock backend
# ---------------------------------------------------------------------------
async def _mock_llm(messages: List[Dict[str, str]], model: str,
                    json_mode: bool = False) -> Dict[str, Any]:
    """
    Deterministic mock used in dev. Echoes the user messages, or returns an
    "unknown" classification when JSON output was requested.
    """
    if json_mode:
        text = json.dumps({"label": "unknown", "confidence": 0, "reason": "Mock completion."})
    else:
        user_texts = [m["content"] for m in messages if m["role"] == "user"]
        text = ("\n\n").join(user_texts)[:1000]  # truncated
    rid = f"mock-{model}-{int(time.time() * 1000)}"
    return {"text": text, "model": model, "response_id": rid}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
async def call_llm(messages: List[Dict[str, str]], client=None, model: Optional[str] = None,
                   max_tokens: int = DEFAULT_MAX_TOKENS,
                   json_mode: bool = False) -> Dict[str, Any]:
    """
    messages: list of {role, content}
    client: SDK client from make_sdk_client() (unused in mock mode)
    model: override model string
    json_mode: ask the provider for a JSON-object response
    Returns: dict with keys 'text','model','response_id'
    Raises UpstreamError carrying the provider's message on any failure.
    """
    model = model or DEFAULT_MODEL
    if MOCK_OPENAI:
        return await _mock_llm(messages, model=model, json_mode=json_mode)
    try:
        if LLM_PROVIDER == "anthropic":
            return await _real_anthropic_chat(client, messages, model=model,
                                              max_tokens=max_tokens,
                                              json_mode=json_mode)
        else:
            return await _real_openai_chat_completion(client, messages, model=model,
                                                      max_tokens=max_tokens,
                                                      json_mode=json_mode)
    except Exception as e:
        raise UpstreamError(str(e)) from e


class LLMCompletionClient:
    """
    Completion capability handed to the request pipelines. Holds one SDK
    client, built on first use and released by aclose() at shutdown.
    """

    def __init__(self, model: Optional[str] = None, max_tokens: int = DEFAULT_MAX_TOKENS):
        self.model = model or DEFAULT_MODEL
        self.max_tokens = max_tokens
        self._client = None

    def _sdk_client(self):
        if self._client is None and not MOCK_OPENAI:
            try:
                self._client = make_sdk_client()
            except Exception as e:
                # e.g. missing API key
                raise UpstreamError(str(e)) from e
        return self._client

    async def invoke_completion(self, messages: List[Dict[str, str]], json_mode: bool = False) -> str:
        resp = await call_llm(
            messages,
            client=self._sdk_client(),
            model=self.model,
            max_tokens=self.max_tokens,
            json_mode=json_mode,
        )
        logger.info("Completion received", extra={"model": resp["model"], "response_id": resp["response_id"]})
        return resp["text"] or ""

    async def aclose(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
