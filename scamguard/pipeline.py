# scamguard/pipeline.py
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from starlette.concurrency import run_in_threadpool

from scamguard import monitoring
from scamguard import prompts
from scamguard import audit as _audit
from scamguard.audit import AuditLogger
from scamguard.db import WriteResult
from scamguard.interpreter import interpret_plain, interpret_structured
from scamguard.llm_wrapper import UpstreamError
from scamguard.validator import ValidationError, validate_request, validate_chat_save

HandlerResult = Tuple[int, Dict[str, Any]]


class CompletionClient(Protocol):
    async def invoke_completion(self, messages: List[Dict[str, str]], json_mode: bool = False) -> str:
        ...


class RowStore(Protocol):
    def insert_row(self, collection: str, row: Dict[str, Any]) -> WriteResult:
        ...


@dataclass(frozen=True)
class EndpointConfig:
    name: str
    input_fields: Tuple[str, ...]
    missing_error: str
    result_key: str
    fallback: str = ""
    system_prompt: Optional[str] = None
    user_template: str = "{text}"
    structured: bool = False
    collection: Optional[str] = None
    audit_rows: Optional[Callable[..., List[Dict[str, Any]]]] = None


def _error(status: int, message: str) -> HandlerResult:
    return status, {"success": False, "error": message}


class RequestPipeline:
    """
    validate -> complete -> interpret -> audit, for one endpoint.

    Validation and upstream failures end the request with an error body;
    audit failures are logged and otherwise ignored.
    """

    def __init__(self, config: EndpointConfig, completion: CompletionClient, audit_logger: AuditLogger):
        self.config = config
        self.completion = completion
        self.audit = audit_logger

    async def handle(self, body: Any) -> HandlerResult:
        cfg = self.config

        # 1) Input validation
        try:
            envelope = validate_request(body, cfg.input_fields, cfg.missing_error)
        except ValidationError as e:
            return _error(400, e.message)

        # 2) Completion
        messages = prompts.build_messages(envelope.text, cfg.system_prompt, cfg.user_template)
        start = time.time()
        try:
            content = await self.completion.invoke_completion(messages, json_mode=cfg.structured)
            monitoring.observe_completion(start, cfg.name, "success")
        except UpstreamError as e:
            monitoring.observe_completion(start, cfg.name, "fail")
            monitoring.logger.error("Completion call failed", extra={"endpoint": cfg.name, "error": str(e)})
            return _error(500, str(e))

        # 3) Interpretation
        if cfg.structured:
            result = interpret_structured(content)
            payload = result.model_dump()
        else:
            result = interpret_plain(content, cfg.fallback)
            payload = result

        # 4) Audit (best-effort)
        if cfg.collection and cfg.audit_rows:
            rows = cfg.audit_rows(envelope, result)
            if rows:
                await run_in_threadpool(self.audit.record, cfg.collection, rows)

        return 200, {"success": True, cfg.result_key: payload}


class SaveChatHandler:
    """Manual chat save: the write outcome is the response."""

    collection = "chat_history"

    def __init__(self, store: RowStore):
        self.store = store

    async def handle(self, body: Any) -> HandlerResult:
        try:
            envelope = validate_chat_save(body)
        except ValidationError as e:
            return _error(400, e.message)

        row = {"user_id": envelope.user_id, "role": envelope.role, "message": envelope.text}
        result = await run_in_threadpool(self.store.insert_row, self.collection, row)
        if not result.ok:
            monitoring.inc_audit_write(self.collection, "fail")
            return _error(500, result.error or "Failed to save chat")
        monitoring.inc_audit_write(self.collection, "success")
        return 200, {"success": True}


# ---------------------------------------------------------------------------
# Endpoint table
# ---------------------------------------------------------------------------
ENDPOINTS: Dict[str, EndpointConfig] = {
    "/analyze-scam": EndpointConfig(
        name="analyze-scam",
        input_fields=("message",),
        missing_error="Message required",
        result_key="result",
        system_prompt=prompts.SCAM_SYSTEM_PROMPT,
        structured=True,
        collection="scam_detection_logs",
        audit_rows=_audit.scam_rows,
    ),
    "/extract-code": EndpointConfig(
        name="extract-code",
        input_fields=("input_text", "input"),
        missing_error="No input provided",
        result_key="extracted_code",
        fallback="No code found",
        system_prompt=prompts.EXTRACT_CODE_SYSTEM_PROMPT,
        collection="code_extraction_logs",
        audit_rows=_audit.generation_rows,
    ),
    "/chatbot": EndpointConfig(
        name="chatbot",
        input_fields=("message",),
        missing_error="Message required",
        result_key="reply",
        fallback="No reply",
        system_prompt=prompts.CHATBOT_SYSTEM_PROMPT,
        collection="chat_history",
        audit_rows=_audit.chat_exchange_rows,
    ),
    "/text-to-code": EndpointConfig(
        name="text-to-code",
        input_fields=("text",),
        missing_error="Text required",
        result_key="code",
        fallback="No code generated",
        system_prompt=prompts.TEXT_TO_CODE_SYSTEM_PROMPT,
        collection="text_to_code_logs",
        audit_rows=_audit.generation_rows,
    ),
    "/summarize": EndpointConfig(
        name="summarize",
        input_fields=("text",),
        missing_error="Text required",
        result_key="summary",
        fallback="No summary",
        user_template=prompts.SUMMARIZE_USER_TEMPLATE,
        collection="summarization_logs",
        audit_rows=_audit.generation_rows,
    ),
}


def build_pipelines(completion: CompletionClient, store: RowStore) -> Dict[str, RequestPipeline]:
    audit_logger = AuditLogger(store)
    return {path: RequestPipeline(cfg, completion, audit_logger) for path, cfg in ENDPOINTS.items()}
