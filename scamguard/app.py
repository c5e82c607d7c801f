# scamguard/app.py
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

# Load .env BEFORE any scamguard imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, PlainTextResponse

from scamguard import monitoring
from scamguard import db as dbmod
from scamguard.llm_wrapper import LLMCompletionClient
from scamguard.pipeline import CompletionClient, RowStore, SaveChatHandler, build_pipelines

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]


def _register_handler(app: FastAPI, path: str, handler, name: str) -> None:
    """Mount a handler's `handle(body)` as POST {path} with JSON in/out."""
    async def endpoint(request: Request):
        monitoring.logger.info("Received request", extra={"path": path})
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"success": False, "error": "Invalid JSON body"})
        try:
            status, content = await handler.handle(body)
            return JSONResponse(status_code=status, content=content)
        except Exception as e:
            monitoring.logger.exception("Unexpected error in handler", extra={"path": path})
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    app.add_api_route(path, endpoint, methods=["POST"], name=name)


def create_app(completion: Optional[CompletionClient] = None, store: Optional[RowStore] = None) -> FastAPI:
    """
    Build the API with its collaborators. Defaults are the configured LLM
    provider and the SQLAlchemy row store; tests pass fakes.
    """
    completion = completion or LLMCompletionClient()
    store = store or dbmod.SqlRowStore()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if dbmod.AUTO_CREATE_TABLES:
            dbmod.init_db()
        yield
        aclose = getattr(completion, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(title="ScamGuard Assistant API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # -----------------------------------------------------------------------
    # Metrics middleware
    # -----------------------------------------------------------------------
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start = time.time()
        endpoint = request.url.path
        method = request.method
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception:
            monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
            raise
        finally:
            monitoring.observe_request(start, endpoint, method, status)

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------
    for path, pipeline in build_pipelines(completion, store).items():
        _register_handler(app, path, pipeline, pipeline.config.name)

    # Body: { "user_id": "...", "role": "user" | "assistant", "message": "..." }
    _register_handler(app, "/save-chat", SaveChatHandler(store), "save-chat")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics():
        if not monitoring.PROMETHEUS_ENABLED:
            return PlainTextResponse("Prometheus disabled", status_code=404)
        payload, content_type = monitoring.prometheus_metrics_response()
        return Response(content=payload, media_type=content_type)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    monitoring.logger.info("Backend starting", extra={"host": HOST, "port": PORT})
    uvicorn.run(app, host=HOST, port=PORT)
