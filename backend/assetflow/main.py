import logging
import os
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .apps.accounts.router import router as accounts_router
from .apps.audits.errors import AuditError
from .apps.audits.router import router as audits_router
from .apps.events.broker import EventBroker
from .apps.events.router import router as events_router
from .apps.inventory.router import router as inventory_router

logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://localhost:5173",
    ]


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def _register_error_handlers(app: FastAPI) -> None:
    # Every non-2xx body is {"error": "<message>"}.

    @app.exception_handler(AuditError)
    async def audit_error_handler(request: Request, exc: AuditError):
        if exc.status_code >= 500:
            logger.error("Audit request failed: %s", exc.message, extra={"path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


def create_app(event_broker: Optional[EventBroker] = None) -> FastAPI:
    app = FastAPI(title="AssetFlow Audit API", version="1.0.0")
    app.state.event_broker = event_broker or EventBroker()

    cors_origins = _allowed_origins()
    allow_credentials = "*" not in cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    @app.get("/", tags=["health"])
    def read_root():
        return {"status": "ok", "message": "AssetFlow audit backend is running"}

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok"}

    app.include_router(accounts_router)
    # /api/audits/locations and /inventory must match before /api/audits/{audit_id}
    app.include_router(inventory_router)
    app.include_router(audits_router)
    app.include_router(events_router)
    return app


app = create_app()
