"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import deliveries, health, matching, payments
from .config import settings
from .errors import DispatchError

logger = logging.getLogger(__name__)


def _result_flag(request: Request, default: str = "ok") -> str:
    """Payment routes report ``success``; everything else reports ``ok``."""
    if request.url.path.startswith(f"{settings.api_prefix}/payments"):
        return "success"
    return default


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DispatchError)
    def handle_dispatch_error(request: Request, exc: DispatchError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(_result_flag(request, exc.result_flag)),
        )

    @app.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        flag = _result_flag(request)
        details = [
            {"field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={flag: False, "error": "validation_error", "message": "Invalid request body", "details": details},
        )

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={_result_flag(request): False, "error": "internal_error", "message": "Internal server error"},
        )


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.app_name, root_path="")
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    _register_exception_handlers(app)

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(deliveries.router, prefix=settings.api_prefix)
    app.include_router(matching.router, prefix=settings.api_prefix)
    app.include_router(payments.router, prefix=settings.api_prefix)
    return app


app = create_app()
