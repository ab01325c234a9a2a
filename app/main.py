from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.narration import router as narration_router
from app.api.stories import router as stories_router
from app.core import notices
from app.core.config import get_settings
from app.core.errors import build_error
from app.services.narration_service import reset_narration_controller
from app.services.request_context import current_request_id, log_event, request_scope
from library.story_store import PersistenceError, StoryNotFoundError


def _error_response(
    request: Request,
    status_code: int,
    payload: dict,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or current_request_id()
    return JSONResponse(
        status_code=status_code,
        content=payload,
        headers={"X-Request-ID": request_id} if request_id else None,
    )


def _install_request_context(application: FastAPI) -> None:
    @application.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        with request_scope(request.headers.get("X-Request-ID")) as request_id:
            request.state.request_id = request_id
            started = time.perf_counter()
            log_event(event="request.start", method=request.method, path=request.url.path)

            status_code = 500
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                log_event(
                    event="request.end",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    latency_ms=round((time.perf_counter() - started) * 1000, 2),
                )


def _install_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            payload = exc.detail
        else:
            payload = build_error(code=f"HTTP_{exc.status_code}", message=str(exc.detail))
        return _error_response(request, exc.status_code, payload)

    @application.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(
            exc.errors(),
            custom_encoder={BaseException: str},
        )
        payload = build_error(
            code="VALIDATION_ERROR",
            message="request validation failed",
            detail={"errors": errors},
        )
        return _error_response(request, 422, payload)

    # Routes map store errors themselves; these catch any that slip through.
    @application.exception_handler(StoryNotFoundError)
    async def story_not_found(request: Request, exc: StoryNotFoundError) -> JSONResponse:
        payload = build_error(
            code="STORY_NOT_FOUND",
            message=notices.STORY_NOT_FOUND,
            detail={"id": exc.story_id},
        )
        return _error_response(request, 404, payload)

    @application.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
        log_event(event="library.failed", reason=str(exc), level=logging.ERROR)
        payload = build_error(
            code="LIBRARY_UNAVAILABLE",
            message=notices.LIST_FAILED,
            detail={"reason": str(exc)},
        )
        return _error_response(request, 500, payload)

    @application.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log_event(
            event="request.unhandled_error",
            path=request.url.path,
            reason=str(exc),
            level=logging.ERROR,
        )
        payload = build_error(
            code="INTERNAL_SERVER_ERROR",
            message="internal server error",
            detail={"reason": str(exc)},
        )
        return _error_response(request, 500, payload)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    # Silence any narration still playing when the server stops.
    reset_narration_controller()


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO)
    get_settings().data_dir.mkdir(parents=True, exist_ok=True)

    application = FastAPI(title="TaleForge API", version="0.1.0", lifespan=lifespan)
    _install_request_context(application)
    _install_error_handlers(application)
    application.include_router(stories_router)
    application.include_router(narration_router)

    @application.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
