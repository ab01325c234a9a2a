from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool

from app.core import notices
from app.core.errors import api_error
from app.schemas.story import ErrorResponse, NarrationPlayRequest, NarrationStatusResponse
from app.services.library_service import LibraryService
from app.services.narration_service import get_narration_controller
from app.services.request_context import log_event
from generators.narration.speech_service import SpeechServiceError, UnsupportedCapabilityError
from library.story_store import PersistenceError, StoryNotFoundError

router = APIRouter(prefix="/api/narration", tags=["narration"])


def _status_response(message: str | None = None) -> NarrationStatusResponse:
    controller = get_narration_controller()
    session = controller.session
    return NarrationStatusResponse(
        status=controller.status,
        story_id=session.story_id if session is not None else None,
        message=message,
    )


async def _resolve_text(request: NarrationPlayRequest) -> str:
    if request.story_id:
        try:
            story = await run_in_threadpool(LibraryService.get_story, request.story_id)
            return story.content
        except StoryNotFoundError:
            raise api_error(
                status_code=status.HTTP_404_NOT_FOUND,
                code="STORY_NOT_FOUND",
                message=notices.STORY_NOT_FOUND,
                detail={"id": request.story_id},
            ) from None
        except PersistenceError as error:
            raise api_error(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="STORY_INVALID",
                message=notices.LIST_FAILED,
                detail={"id": request.story_id, "reason": str(error)},
            ) from None

    text = (request.text or "").strip()
    if not text:
        raise api_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="NARRATION_TEXT_REQUIRED",
            message="Provide a story_id or text to narrate",
        )
    return text


@router.get("/", response_model=NarrationStatusResponse)
async def get_narration_status() -> NarrationStatusResponse:
    return _status_response()


@router.post(
    "/play",
    response_model=NarrationStatusResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        501: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def play_narration(request: NarrationPlayRequest) -> NarrationStatusResponse:
    text = await _resolve_text(request)
    controller = get_narration_controller()
    try:
        session = await controller.play(text, story_id=request.story_id)
    except UnsupportedCapabilityError as error:
        log_event(event="narration.unsupported", reason=str(error), level=logging.WARNING)
        raise api_error(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            code="SPEECH_UNSUPPORTED",
            message=notices.NARRATION_UNSUPPORTED,
        ) from None
    except SpeechServiceError as error:
        log_event(event="narration.failed", reason=str(error), level=logging.ERROR)
        raise api_error(
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="NARRATION_FAILED",
            message=notices.NARRATION_FAILED,
            detail={"reason": str(error)},
        ) from None

    if session is None:
        log_event(event="narration.superseded", story_id=request.story_id)
        return _status_response(notices.NARRATION_STOPPED)

    log_event(event="narration.started", story_id=session.story_id, token=session.token)
    return _status_response(notices.NARRATION_STARTED)


@router.post("/stop", response_model=NarrationStatusResponse)
async def stop_narration() -> NarrationStatusResponse:
    stopped = get_narration_controller().stop()
    if not stopped:
        return _status_response(notices.NARRATION_IDLE)
    log_event(event="narration.stopped")
    return _status_response(notices.NARRATION_STOPPED)
