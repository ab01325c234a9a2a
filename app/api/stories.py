from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError as SchemaValidationError

from app.core import notices
from app.core.errors import api_error
from app.schemas.story import (
    ErrorResponse,
    StoryDeletedResponse,
    StoryEnvelope,
    StoryGenerateRequest,
    StoryListResponse,
    StorySaveRequest,
)
from app.services.library_service import LibraryService
from app.services.request_context import log_event
from app.services.story_service import StoryService
from generators.story.story_errors import GenerationServiceError, ValidationError
from generators.story.story_model import Story
from library.library_filter import ALL, FilterCriteria
from library.story_store import PersistenceError, StoryNotFoundError

router = APIRouter(prefix="/api/stories", tags=["stories"])


def _story_not_found(story_id: str):
    return api_error(
        status_code=status.HTTP_404_NOT_FOUND,
        code="STORY_NOT_FOUND",
        message=notices.STORY_NOT_FOUND,
        detail={"id": story_id},
    )


@router.post(
    "/generate",
    response_model=StoryEnvelope,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def generate_story(request: StoryGenerateRequest) -> StoryEnvelope:
    log_event(
        event="story.generate.start",
        genre=request.genre,
        difficulty=request.difficulty,
        character_count=len(request.characters),
    )
    try:
        story = await StoryService.generate_story(request)
    except ValidationError as error:
        log_event(event="story.generate.rejected", reason=str(error), level=logging.WARNING)
        raise api_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="SETTING_REQUIRED",
            message=notices.SETTING_REQUIRED,
        ) from None
    except GenerationServiceError as error:
        log_event(
            event="story.generate.failed",
            stage=error.stage,
            reason=str(error),
            level=logging.ERROR,
        )
        raise api_error(
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="GENERATION_FAILED",
            message=notices.GENERATION_FAILED,
            detail={"stage": error.stage, "reason": str(error)},
        ) from None

    log_event(event="story.generate.completed", title=story.title)
    return StoryEnvelope(story=story, message=notices.STORY_GENERATED)


@router.post(
    "/",
    response_model=StoryEnvelope,
    responses={500: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED,
)
def save_story(request: StorySaveRequest) -> StoryEnvelope:
    try:
        story = LibraryService.save_story(request.to_story())
    except PersistenceError as error:
        log_event(event="story.save.failed", reason=str(error), level=logging.ERROR)
        raise api_error(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="SAVE_FAILED",
            message=notices.SAVE_FAILED,
            detail={"reason": str(error)},
        ) from None

    log_event(event="story.save.completed", story_id=story.id)
    return StoryEnvelope(story=story, message=notices.STORY_SAVED)


@router.get(
    "/",
    response_model=StoryListResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def list_stories(
    search: str = "",
    genre: str = ALL,
    difficulty: str = ALL,
) -> StoryListResponse:
    try:
        criteria = FilterCriteria(search_text=search, genre=genre, difficulty=difficulty)
    except SchemaValidationError as error:
        raise api_error(
            status_code=422,
            code="VALIDATION_ERROR",
            message="invalid library filter",
            detail={"errors": jsonable_encoder(error.errors(include_context=False))},
        ) from None

    try:
        stories = LibraryService.list_stories(criteria)
    except PersistenceError as error:
        log_event(event="story.list.failed", reason=str(error), level=logging.ERROR)
        raise api_error(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="LIST_FAILED",
            message=notices.LIST_FAILED,
            detail={"reason": str(error)},
        ) from None

    message = None
    if not stories:
        message = notices.NO_MATCHING_STORIES if criteria.is_active else notices.EMPTY_LIBRARY
    return StoryListResponse(stories=stories, total=len(stories), message=message)


@router.get(
    "/{story_id}",
    response_model=Story,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_story(story_id: str) -> Story:
    try:
        return LibraryService.get_story(story_id)
    except StoryNotFoundError:
        raise _story_not_found(story_id) from None
    except PersistenceError as error:
        raise api_error(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="STORY_INVALID",
            message=notices.LIST_FAILED,
            detail={"id": story_id, "reason": str(error)},
        ) from None


@router.delete(
    "/{story_id}",
    response_model=StoryDeletedResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def delete_story(story_id: str) -> StoryDeletedResponse:
    try:
        LibraryService.delete_story(story_id)
    except StoryNotFoundError:
        raise _story_not_found(story_id) from None
    except PersistenceError as error:
        log_event(
            event="story.delete.failed",
            story_id=story_id,
            reason=str(error),
            level=logging.ERROR,
        )
        raise api_error(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="DELETE_FAILED",
            message=notices.DELETE_FAILED,
            detail={"id": story_id, "reason": str(error)},
        ) from None

    log_event(event="story.delete.completed", story_id=story_id)
    return StoryDeletedResponse(id=story_id, message=notices.STORY_DELETED)
