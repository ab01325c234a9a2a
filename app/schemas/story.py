from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from app.core.config import get_settings
from generators.narration.narration_controller import NarrationStatus
from generators.story.story_model import (
    Difficulty,
    GenerationParameters,
    Genre,
    Story,
    parse_characters,
)


class StoryGenerateRequest(BaseModel):
    genre: Genre = Field(default=Genre.FANTASY)
    setting: str = ""
    characters: str | List[str] = ""
    difficulty: Difficulty = Field(default=Difficulty.MEDIUM)
    additional_prompt: str = ""
    story_model: str | None = None

    @field_validator("setting")
    @classmethod
    def validate_setting(cls, value: str) -> str:
        normalized = value.strip()
        max_len = get_settings().setting_max_len
        if len(normalized) > max_len:
            raise ValueError(f"setting must be <= {max_len} characters")
        return normalized

    @field_validator("characters")
    @classmethod
    def validate_characters(cls, value: str | List[str]) -> List[str]:
        characters = parse_characters(value)
        max_len = get_settings().characters_max_len
        if len(", ".join(characters)) > max_len:
            raise ValueError(f"characters must be <= {max_len} characters")
        return characters

    @field_validator("additional_prompt")
    @classmethod
    def validate_additional_prompt(cls, value: str) -> str:
        normalized = value.strip()
        max_len = get_settings().additional_prompt_max_len
        if len(normalized) > max_len:
            raise ValueError(f"additional_prompt must be <= {max_len} characters")
        return normalized

    @field_validator("story_model")
    @classmethod
    def validate_story_model(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        allowed = get_settings().allowed_story_models
        if normalized not in allowed:
            raise ValueError(f"story_model must be one of {list(allowed)}")
        return normalized

    def to_parameters(self) -> GenerationParameters:
        return GenerationParameters(
            genre=self.genre,
            setting=self.setting,
            characters=self.characters,
            difficulty=self.difficulty,
            additional_prompt=self.additional_prompt,
        )


class StorySaveRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    genre: Genre
    difficulty: Difficulty
    setting: str = ""
    characters: List[str] = Field(default_factory=list)

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def to_story(self) -> Story:
        return Story(
            title=self.title.strip(),
            content=self.content,
            genre=self.genre,
            difficulty=self.difficulty,
            setting=self.setting,
            characters=parse_characters(self.characters),
        )


class StoryEnvelope(BaseModel):
    story: Story
    message: str


class StoryListResponse(BaseModel):
    stories: List[Story]
    total: int
    message: str | None = None


class StoryDeletedResponse(BaseModel):
    id: str
    message: str


class NarrationPlayRequest(BaseModel):
    story_id: str | None = None
    text: str | None = None


class NarrationStatusResponse(BaseModel):
    status: NarrationStatus
    story_id: str | None = None
    message: str | None = None


class ApiError(BaseModel):
    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    error: ApiError
