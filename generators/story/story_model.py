from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class Genre(str, Enum):
    FANTASY = "fantasy"
    SCI_FI = "sci-fi"
    HORROR = "horror"
    MYSTERY = "mystery"
    ADVENTURE = "adventure"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    LEGENDARY = "legendary"


PARAGRAPH_SEPARATOR = "\n\n"


def parse_characters(raw) -> list[str]:
    """Splits a comma separated character list, trimming names and dropping blanks."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(item).strip() for item in raw if item is not None and str(item).strip()]


class GenerationParameters(BaseModel):
    genre: Genre = Field(default=Genre.FANTASY, description="Story genre")
    setting: str = Field(default="", description="Where the story takes place. Required for generation.")
    characters: List[str] = Field(
        default_factory=list,
        description="Characters to feature. A raw comma separated string is accepted.",
    )
    difficulty: Difficulty = Field(default=Difficulty.MEDIUM, description="Quest difficulty")
    additional_prompt: str = Field(default="", description="Free text added to the story prompt")

    @field_validator("characters", mode="before")
    @classmethod
    def split_characters(cls, value):
        return parse_characters(value)

    @field_validator("additional_prompt", mode="before")
    @classmethod
    def default_additional_prompt(cls, value):
        return "" if value is None else value


class Story(BaseModel):
    title: str = Field(..., description="Short epic title, quote characters stripped")
    content: str = Field(..., description="Narrative text, paragraphs separated by a blank line")
    genre: Genre
    difficulty: Difficulty
    setting: str
    characters: List[str] = Field(default_factory=list)
    tags: List[str] = Field(
        default_factory=list,
        description="[genre, difficulty]. Assigned when the story is saved.",
    )
    id: str | None = Field(default=None, description="Assigned by the story store on save")
    created_date: str | None = Field(
        default=None,
        description="UTC ISO-8601 timestamp assigned by the story store on save",
    )

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    @property
    def paragraphs(self) -> list[str]:
        return [
            paragraph.strip()
            for paragraph in self.content.split(PARAGRAPH_SEPARATOR)
            if paragraph.strip()
        ]

    def default_tags(self) -> list[str]:
        return [self.genre.value, self.difficulty.value]
