from collections.abc import Mapping
from enum import Enum
from typing import Any, Literal, Sequence, TypeVar

from pydantic import BaseModel, Field

from generators.story.story_model import Difficulty, Genre

ALL = "all"

StoryT = TypeVar("StoryT")


class FilterCriteria(BaseModel):
    search_text: str = Field(default="", description="Case-insensitive match against title and content")
    genre: Genre | Literal["all"] = ALL
    difficulty: Difficulty | Literal["all"] = ALL

    @property
    def is_active(self) -> bool:
        return bool(self.search_text) or self.genre != ALL or self.difficulty != ALL


def _field(story: Any, name: str) -> Any:
    if isinstance(story, Mapping):
        return story.get(name)
    return getattr(story, name, None)


def _facet_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _matches_facet(criterion: Any, value: Any) -> bool:
    criterion = _facet_value(criterion)
    return criterion == ALL or criterion == _facet_value(value)


def _matches_search(needle: str, story: Any) -> bool:
    if not needle:
        return True
    title = str(_field(story, "title") or "").lower()
    content = str(_field(story, "content") or "").lower()
    return needle in title or needle in content


def filter_stories(stories: Sequence[StoryT], criteria: FilterCriteria) -> list[StoryT]:
    """Returns the stories matching every criterion, in their original order."""
    needle = criteria.search_text.lower()
    return [
        story
        for story in stories
        if _matches_search(needle, story)
        and _matches_facet(criteria.genre, _field(story, "genre"))
        and _matches_facet(criteria.difficulty, _field(story, "difficulty"))
    ]
