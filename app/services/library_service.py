from __future__ import annotations

from app.core.config import get_settings
from generators.story.story_model import Story
from library.library_filter import FilterCriteria, filter_stories
from library.story_store import StoryStore


def get_story_store() -> StoryStore:
    return StoryStore(get_settings().data_dir)


class LibraryService:
    @staticmethod
    def save_story(story: Story) -> Story:
        return get_story_store().create(story)

    @staticmethod
    def get_story(story_id: str) -> Story:
        return get_story_store().get(story_id)

    @staticmethod
    def list_stories(criteria: FilterCriteria) -> list[Story]:
        return filter_stories(get_story_store().list(), criteria)

    @staticmethod
    def delete_story(story_id: str) -> None:
        get_story_store().delete(story_id)
