from .library_filter import ALL, FilterCriteria, filter_stories
from .story_store import PersistenceError, StoryNotFoundError, StoryStore

__all__ = [
    "ALL",
    "FilterCriteria",
    "PersistenceError",
    "StoryNotFoundError",
    "StoryStore",
    "filter_stories",
]
