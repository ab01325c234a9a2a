from __future__ import annotations

import json
import logging
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError as SchemaValidationError

from generators.story.story_model import Story

logger = logging.getLogger(__name__)

_STORY_ID_PATTERN = re.compile(r"^[a-f0-9]{32}$")
_LOCK = threading.Lock()


class PersistenceError(RuntimeError):
    """The story store could not complete a create, get, list or delete."""


class StoryNotFoundError(PersistenceError):
    def __init__(self, story_id: str):
        super().__init__(f"story not found: {story_id}")
        self.story_id = story_id


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class StoryStore:
    """Saved stories kept as one JSON document each under ``<root>/stories``."""

    def __init__(self, root_dir: Path | str):
        self.stories_dir = Path(root_dir) / "stories"

    def _story_path(self, story_id: str) -> Path:
        if not _STORY_ID_PATTERN.match(story_id or ""):
            raise StoryNotFoundError(story_id)
        return self.stories_dir / f"{story_id}.json"

    def create(self, story: Story) -> Story:
        saved = story.model_copy(
            update={
                "id": uuid.uuid4().hex,
                "created_date": _utc_now_iso(),
                "tags": story.default_tags(),
            }
        )
        try:
            self.stories_dir.mkdir(parents=True, exist_ok=True)
            with _LOCK:
                self._write_story(self._story_path(saved.id), saved)
        except OSError as error:
            raise PersistenceError(f"failed to save story: {error}") from error

        logger.info("Saved story id=%s title=%r", saved.id, saved.title)
        return saved

    def get(self, story_id: str) -> Story:
        path = self._story_path(story_id)
        with _LOCK:
            return self._read_story(path)

    def list(self) -> list[Story]:
        """All saved stories, newest first."""
        if not self.stories_dir.is_dir():
            return []
        with _LOCK:
            stories = [self._read_story(path) for path in sorted(self.stories_dir.glob("*.json"))]
        return sorted(stories, key=lambda story: story.created_date or "", reverse=True)

    def delete(self, story_id: str) -> None:
        path = self._story_path(story_id)
        with _LOCK:
            try:
                path.unlink()
            except FileNotFoundError:
                raise StoryNotFoundError(story_id) from None
            except OSError as error:
                raise PersistenceError(f"failed to delete story {story_id}: {error}") from error
        logger.info("Deleted story id=%s", story_id)

    @staticmethod
    def _read_story(path: Path) -> Story:
        try:
            with path.open("r", encoding="utf-8") as file:
                return Story.model_validate(json.load(file))
        except FileNotFoundError:
            raise StoryNotFoundError(path.stem) from None
        except (OSError, json.JSONDecodeError, SchemaValidationError) as error:
            raise PersistenceError(f"failed to read story {path.stem}: {error}") from error

    @staticmethod
    def _write_story(path: Path, story: Story) -> None:
        temp_path = path.with_suffix(".tmp")
        with temp_path.open("w", encoding="utf-8") as file:
            file.write(story.model_dump_json(indent=2))
        temp_path.replace(path)
