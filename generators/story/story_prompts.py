import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from generators.story.story_model import GenerationParameters

CHARACTERS_PLACEHOLDER = "Create interesting characters"
NO_ADDITIONAL_CONTEXT = "None"
DEFAULT_TITLE = "Untitled Tale"

_QUOTE_CHARACTERS = re.compile("[\"'‘’“”]")
_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def normalize_title(raw_title: str) -> str:
    """Strips quote characters and surrounding whitespace from a model title.

    Falls back to the trimmed raw text when only quotes were returned, and to
    DEFAULT_TITLE when the model returned nothing at all.
    """
    raw = (raw_title or "").strip()
    title = _QUOTE_CHARACTERS.sub("", raw).strip()
    if title:
        return title
    return raw or DEFAULT_TITLE


@dataclass
class StoryPrompt:
    story_prompt_path: str = field(
        default_factory=lambda: str(_TEMPLATES_DIR / "story_prompt.txt")
    )
    title_prompt_path: str = field(
        default_factory=lambda: str(_TEMPLATES_DIR / "title_prompt.txt")
    )

    _story_template: Optional[str] = field(init=False, repr=False, default=None)
    _title_template: Optional[str] = field(init=False, repr=False, default=None)

    @staticmethod
    def _read_text(path: str, label: str) -> str:
        file_path = Path(path)
        try:
            return file_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"{label} file not found at {file_path}") from exc

    @staticmethod
    def _format(template: str, label: str, **values: str) -> str:
        try:
            return template.format(**values)
        except KeyError as exc:
            raise ValueError(
                f"{label} template has an unknown placeholder: {exc.args[0]}"
            ) from exc

    def build_story_prompt(self, params: GenerationParameters) -> str:
        if self._story_template is None:
            self._story_template = self._read_text(self.story_prompt_path, "Story prompt")

        characters = ", ".join(params.characters) or CHARACTERS_PLACEHOLDER
        additional_context = params.additional_prompt.strip() or NO_ADDITIONAL_CONTEXT

        return self._format(
            self._story_template,
            "Story prompt",
            genre=params.genre.value,
            setting=params.setting.strip(),
            characters=characters,
            difficulty=params.difficulty.value,
            additional_context=additional_context,
        )

    def build_title_prompt(self, story_text: str) -> str:
        if self._title_template is None:
            self._title_template = self._read_text(self.title_prompt_path, "Title prompt")

        return self._format(self._title_template, "Title prompt", story=story_text)
