from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value < 1:
        return default
    return value


def _parse_csv_env(name: str, default: list[str]) -> tuple[str, ...]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return tuple(default)
    values = tuple(item.strip() for item in raw.split(",") if item.strip())
    return values if values else tuple(default)


def _parse_str_env(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


@dataclass(frozen=True)
class Settings:
    project_root: Path
    data_dir: Path
    story_model: str = "gemini-2.5-flash"
    allowed_story_models: tuple[str, ...] = ("gemini-2.5-flash",)
    tts_model: str = "gemini-2.5-flash-preview-tts"
    narration_voices: tuple[str, ...] = ("Charon",)
    setting_max_len: int = 200
    characters_max_len: int = 500
    additional_prompt_max_len: int = 1000


def get_settings() -> Settings:
    project_root = Path(__file__).resolve().parents[2]
    data_override = (os.getenv("TALEFORGE_DATA_DIR") or "").strip()
    data_dir = Path(data_override).resolve() if data_override else project_root / "outputs"
    story_model = _parse_str_env("TALEFORGE_STORY_MODEL", "gemini-2.5-flash")
    return Settings(
        project_root=project_root,
        data_dir=data_dir,
        story_model=story_model,
        allowed_story_models=_parse_csv_env(
            "TALEFORGE_ALLOWED_STORY_MODELS",
            default=[story_model],
        ),
        tts_model=_parse_str_env("TALEFORGE_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
        narration_voices=_parse_csv_env(
            "TALEFORGE_NARRATION_VOICES",
            default=["Charon"],
        ),
        setting_max_len=_parse_int_env("TALEFORGE_SETTING_MAX_LEN", default=200),
        characters_max_len=_parse_int_env("TALEFORGE_CHARACTERS_MAX_LEN", default=500),
        additional_prompt_max_len=_parse_int_env(
            "TALEFORGE_ADDITIONAL_PROMPT_MAX_LEN",
            default=1000,
        ),
    )
