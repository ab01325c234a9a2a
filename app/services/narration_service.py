from __future__ import annotations

from app.core.config import get_settings
from generators.narration.gemini_speech import GeminiSpeechService
from generators.narration.narration_controller import NarrationController

_controller: NarrationController | None = None


def get_narration_controller() -> NarrationController:
    """The process-wide narration controller, created on first use."""
    global _controller
    if _controller is None:
        settings = get_settings()
        _controller = NarrationController(
            GeminiSpeechService(model_name=settings.tts_model),
            preferred_voice_names=settings.narration_voices,
        )
    return _controller


def reset_narration_controller() -> None:
    global _controller
    if _controller is not None:
        _controller.stop()
    _controller = None
