from .speech_service import (
    SpeechOptions,
    SpeechService,
    SpeechServiceError,
    UnsupportedCapabilityError,
    VoiceDescriptor,
    select_voice,
)
from .narration_controller import NarrationController, NarrationSession, NarrationStatus

__all__ = [
    "NarrationController",
    "NarrationSession",
    "NarrationStatus",
    "SpeechOptions",
    "SpeechService",
    "SpeechServiceError",
    "UnsupportedCapabilityError",
    "VoiceDescriptor",
    "select_voice",
]
