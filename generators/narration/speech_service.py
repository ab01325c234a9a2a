from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence


class UnsupportedCapabilityError(RuntimeError):
    """Speech synthesis is not available on this host."""


class SpeechServiceError(RuntimeError):
    """The speech service failed to start an utterance."""


@dataclass(frozen=True)
class VoiceDescriptor:
    name: str
    lang: str = ""


@dataclass(frozen=True)
class SpeechOptions:
    rate: float
    pitch: float
    volume: float
    voice: Optional[VoiceDescriptor] = None


class SpeechService(Protocol):
    def is_available(self) -> bool:
        ...

    def list_voices(self) -> list[VoiceDescriptor]:
        ...

    async def speak(
        self,
        text: str,
        options: SpeechOptions,
        on_end: Optional[Callable[[], None]] = None,
    ) -> None:
        ...

    def cancel(self) -> None:
        ...


def select_voice(
    voices: Sequence[VoiceDescriptor],
    preferred_names: Sequence[str] = (),
    preferred_lang_prefix: str = "en",
) -> VoiceDescriptor | None:
    """Best-effort voice choice: preferred identity, then language, then first."""
    if not voices:
        return None

    for keyword in preferred_names:
        needle = keyword.strip().lower()
        if not needle:
            continue
        for voice in voices:
            if needle in voice.name.lower():
                return voice

    prefix = preferred_lang_prefix.lower()
    for voice in voices:
        if voice.lang.lower().startswith(prefix):
            return voice

    return voices[0]
