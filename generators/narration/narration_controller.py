import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from generators.narration.speech_service import (
    SpeechOptions,
    SpeechService,
    UnsupportedCapabilityError,
    select_voice,
)

logger = logging.getLogger(__name__)

NARRATION_RATE = 0.9
NARRATION_PITCH = 1.0
NARRATION_VOLUME = 1.0


class NarrationStatus(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


@dataclass(frozen=True)
class NarrationSession:
    token: int
    target_text: str
    story_id: Optional[str] = None


class NarrationController:
    """Owns the one speech slot shared by the whole process.

    A new play() replaces the active session instead of queueing behind it.
    State is only changed between awaits, so stop() takes effect before any
    later play() observes the session.
    """

    def __init__(
        self,
        speech: SpeechService,
        preferred_voice_names: Sequence[str] = (),
    ):
        self._speech = speech
        self._preferred_voice_names = tuple(preferred_voice_names)
        self._session: Optional[NarrationSession] = None
        self._tokens = itertools.count(1)

    @property
    def status(self) -> NarrationStatus:
        return NarrationStatus.SPEAKING if self._session is not None else NarrationStatus.IDLE

    @property
    def session(self) -> Optional[NarrationSession]:
        return self._session

    def _build_options(self) -> SpeechOptions:
        voice = select_voice(
            self._speech.list_voices(),
            preferred_names=self._preferred_voice_names,
        )
        return SpeechOptions(
            rate=NARRATION_RATE,
            pitch=NARRATION_PITCH,
            volume=NARRATION_VOLUME,
            voice=voice,
        )

    async def play(self, text: str, story_id: Optional[str] = None) -> Optional[NarrationSession]:
        """Starts reading text aloud, replacing any active narration.

        Returns None when the narration was stopped or replaced before
        playback began.
        """
        if not text or not text.strip():
            raise ValueError("text must not be empty")
        if not self._speech.is_available():
            raise UnsupportedCapabilityError("Speech synthesis is not available on this host.")

        if self._session is not None:
            logger.info("Replacing narration token=%d", self._session.token)
            self._speech.cancel()
            self._session = None

        session = NarrationSession(token=next(self._tokens), target_text=text, story_id=story_id)
        self._session = session
        options = self._build_options()

        try:
            await self._speech.speak(
                text,
                options,
                on_end=lambda: self._handle_end(session.token),
            )
        except Exception:
            if self._session is session:
                self._session = None
            raise

        if self._session is not session:
            # stop() or another play() ran while speech was being prepared.
            logger.info("Narration superseded before playback token=%d", session.token)
            return None

        logger.info(
            "Narration started token=%d story_id=%s voice=%s",
            session.token,
            story_id,
            options.voice.name if options.voice else None,
        )
        return session

    def stop(self) -> bool:
        if self._session is None:
            return False
        logger.info("Narration stopped token=%d", self._session.token)
        self._session = None
        self._speech.cancel()
        return True

    def _handle_end(self, token: int) -> None:
        if self._session is None or self._session.token != token:
            return
        logger.info("Narration finished token=%d", token)
        self._session = None
