import asyncio
import io
import logging
import os
import struct
from typing import Callable, Optional

import pygame
from dotenv import load_dotenv
from google import genai
from google.genai import types

from generators.narration.speech_service import (
    SpeechOptions,
    SpeechServiceError,
    VoiceDescriptor,
)

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_MIME_TYPE = "audio/L16;rate=24000"

# Gemini prebuilt voices are multilingual; the tag records the narration locale.
GEMINI_VOICES: tuple[VoiceDescriptor, ...] = tuple(
    VoiceDescriptor(name=name, lang="en-US")
    for name in (
        "Charon",
        "Achernar",
        "Fenrir",
        "Kore",
        "Orus",
        "Puck",
        "Schedar",
        "Zephyr",
    )
)


def parse_audio_mime_type(mime_type: str) -> dict[str, int]:
    """Reads sample width and rate from an ``audio/L16;rate=24000`` style mime type."""
    parameters = {"bits_per_sample": 16, "rate": 24000}

    main_type, _, params = (mime_type or "").partition(";")
    main_type = main_type.strip().lower()
    if main_type.startswith("audio/l"):
        width = main_type[len("audio/l"):]
        if width.isdigit():
            parameters["bits_per_sample"] = int(width)

    for param in params.split(";"):
        key, _, value = param.strip().partition("=")
        if key.lower() == "rate" and value.strip().isdigit():
            parameters["rate"] = int(value)

    return parameters


def pcm_to_wav(audio_data: bytes, mime_type: str) -> bytes:
    parameters = parse_audio_mime_type(mime_type)
    bits_per_sample = parameters["bits_per_sample"]
    sample_rate = parameters["rate"]
    block_align = bits_per_sample // 8
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + len(audio_data),
        b"WAVE",
        b"fmt ",
        16,
        1,
        1,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        len(audio_data),
    )
    return header + audio_data


def to_wav_bytes(audio_bytes: bytes, mime_type: str) -> bytes:
    normalized = (mime_type or "").lower()
    if "wav" in normalized:
        return audio_bytes
    if not normalized or normalized.startswith("audio/l") or "pcm" in normalized:
        return pcm_to_wav(audio_bytes, mime_type or DEFAULT_AUDIO_MIME_TYPE)
    raise SpeechServiceError(f"Unsupported audio mime type for playback: {mime_type}")


def build_narration_prompt(text: str, options: SpeechOptions) -> str:
    pace = "natural"
    if options.rate < 1.0:
        pace = "slightly slower than normal"
    elif options.rate > 1.0:
        pace = "slightly faster than normal"
    instruction = (
        f"Read aloud as a dramatic Dungeon Master narrating a tale, at a {pace} pace."
    )
    return f"{instruction}\n{text.strip()}"


class GeminiSpeechService:
    """Speech output backed by Gemini TTS and played through pygame.mixer.

    Synthesis happens per utterance; playback runs on the mixer's music
    channel and a polling task on the running event loop reports the natural
    end of speech.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-2.5-flash-preview-tts",
        temperature: float = 1.0,
        poll_interval_sec: float = 0.2,
        client: genai.Client | None = None,
    ):
        if poll_interval_sec <= 0:
            raise ValueError("poll_interval_sec must be greater than 0.")
        self.api_key = api_key if api_key is not None else os.getenv("GEMINI_TTS_API_KEY", "")
        self._client = client
        self.model_name = model_name
        self.temperature = temperature
        self.poll_interval_sec = poll_interval_sec
        self._generation = 0
        self._watcher: Optional[asyncio.Task] = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def is_available(self) -> bool:
        if not self.api_key and self._client is None:
            return False
        if pygame.mixer.get_init():
            return True
        try:
            pygame.mixer.init()
        except pygame.error as error:
            logger.warning("Audio mixer unavailable: %s", error)
            return False
        return True

    def list_voices(self) -> list[VoiceDescriptor]:
        return list(GEMINI_VOICES)

    def _build_config(self, voice: Optional[VoiceDescriptor]) -> types.GenerateContentConfig:
        speech_config = None
        if voice is not None:
            speech_config = types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice.name)
                )
            )
        return types.GenerateContentConfig(
            temperature=self.temperature,
            response_modalities=["audio"],
            speech_config=speech_config,
        )

    async def _synthesize(self, prompt: str, config: types.GenerateContentConfig) -> tuple[bytes, str]:
        contents = [types.Content(role="user", parts=[types.Part.from_text(text=prompt)])]
        audio_chunks: list[bytes] = []
        mime_type: str | None = None

        stream = await self.client.aio.models.generate_content_stream(
            model=self.model_name,
            contents=contents,
            config=config,
        )
        async for chunk in stream:
            for part in chunk.parts or []:
                inline_data = getattr(part, "inline_data", None)
                if not inline_data or not inline_data.data:
                    continue
                current_mime_type = inline_data.mime_type or ""
                if mime_type is None:
                    mime_type = current_mime_type
                elif current_mime_type and current_mime_type != mime_type:
                    raise SpeechServiceError(
                        f"Inconsistent mime type in stream: {mime_type} vs {current_mime_type}"
                    )
                audio_chunks.append(inline_data.data)

        if not audio_chunks:
            raise SpeechServiceError("No audio data returned from TTS API.")
        return b"".join(audio_chunks), mime_type or DEFAULT_AUDIO_MIME_TYPE

    async def speak(
        self,
        text: str,
        options: SpeechOptions,
        on_end: Optional[Callable[[], None]] = None,
    ) -> None:
        self.cancel()
        generation = self._generation

        prompt = build_narration_prompt(text, options)
        try:
            audio_bytes, mime_type = await self._synthesize(prompt, self._build_config(options.voice))
        except SpeechServiceError:
            raise
        except Exception as error:
            raise SpeechServiceError(f"Speech synthesis failed: {error}") from error

        if generation != self._generation:
            # Cancelled while synthesizing.
            return

        wav_bytes = to_wav_bytes(audio_bytes, mime_type)
        try:
            pygame.mixer.music.load(io.BytesIO(wav_bytes), "wav")
            pygame.mixer.music.set_volume(options.volume)
            pygame.mixer.music.play()
        except pygame.error as error:
            raise SpeechServiceError(f"Audio playback failed: {error}") from error

        logger.info("Playback started bytes=%d voice=%s", len(wav_bytes), options.voice)
        self._watcher = asyncio.create_task(self._watch_playback(generation, on_end))

    async def _watch_playback(self, generation: int, on_end: Optional[Callable[[], None]]) -> None:
        while pygame.mixer.music.get_busy():
            await asyncio.sleep(self.poll_interval_sec)
            if generation != self._generation:
                return
        if generation != self._generation:
            return
        self._watcher = None
        logger.info("Playback finished")
        if on_end is not None:
            on_end()

    async def wait_until_done(self) -> None:
        watcher = self._watcher
        if watcher is not None:
            await asyncio.gather(watcher, return_exceptions=True)

    def cancel(self) -> None:
        self._generation += 1
        if self._watcher is not None:
            self._watcher.cancel()
            self._watcher = None
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
