import logging
import os
from typing import Protocol

from dotenv import load_dotenv
from google import genai
from google.genai import types

from generators.story.story_errors import ServiceError

load_dotenv()

logger = logging.getLogger(__name__)


class GenerationService(Protocol):
    async def invoke(self, prompt: str) -> str:
        ...


class GeminiGenerationService:
    """Single-shot text generation against the Gemini API."""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-2.5-flash",
        temperature: float = 1.0,
        client: genai.Client | None = None,
    ):
        api_key = api_key or os.getenv("GEMINI_STORY_API_KEY")
        if client is None and not api_key:
            raise ValueError("GEMINI_STORY_API_KEY environment variable not set.")
        self.client = client or genai.Client(api_key=api_key)
        self.model_name = model_name
        self.temperature = temperature

    async def invoke(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.temperature,  # High creativity
                ),
            )
        except Exception as error:
            logger.warning("Gemini request failed model=%s error=%s", self.model_name, error)
            raise ServiceError(f"Gemini request failed: {error}") from error

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise ServiceError("Gemini returned an empty response.")
        return text
