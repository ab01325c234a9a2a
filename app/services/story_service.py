from __future__ import annotations

from app.core.config import get_settings
from app.schemas.story import StoryGenerateRequest
from generators.story.generation_service import GeminiGenerationService
from generators.story.story_errors import GenerationServiceError, ValidationError
from generators.story.story_generator import StoryGenerator
from generators.story.story_model import Story


class StoryService:
    @staticmethod
    async def generate_story(request: StoryGenerateRequest) -> Story:
        if not request.setting:
            raise ValidationError("setting required")

        model_name = request.story_model or get_settings().story_model
        try:
            service = GeminiGenerationService(model_name=model_name)
        except ValueError as error:
            # missing API key
            raise GenerationServiceError(str(error), stage="story") from error
        generator = StoryGenerator(service)
        return await generator.generate(request.to_parameters())
