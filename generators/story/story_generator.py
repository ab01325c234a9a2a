import logging

from generators.story.generation_service import GenerationService
from generators.story.story_errors import GenerationServiceError, ValidationError
from generators.story.story_model import GenerationParameters, Story
from generators.story.story_prompts import StoryPrompt, normalize_title

logger = logging.getLogger(__name__)


class StoryGenerator:
    """Turns generation parameters into a titled, unsaved Story.

    Two sequential calls are made to the generation service: one for the
    story text and one for a title derived from that text. Either failure
    aborts the whole operation; nothing is retried.
    """

    def __init__(self, service: GenerationService, prompts: StoryPrompt | None = None):
        self.service = service
        self.prompts = prompts or StoryPrompt()

    async def generate(self, params: GenerationParameters) -> Story:
        setting = params.setting.strip()
        if not setting:
            raise ValidationError("setting required")

        story_prompt = self.prompts.build_story_prompt(params)
        content = await self._invoke(story_prompt, stage="story")

        title_prompt = self.prompts.build_title_prompt(content)
        raw_title = await self._invoke(title_prompt, stage="title")

        story = Story(
            title=normalize_title(raw_title),
            content=content.strip(),
            genre=params.genre,
            difficulty=params.difficulty,
            setting=params.setting,
            characters=list(params.characters),
        )
        logger.info(
            "Generated story title=%r genre=%s difficulty=%s paragraphs=%d",
            story.title,
            story.genre.value,
            story.difficulty.value,
            len(story.paragraphs),
        )
        return story

    async def _invoke(self, prompt: str, stage: str) -> str:
        try:
            return await self.service.invoke(prompt)
        except Exception as error:
            logger.error("Generation failed stage=%s error=%s", stage, error)
            raise GenerationServiceError(
                f"{stage} generation failed: {error}", stage=stage
            ) from error
