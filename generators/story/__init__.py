from .story_errors import GenerationServiceError, ServiceError, ValidationError
from .story_model import Difficulty, GenerationParameters, Genre, Story
from .story_prompts import StoryPrompt, normalize_title
from .story_generator import StoryGenerator

__all__ = [
    "Difficulty",
    "GenerationParameters",
    "GenerationServiceError",
    "Genre",
    "ServiceError",
    "Story",
    "StoryGenerator",
    "StoryPrompt",
    "ValidationError",
    "normalize_title",
]
