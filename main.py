import argparse
import asyncio
import sys
import traceback

from app.core.config import get_settings
from generators.narration.gemini_speech import GeminiSpeechService
from generators.narration.narration_controller import NarrationController
from generators.narration.speech_service import SpeechServiceError, UnsupportedCapabilityError
from generators.story.generation_service import GeminiGenerationService
from generators.story.story_generator import StoryGenerator
from generators.story.story_model import Difficulty, GenerationParameters, Genre
from library.story_store import PersistenceError, StoryStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weave an AI-generated adventure story.")
    parser.add_argument(
        "--genre",
        choices=[genre.value for genre in Genre],
        default=Genre.FANTASY.value,
        help="Story genre",
    )
    parser.add_argument("--setting", required=True, help="Where the story takes place")
    parser.add_argument(
        "--characters",
        default="",
        help="Comma separated characters (optional, e.g. 'Brave knight, Wise wizard')",
    )
    parser.add_argument(
        "--difficulty",
        choices=[difficulty.value for difficulty in Difficulty],
        default=Difficulty.MEDIUM.value,
        help="Quest difficulty",
    )
    parser.add_argument("--additional_prompt", default="", help="Extra themes or plot points")
    parser.add_argument("--model_name", default=None, help="Gemini model name to use")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the generated story to the library.",
    )
    parser.add_argument(
        "--narrate",
        action="store_true",
        help="Read the story aloud with Gemini TTS and wait until narration ends.",
    )
    return parser


async def run(args: argparse.Namespace) -> None:
    settings = get_settings()
    params = GenerationParameters(
        genre=args.genre,
        setting=args.setting,
        characters=args.characters,
        difficulty=args.difficulty,
        additional_prompt=args.additional_prompt,
    )

    print("Weaving your tale...")
    generator = StoryGenerator(
        GeminiGenerationService(model_name=args.model_name or settings.story_model)
    )
    story = await generator.generate(params)

    print(f"\n{story.title}\n")
    for paragraph in story.paragraphs:
        print(f"{paragraph}\n")

    if args.save:
        story = StoryStore(settings.data_dir).create(story)
        print(f"Story saved to your library: id={story.id}")

    if args.narrate:
        speech = GeminiSpeechService(model_name=settings.tts_model)
        controller = NarrationController(speech, preferred_voice_names=settings.narration_voices)
        if await controller.play(story.content, story_id=story.id) is None:
            print("Audio stopped")
            return
        print("Audio narration started! Press Ctrl+C to stop.")
        try:
            await speech.wait_until_done()
        finally:
            controller.stop()


def main():
    args = build_parser().parse_args()
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Audio stopped")
    except UnsupportedCapabilityError as e:
        print(f"Narration unavailable: {e}")
        sys.exit(1)
    except SpeechServiceError as e:
        print(f"Narration failed: {e}")
        sys.exit(1)
    except PersistenceError as e:
        print(f"Saving to the library failed: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Story generation failed: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
