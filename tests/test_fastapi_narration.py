import os
import tempfile
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.concurrency import run_in_threadpool
from fastapi.testclient import TestClient

from app.main import create_app
from generators.narration.narration_controller import NarrationController
from generators.narration.speech_service import SpeechServiceError, VoiceDescriptor
from generators.story.story_model import Story
from library.story_store import StoryStore


class _FakeSpeechService:
    def __init__(self, available=True, speak_error=None):
        self.available = available
        self.speak_error = speak_error
        self.during_speak = None
        self.spoken: list[str] = []
        self.cancel_count = 0

    def is_available(self) -> bool:
        return self.available

    def list_voices(self):
        return [VoiceDescriptor("Charon", "en-US")]

    async def speak(self, text, options, on_end=None):
        if self.speak_error is not None:
            raise self.speak_error
        if self.during_speak is not None:
            self.during_speak()
            return
        self.spoken.append(text)

    def cancel(self) -> None:
        self.cancel_count += 1


class TestNarrationApi(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

        env_patcher = patch.dict(
            os.environ,
            {"TALEFORGE_DATA_DIR": self.tmp_dir.name},
            clear=False,
        )
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

        self.speech = _FakeSpeechService()
        self.controller = NarrationController(self.speech)
        controller_patcher = patch(
            "app.api.narration.get_narration_controller",
            return_value=self.controller,
        )
        controller_patcher.start()
        self.addCleanup(controller_patcher.stop)

        self.client = TestClient(create_app())

    def _save_story(self) -> Story:
        story = Story(
            title="Dragon's Lair",
            content="The dragon wakes.\n\nThe heroes flee.",
            genre="fantasy",
            difficulty="hard",
            setting="Ashen Peaks",
        )
        return StoryStore(self.tmp_dir.name).create(story)

    def test_status_starts_idle(self) -> None:
        response = self.client.get("/api/narration/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "idle")
        self.assertIsNone(response.json()["story_id"])

    def test_play_saved_story(self) -> None:
        saved = self._save_story()

        response = self.client.post("/api/narration/play", json={"story_id": saved.id})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "speaking")
        self.assertEqual(body["story_id"], saved.id)
        self.assertEqual(body["message"], "Audio narration started!")
        self.assertEqual(self.speech.spoken, [saved.content])

    def test_play_raw_text(self) -> None:
        response = self.client.post("/api/narration/play", json={"text": "  A quiet road.  "})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.speech.spoken, ["A quiet road."])

    def test_play_again_replaces_session(self) -> None:
        self.client.post("/api/narration/play", json={"text": "text A"})
        response = self.client.post("/api/narration/play", json={"text": "text B"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.speech.cancel_count, 1)
        self.assertEqual(self.controller.session.target_text, "text B")

    def test_stop_before_playback_reports_stopped(self) -> None:
        self.speech.during_speak = self.controller.stop

        response = self.client.post("/api/narration/play", json={"text": "text A"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "idle")
        self.assertEqual(body["message"], "Audio stopped")
        self.assertEqual(self.speech.spoken, [])

    def test_saved_story_is_loaded_off_the_event_loop(self) -> None:
        saved = self._save_story()
        threadpool = AsyncMock(wraps=run_in_threadpool)

        with patch("app.api.narration.run_in_threadpool", threadpool):
            response = self.client.post("/api/narration/play", json={"story_id": saved.id})

        self.assertEqual(response.status_code, 200)
        threadpool.assert_awaited_once()
        self.assertEqual(threadpool.await_args.args[1], saved.id)

    def test_play_without_text_returns_400(self) -> None:
        response = self.client.post("/api/narration/play", json={"text": "   "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "NARRATION_TEXT_REQUIRED")
        self.assertEqual(self.speech.spoken, [])

    def test_play_unknown_story_returns_404(self) -> None:
        response = self.client.post("/api/narration/play", json={"story_id": "0" * 32})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "STORY_NOT_FOUND")

    def test_unsupported_speech_returns_501(self) -> None:
        self.speech.available = False

        response = self.client.post("/api/narration/play", json={"text": "text A"})

        self.assertEqual(response.status_code, 501)
        body = response.json()
        self.assertEqual(body["error"]["code"], "SPEECH_UNSUPPORTED")
        self.assertEqual(body["error"]["message"], "Text-to-speech is not supported on this host")
        self.assertEqual(self.client.get("/api/narration/").json()["status"], "idle")

    def test_speech_failure_returns_502_and_idle(self) -> None:
        self.speech.speak_error = SpeechServiceError("quota exceeded")

        response = self.client.post("/api/narration/play", json={"text": "text A"})

        self.assertEqual(response.status_code, 502)
        body = response.json()
        self.assertEqual(body["error"]["code"], "NARRATION_FAILED")
        self.assertEqual(body["error"]["detail"]["reason"], "quota exceeded")
        self.assertEqual(self.client.get("/api/narration/").json()["status"], "idle")

    def test_stop_active_narration(self) -> None:
        self.client.post("/api/narration/play", json={"text": "text A"})

        response = self.client.post("/api/narration/stop")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "idle")
        self.assertEqual(response.json()["message"], "Audio stopped")
        self.assertEqual(self.speech.cancel_count, 1)

    def test_stop_when_idle_is_a_no_op(self) -> None:
        response = self.client.post("/api/narration/stop")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "No narration is playing")
        self.assertEqual(self.speech.cancel_count, 0)


if __name__ == "__main__":
    unittest.main()
