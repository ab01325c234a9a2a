import asyncio
import unittest

from generators.narration.narration_controller import (
    NARRATION_PITCH,
    NARRATION_RATE,
    NARRATION_VOLUME,
    NarrationController,
    NarrationStatus,
)
from generators.narration.speech_service import (
    SpeechServiceError,
    UnsupportedCapabilityError,
    VoiceDescriptor,
    select_voice,
)


class _FakeSpeechService:
    def __init__(self, available=True, voices=None, speak_error=None):
        self.available = available
        self.voices = voices if voices is not None else [VoiceDescriptor("Alice", "en-GB")]
        self.speak_error = speak_error
        self.calls: list[tuple] = []
        self.on_end_callbacks = []

    def is_available(self) -> bool:
        return self.available

    def list_voices(self):
        return list(self.voices)

    async def speak(self, text, options, on_end=None):
        self.calls.append(("speak", text, options))
        if self.speak_error is not None:
            raise self.speak_error
        self.on_end_callbacks.append(on_end)

    def cancel(self) -> None:
        self.calls.append(("cancel",))

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class _SlowSynthesisSpeechService(_FakeSpeechService):
    """Holds every speak() call until release() is called."""

    def __init__(self):
        super().__init__()
        self.synthesis_started = asyncio.Event()
        self._ready = asyncio.Event()

    def release(self) -> None:
        self._ready.set()

    async def speak(self, text, options, on_end=None):
        self.calls.append(("speak", text, options))
        self.synthesis_started.set()
        await self._ready.wait()
        self.on_end_callbacks.append(on_end)


class TestNarrationController(unittest.IsolatedAsyncioTestCase):
    async def test_play_starts_speaking_with_fixed_parameters(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)

        session = await controller.play("Once upon a time", story_id="abc")

        self.assertEqual(controller.status, NarrationStatus.SPEAKING)
        self.assertEqual(session.target_text, "Once upon a time")
        self.assertEqual(session.story_id, "abc")
        _, text, options = speech.calls[0]
        self.assertEqual(text, "Once upon a time")
        self.assertEqual(options.rate, NARRATION_RATE)
        self.assertEqual(options.pitch, NARRATION_PITCH)
        self.assertEqual(options.volume, NARRATION_VOLUME)
        self.assertEqual(options.voice, VoiceDescriptor("Alice", "en-GB"))

    async def test_second_play_cancels_first_before_starting(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)

        await controller.play("text A")
        await controller.play("text B")

        self.assertEqual(speech.call_names(), ["speak", "cancel", "speak"])
        self.assertEqual(controller.status, NarrationStatus.SPEAKING)
        self.assertEqual(controller.session.target_text, "text B")

    async def test_stop_when_idle_is_a_no_op(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)

        stopped = controller.stop()

        self.assertFalse(stopped)
        self.assertEqual(speech.calls, [])
        self.assertEqual(controller.status, NarrationStatus.IDLE)

    async def test_stop_cancels_active_session(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)
        await controller.play("text A")

        stopped = controller.stop()

        self.assertTrue(stopped)
        self.assertEqual(speech.call_names(), ["speak", "cancel"])
        self.assertEqual(controller.status, NarrationStatus.IDLE)
        self.assertIsNone(controller.session)

    async def test_unsupported_platform_raises_and_stays_idle(self):
        speech = _FakeSpeechService(available=False)
        controller = NarrationController(speech)

        with self.assertRaises(UnsupportedCapabilityError):
            await controller.play("text A")

        self.assertEqual(controller.status, NarrationStatus.IDLE)
        self.assertEqual(speech.calls, [])

    async def test_natural_end_returns_to_idle(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)
        await controller.play("text A")

        speech.on_end_callbacks[-1]()

        self.assertEqual(controller.status, NarrationStatus.IDLE)

    async def test_end_signal_from_replaced_session_is_ignored(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)
        await controller.play("text A")
        await controller.play("text B")

        speech.on_end_callbacks[0]()

        self.assertEqual(controller.status, NarrationStatus.SPEAKING)
        self.assertEqual(controller.session.target_text, "text B")

    async def test_stop_during_synthesis_does_not_report_a_start(self):
        speech = _SlowSynthesisSpeechService()
        controller = NarrationController(speech)

        pending = asyncio.create_task(controller.play("text A"))
        await speech.synthesis_started.wait()
        self.assertEqual(controller.status, NarrationStatus.SPEAKING)

        self.assertTrue(controller.stop())
        speech.release()
        session = await pending

        self.assertIsNone(session)
        self.assertEqual(controller.status, NarrationStatus.IDLE)
        self.assertIsNone(controller.session)

    async def test_replacement_during_synthesis_keeps_only_the_new_session(self):
        speech = _SlowSynthesisSpeechService()
        controller = NarrationController(speech)

        first = asyncio.create_task(controller.play("text A"))
        await speech.synthesis_started.wait()
        second = asyncio.create_task(controller.play("text B"))
        await asyncio.sleep(0)
        speech.release()

        self.assertIsNone(await first)
        replacement = await second
        self.assertEqual(replacement.target_text, "text B")
        self.assertIs(controller.session, replacement)
        self.assertEqual(controller.status, NarrationStatus.SPEAKING)

    async def test_speech_failure_returns_to_idle(self):
        speech = _FakeSpeechService(speak_error=SpeechServiceError("synthesis failed"))
        controller = NarrationController(speech)

        with self.assertRaises(SpeechServiceError):
            await controller.play("text A")

        self.assertEqual(controller.status, NarrationStatus.IDLE)

    async def test_blank_text_is_rejected(self):
        speech = _FakeSpeechService()
        controller = NarrationController(speech)

        with self.assertRaises(ValueError):
            await controller.play("   ")

        self.assertEqual(speech.calls, [])

    async def test_no_voices_proceeds_without_voice(self):
        speech = _FakeSpeechService(voices=[])
        controller = NarrationController(speech)

        await controller.play("text A")

        _, _, options = speech.calls[0]
        self.assertIsNone(options.voice)


class TestSelectVoice(unittest.TestCase):
    VOICES = [
        VoiceDescriptor("Amelie", "fr-FR"),
        VoiceDescriptor("Samantha", "en-US"),
        VoiceDescriptor("Daniel", "en-GB"),
    ]

    def test_prefers_named_identity(self):
        self.assertEqual(select_voice(self.VOICES, preferred_names=["daniel"]).name, "Daniel")

    def test_falls_back_to_english_locale(self):
        self.assertEqual(select_voice(self.VOICES, preferred_names=["Nobody"]).name, "Samantha")

    def test_falls_back_to_first_voice(self):
        voices = [VoiceDescriptor("Amelie", "fr-FR"), VoiceDescriptor("Hans", "de-DE")]

        self.assertEqual(select_voice(voices).name, "Amelie")

    def test_no_voices(self):
        self.assertIsNone(select_voice([]))


if __name__ == "__main__":
    unittest.main()
