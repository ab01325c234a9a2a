import unittest

from pydantic import ValidationError

from generators.story.story_model import (
    Difficulty,
    GenerationParameters,
    Genre,
    Story,
    parse_characters,
)


class TestCharacterParsing(unittest.TestCase):
    def test_drops_empty_segments_and_trims(self):
        self.assertEqual(
            parse_characters("Brave knight, , Wise wizard"),
            ["Brave knight", "Wise wizard"],
        )

    def test_empty_input_yields_no_characters(self):
        self.assertEqual(parse_characters(""), [])
        self.assertEqual(parse_characters(None), [])
        self.assertEqual(parse_characters(" , ,"), [])

    def test_parameters_accept_raw_string(self):
        params = GenerationParameters(
            setting="Haunted castle",
            characters="Cunning rogue ,Wise wizard,",
        )

        self.assertEqual(params.characters, ["Cunning rogue", "Wise wizard"])

    def test_parameters_clean_list_input(self):
        params = GenerationParameters(setting="Haunted castle", characters=[" Rogue ", ""])

        self.assertEqual(params.characters, ["Rogue"])


class TestGenerationParameters(unittest.TestCase):
    def test_defaults(self):
        params = GenerationParameters(setting="Ancient dragon's lair")

        self.assertEqual(params.genre, Genre.FANTASY)
        self.assertEqual(params.difficulty, Difficulty.MEDIUM)
        self.assertEqual(params.characters, [])
        self.assertEqual(params.additional_prompt, "")

    def test_accepts_enum_values_as_strings(self):
        params = GenerationParameters(genre="sci-fi", difficulty="legendary", setting="Derelict station")

        self.assertEqual(params.genre, Genre.SCI_FI)
        self.assertEqual(params.difficulty, Difficulty.LEGENDARY)

    def test_unknown_genre_is_rejected(self):
        with self.assertRaises(ValidationError):
            GenerationParameters(genre="romance", setting="Paris")

    def test_empty_setting_is_allowed_until_generation(self):
        params = GenerationParameters(setting="   ")

        self.assertEqual(params.setting, "   ")


class TestStory(unittest.TestCase):
    def _story(self, **overrides):
        fields = {
            "title": "Dragon's Lair",
            "content": "First paragraph.\n\nSecond paragraph.\n\n\n\nThird paragraph.\n",
            "genre": "fantasy",
            "difficulty": "hard",
            "setting": "Mountain cave",
            "characters": ["Brave knight"],
        }
        fields.update(overrides)
        return Story(**fields)

    def test_new_story_is_unsaved(self):
        story = self._story()

        self.assertFalse(story.is_saved)
        self.assertIsNone(story.created_date)
        self.assertEqual(story.tags, [])

    def test_paragraphs_split_on_blank_lines(self):
        story = self._story()

        self.assertEqual(
            story.paragraphs,
            ["First paragraph.", "Second paragraph.", "Third paragraph."],
        )

    def test_default_tags_are_genre_and_difficulty(self):
        story = self._story(genre="sci-fi", difficulty="easy")

        self.assertEqual(story.default_tags(), ["sci-fi", "easy"])


if __name__ == "__main__":
    unittest.main()
