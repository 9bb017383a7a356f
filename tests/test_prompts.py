"""Tests for the prompt template loader."""

from __future__ import annotations

import unittest

from adflow.utils.prompts import PROMPTS_DIR, load_prompt, placeholders


class LoadPromptTest(unittest.TestCase):
    """Strict rendering of the packaged templates."""

    def test_every_template_is_packaged(self) -> None:
        names = {path.stem for path in PROMPTS_DIR.glob("*.txt")}
        self.assertIn("advert_styles", names)
        self.assertIn("video_scripts", names)

    def test_renders_all_placeholders(self) -> None:
        text = load_prompt("styling_notes", {"concept_json": '{"optionName": "Dawn"}', "unused": 1})
        self.assertIn('"optionName": "Dawn"', text)
        self.assertNotIn("{{", text)

    def test_none_renders_as_empty_text(self) -> None:
        self.assertNotIn("None", load_prompt("styling_notes", {"concept_json": None}))

    def test_missing_value_is_an_error(self) -> None:
        self.assertEqual(placeholders("styling_notes"), frozenset({"concept_json"}))
        with self.assertRaises(KeyError) as ctx:
            load_prompt("styling_notes")
        self.assertIn("concept_json", str(ctx.exception))

    def test_unknown_template(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_prompt("no_such_template")


if __name__ == "__main__":
    unittest.main()
