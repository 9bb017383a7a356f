"""Tests for parsing provider output against stage shapes."""

from __future__ import annotations

import json
import unittest

from adflow.errors import InvalidProviderResponse
from adflow.schema import ResponseShape, parse_response, strip_code_fence
from adflow.stages.concepts import CONCEPTS_SHAPE
from adflow.stages.copy_options import COPY_OPTIONS_SHAPE
from adflow.stages.styles import STYLES_SHAPE
from adflow.types import AdConcept


def _styles(count: int) -> list[dict]:
    return [{"title": f"Style {idx}", "summary": f"Summary {idx}"} for idx in range(count)]


def _concept(video: bool = False, **overrides) -> dict:
    specs = {
        "camera": "Sony FX3",
        "lenses": "35mm",
        "angles": "Eye level",
        "specs": "4K",
        "mood": "Warm",
    }
    concept = {
        "optionName": "Morning Ritual",
        "conceptSummary": "The product at the centre of a calm breakfast.",
        "shootSetup": "Kitchen counter, window light.",
        "technicalSpecs": specs,
        "stylingNotes": "Linen, ceramics.",
        "postProduction": "Warm grade.",
        "hookLine": "Start slow.",
        "adCopy": "Your mornings, upgraded.",
        "cta": "Learn More",
        "trendReasoning": "Slow-living content is trending.",
        "format": "Still Image",
    }
    if video:
        specs.update({"cameraMovement": "Dolly in", "editingStyle": "Match cuts", "soundDesign": "Foley"})
        concept.update({"format": "Short Video", "videoDuration": "8 seconds"})
    concept.update(overrides)
    return concept


class ParseResponseTest(unittest.TestCase):
    """Covers the shared provider-output validator."""

    def test_accepts_code_fenced_json(self) -> None:
        raw = "```json\n" + json.dumps(_styles(5)) + "\n```"
        styles = parse_response(raw, STYLES_SHAPE)
        self.assertEqual(len(styles), 5)
        self.assertEqual(styles[0].title, "Style 0")

    def test_rejects_text_that_is_not_json(self) -> None:
        with self.assertRaises(InvalidProviderResponse) as ctx:
            parse_response("{not valid json", STYLES_SHAPE)
        self.assertEqual(ctx.exception.kind, "InvalidProviderResponse")
        self.assertEqual(ctx.exception.raw_text, "{not valid json")
        self.assertIn("not valid JSON", ctx.exception.errors[0])

    def test_rejects_wrong_cardinality(self) -> None:
        for count in (4, 6):
            with self.subTest(count=count), self.assertRaises(InvalidProviderResponse):
                parse_response(json.dumps(_styles(count)), STYLES_SHAPE)

    def test_rejects_missing_required_field(self) -> None:
        styles = _styles(5)
        del styles[3]["summary"]
        with self.assertRaises(InvalidProviderResponse) as ctx:
            parse_response(json.dumps(styles), STYLES_SHAPE)
        self.assertTrue(any("summary" in error for error in ctx.exception.errors))

    def test_rejects_empty_response(self) -> None:
        for raw in (None, "", "   \n"):
            with self.subTest(raw=raw), self.assertRaises(InvalidProviderResponse):
                parse_response(raw, STYLES_SHAPE)

    def test_text_shape_returns_stripped_text(self) -> None:
        shape = ResponseShape(name="notes")
        self.assertEqual(parse_response("  Add fresh citrus.\n", shape), "Add fresh citrus.")
        self.assertIsNone(shape.json_schema())

    def test_copy_options_need_five_of_each(self) -> None:
        payload = {"hooks": ["a", "b", "c", "d", "e"], "ctas": ["Learn More"] * 4}
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps(payload), COPY_OPTIONS_SHAPE)

    def test_strip_code_fence_leaves_plain_text(self) -> None:
        self.assertEqual(strip_code_fence('[{"a": 1}]'), '[{"a": 1}]')

    def test_closing_fence_on_payload_line(self) -> None:
        raw = "```json\n" + json.dumps(_styles(5)) + "```"
        self.assertEqual(len(parse_response(raw, STYLES_SHAPE)), 5)
        self.assertEqual(strip_code_fence('```\n{"a": 1}```'), '{"a": 1}')

    def test_blank_copy_options_are_rejected(self) -> None:
        payload = {"hooks": [" "] * 5, "ctas": [""] * 5}
        with self.assertRaises(InvalidProviderResponse) as ctx:
            parse_response(json.dumps(payload), COPY_OPTIONS_SHAPE)
        self.assertTrue(any(error.startswith("hooks.0") for error in ctx.exception.errors))

    def test_blank_style_title_is_rejected(self) -> None:
        styles = _styles(5)
        styles[2]["title"] = "   "
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps(styles), STYLES_SHAPE)

    def test_text_fields_are_trimmed(self) -> None:
        styles = _styles(5)
        styles[0]["title"] = "  Flat lay \n"
        self.assertEqual(parse_response(json.dumps(styles), STYLES_SHAPE)[0].title, "Flat lay")


class ConceptVariantTest(unittest.TestCase):
    """The technicalSpecs variant must match the concept format."""

    def test_still_concept_has_no_video_keys(self) -> None:
        concepts = parse_response(json.dumps([_concept(), _concept()]), CONCEPTS_SHAPE)
        wire = concepts[0].to_wire()
        self.assertFalse(concepts[0].is_video)
        self.assertNotIn("cameraMovement", wire["technicalSpecs"])
        self.assertNotIn("videoDuration", wire)

    def test_video_concept_round_trips_camel_case(self) -> None:
        concept = AdConcept.model_validate(_concept(video=True))
        wire = concept.to_wire()
        self.assertTrue(concept.is_video)
        self.assertEqual(wire["technicalSpecs"]["soundDesign"], "Foley")
        self.assertEqual(wire["videoDuration"], "8 seconds")

    def test_concept_with_blank_field_is_rejected(self) -> None:
        for field, value in (("hookLine", ""), ("cta", "  ")):
            with self.subTest(field=field), self.assertRaises(InvalidProviderResponse):
                parse_response(json.dumps([_concept(**{field: value}), _concept()]), CONCEPTS_SHAPE)
        blank_mood = _concept()
        blank_mood["technicalSpecs"]["mood"] = ""
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps([blank_mood, _concept()]), CONCEPTS_SHAPE)

    def test_still_concept_with_video_specs_is_rejected(self) -> None:
        bad = _concept()
        bad["technicalSpecs"]["cameraMovement"] = "Dolly in"
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps([bad, _concept()]), CONCEPTS_SHAPE)

    def test_video_concept_missing_video_specs_is_rejected(self) -> None:
        bad = _concept(video=True)
        del bad["technicalSpecs"]["soundDesign"]
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps([bad, _concept(video=True)]), CONCEPTS_SHAPE)

    def test_still_concept_with_duration_is_rejected(self) -> None:
        with self.assertRaises(InvalidProviderResponse):
            parse_response(json.dumps([_concept(videoDuration="8s"), _concept()]), CONCEPTS_SHAPE)

    def test_schema_uses_wire_names(self) -> None:
        schema = json.dumps(CONCEPTS_SHAPE.json_schema())
        self.assertIn("hookLine", schema)
        self.assertIn("technicalSpecs", schema)


if __name__ == "__main__":
    unittest.main()
