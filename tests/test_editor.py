"""Tests for the editable concept store."""

from __future__ import annotations

import unittest

from adflow.editor import ConceptField, EditableArtifactStore
from adflow.errors import InvariantViolation
from adflow.types import AdConcept

from test_schema import _concept


def _store(video: bool = False) -> tuple[list[AdConcept], EditableArtifactStore]:
    originals = [AdConcept.model_validate(_concept(video=video)) for _ in range(2)]
    return originals, EditableArtifactStore(originals)


class EditableArtifactStoreTest(unittest.TestCase):
    """Field edits, enhancement and the finalize lock."""

    def test_requires_exactly_two_concepts(self) -> None:
        concept = AdConcept.model_validate(_concept())
        with self.assertRaises(InvariantViolation):
            EditableArtifactStore([concept])

    def test_set_field_updates_working_copy_only(self) -> None:
        originals, store = _store()
        updated = store.set_field(0, "technicalSpecs.mood", "Calm and airy")
        self.assertEqual(updated.technical_specs.mood, "Calm and airy")
        self.assertEqual(store.get(0).technical_specs.mood, "Calm and airy")
        self.assertEqual(store.get(1).technical_specs.mood, "Warm")
        self.assertEqual(originals[0].technical_specs.mood, "Warm")

    def test_edit_is_idempotent(self) -> None:
        _, store = _store()
        first = store.set_field(1, ConceptField.HOOK_LINE, "Wake up to this.")
        second = store.set_field(1, ConceptField.HOOK_LINE, "Wake up to this.")
        self.assertEqual(first, second)

    def test_nested_spec_edit_is_idempotent(self) -> None:
        _, store = _store()
        first = store.set_field(0, "technicalSpecs.mood", "calm")
        second = store.set_field(0, "technicalSpecs.mood", "calm")
        self.assertEqual(first, second)
        self.assertEqual(store.snapshot()[0], first)
        self.assertEqual(store.get(1).technical_specs.mood, "Warm")

    def test_blank_edit_is_rejected(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(0, ConceptField.HOOK_LINE, "   ")
        self.assertEqual(store.get(0).hook_line, "Start slow.")

    def test_unknown_path_is_rejected(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(0, "technicalSpecs.iso", "800")

    def test_video_fields_rejected_on_still_concepts(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(0, ConceptField.CAMERA_MOVEMENT, "Whip pan")
        with self.assertRaises(InvariantViolation):
            store.set_field(0, ConceptField.VIDEO_DURATION, "10 seconds")

    def test_video_fields_editable_on_video_concepts(self) -> None:
        _, store = _store(video=True)
        updated = store.set_field(0, "technicalSpecs.editingStyle", "Speed ramps")
        self.assertEqual(updated.technical_specs.editing_style, "Speed ramps")
        self.assertTrue(updated.is_video)

    def test_format_cannot_be_edited(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(0, "format", "Short Video")

    def test_non_text_value_is_rejected(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(0, ConceptField.CTA, 42)  # type: ignore[arg-type]

    def test_index_out_of_range(self) -> None:
        _, store = _store()
        with self.assertRaises(InvariantViolation):
            store.set_field(2, ConceptField.CTA, "Learn More")

    def test_enhance_replaces_styling_notes(self) -> None:
        _, store = _store()
        store.enhance(1, "Brushed brass tray and citrus.")
        self.assertEqual(store.get(1).styling_notes, "Brushed brass tray and citrus.")

    def test_finalize_returns_values_and_locks(self) -> None:
        _, store = _store()
        store.set_field(0, ConceptField.OPTION_NAME, "Renamed")
        final = store.finalize()
        self.assertTrue(store.finalized)
        self.assertEqual(final[0].option_name, "Renamed")
        with self.assertRaises(InvariantViolation):
            store.set_field(0, ConceptField.OPTION_NAME, "Again")
        self.assertEqual(final[0].option_name, "Renamed")


if __name__ == "__main__":
    unittest.main()
