"""Editable working copies of the two ad concepts."""

from __future__ import annotations

from enum import Enum
from typing import List, Sequence, Tuple, Union

from pydantic import ValidationError

from .errors import InvariantViolation
from .types import AdConcept


class ConceptField(str, Enum):
    """Leaf fields of an AdConcept a user may edit, addressed by dotted path."""

    OPTION_NAME = "optionName"
    CONCEPT_SUMMARY = "conceptSummary"
    SHOOT_SETUP = "shootSetup"
    STYLING_NOTES = "stylingNotes"
    POST_PRODUCTION = "postProduction"
    HOOK_LINE = "hookLine"
    AD_COPY = "adCopy"
    CTA = "cta"
    TREND_REASONING = "trendReasoning"
    VIDEO_DURATION = "videoDuration"
    CAMERA = "technicalSpecs.camera"
    LENSES = "technicalSpecs.lenses"
    ANGLES = "technicalSpecs.angles"
    SPECS = "technicalSpecs.specs"
    MOOD = "technicalSpecs.mood"
    CAMERA_MOVEMENT = "technicalSpecs.cameraMovement"
    EDITING_STYLE = "technicalSpecs.editingStyle"
    SOUND_DESIGN = "technicalSpecs.soundDesign"

    @property
    def path(self) -> Tuple[str, ...]:
        return tuple(self.value.split("."))

    @property
    def video_only(self) -> bool:
        return self in _VIDEO_ONLY

    @classmethod
    def parse(cls, field: Union["ConceptField", str]) -> "ConceptField":
        """Resolve a dotted path such as ``"technicalSpecs.mood"``."""
        try:
            return cls(field)
        except ValueError:
            raise InvariantViolation(f"Unknown or non-editable concept field: {field!r}") from None


_VIDEO_ONLY = frozenset(
    {
        ConceptField.VIDEO_DURATION,
        ConceptField.CAMERA_MOVEMENT,
        ConceptField.EDITING_STYLE,
        ConceptField.SOUND_DESIGN,
    }
)

FieldRef = Union[ConceptField, str]


class EditableArtifactStore:
    """Holds mutable working copies of the concepts until they are finalized.

    The originals handed in are never touched; ``finalize`` returns value
    copies and locks the store for the rest of the run.
    """

    def __init__(self, originals: Sequence[AdConcept]) -> None:
        if len(originals) != 2:
            raise InvariantViolation(f"The editor holds exactly 2 concepts, got {len(originals)}")
        self._working: List[AdConcept] = [concept.model_copy(deep=True) for concept in originals]
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def __len__(self) -> int:
        return len(self._working)

    def get(self, index: int) -> AdConcept:
        """Return the current working copy at ``index``."""
        self._check_index(index)
        return self._working[index]

    def snapshot(self) -> Tuple[AdConcept, ...]:
        """Value copies of the current working state."""
        return tuple(concept.model_copy(deep=True) for concept in self._working)

    def set_field(self, index: int, field: FieldRef, value: str) -> AdConcept:
        """Replace one leaf of concept ``index``; intermediate containers are created on demand."""
        if self._finalized:
            raise InvariantViolation("Concepts are finalized; edits are no longer accepted")
        self._check_index(index)
        target = ConceptField.parse(field)
        if not isinstance(value, str):
            raise InvariantViolation(f"Concept field {target.value} takes text, got {type(value).__name__}")

        concept = self._working[index]
        if target.video_only and not concept.is_video:
            raise InvariantViolation(f"{target.value} only exists on Short Video concepts")

        data = concept.to_wire()
        container = data
        *parents, leaf = target.path
        for key in parents:
            child = container.get(key)
            if not isinstance(child, dict):
                child = {}
                container[key] = child
            container = child
        container[leaf] = value

        try:
            updated = AdConcept.model_validate(data)
        except ValidationError as exc:
            raise InvariantViolation(f"Edit of {target.value} produced an invalid concept: {exc}") from exc
        self._working[index] = updated
        return updated

    def enhance(self, index: int, styling_notes: str) -> AdConcept:
        """Write generated styling notes through the regular edit path."""
        return self.set_field(index, ConceptField.STYLING_NOTES, styling_notes)

    def finalize(self) -> Tuple[AdConcept, ...]:
        """Lock the store and hand back the final values."""
        self._finalized = True
        return self.snapshot()

    def _check_index(self, index: int) -> None:
        if index not in range(len(self._working)):
            raise InvariantViolation(f"Concept index must be 0 or 1, got {index}")


__all__ = ["ConceptField", "EditableArtifactStore"]
