"""Immutable workflow state values."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .branch import Branch
from .types import (
    AdConcept,
    AdvertStyle,
    ConceptIdea,
    HooksAndCtas,
    ImageGenPrompt,
    StageKind,
    VideoScript,
    WorkflowInputs,
)


class WorkflowStage(str, Enum):
    """Stable states of a run, in forward order."""

    IDLE = "Idle"
    TYPE_SELECTED = "TypeSelected"
    STYLES_READY = "StylesReady"
    STYLE_CHOSEN = "StyleChosen"
    IDEAS_READY = "IdeasReady"
    IDEAS_CHOSEN = "IdeasChosen"
    CONCEPTS_READY = "ConceptsReady"
    COPY_OPTIONS_READY = "CopyOptionsReady"
    COPY_CHOSEN = "CopyChosen"
    OUTPUTS_READY = "OutputsReady"

    @property
    def order(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = list(WorkflowStage)

# Result fields and the stage that produces them; moving to a stage clears
# every field owned by a later stage.
_FIELD_OWNERS: Dict[str, WorkflowStage] = {
    "styles": WorkflowStage.STYLES_READY,
    "chosen_style": WorkflowStage.STYLE_CHOSEN,
    "ideas": WorkflowStage.IDEAS_READY,
    "chosen_ideas": WorkflowStage.IDEAS_CHOSEN,
    "concepts": WorkflowStage.CONCEPTS_READY,
    "final_concepts": WorkflowStage.COPY_OPTIONS_READY,
    "copy_options": WorkflowStage.COPY_OPTIONS_READY,
    "copy_concepts": WorkflowStage.COPY_CHOSEN,
    "image_prompts": WorkflowStage.OUTPUTS_READY,
    "video_scripts": WorkflowStage.OUTPUTS_READY,
}


@dataclass(frozen=True, slots=True)
class StageError:
    """Failure recorded on the state after a rollback."""

    kind: str
    message: str
    stage: StageKind


@dataclass(frozen=True, slots=True)
class WorkflowState:
    """Snapshot of one run: current stage, inputs and upstream results."""

    stage: WorkflowStage = WorkflowStage.IDLE
    version: int = 0
    inputs: WorkflowInputs = field(default_factory=WorkflowInputs)
    branch: Optional[Branch] = None
    styles: Tuple[AdvertStyle, ...] = ()
    chosen_style: Optional[AdvertStyle] = None
    ideas: Tuple[ConceptIdea, ...] = ()
    chosen_ideas: Tuple[ConceptIdea, ...] = ()
    concepts: Tuple[AdConcept, ...] = ()
    final_concepts: Tuple[AdConcept, ...] = ()
    copy_options: Optional[HooksAndCtas] = None
    copy_concepts: Tuple[AdConcept, ...] = ()
    image_prompts: Tuple[ImageGenPrompt, ...] = ()
    video_scripts: Tuple[VideoScript, ...] = ()
    pending: Optional[StageKind] = None
    error: Optional[StageError] = None

    @property
    def is_terminal(self) -> bool:
        return self.stage is WorkflowStage.OUTPUTS_READY

    def bump(self, **changes: Any) -> "WorkflowState":
        """Return a copy with ``changes`` applied and a new version."""
        return replace(self, version=self.version + 1, **changes)

    def moved_to(self, stage: WorkflowStage, **outputs: Any) -> "WorkflowState":
        """Enter ``stage`` with ``outputs``, discarding results of later stages."""
        cleared = {
            name: _default_of(name)
            for name, owner in _FIELD_OWNERS.items()
            if owner.order > stage.order
        }
        cleared.update(outputs)
        return self.bump(stage=stage, pending=None, error=None, **cleared)


def _default_of(name: str) -> Any:
    for item in fields(WorkflowState):
        if item.name == name:
            return item.default
    raise KeyError(name)


__all__ = ["StageError", "WorkflowStage", "WorkflowState"]
