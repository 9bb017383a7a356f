"""Stages that build and refine the two full ad concepts."""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Mapping

from pydantic import Field

from ..errors import InvariantViolation
from ..schema import ResponseShape
from ..services.base import Capability
from ..state import WorkflowStage, WorkflowState
from ..types import AdConcept, StageKind
from ..utils.cta import cta_instruction
from .base import Stage, check_ctas, or_placeholder

CONCEPT_COUNT = 2

CONCEPTS_SHAPE = ResponseShape(
    name="full concepts",
    annotation=Annotated[List[AdConcept], Field(min_length=CONCEPT_COUNT, max_length=CONCEPT_COUNT)],
)

STYLING_NOTES_SHAPE = ResponseShape(name="styling notes")


class ExpandConcepts(Stage):
    """Two chosen ideas in, two complete AdConcept of the run's format out."""

    kind = StageKind.CONCEPTS
    entry_stages = frozenset({WorkflowStage.IDEAS_CHOSEN, WorkflowStage.CONCEPTS_READY})
    next_stage = WorkflowStage.CONCEPTS_READY

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        super().check_ready(state, params)
        if len(state.chosen_ideas) != CONCEPT_COUNT:
            raise InvariantViolation(
                f"Exactly {CONCEPT_COUNT} concept ideas must be chosen, got {len(state.chosen_ideas)}"
            )
        if state.chosen_style is None:
            raise InvariantViolation("A trending style must be chosen before expanding concepts")

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        return "full_concepts"

    def shape(self, state: WorkflowState) -> ResponseShape:
        return CONCEPTS_SHAPE

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        branch = state.branch
        inputs = state.inputs
        return {
            "format": branch.advert_format.value,
            "format_phrase": branch.format_phrase,
            "concept_label": branch.concept_label,
            "is_video": branch.is_video,
            "style": state.chosen_style.to_wire(),
            "ideas": [idea.to_wire() for idea in state.chosen_ideas],
            "user_concept": inputs.user_concept.strip(),
            "brand_guidelines": inputs.brand_guidelines.strip(),
            "cta_details": inputs.cta_details.to_wire(),
        }

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        branch = state.branch
        details = state.inputs.cta_details
        chosen = "\n".join(
            f'{idx}. Title: "{idea["title"]}", Summary: "{idea["summary"]}"'
            for idx, idea in enumerate(context["ideas"], start=1)
        )
        return {
            "format_phrase": branch.format_phrase,
            "budget_phrase": branch.budget_phrase,
            "style_title": state.chosen_style.title,
            "style_summary": state.chosen_style.summary,
            "cta_url": or_placeholder(details.url),
            "cta_whatsapp": or_placeholder(details.whatsapp),
            "brand_guidelines": or_placeholder(context["brand_guidelines"], "N/A"),
            "chosen_ideas": chosen,
            "cta_rule": cta_instruction(details),
            "setup_hint": branch.setup_hint,
            "concept_label": branch.concept_label,
        }

    def content_problems(self, value: Any, state: WorkflowState, params: Mapping[str, Any]) -> list[str]:
        problems: list[str] = []
        expected = state.branch.concept_label
        for idx, concept in enumerate(value):
            if concept.format != expected:
                problems.append(f"concept {idx} has format {concept.format!r}, expected {expected!r}")
        problems.extend(check_ctas((concept.cta for concept in value), state))
        return problems


class EnhanceStylingNotes(Stage):
    """Replacement text for one working concept's ``stylingNotes``.

    Runs without changing the workflow stage; the caller writes the result
    through the editable store.
    """

    kind = StageKind.STYLING_NOTES
    entry_stages = frozenset({WorkflowStage.CONCEPTS_READY})
    capability = Capability.TEXT
    sends_image = False

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        super().check_ready(state, params)
        if not isinstance(params.get("concept"), AdConcept):
            raise InvariantViolation("Styling enhancement needs the working concept to enhance")

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        return "styling_notes"

    def shape(self, state: WorkflowState) -> ResponseShape:
        return STYLING_NOTES_SHAPE

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        return {"index": params.get("index"), "concept": params["concept"].to_wire()}

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        return {"concept_json": json.dumps(context["concept"], ensure_ascii=False, indent=2)}
