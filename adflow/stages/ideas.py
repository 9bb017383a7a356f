"""Stage producing high-level concept ideas for the chosen style."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping

from pydantic import Field

from ..errors import InvariantViolation
from ..schema import ResponseShape
from ..state import WorkflowStage, WorkflowState
from ..types import ConceptIdea, StageKind
from .base import Stage, cta_summary, or_placeholder

IDEA_COUNT = 5

IDEAS_SHAPE = ResponseShape(
    name="concept ideas",
    annotation=Annotated[List[ConceptIdea], Field(min_length=IDEA_COUNT, max_length=IDEA_COUNT)],
)


class GenerateIdeas(Stage):
    """Five ConceptIdea, either enhancing the user's draft or invented from the brief.

    The template choice is the content contract: with a draft the provider is
    asked to enhance that idea into variations, never to replace it.
    """

    kind = StageKind.IDEAS
    entry_stages = frozenset({WorkflowStage.STYLE_CHOSEN, WorkflowStage.IDEAS_READY})
    next_stage = WorkflowStage.IDEAS_READY

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        super().check_ready(state, params)
        if state.chosen_style is None:
            raise InvariantViolation("Please ensure an image, advert type, and a trending style are selected.")

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        if state.inputs.user_concept.strip():
            return "concept_ideas_enhance"
        return "concept_ideas_invent"

    def shape(self, state: WorkflowState) -> ResponseShape:
        return IDEAS_SHAPE

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        inputs = state.inputs
        return {
            "format": state.branch.advert_format.value,
            "format_phrase": state.branch.format_phrase,
            "style": state.chosen_style.to_wire(),
            "user_concept": inputs.user_concept.strip(),
            "brand_guidelines": inputs.brand_guidelines.strip(),
            "cta_details": inputs.cta_details.to_wire(),
        }

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        style = state.chosen_style
        core_instruction = (
            f"Generate {IDEA_COUNT} distinct, highly trending, attention-grabbing ad concept IDEAS for a "
            f"{context['format_phrase']}, all aligned with the chosen ad style: "
            f'"{style.title}: {style.summary}". Keep them high-level summaries, not full plans, and '
            "focus on what is current, viral and proven to earn a high CTR for this product category."
        )
        return {
            "format_phrase": context["format_phrase"],
            "core_instruction": core_instruction,
            "style_title": style.title,
            "user_concept": context["user_concept"],
            "brand_guidelines": or_placeholder(context["brand_guidelines"], "N/A"),
            "cta_summary": cta_summary(state),
        }
