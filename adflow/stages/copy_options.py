"""Stage offering hook and CTA options for the finalized concepts."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from ..errors import InvariantViolation
from ..schema import ResponseShape
from ..state import WorkflowStage, WorkflowState
from ..types import HooksAndCtas, StageKind
from ..utils.cta import cta_instruction
from .base import Stage, check_ctas, or_placeholder
from .concepts import CONCEPT_COUNT

COPY_OPTIONS_SHAPE = ResponseShape(name="hooks and CTAs", annotation=HooksAndCtas)


class GenerateCopyOptions(Stage):
    """Five hooks and five CTAs in the requested copy language."""

    kind = StageKind.COPY_OPTIONS
    entry_stages = frozenset({WorkflowStage.CONCEPTS_READY, WorkflowStage.COPY_OPTIONS_READY})
    next_stage = WorkflowStage.COPY_OPTIONS_READY

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        super().check_ready(state, params)
        if len(params.get("concepts", ())) != CONCEPT_COUNT:
            raise InvariantViolation(f"Copy options need exactly {CONCEPT_COUNT} finalized concepts")

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        return "hooks_ctas"

    def shape(self, state: WorkflowState) -> ResponseShape:
        return COPY_OPTIONS_SHAPE

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "format": state.branch.advert_format.value,
            "concepts": [concept.to_wire() for concept in params["concepts"]],
            "cta_details": state.inputs.cta_details.to_wire(),
            "language": state.inputs.copy_language.strip() or "English",
        }

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        details = state.inputs.cta_details
        summaries = "\n".join(
            f"{idx}. {concept['optionName']}: {concept['conceptSummary']}"
            for idx, concept in enumerate(context["concepts"], start=1)
        )
        return {
            "language": context["language"],
            "concept_summaries": summaries,
            "cta_url": or_placeholder(details.url),
            "cta_whatsapp": or_placeholder(details.whatsapp),
            "cta_rule": cta_instruction(details),
        }

    def content_problems(self, value: Any, state: WorkflowState, params: Mapping[str, Any]) -> list[str]:
        return check_ctas(value.ctas, state)
