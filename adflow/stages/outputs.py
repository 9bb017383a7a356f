"""Terminal stages: image-generation prompts or video shooting scripts."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping, Sequence

from pydantic import Field

from ..errors import InvariantViolation
from ..schema import ResponseShape
from ..state import WorkflowStage, WorkflowState
from ..types import AdConcept, ImageGenPrompt, StageKind, VideoScript
from .base import Stage, concepts_json
from .concepts import CONCEPT_COUNT

IMAGE_PROMPTS_SHAPE = ResponseShape(
    name="image prompts",
    annotation=Annotated[List[ImageGenPrompt], Field(min_length=CONCEPT_COUNT, max_length=CONCEPT_COUNT)],
)

VIDEO_SCRIPTS_SHAPE = ResponseShape(
    name="video scripts",
    annotation=Annotated[List[VideoScript], Field(min_length=CONCEPT_COUNT, max_length=CONCEPT_COUNT)],
)


def _mentions(text: str, fragment: str) -> bool:
    return fragment.strip().lower() in text.lower()


def _text_elements(concepts: Sequence[AdConcept]) -> str:
    return "\n".join(
        f'- Concept {idx}: hook line "{concept.hook_line}", CTA "{concept.cta}"'
        for idx, concept in enumerate(concepts, start=1)
    )


class TerminalStage(Stage):
    """Shared preconditions of the two branch-selected terminal stages."""

    entry_stages = frozenset({WorkflowStage.COPY_CHOSEN, WorkflowStage.OUTPUTS_READY})
    next_stage = WorkflowStage.OUTPUTS_READY

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        super().check_ready(state, params)
        if state.branch.terminal_stage is not self.kind:
            raise InvariantViolation(
                f"Stage {self.name} does not apply to {state.branch.concept_label} runs"
            )
        if len(state.copy_concepts) != CONCEPT_COUNT:
            raise InvariantViolation(f"Final outputs need exactly {CONCEPT_COUNT} concepts with chosen copy")

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "format": state.branch.advert_format.value,
            "concepts": [concept.to_wire() for concept in state.copy_concepts],
            "price_tag": state.inputs.price_tag.strip(),
        }

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        return self.kind.value


class GenerateImagePrompts(TerminalStage):
    """Two image prompts that render the chosen hook and CTA on the image."""

    kind = StageKind.IMAGE_PROMPTS

    def shape(self, state: WorkflowState) -> ResponseShape:
        return IMAGE_PROMPTS_SHAPE

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        price_tag = context["price_tag"]
        if price_tag:
            price_rule = (
                "The prompt MUST also ask for a visually appealing price tag sticker reading "
                f'"{price_tag}" in the top-right corner, matching the ad aesthetic.'
            )
        else:
            price_rule = "No price tag was provided; do not add one."
        return {
            "concepts_json": concepts_json(state.copy_concepts),
            "price_tag": price_tag or "Not provided",
            "text_elements": _text_elements(state.copy_concepts),
            "price_tag_rule": price_rule,
        }

    def content_problems(self, value: Any, state: WorkflowState, params: Mapping[str, Any]) -> list[str]:
        problems: list[str] = []
        price_tag = state.inputs.price_tag.strip()
        for idx, (prompt, concept) in enumerate(zip(value, state.copy_concepts)):
            if prompt.cta != concept.cta:
                problems.append(f"image prompt {idx} cta {prompt.cta!r} differs from concept CTA {concept.cta!r}")
            if not _mentions(prompt.prompt, concept.hook_line):
                problems.append(f"image prompt {idx} does not render the hook line {concept.hook_line!r}")
            if not _mentions(prompt.prompt, concept.cta):
                problems.append(f"image prompt {idx} does not render the CTA {concept.cta!r}")
            if price_tag and not _mentions(prompt.prompt, price_tag):
                problems.append(f"image prompt {idx} does not render the price tag {price_tag!r}")
        return problems


class GenerateVideoScripts(TerminalStage):
    """Two shot lists whose final shot is the end card."""

    kind = StageKind.VIDEO_SCRIPTS

    def shape(self, state: WorkflowState) -> ResponseShape:
        return VIDEO_SCRIPTS_SHAPE

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        return {
            "concepts_json": concepts_json(state.copy_concepts),
            "text_elements": _text_elements(state.copy_concepts),
        }

    def content_problems(self, value: Any, state: WorkflowState, params: Mapping[str, Any]) -> list[str]:
        problems: list[str] = []
        for idx, (script, concept) in enumerate(zip(value, state.copy_concepts)):
            if script.cta != concept.cta:
                problems.append(f"video script {idx} cta {script.cta!r} differs from concept CTA {concept.cta!r}")
            graphics = script.end_card.graphics
            if not _mentions(graphics, concept.hook_line):
                problems.append(f"video script {idx} end card does not show the hook line {concept.hook_line!r}")
            if not _mentions(graphics, concept.cta):
                problems.append(f"video script {idx} end card does not show the CTA {concept.cta!r}")
        return problems
