"""Stage abstractions shared by the concrete generation steps."""

from __future__ import annotations

import json
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

from ..errors import InvalidProviderResponse, InvariantViolation
from ..schema import ResponseShape, parse_response
from ..services.base import Capability, ProviderRequest
from ..state import WorkflowStage, WorkflowState
from ..types import StageKind
from ..utils.cta import cta_violations
from ..utils.prompts import load_prompt


class Stage:
    """One schema-validated provider call plus its acceptance logic.

    Subclasses declare where they may run from, which template they render
    and what shape their output must have; the workflow owns the state
    transitions around them.
    """

    kind: ClassVar[StageKind]
    entry_stages: ClassVar[FrozenSet[WorkflowStage]]
    next_stage: ClassVar[Optional[WorkflowStage]] = None
    capability: ClassVar[Capability] = Capability.STRUCTURED_JSON
    sends_image: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return self.kind.value

    def check_ready(self, state: WorkflowState, params: Mapping[str, Any]) -> None:
        """Raise ``InvariantViolation`` when the stage cannot run from ``state``."""
        if state.stage not in self.entry_stages:
            allowed = ", ".join(sorted(stage.value for stage in self.entry_stages))
            raise InvariantViolation(
                f"Stage {self.name} cannot run from {state.stage.value}; expected one of: {allowed}"
            )
        if self.sends_image and state.inputs.image is None:
            raise InvariantViolation(f"Stage {self.name} requires a product image")
        if state.branch is None:
            raise InvariantViolation(f"Stage {self.name} requires an advert format")

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def shape(self, state: WorkflowState) -> ResponseShape:
        raise NotImplementedError

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Structured inputs for the request, shared by the template and providers."""
        raise NotImplementedError

    def template_variables(self, context: Mapping[str, Any], state: WorkflowState) -> Dict[str, Any]:
        """Placeholder values for the template; defaults to the context itself."""
        return dict(context)

    def build_request(self, state: WorkflowState, params: Mapping[str, Any]) -> ProviderRequest:
        """Assemble the provider request for ``state``."""
        self.check_ready(state, params)
        context = self.build_context(state, params)
        instruction = load_prompt(
            self.template_name(state, params), self.template_variables(context, state)
        ).strip()
        return ProviderRequest(
            task=self.name,
            instruction=instruction,
            image=state.inputs.image if self.sends_image else None,
            schema=self.shape(state).json_schema(),
            capability=self.capability,
            context=context,
        )

    def accept(self, raw_text: Optional[str], state: WorkflowState, params: Mapping[str, Any]) -> Any:
        """Parse ``raw_text`` and apply stage-specific content checks."""
        value = parse_response(raw_text, self.shape(state))
        problems = self.content_problems(value, state, params)
        if problems:
            raise InvalidProviderResponse(
                f"The AI returned an invalid response for {self.shape(state).name}",
                errors=problems,
                raw_text=raw_text,
            )
        return value

    def content_problems(self, value: Any, state: WorkflowState, params: Mapping[str, Any]) -> list[str]:
        """Contract checks beyond the schema; empty when the value is acceptable."""
        return []


def cta_summary(state: WorkflowState) -> str:
    details = state.inputs.cta_details
    parts = []
    if details.has_url:
        parts.append(f"website {details.url.strip()}")
    if details.has_whatsapp:
        parts.append(f"WhatsApp {details.whatsapp.strip()}")
    return ", ".join(parts) or "none provided"


def check_ctas(ctas, state: WorkflowState) -> list[str]:
    """Collect precedence-rule violations for every CTA in ``ctas``."""
    problems: list[str] = []
    for cta in ctas:
        problems.extend(cta_violations(cta, state.inputs.cta_details))
    return problems


def concepts_json(concepts) -> str:
    """Numbered JSON dump of concepts, as embedded in downstream prompts."""
    return "\n".join(
        f"{idx}. Concept: {json.dumps(concept.to_wire(), ensure_ascii=False, indent=2)}"
        for idx, concept in enumerate(concepts, start=1)
    )


def or_placeholder(value: Optional[str], placeholder: str = "Not provided") -> str:
    text = (value or "").strip()
    return text or placeholder
