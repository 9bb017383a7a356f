"""Workflow state machine driving the staged ad generation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from uuid import uuid4

from .branch import select_branch
from .editor import EditableArtifactStore, FieldRef
from .errors import AdflowError, InvalidProviderResponse, InvariantViolation, ProviderTransportError
from .services.base import ContentProvider, ProviderRequest
from .stages.base import Stage
from .stages.concepts import CONCEPT_COUNT, EnhanceStylingNotes, ExpandConcepts
from .stages.copy_options import GenerateCopyOptions
from .stages.ideas import GenerateIdeas
from .stages.outputs import GenerateImagePrompts, GenerateVideoScripts
from .stages.styles import SuggestStyles
from .state import StageError, WorkflowStage, WorkflowState
from .types import (
    AdConcept,
    AdvertFormat,
    AdvertStyle,
    ConceptIdea,
    CtaDetails,
    ImagePayload,
    StageKind,
)
from .utils.run_logger import RunLogger


def default_stages() -> Tuple[Stage, ...]:
    """Every stage definition, in pipeline order."""
    return (
        SuggestStyles(),
        GenerateIdeas(),
        ExpandConcepts(),
        EnhanceStylingNotes(),
        GenerateCopyOptions(),
        GenerateImagePrompts(),
        GenerateVideoScripts(),
    )


@dataclass(frozen=True, slots=True)
class StageTicket:
    """Token for one in-flight stage; only applied while ``version`` is current."""

    kind: StageKind
    version: int
    origin: WorkflowStage
    request: ProviderRequest
    params: Mapping[str, Any] = field(default_factory=dict)


class Workflow:
    """Owns one run: its current ``WorkflowState`` and the editable concepts.

    Every operation returns the new state value. Stage failures roll the run
    back to the stage it was in before the call, record the error on the state
    and re-raise it; nothing is retried automatically.
    """

    def __init__(
        self,
        provider: ContentProvider,
        *,
        logger: Optional[RunLogger] = None,
        run_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._logger = logger
        self.run_id = run_id or new_run_id()
        self._timeout = timeout
        self._stages: Dict[StageKind, Stage] = {stage.kind: stage for stage in default_stages()}
        self._state = WorkflowState()
        self._editor: Optional[EditableArtifactStore] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def editor(self) -> EditableArtifactStore:
        """The editable store; available once concepts have been generated."""
        if self._editor is None:
            raise InvariantViolation("No concepts to edit yet; generate full concepts first")
        return self._editor

    def stage(self, kind: Union[StageKind, str]) -> Stage:
        return self._stages[StageKind(kind)]

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def load_image(self, image: ImagePayload) -> WorkflowState:
        """Start a fresh run for ``image``; text inputs are kept."""
        inputs = replace(self._state.inputs, image=image, advert_format=None)
        self._editor = None
        return self._set(WorkflowState(version=self._state.version + 1, inputs=inputs))

    def update_inputs(
        self,
        *,
        cta_details: Union[CtaDetails, Mapping[str, Any], None] = None,
        brand_guidelines: Optional[str] = None,
        user_concept: Optional[str] = None,
        copy_language: Optional[str] = None,
        price_tag: Optional[str] = None,
    ) -> WorkflowState:
        """Change free-form inputs; later stages read the latest values."""
        self._ensure_not_pending()
        changes: Dict[str, Any] = {}
        if cta_details is not None:
            changes["cta_details"] = (
                cta_details if isinstance(cta_details, CtaDetails) else CtaDetails.model_validate(cta_details)
            )
        for name, value in (
            ("brand_guidelines", brand_guidelines),
            ("user_concept", user_concept),
            ("copy_language", copy_language),
            ("price_tag", price_tag),
        ):
            if value is not None:
                changes[name] = value
        return self._set(self._state.bump(inputs=replace(self._state.inputs, **changes)))

    def select_format(self, advert_format: Union[AdvertFormat, str]) -> WorkflowState:
        """Fix the still/video branch for the rest of the run."""
        self._ensure_not_pending()
        if self._state.stage is not WorkflowStage.IDLE:
            raise InvariantViolation("The advert format is fixed for this run; reset the workflow to change it")
        if self._state.inputs.image is None:
            raise InvariantViolation("Upload a product image before choosing the advert format")
        branch = select_branch(advert_format)
        inputs = replace(self._state.inputs, advert_format=branch.advert_format)
        return self._set(self._state.moved_to(WorkflowStage.TYPE_SELECTED, branch=branch, inputs=inputs))

    def choose_style(self, choice: Union[int, AdvertStyle]) -> WorkflowState:
        self._ensure_stage(WorkflowStage.STYLES_READY, WorkflowStage.STYLE_CHOSEN)
        style = _pick(self._state.styles, choice, "style")
        return self._set(self._state.moved_to(WorkflowStage.STYLE_CHOSEN, chosen_style=style))

    def choose_ideas(self, choices: Sequence[Union[int, ConceptIdea]]) -> WorkflowState:
        """Pick exactly two distinct ideas to expand."""
        self._ensure_stage(WorkflowStage.IDEAS_READY, WorkflowStage.IDEAS_CHOSEN)
        if len(choices) != CONCEPT_COUNT:
            raise InvariantViolation(f"Select exactly {CONCEPT_COUNT} concept ideas, got {len(choices)}")
        picked = tuple(_pick(self._state.ideas, choice, "idea") for choice in choices)
        if picked[0] == picked[1]:
            raise InvariantViolation("Select two different concept ideas")
        return self._set(self._state.moved_to(WorkflowStage.IDEAS_CHOSEN, chosen_ideas=picked))

    def edit_concept(self, index: int, field: FieldRef, value: str) -> AdConcept:
        """Replace one field of working concept ``index``."""
        self._ensure_stage(WorkflowStage.CONCEPTS_READY)
        return self.editor.set_field(index, field, value)

    def choose_copy(self, selections: Optional[Sequence[Tuple[str, str]]] = None) -> WorkflowState:
        """Lock a (hook, cta) pair into each finalized concept.

        Without ``selections`` concept 0 takes the first option and concept 1
        the second, falling back to the concept's own copy.
        """
        self._ensure_stage(WorkflowStage.COPY_OPTIONS_READY, WorkflowStage.COPY_CHOSEN)
        options = self._state.copy_options
        concepts = self._state.final_concepts
        if selections is None:
            selections = [
                (
                    _option_at(options.hooks, idx) or concept.hook_line,
                    _option_at(options.ctas, idx) or concept.cta,
                )
                for idx, concept in enumerate(concepts)
            ]
        if len(selections) != len(concepts):
            raise InvariantViolation(f"Choose a hook and CTA for each of the {len(concepts)} concepts")

        chosen = []
        for concept, (hook, cta) in zip(concepts, selections):
            if hook not in options.hooks and hook != concept.hook_line:
                raise InvariantViolation(f"Hook {hook!r} is not one of the offered options")
            if cta not in options.ctas and cta != concept.cta:
                raise InvariantViolation(f"CTA {cta!r} is not one of the offered options")
            chosen.append(concept.model_copy(update={"hook_line": hook, "cta": cta}))
        return self._set(self._state.moved_to(WorkflowStage.COPY_CHOSEN, copy_concepts=tuple(chosen)))

    def reset(self, keep_image: bool = False) -> WorkflowState:
        """Discard all results; any in-flight stage result will be ignored."""
        inputs = replace(
            self._state.inputs,
            image=self._state.inputs.image if keep_image else None,
            advert_format=None,
        )
        self._editor = None
        return self._set(WorkflowState(version=self._state.version + 1, inputs=inputs))

    # ------------------------------------------------------------------
    # Stage operations
    # ------------------------------------------------------------------

    def generate_styles(self) -> WorkflowState:
        return self.execute(StageKind.STYLES)

    def generate_ideas(self) -> WorkflowState:
        return self.execute(StageKind.IDEAS)

    def generate_concepts(self) -> WorkflowState:
        return self.execute(StageKind.CONCEPTS)

    def enhance_styling(self, index: int) -> WorkflowState:
        return self.execute(StageKind.STYLING_NOTES, index=index)

    def generate_copy_options(self) -> WorkflowState:
        return self.execute(StageKind.COPY_OPTIONS)

    def generate_outputs(self) -> WorkflowState:
        """Run the terminal stage picked by the run's branch."""
        if self._state.branch is None:
            raise InvariantViolation("Choose an advert format first")
        return self.execute(self._state.branch.terminal_stage)

    def execute(self, kind: Union[StageKind, str], **params: Any) -> WorkflowState:
        """Run one stage synchronously against the provider."""
        ticket = self.begin(kind, **params)
        try:
            raw_text = self._provider.generate(ticket.request)
        except AdflowError as exc:
            if self.fail(ticket, exc):
                raise
            return self._state
        except Exception as exc:
            error = ProviderTransportError(f"Provider call for {ticket.kind.value} failed: {exc}")
            if self.fail(ticket, error):
                raise error from exc
            return self._state
        return self.complete(ticket, raw_text)

    async def execute_async(self, kind: Union[StageKind, str], **params: Any) -> WorkflowState:
        """Run one stage without blocking the event loop.

        The provider call runs in a worker thread under the configured
        timeout; if the run is reset while it is in flight, the late result is
        discarded.
        """
        ticket = self.begin(kind, **params)
        call = asyncio.to_thread(self._provider.generate, ticket.request)
        try:
            if self._timeout:
                raw_text = await asyncio.wait_for(call, timeout=self._timeout)
            else:
                raw_text = await call
        except asyncio.TimeoutError as exc:
            error = ProviderTransportError(
                f"Provider call for {ticket.kind.value} timed out after {self._timeout}s"
            )
            if self.fail(ticket, error):
                raise error from exc
            return self._state
        except asyncio.CancelledError:
            self.fail(ticket, ProviderTransportError(f"Provider call for {ticket.kind.value} was cancelled"))
            raise
        except AdflowError as exc:
            if self.fail(ticket, exc):
                raise
            return self._state
        except Exception as exc:
            error = ProviderTransportError(f"Provider call for {ticket.kind.value} failed: {exc}")
            if self.fail(ticket, error):
                raise error from exc
            return self._state
        return self.complete(ticket, raw_text)

    def begin(self, kind: Union[StageKind, str], **params: Any) -> StageTicket:
        """Validate preconditions, build the request and mark the stage pending.

        Precondition failures raise ``InvariantViolation`` before any provider
        call and leave the state untouched.
        """
        self._ensure_not_pending()
        stage = self.stage(kind)
        params = self._stage_params(stage, params)
        request = stage.build_request(self._state, params)
        self._log_prompt(stage, request)

        origin = self._state.stage
        pending = self._set(self._state.bump(pending=stage.kind, error=None))
        return StageTicket(
            kind=stage.kind,
            version=pending.version,
            origin=origin,
            request=request,
            params=params,
        )

    def complete(self, ticket: StageTicket, raw_text: Optional[str]) -> WorkflowState:
        """Validate the provider output for ``ticket`` and advance on success."""
        if self._is_stale(ticket):
            self._log_discarded(ticket, raw_text)
            return self._state

        stage = self.stage(ticket.kind)
        try:
            value = stage.accept(raw_text, self._state, ticket.params)
            self._log_response(stage, value)
            return self._set(self._apply(stage, value, ticket))
        except Exception as exc:
            self._rollback(ticket, exc)
            raise

    def fail(self, ticket: StageTicket, error: AdflowError) -> bool:
        """Roll back for a failed ``ticket``; returns False if it was stale."""
        if self._is_stale(ticket):
            self._log_discarded(ticket, None, error)
            return False
        self._rollback(ticket, error)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stage_params(self, stage: Stage, params: Mapping[str, Any]) -> Dict[str, Any]:
        resolved = dict(params)
        if stage.kind is StageKind.STYLING_NOTES:
            if "index" not in resolved:
                raise InvariantViolation("Styling enhancement needs the index of the concept to enhance")
            resolved["concept"] = self.editor.get(resolved["index"])
        elif stage.kind is StageKind.COPY_OPTIONS:
            if self._editor is not None and not self._editor.finalized:
                resolved["concepts"] = self._editor.snapshot()
            else:
                resolved["concepts"] = self._state.final_concepts
        return resolved

    def _apply(self, stage: Stage, value: Any, ticket: StageTicket) -> WorkflowState:
        state = self._state
        kind = stage.kind
        if kind is StageKind.STYLING_NOTES:
            self.editor.enhance(ticket.params["index"], value)
            return state.bump(pending=None)
        if kind is StageKind.STYLES:
            return state.moved_to(stage.next_stage, styles=tuple(value))
        if kind is StageKind.IDEAS:
            return state.moved_to(stage.next_stage, ideas=tuple(value))
        if kind is StageKind.CONCEPTS:
            concepts = tuple(value)
            self._editor = EditableArtifactStore(concepts)
            return state.moved_to(stage.next_stage, concepts=concepts)
        if kind is StageKind.COPY_OPTIONS:
            if self._editor is not None and not self._editor.finalized:
                self._editor.finalize()
            return state.moved_to(
                stage.next_stage,
                final_concepts=tuple(ticket.params["concepts"]),
                copy_options=value,
            )
        if kind is StageKind.IMAGE_PROMPTS:
            return state.moved_to(stage.next_stage, image_prompts=tuple(value))
        if kind is StageKind.VIDEO_SCRIPTS:
            return state.moved_to(stage.next_stage, video_scripts=tuple(value))
        raise InvariantViolation(f"No transition defined for stage {kind.value}")

    def _rollback(self, ticket: StageTicket, error: Exception) -> None:
        if isinstance(error, AdflowError):
            kind, message = error.kind, error.user_message
        else:
            kind, message = type(error).__name__, f"An error occurred: {error}"
        stage_error = StageError(kind=kind, message=message, stage=ticket.kind)
        self._set(self._state.bump(stage=ticket.origin, pending=None, error=stage_error))
        if self._logger is not None:
            payload: Dict[str, Any] = {"kind": kind, "message": str(error)}
            if isinstance(error, InvalidProviderResponse):
                payload["errors"] = error.errors
                payload["raw_text"] = error.raw_text
            self._logger.log_error(self.run_id, ticket.kind.value, payload)

    def _is_stale(self, ticket: StageTicket) -> bool:
        return ticket.version != self._state.version or self._state.pending is not ticket.kind

    def _ensure_not_pending(self) -> None:
        if self._state.pending is not None:
            raise InvariantViolation(f"Stage {self._state.pending.value} is still running")

    def _ensure_stage(self, *allowed: WorkflowStage) -> None:
        self._ensure_not_pending()
        if self._state.stage not in allowed:
            expected = ", ".join(stage.value for stage in allowed)
            raise InvariantViolation(
                f"Operation not allowed in {self._state.stage.value}; expected one of: {expected}"
            )

    def _set(self, state: WorkflowState) -> WorkflowState:
        self._state = state
        return state

    def _log_prompt(self, stage: Stage, request: ProviderRequest) -> None:
        if self._logger is not None:
            self._logger.log_prompt(self.run_id, stage.name, request.instruction)

    def _log_response(self, stage: Stage, value: Any) -> None:
        if self._logger is not None:
            self._logger.log_response(self.run_id, stage.name, _jsonable(value))

    def _log_discarded(
        self, ticket: StageTicket, raw_text: Optional[str], error: Optional[AdflowError] = None
    ) -> None:
        if self._logger is None:
            return
        self._logger.log_response(
            self.run_id,
            f"{ticket.kind.value}-discarded",
            {
                "ticket_version": ticket.version,
                "current_version": self._state.version,
                "raw_text": raw_text,
                "error": str(error) if error else None,
            },
        )


def new_run_id() -> str:
    """Return a unique, sortable run identifier."""
    return f"{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S')}-{uuid4().hex[:6]}"


def _pick(options: Sequence[Any], choice: Any, label: str) -> Any:
    if isinstance(choice, int) and not isinstance(choice, bool):
        if choice not in range(len(options)):
            raise InvariantViolation(f"No {label} at index {choice}")
        return options[choice]
    if choice in options:
        return choice
    raise InvariantViolation(f"{label.capitalize()} {choice!r} is not one of the generated options")


def _option_at(options: Sequence[str], index: int) -> Optional[str]:
    return options[index] if index < len(options) else None


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if hasattr(value, "to_wire"):
        return value.to_wire()
    return value


__all__ = ["StageTicket", "Workflow", "default_stages", "new_run_id"]
