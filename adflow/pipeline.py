"""Unattended orchestration of the ad workflow on top of LangGraph."""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypedDict

from langchain_core.runnables import RunnableLambda
from langgraph.graph import END, START, StateGraph
from pydantic import BaseModel

from .config import WorkflowConfig, build_provider
from .errors import InvariantViolation
from .services.base import ContentProvider
from .state import WorkflowState
from .types import AdvertFormat, CtaDetails, StageKind
from .utils.images import load_image
from .utils.run_logger import RunLogger
from .workflow import Workflow


class GraphState(TypedDict):
    state: WorkflowState


@dataclass(slots=True)
class RunRequest:
    """User choices for an unattended run; indices pick from generated options."""

    image_path: str
    advert_format: AdvertFormat | str = AdvertFormat.STILL
    cta_url: Optional[str] = None
    cta_whatsapp: Optional[str] = None
    brand_guidelines: str = ""
    user_concept: str = ""
    price_tag: str = ""
    copy_language: Optional[str] = None
    style_index: int = 0
    idea_indices: Tuple[int, int] = (0, 1)
    enhance_styling: bool = False
    copy_selections: Optional[Sequence[Tuple[str, str]]] = None
    edits: List[Tuple[int, str, str]] = field(default_factory=list)


@dataclass(slots=True)
class _Step:
    name: str
    action: Callable[[], WorkflowState]
    calls_provider: bool = False


class AdCreativeGenerator:
    """High-level facade running every stage with preset user choices."""

    def __init__(
        self,
        config: WorkflowConfig | None = None,
        provider: ContentProvider | None = None,
    ) -> None:
        self.config = config or WorkflowConfig.from_env()
        self.logger = RunLogger(base_dir=self.config.runs_dir)
        self.provider = provider or build_provider(self.config)

    def new_workflow(self, run_id: str | None = None) -> Workflow:
        """Interactive workflow sharing this generator's provider and logger."""
        return Workflow(
            self.provider,
            logger=self.logger,
            run_id=run_id,
            timeout=self.config.timeout_sec,
        )

    def run(self, request: RunRequest) -> WorkflowState:
        """Execute the whole workflow and return the terminal state."""
        workflow = self.new_workflow()
        steps = self._build_steps(workflow, request)
        graph = self._build_graph(steps)
        app = graph.compile()
        result = app.invoke({"state": workflow.state})
        return result["state"]

    def _build_graph(self, steps: Dict[str, _Step]) -> StateGraph:
        """Linear graph up to copy selection, then a branch to the terminal stage."""
        graph = StateGraph(GraphState)
        for step in steps.values():
            graph.add_node(
                step.name,
                RunnableLambda(lambda data, *, config=None, _step=step: self._invoke_step(_step, data)),
                metadata={"kind": step.name, "calls_provider": step.calls_provider},
            )

        linear = [name for name in steps if name not in _TERMINAL_NODES]
        graph.add_edge(START, linear[0])
        for previous, current in zip(linear, linear[1:]):
            graph.add_edge(previous, current)

        graph.add_conditional_edges(
            linear[-1],
            self._route_terminal,
            {name: name for name in _TERMINAL_NODES},
        )
        for name in _TERMINAL_NODES:
            graph.add_edge(name, END)
        return graph

    @staticmethod
    def _route_terminal(data: GraphState) -> str:
        branch = data["state"].branch
        if branch is None:
            raise InvariantViolation("Cannot route to a terminal stage before the format is chosen")
        return branch.terminal_stage.value

    def _build_steps(self, workflow: Workflow, request: RunRequest) -> Dict[str, _Step]:
        """Bind each node to the workflow operation it performs."""

        def ingest() -> WorkflowState:
            workflow.load_image(load_image(Path(request.image_path).expanduser()))
            return workflow.update_inputs(
                cta_details=CtaDetails(url=request.cta_url, whatsapp=request.cta_whatsapp),
                brand_guidelines=request.brand_guidelines,
                user_concept=request.user_concept,
                price_tag=request.price_tag,
                copy_language=request.copy_language or self.config.copy_language,
            )

        def edit_concepts() -> WorkflowState:
            for index, path, value in request.edits:
                workflow.edit_concept(index, path, value)
            if request.enhance_styling:
                for index in range(len(workflow.editor)):
                    workflow.enhance_styling(index)
            return workflow.state

        ordered = [
            _Step("ingest", ingest),
            _Step("select_format", lambda: workflow.select_format(request.advert_format)),
            _Step("styles", workflow.generate_styles, calls_provider=True),
            _Step("choose_style", lambda: workflow.choose_style(request.style_index)),
            _Step("ideas", workflow.generate_ideas, calls_provider=True),
            _Step("choose_ideas", lambda: workflow.choose_ideas(list(request.idea_indices))),
            _Step("concepts", workflow.generate_concepts, calls_provider=True),
            _Step("edit_concepts", edit_concepts, calls_provider=request.enhance_styling),
            _Step("copy_options", workflow.generate_copy_options, calls_provider=True),
            _Step("choose_copy", lambda: workflow.choose_copy(request.copy_selections)),
            _Step(StageKind.IMAGE_PROMPTS.value, workflow.generate_outputs, calls_provider=True),
            _Step(StageKind.VIDEO_SCRIPTS.value, workflow.generate_outputs, calls_provider=True),
        ]
        return {step.name: step for step in ordered}

    def _invoke_step(self, step: _Step, data: GraphState) -> GraphState:
        """Execute a step while emitting structured IO traces."""
        if self.config.trace_steps:
            self._print_step_io(step.name, "input", self._snapshot_state(data["state"]))

        started = time.perf_counter()
        updated = step.action()
        elapsed = time.perf_counter() - started

        if self.config.trace_steps:
            self._print_step_io(step.name, "output", self._snapshot_state(updated), elapsed)
        return {"state": updated}

    def _snapshot_state(self, state: WorkflowState) -> Any:
        """Return a compact serialisable view of the state for logging."""
        inputs = state.inputs
        image = inputs.image
        raw = {
            "stage": state.stage.value,
            "version": state.version,
            "pending": state.pending.value if state.pending else None,
            "error": asdict(state.error) if state.error else None,
            "inputs": {
                "image": {"mime_type": image.mime_type, "sha256": image.sha256, "bytes": len(image.data)}
                if image
                else None,
                "advert_format": inputs.advert_format.value if inputs.advert_format else None,
                "cta_details": inputs.cta_details.to_wire(),
                "brand_guidelines": inputs.brand_guidelines,
                "user_concept": inputs.user_concept,
                "copy_language": inputs.copy_language,
                "price_tag": inputs.price_tag,
            },
            "styles": state.styles,
            "chosen_style": state.chosen_style,
            "ideas": state.ideas,
            "chosen_ideas": state.chosen_ideas,
            "concepts": state.concepts,
            "final_concepts": state.final_concepts,
            "copy_options": state.copy_options,
            "copy_concepts": state.copy_concepts,
            "image_prompts": state.image_prompts,
            "video_scripts": state.video_scripts,
        }
        return self._strip_empty(raw)

    def _strip_empty(self, value: Any) -> Any:
        """Recursively remove empty containers for cleaner logging."""
        if isinstance(value, dict):
            return {k: self._strip_empty(v) for k, v in value.items() if not self._is_empty(v)}
        if isinstance(value, (list, tuple)):
            return [self._strip_empty(item) for item in value if not self._is_empty(item)]
        return value

    @staticmethod
    def _is_empty(value: Any) -> bool:
        """Return True if the provided value is considered empty for logging."""
        if value is None:
            return True
        if isinstance(value, (str, bytes)) and value == "":
            return True
        if isinstance(value, (list, tuple, set, dict)) and len(value) == 0:
            return True
        return False

    def _print_step_io(self, step: str, direction: str, payload: Any, elapsed: float | None = None) -> None:
        """Pretty-print the input/output payload for each step."""
        prefix = ">>" if direction == "input" else "<<"
        timing = f" [{elapsed:.2f}s]" if elapsed is not None and direction == "output" else ""
        body = json.dumps(payload, ensure_ascii=False, indent=2, default=self._json_default)
        print(f"[{step}] {prefix} {direction}{timing}:\n{body}\n")

    @staticmethod
    def _json_default(obj: Any) -> Any:
        """Fallback serializer for non-JSON compatible objects."""
        if isinstance(obj, BaseModel):
            return obj.model_dump(by_alias=True, exclude_none=True)
        if is_dataclass(obj):
            return asdict(obj)
        if isinstance(obj, set):
            return list(obj)
        return str(obj)


_TERMINAL_NODES = (StageKind.IMAGE_PROMPTS.value, StageKind.VIDEO_SCRIPTS.value)


__all__ = ["AdCreativeGenerator", "RunRequest"]
