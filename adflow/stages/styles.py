"""Stage suggesting trending advert styles for the uploaded product."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping

from pydantic import Field

from ..schema import ResponseShape
from ..state import WorkflowStage, WorkflowState
from ..types import AdvertStyle, StageKind
from .base import Stage

STYLE_COUNT = 5

STYLES_SHAPE = ResponseShape(
    name="advert styles",
    annotation=Annotated[List[AdvertStyle], Field(min_length=STYLE_COUNT, max_length=STYLE_COUNT)],
)

_STYLE_EXAMPLES = {
    True: 'Examples for video: "Unboxing ASMR", "Dynamic User-Generated Content Style".',
    False: 'Examples for still images: "Cinematic Product Shot", "Bold Minimalism".',
}


class SuggestStyles(Stage):
    """Image + format in, five AdvertStyle out."""

    kind = StageKind.STYLES
    entry_stages = frozenset({WorkflowStage.TYPE_SELECTED, WorkflowStage.STYLES_READY})
    next_stage = WorkflowStage.STYLES_READY

    def template_name(self, state: WorkflowState, params: Mapping[str, Any]) -> str:
        return "advert_styles"

    def shape(self, state: WorkflowState) -> ResponseShape:
        return STYLES_SHAPE

    def build_context(self, state: WorkflowState, params: Mapping[str, Any]) -> Dict[str, Any]:
        branch = state.branch
        return {
            "format": branch.advert_format.value,
            "format_phrase": branch.format_phrase,
            "style_examples": _STYLE_EXAMPLES[branch.is_video],
        }
