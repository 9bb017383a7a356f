"""Still-image versus short-video branch parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import InvariantViolation
from .types import SHORT_VIDEO_LABEL, STILL_IMAGE_LABEL, VIDEO_SPEC_FIELDS, AdvertFormat, StageKind


@dataclass(frozen=True, slots=True)
class Branch:
    """Everything downstream of the format choice that differs per branch."""

    advert_format: AdvertFormat
    concept_label: str
    format_phrase: str
    budget_phrase: str
    setup_hint: str
    video_spec_fields: Tuple[str, ...]
    terminal_stage: StageKind

    @property
    def is_video(self) -> bool:
        return self.advert_format is AdvertFormat.VIDEO


_STILL = Branch(
    advert_format=AdvertFormat.STILL,
    concept_label=STILL_IMAGE_LABEL,
    format_phrase="still image",
    budget_phrase="high-end commercial photoshoot",
    setup_hint="For 'shootSetup' detail the photoshoot setup.",
    video_spec_fields=(),
    terminal_stage=StageKind.IMAGE_PROMPTS,
)

_VIDEO = Branch(
    advert_format=AdvertFormat.VIDEO,
    concept_label=SHORT_VIDEO_LABEL,
    format_phrase="short 8-10 second video",
    budget_phrase="$300,000 video commercial",
    setup_hint=(
        "For 'shootSetup' write the detailed scene description, and fill "
        + ", ".join(VIDEO_SPEC_FIELDS)
        + " inside technicalSpecs plus the total 'videoDuration'."
    ),
    video_spec_fields=VIDEO_SPEC_FIELDS,
    terminal_stage=StageKind.VIDEO_SCRIPTS,
)


def select_branch(advert_format: AdvertFormat | str) -> Branch:
    """Return the branch for ``advert_format`` (``"still"`` or ``"video"``)."""
    try:
        fmt = AdvertFormat(advert_format)
    except ValueError:
        raise InvariantViolation(
            f"Unknown advert format {advert_format!r}; expected 'still' or 'video'"
        ) from None
    return _VIDEO if fmt is AdvertFormat.VIDEO else _STILL


__all__ = ["Branch", "select_branch"]
