"""Core data models used across the ad workflow."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

STILL_IMAGE_LABEL = "Still Image"
SHORT_VIDEO_LABEL = "Short Video"

ConceptFormat = Literal["Still Image", "Short Video"]

# Provider text is trimmed; blank values fail validation.
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class AdvertFormat(str, Enum):
    """The two output kinds a run can produce."""

    STILL = "still"
    VIDEO = "video"

    @property
    def label(self) -> str:
        return SHORT_VIDEO_LABEL if self is AdvertFormat.VIDEO else STILL_IMAGE_LABEL


class StageKind(str, Enum):
    """The generation steps a run goes through."""

    STYLES = "styles"
    IDEAS = "ideas"
    CONCEPTS = "concepts"
    STYLING_NOTES = "styling_notes"
    COPY_OPTIONS = "copy_options"
    IMAGE_PROMPTS = "image_prompts"
    VIDEO_SCRIPTS = "video_scripts"


class WireModel(BaseModel):
    """Immutable record exchanged with the provider using camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        """Return the provider-facing dictionary (camelCase, no empty optionals)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AdvertStyle(WireModel):
    """A trending style label suggested for the product."""

    title: NonEmptyStr
    summary: NonEmptyStr


class ConceptIdea(WireModel):
    """A high-level pitch the user picks two of."""

    title: NonEmptyStr
    summary: NonEmptyStr


class TechnicalSpecs(WireModel):
    """Production specs shared by still and video concepts."""

    model_config = ConfigDict(extra="forbid")

    camera: NonEmptyStr
    lenses: NonEmptyStr
    angles: NonEmptyStr
    specs: NonEmptyStr
    mood: NonEmptyStr


class VideoTechnicalSpecs(TechnicalSpecs):
    """Production specs carrying the video-only fields."""

    camera_movement: NonEmptyStr
    editing_style: NonEmptyStr
    sound_design: NonEmptyStr


VIDEO_SPEC_FIELDS = ("cameraMovement", "editingStyle", "soundDesign")


class AdConcept(WireModel):
    """A fully fleshed-out ad plan; exactly two exist per run."""

    option_name: NonEmptyStr
    concept_summary: NonEmptyStr
    shoot_setup: NonEmptyStr
    technical_specs: Union[VideoTechnicalSpecs, TechnicalSpecs]
    styling_notes: NonEmptyStr
    post_production: NonEmptyStr
    hook_line: NonEmptyStr
    ad_copy: NonEmptyStr
    cta: NonEmptyStr
    trend_reasoning: NonEmptyStr
    format: ConceptFormat
    video_duration: Optional[NonEmptyStr] = None

    @property
    def is_video(self) -> bool:
        return self.format == SHORT_VIDEO_LABEL

    @model_validator(mode="after")
    def _check_format_variant(self) -> "AdConcept":
        has_video_specs = isinstance(self.technical_specs, VideoTechnicalSpecs)
        if self.is_video and not has_video_specs:
            raise ValueError(
                "technicalSpecs of a Short Video concept requires " + ", ".join(VIDEO_SPEC_FIELDS)
            )
        if not self.is_video and has_video_specs:
            raise ValueError(
                "technicalSpecs of a Still Image concept must not carry " + ", ".join(VIDEO_SPEC_FIELDS)
            )
        if not self.is_video and self.video_duration is not None:
            raise ValueError("videoDuration is only allowed on Short Video concepts")
        return self


class HooksAndCtas(WireModel):
    """Copy options offered to the user after the concepts are finalized."""

    hooks: List[NonEmptyStr] = Field(min_length=5, max_length=5)
    ctas: List[NonEmptyStr] = Field(min_length=5, max_length=5)


class CtaDetails(WireModel):
    """Optional call-to-action destinations; blank values count as absent."""

    url: Optional[str] = None
    whatsapp: Optional[str] = None

    @property
    def has_url(self) -> bool:
        return bool(self.url and self.url.strip())

    @property
    def has_whatsapp(self) -> bool:
        return bool(self.whatsapp and self.whatsapp.strip())


class ImageGenPrompt(WireModel):
    """Terminal artifact for a still-image run."""

    concept_name: NonEmptyStr
    prompt: NonEmptyStr
    cta: NonEmptyStr


class Shot(WireModel):
    """One timestamped shot of a video script."""

    timestamp: NonEmptyStr
    camera: NonEmptyStr
    audio: NonEmptyStr
    narration: NonEmptyStr
    graphics: NonEmptyStr


class VideoScript(WireModel):
    """Terminal artifact for a video run; the last shot is the end card."""

    concept_name: NonEmptyStr
    shots: List[Shot] = Field(min_length=1)
    cta: NonEmptyStr

    @property
    def end_card(self) -> Shot:
        return self.shots[-1]


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """Product image kept in memory and passed unchanged to every stage."""

    data: bytes
    mime_type: str
    sha256: str = ""

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "ImagePayload":
        """Build a payload and compute its content hash."""
        return cls(data=data, mime_type=mime_type, sha256=hashlib.sha256(data).hexdigest())

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def to_data_url(self) -> str:
        """Return a data URL suitable for multi-modal chat APIs."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass(frozen=True, slots=True)
class WorkflowInputs:
    """User-supplied inputs accumulated across the run."""

    image: Optional[ImagePayload] = None
    advert_format: Optional[AdvertFormat] = None
    cta_details: CtaDetails = field(default_factory=CtaDetails)
    brand_guidelines: str = ""
    user_concept: str = ""
    copy_language: str = "English"
    price_tag: str = ""


__all__ = [
    "AdConcept",
    "AdvertFormat",
    "AdvertStyle",
    "ConceptIdea",
    "CtaDetails",
    "HooksAndCtas",
    "ImageGenPrompt",
    "ImagePayload",
    "NonEmptyStr",
    "SHORT_VIDEO_LABEL",
    "STILL_IMAGE_LABEL",
    "Shot",
    "StageKind",
    "TechnicalSpecs",
    "VIDEO_SPEC_FIELDS",
    "VideoScript",
    "VideoTechnicalSpecs",
    "WorkflowInputs",
]
