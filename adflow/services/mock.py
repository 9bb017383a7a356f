"""Deterministic offline provider used for mock runs and tests."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..types import CtaDetails
from ..utils.cta import assemble_cta
from .base import ProviderRequest

MockResponse = Union[str, Exception, Callable[[ProviderRequest], str]]

_STYLE_TITLES = [
    ("Cinematic Product Shot", "Moody, film-grade lighting that makes the product feel premium."),
    ("Bold Minimalism", "A single hero object on a saturated backdrop with lots of negative space."),
    ("Unboxing ASMR", "Tactile close-ups and crisp sound that reward the viewer's attention."),
    ("Dynamic User-Generated Content", "Handheld, authentic framing that reads like a friend's post."),
    ("Surreal Scale Play", "Oversized product in an everyday scene that stops the scroll."),
]

_HOOK_LEADS = [
    "Stop scrolling:",
    "You have never seen it like this.",
    "The upgrade everyone is talking about.",
    "Made for the moments that matter.",
    "One look is all it takes.",
]

_CTA_LEADS = ["", "Don't wait!", "Limited stock:", "Today only:", "Be first:"]


class MockProvider:
    """Returns contract-conformant JSON built from the request context.

    ``overrides`` maps a task name to a canned raw response, an exception to
    raise, or a callable producing the raw text; every request is recorded in
    ``requests``.
    """

    def __init__(self, overrides: Optional[Mapping[str, MockResponse]] = None) -> None:
        self._overrides: Dict[str, MockResponse] = dict(overrides or {})
        self.requests: List[ProviderRequest] = []

    def set_override(self, task: str, response: Optional[MockResponse]) -> None:
        """Install (or with ``None`` remove) the canned response for ``task``."""
        if response is None:
            self._overrides.pop(task, None)
        else:
            self._overrides[task] = response

    def generate(self, request: ProviderRequest) -> str:
        """Return the canned or synthesised response for ``request``."""
        self.requests.append(request)
        override = self._overrides.get(request.task)
        if isinstance(override, Exception):
            raise override
        if callable(override):
            return override(request)
        if isinstance(override, str):
            return override

        builder = getattr(self, f"_mock_{request.task}", None)
        if builder is None:
            raise ValueError(f"Mock provider has no response for task {request.task!r}")
        result = builder(request.context)
        return result if isinstance(result, str) else json.dumps(result, ensure_ascii=False)

    @staticmethod
    def _mock_styles(context: Mapping[str, Any]) -> List[dict]:
        return [{"title": title, "summary": summary} for title, summary in _STYLE_TITLES]

    @staticmethod
    def _mock_ideas(context: Mapping[str, Any]) -> List[dict]:
        style = context.get("style", {}).get("title", "Trending")
        draft = (context.get("user_concept") or "").strip()
        ideas = []
        for idx in range(1, 6):
            if draft:
                title = f"{style} Remix {idx}"
                summary = f"Variation {idx} of the user's idea ({draft}) told in the {style} style."
            else:
                title = f"{style} Idea {idx}"
                summary = f"Concept {idx} built around the product in the {style} style."
            ideas.append({"title": title, "summary": summary})
        return ideas

    @staticmethod
    def _mock_concepts(context: Mapping[str, Any]) -> List[dict]:
        cta = assemble_cta(CtaDetails.model_validate(context.get("cta_details", {})))
        is_video = bool(context.get("is_video"))
        concepts = []
        for idea in context.get("ideas", []):
            specs = {
                "camera": "ARRI Alexa Mini LF" if is_video else "Hasselblad X2D",
                "lenses": "Cinematic anamorphic primes" if is_video else "90mm f/2.5",
                "angles": "Low hero angle, macro details",
                "specs": "4K, 24fps" if is_video else "High-resolution, 4:5 aspect ratio",
                "mood": "Bright and energetic",
            }
            concept = {
                "optionName": idea["title"],
                "conceptSummary": idea["summary"],
                "shootSetup": "Single sweep backdrop with a key light and soft fill.",
                "technicalSpecs": specs,
                "stylingNotes": "Clean surfaces, one accent prop in the brand colour.",
                "postProduction": "Subtle contrast boost and colour match to brand palette.",
                "hookLine": f"Meet {idea['title']}",
                "adCopy": idea["summary"],
                "cta": cta,
                "trendReasoning": "Short, product-first creatives keep CTR high this season.",
                "format": context.get("concept_label", "Still Image"),
            }
            if is_video:
                specs.update(
                    {
                        "cameraMovement": "Slow dolly push-in",
                        "editingStyle": "Quick rhythmic cuts",
                        "soundDesign": "Foley hits synced to an upbeat track",
                    }
                )
                concept["videoDuration"] = "8 seconds"
            concepts.append(concept)
        return concepts

    @staticmethod
    def _mock_styling_notes(context: Mapping[str, Any]) -> str:
        notes = context.get("concept", {}).get("stylingNotes", "")
        return f"{notes} Add a brushed-brass tray, a linen napkin and fresh citrus slices.".strip()

    @staticmethod
    def _mock_copy_options(context: Mapping[str, Any]) -> dict:
        cta = assemble_cta(CtaDetails.model_validate(context.get("cta_details", {})))
        return {
            "hooks": list(_HOOK_LEADS),
            "ctas": [f"{lead} {cta}".strip() for lead in _CTA_LEADS],
        }

    @staticmethod
    def _mock_image_prompts(context: Mapping[str, Any]) -> List[dict]:
        price_tag = (context.get("price_tag") or "").strip()
        prompts = []
        for concept in context.get("concepts", []):
            text = (
                f"High-end cinematic commercial photograph of the product. {concept['shootSetup']} "
                f"Mood: {concept['technicalSpecs']['mood']}. Render the hook line \"{concept['hookLine']}\" "
                f"elegantly at the top and the CTA \"{concept['cta']}\" at the bottom."
            )
            if price_tag:
                text += f" Add a price tag sticker reading \"{price_tag}\" in the top-right corner."
            prompts.append({"conceptName": concept["optionName"], "prompt": text, "cta": concept["cta"]})
        return prompts

    @staticmethod
    def _mock_video_scripts(context: Mapping[str, Any]) -> List[dict]:
        scripts = []
        for concept in context.get("concepts", []):
            shots = [
                {
                    "timestamp": "0:00-0:03",
                    "camera": "ARRI Alexa Mini with anamorphic lenses, dynamic dolly push-in",
                    "audio": "Foley sound design over a rising beat",
                    "narration": concept["hookLine"],
                    "graphics": "None",
                },
                {
                    "timestamp": "0:03-0:06",
                    "camera": "Macro orbit around the product",
                    "audio": "Beat drop",
                    "narration": concept["adCopy"],
                    "graphics": "Subtle lower-third product name",
                },
                {
                    "timestamp": "0:06-0:08",
                    "camera": "Locked-off end card",
                    "audio": "Logo sting",
                    "narration": concept["cta"],
                    "graphics": f"End card: \"{concept['hookLine']}\" above \"{concept['cta']}\"",
                },
            ]
            scripts.append({"conceptName": concept["optionName"], "shots": shots, "cta": concept["cta"]})
        return scripts
