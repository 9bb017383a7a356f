"""Shared builders for the workflow tests."""

from __future__ import annotations

from adflow.services.mock import MockProvider
from adflow.types import ImagePayload
from adflow.workflow import Workflow

PRODUCT_IMAGE = ImagePayload.from_bytes(b"\x89PNG fake product image", "image/png")


def new_workflow(provider: MockProvider | None = None, **kwargs) -> Workflow:
    """Workflow over a mock provider, with the product image already loaded."""
    workflow = Workflow(provider or MockProvider(), **kwargs)
    workflow.load_image(PRODUCT_IMAGE)
    return workflow


def advance_to_concepts(workflow: Workflow, advert_format: str = "still") -> Workflow:
    """Drive ``workflow`` through style and idea selection into ConceptsReady."""
    workflow.select_format(advert_format)
    workflow.generate_styles()
    workflow.choose_style(0)
    workflow.generate_ideas()
    workflow.choose_ideas([0, 2])
    workflow.generate_concepts()
    return workflow


def advance_to_copy_options(workflow: Workflow, advert_format: str = "still") -> Workflow:
    advance_to_concepts(workflow, advert_format)
    workflow.generate_copy_options()
    return workflow
