"""Adflow package.

Staged generation of ad creatives from a single product image: trending
styles, concept ideas, two editable full concepts, copy options and finally
image-generation prompts or video shooting scripts.
"""

from .pipeline import AdCreativeGenerator, RunRequest  # noqa: F401
from .workflow import Workflow  # noqa: F401

__all__ = ["AdCreativeGenerator", "RunRequest", "Workflow"]
