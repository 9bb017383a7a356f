"""Prompt templates shipped in ``adflow/prompts``.

Templates use ``{{name}}`` placeholders. Rendering is strict: a template
whose placeholders are not all supplied is a programming error, so it fails
before anything reaches a provider.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, FrozenSet, Mapping, Optional

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"
_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@lru_cache(maxsize=None)
def read_template(name: str) -> str:
    path = PROMPTS_DIR / f"{name}.txt"
    if not path.is_file():
        raise FileNotFoundError(f"No prompt template named {name!r} in {PROMPTS_DIR}")
    return path.read_text(encoding="utf-8")


def placeholders(name: str) -> FrozenSet[str]:
    """Names of the placeholders used by template ``name``."""
    return frozenset(_PLACEHOLDER.findall(read_template(name)))


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def load_prompt(name: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """Render template ``name``; extra variables are ignored, missing ones raise ``KeyError``."""
    values = dict(variables or {})
    missing = sorted(placeholders(name) - values.keys())
    if missing:
        raise KeyError(f"Prompt {name!r} is missing values for: {', '.join(missing)}")
    return _PLACEHOLDER.sub(lambda match: _as_text(values[match.group(1)]), read_template(name))


__all__ = ["PROMPTS_DIR", "load_prompt", "placeholders", "read_template"]
