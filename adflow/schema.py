"""Parse untrusted provider text against the shape a stage expects."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import InvalidProviderResponse


@dataclass(frozen=True)
class ResponseShape:
    """Expected output of a stage.

    ``annotation`` is any type pydantic can validate (length constraints are
    expressed with ``Annotated[..., Field(min_length=..., max_length=...)]``).
    A shape without an annotation expects plain, non-empty text.
    """

    name: str
    annotation: Any = None

    @property
    def is_text(self) -> bool:
        return self.annotation is None

    @property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.annotation)

    def json_schema(self) -> Optional[Dict[str, Any]]:
        """Return the JSON schema forwarded to the provider as a hint."""
        if self.is_text:
            return None
        return self.adapter.json_schema(by_alias=True)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```)."""
    lines = text.splitlines()
    if len(lines) < 2 or not lines[0].startswith("```") or not text.endswith("```"):
        return text
    body = lines[1:]
    # The closing fence may share the last line with the payload.
    body[-1] = body[-1][: -len("```")]
    return "\n".join(body).strip()


def parse_response(raw_text: Optional[str], shape: ResponseShape) -> Any:
    """Return the validated value for ``raw_text`` or raise ``InvalidProviderResponse``.

    Missing required fields are never defaulted; a payload that is valid JSON
    but breaks the shape is rejected exactly like one that is not JSON at all.
    """
    text = (raw_text or "").strip()
    if not text:
        raise InvalidProviderResponse(
            f"The AI returned an empty response for {shape.name}", raw_text=raw_text
        )

    if shape.is_text:
        return text

    cleaned = strip_code_fence(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InvalidProviderResponse(
            f"The AI returned an invalid response for {shape.name}",
            errors=[f"not valid JSON ({exc.msg} at line {exc.lineno} column {exc.colno})"],
            raw_text=raw_text,
        ) from exc

    try:
        return shape.adapter.validate_python(payload)
    except ValidationError as exc:
        raise InvalidProviderResponse(
            f"The AI returned an invalid response for {shape.name}",
            errors=_format_errors(exc),
            raw_text=raw_text,
        ) from exc


def _format_errors(exc: ValidationError) -> List[str]:
    messages: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        messages.append(f"{location}: {error.get('msg')}")
    return messages


__all__ = ["ResponseShape", "parse_response", "strip_code_fence"]
