"""Content provider boundary shared by every client."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol

from ..types import ImagePayload


class Capability(str, Enum):
    """Model-capability hint attached to each request."""

    TEXT = "text"
    STRUCTURED_JSON = "structured_json"


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """A single generation request sent to the provider.

    ``context`` holds the structured inputs the instruction was assembled
    from; clients may log it but only ``instruction`` carries the task.
    """

    task: str
    instruction: str
    image: Optional[ImagePayload] = None
    schema: Optional[Dict[str, Any]] = None
    capability: Capability = Capability.STRUCTURED_JSON
    context: Mapping[str, Any] = field(default_factory=dict)

    def instruction_with_schema(self) -> str:
        """Instruction text with the schema spelled out, for clients without native JSON mode."""
        if not self.schema:
            return self.instruction
        schema_text = json.dumps(self.schema, ensure_ascii=False, indent=2)
        return (
            f"{self.instruction.rstrip()}\n\n"
            "Respond with JSON only, no commentary, matching this JSON schema:\n"
            f"{schema_text}"
        )


class ContentProvider(Protocol):
    """Protocol for generative services; the returned text is untrusted."""

    def generate(self, request: ProviderRequest) -> str:
        ...
