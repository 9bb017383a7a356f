"""Typed failures raised by the ad workflow."""

from __future__ import annotations

from typing import List, Optional, Sequence


class AdflowError(Exception):
    """Base class for every failure scoped to a workflow run."""

    kind: str = "AdflowError"

    @property
    def user_message(self) -> str:
        """Human-readable message surfaced after a rollback."""
        return f"An error occurred: {self}"


class ProviderTransportError(AdflowError):
    """The content provider could not be reached or rejected the call."""

    kind = "ProviderTransportError"


class InvalidProviderResponse(AdflowError):
    """Provider output failed parsing, schema or content-contract checks."""

    kind = "InvalidProviderResponse"

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[Sequence[str]] = None,
        raw_text: Optional[str] = None,
    ) -> None:
        self.errors: List[str] = list(errors or [])
        self.raw_text = raw_text
        detail = "; ".join(self.errors)
        super().__init__(f"{message}: {detail}" if detail else message)


class InvariantViolation(AdflowError):
    """An operation was requested in a state that does not allow it."""

    kind = "InvariantViolation"


__all__ = [
    "AdflowError",
    "InvalidProviderResponse",
    "InvariantViolation",
    "ProviderTransportError",
]
