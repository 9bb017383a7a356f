"""Client wrapper for DashScope's Qwen-VL vision language model."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..errors import InvalidProviderResponse, ProviderTransportError
from .base import Capability, ProviderRequest


class QwenProvider:
    """Sends stage requests through ``MultiModalConversation``.

    DashScope has no schema-constrained output mode, so the schema is always
    written into the instruction.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        text_model: str = "qwen-vl-plus",
        json_model: str = "qwen-vl-max",
        timeout: int = 120,
    ) -> None:
        self._api_key = api_key
        self._text_model = text_model
        self._json_model = json_model
        self._timeout = timeout

    def generate(self, request: ProviderRequest) -> str:
        """Return the raw text DashScope produced for ``request``."""
        if not self._api_key:
            raise ProviderTransportError("Qwen API key is missing; cannot call DashScope service.")

        try:
            from dashscope import MultiModalConversation  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "DashScope SDK is required for real Qwen-VL calls. Install via `pip install dashscope`."
            ) from exc

        try:
            from dashscope.common import error as dashscope_error  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "DashScope SDK is required for real Qwen-VL calls. Install via `pip install dashscope`."
            ) from exc

        DashScopeAPIError = getattr(
            dashscope_error,
            "DashScopeAPIError",
            getattr(dashscope_error, "DashScopeException", Exception),
        )

        content_items: List[Dict[str, Any]] = []
        if request.image is not None:
            content_items.append({"image": request.image.to_data_url()})
        content_items.append({"text": request.instruction_with_schema()})

        model = self._json_model if request.capability is Capability.STRUCTURED_JSON else self._text_model
        try:
            response = MultiModalConversation.call(
                model=model,
                messages=[{"role": "user", "content": content_items}],
                api_key=self._api_key,
                timeout=self._timeout,
            )
        except DashScopeAPIError as err:
            raise ProviderTransportError(f"DashScope Qwen-VL call failed: {err}") from err

        status_code = getattr(response, "status_code", None)
        if status_code is not None and status_code != 200:
            message = getattr(response, "message", "") or "unknown error"
            raise ProviderTransportError(f"DashScope Qwen-VL call failed ({status_code}): {message}")

        text = self._extract_text(response)
        if not text:
            raise InvalidProviderResponse(
                f"Qwen response missing text for {request.task}",
                raw_text=json.dumps(self._as_dict(response), ensure_ascii=False, default=str),
            )
        return text

    @staticmethod
    def _as_dict(response) -> Dict[str, Any]:
        if isinstance(response, dict):
            return response
        if hasattr(response, "to_dict"):
            return response.to_dict()
        if hasattr(response, "output"):
            return {"output": getattr(response, "output")}
        return {}

    @classmethod
    def _extract_text(cls, response) -> str | None:
        """Extract the textual answer from DashScope responses."""
        data = cls._as_dict(response)
        output = data.get("output")
        if isinstance(output, dict):
            choices = output.get("choices")
            if isinstance(choices, list) and choices:
                message = choices[0].get("message")
                if isinstance(message, dict):
                    content = message.get("content")
                    if isinstance(content, str):
                        return content
                    if isinstance(content, list):
                        parts = [str(item["text"]) for item in content if isinstance(item, dict) and item.get("text")]
                        if parts:
                            return "".join(parts)
        return None
