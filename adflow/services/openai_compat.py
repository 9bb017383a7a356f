"""OpenAI-compatible chat completion client used as the content provider."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..errors import InvalidProviderResponse, ProviderTransportError
from .base import Capability, ProviderRequest


class OpenAICompatibleProvider:
    """Sends stage requests to any OpenAI-compatible endpoint.

    Structured requests use ``json_model`` and forward the schema as a
    ``response_format`` when its root is an object; array-rooted schemas are
    spelled out in the instruction instead, since JSON mode needs an object root.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        text_model: str = "gpt-4o-mini",
        json_model: str = "gpt-4o",
        timeout: int = 120,
        temperature: float = 0.8,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._text_model = text_model
        self._json_model = json_model
        self._timeout = timeout
        self._temperature = temperature
        self._client = None

    def generate(self, request: ProviderRequest) -> str:
        """Return the raw assistant text for ``request``."""
        if not self._api_key:
            raise ProviderTransportError("OpenAI API key is missing; cannot call service.")

        client = self._resolve_client()
        from openai import OpenAIError  # type: ignore

        kwargs: Dict[str, Any] = {
            "model": self._model_for(request),
            "messages": [{"role": "user", "content": self._build_content(request)}],
            "temperature": self._temperature,
            "timeout": self._timeout,
        }
        response_format = self._response_format(request)
        if response_format is not None:
            kwargs["response_format"] = response_format

        try:
            response = client.chat.completions.create(**kwargs)
        except OpenAIError as err:
            raise ProviderTransportError(f"OpenAI-compatible call failed: {err}") from err

        text = self._extract_text(response)
        if text is None:
            raise InvalidProviderResponse(f"Provider response missing content for {request.task}")
        return text

    def _resolve_client(self):
        if self._client is not None:
            return self._client
        try:
            from openai import OpenAI  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "openai package is required for provider calls. Install via `pip install openai`."
            ) from exc
        self._client = OpenAI(api_key=self._api_key, base_url=self._api_url)
        return self._client

    def _model_for(self, request: ProviderRequest) -> str:
        if request.capability is Capability.STRUCTURED_JSON:
            return self._json_model
        return self._text_model

    @staticmethod
    def _uses_native_schema(request: ProviderRequest) -> bool:
        return (
            request.capability is Capability.STRUCTURED_JSON
            and bool(request.schema)
            and request.schema.get("type") == "object"
        )

    def _build_content(self, request: ProviderRequest) -> List[Dict[str, Any]]:
        text = request.instruction if self._uses_native_schema(request) else request.instruction_with_schema()
        content: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        if request.image is not None:
            content.append({"type": "image_url", "image_url": {"url": request.image.to_data_url()}})
        return content

    def _response_format(self, request: ProviderRequest) -> Optional[Dict[str, Any]]:
        if not self._uses_native_schema(request):
            return None
        return {
            "type": "json_schema",
            "json_schema": {"name": request.task, "schema": request.schema, "strict": False},
        }

    @staticmethod
    def _extract_text(response) -> str | None:
        """Extract assistant text content from OpenAI-compatible responses."""
        choices = getattr(response, "choices", None)
        if not choices and isinstance(response, dict):
            choices = response.get("choices")
        if isinstance(choices, list) and choices:
            choice = choices[0]
            message = getattr(choice, "message", None)
            if message is None and isinstance(choice, dict):
                message = choice.get("message")
            if message:
                content = getattr(message, "content", None)
                if content is None and isinstance(message, dict):
                    content = message.get("content")
                if isinstance(content, str):
                    return content
        return None
