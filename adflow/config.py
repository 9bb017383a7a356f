"""Configuration containers for the ad creative workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar

from .services.base import ContentProvider


@dataclass(slots=True)
class WorkflowConfig:
    """Static configuration applied to every workflow run."""

    env_prefix: ClassVar[str] = "ADFLOW_"

    runs_dir: str = "runs"
    enable_mock_generation: bool = True
    provider: str = "openai"
    openai_api_key: str | None = None
    openai_api_url: str | None = None
    dashscope_api_key: str | None = None
    text_model: str | None = None
    json_model: str | None = None
    timeout_sec: float = 120.0
    trace_steps: bool = True
    copy_language: str = "English"

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        """Create a config object populated from environment variables."""
        prefix = cls.env_prefix
        return cls(
            runs_dir=os.getenv(f"{prefix}RUNS_DIR", "runs"),
            enable_mock_generation=os.getenv(f"{prefix}ENABLE_MOCKS", "true").lower() == "true",
            provider=os.getenv(f"{prefix}PROVIDER", "openai").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_api_url=os.getenv("OPENAI_BASE_URL"),
            dashscope_api_key=os.getenv("DASHSCOPE_API_KEY"),
            text_model=os.getenv(f"{prefix}TEXT_MODEL") or None,
            json_model=os.getenv(f"{prefix}JSON_MODEL") or None,
            timeout_sec=float(os.getenv(f"{prefix}TIMEOUT_SEC", "120")),
            trace_steps=os.getenv(f"{prefix}TRACE_STEPS", "true").lower() == "true",
            copy_language=os.getenv(f"{prefix}COPY_LANGUAGE", "English"),
        )


def build_provider(config: WorkflowConfig) -> ContentProvider:
    """Instantiate the provider client selected by ``config``."""
    if config.enable_mock_generation:
        from .services.mock import MockProvider

        return MockProvider()

    models = {}
    if config.text_model:
        models["text_model"] = config.text_model
    if config.json_model:
        models["json_model"] = config.json_model

    if config.provider == "qwen":
        from .services.qwen import QwenProvider

        return QwenProvider(api_key=config.dashscope_api_key, timeout=config.timeout_sec, **models)
    if config.provider == "openai":
        from .services.openai_compat import OpenAICompatibleProvider

        return OpenAICompatibleProvider(
            api_key=config.openai_api_key,
            api_url=config.openai_api_url,
            timeout=config.timeout_sec,
            **models,
        )
    raise ValueError(f"Unknown provider {config.provider!r}; expected 'openai' or 'qwen'")
