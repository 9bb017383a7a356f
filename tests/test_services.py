"""Tests for configuration and the provider clients, without network access."""

from __future__ import annotations

import os
import unittest
from types import SimpleNamespace
from unittest import mock

from adflow.config import WorkflowConfig, build_provider
from adflow.errors import ProviderTransportError
from adflow.services.base import Capability, ProviderRequest
from adflow.services.mock import MockProvider
from adflow.services.openai_compat import OpenAICompatibleProvider
from adflow.services.qwen import QwenProvider
from adflow.stages.copy_options import COPY_OPTIONS_SHAPE
from adflow.stages.styles import STYLES_SHAPE

from helpers import PRODUCT_IMAGE


class _FakeCompletions:
    def __init__(self, content: str) -> None:
        self.calls: list[dict] = []
        self._content = content

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _request(shape=STYLES_SHAPE, capability=Capability.STRUCTURED_JSON) -> ProviderRequest:
    return ProviderRequest(
        task="styles",
        instruction="Suggest styles.",
        image=PRODUCT_IMAGE,
        schema=shape.json_schema(),
        capability=capability,
    )


class ConfigTest(unittest.TestCase):
    """Environment-driven configuration."""

    def test_from_env(self) -> None:
        env = {
            "ADFLOW_RUNS_DIR": "/tmp/adflow-runs",
            "ADFLOW_ENABLE_MOCKS": "false",
            "ADFLOW_PROVIDER": "Qwen",
            "ADFLOW_TIMEOUT_SEC": "30",
            "ADFLOW_TRACE_STEPS": "false",
            "DASHSCOPE_API_KEY": "sk-test",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = WorkflowConfig.from_env()
        self.assertEqual(config.runs_dir, "/tmp/adflow-runs")
        self.assertFalse(config.enable_mock_generation)
        self.assertEqual(config.provider, "qwen")
        self.assertEqual(config.timeout_sec, 30.0)
        self.assertFalse(config.trace_steps)
        self.assertEqual(config.dashscope_api_key, "sk-test")
        self.assertIsNone(config.openai_api_key)

    def test_build_provider(self) -> None:
        self.assertIsInstance(build_provider(WorkflowConfig()), MockProvider)
        qwen = build_provider(WorkflowConfig(enable_mock_generation=False, provider="qwen"))
        self.assertIsInstance(qwen, QwenProvider)
        openai = build_provider(WorkflowConfig(enable_mock_generation=False, json_model="gpt-4.1"))
        self.assertIsInstance(openai, OpenAICompatibleProvider)
        with self.assertRaises(ValueError):
            build_provider(WorkflowConfig(enable_mock_generation=False, provider="bard"))


class OpenAICompatibleProviderTest(unittest.TestCase):
    """Request assembly against a stubbed OpenAI client."""

    def _provider(self, content: str) -> tuple[OpenAICompatibleProvider, _FakeCompletions]:
        provider = OpenAICompatibleProvider(api_key="sk-test")
        completions = _FakeCompletions(content)
        provider._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        return provider, completions

    def test_array_schema_is_spelled_out_in_the_instruction(self) -> None:
        provider, completions = self._provider("[]")
        self.assertEqual(provider.generate(_request()), "[]")

        call = completions.calls[0]
        self.assertEqual(call["model"], "gpt-4o")
        self.assertNotIn("response_format", call)
        text_part, image_part = call["messages"][0]["content"]
        self.assertIn("JSON schema", text_part["text"])
        self.assertTrue(image_part["image_url"]["url"].startswith("data:image/png;base64,"))

    def test_object_schema_uses_response_format(self) -> None:
        provider, completions = self._provider("{}")
        provider.generate(_request(COPY_OPTIONS_SHAPE))
        call = completions.calls[0]
        self.assertEqual(call["response_format"]["type"], "json_schema")
        self.assertEqual(call["messages"][0]["content"][0]["text"], "Suggest styles.")

    def test_text_requests_use_the_text_model(self) -> None:
        provider, completions = self._provider("Fresh notes.")
        request = ProviderRequest(task="styling_notes", instruction="Improve.", capability=Capability.TEXT)
        self.assertEqual(provider.generate(request), "Fresh notes.")
        self.assertEqual(completions.calls[0]["model"], "gpt-4o-mini")
        self.assertEqual(len(completions.calls[0]["messages"][0]["content"]), 1)

    def test_missing_key_is_a_transport_error(self) -> None:
        with self.assertRaises(ProviderTransportError):
            OpenAICompatibleProvider().generate(_request())


class QwenProviderTest(unittest.TestCase):
    """DashScope calls are patched at the SDK boundary."""

    def test_extracts_list_content(self) -> None:
        response = {"output": {"choices": [{"message": {"content": [{"text": "[1"}, {"text": "]"}]}}]}}
        with mock.patch("dashscope.MultiModalConversation.call", return_value=response) as call:
            text = QwenProvider(api_key="sk-test").generate(_request())

        self.assertEqual(text, "[1]")
        kwargs = call.call_args.kwargs
        self.assertEqual(kwargs["model"], "qwen-vl-max")
        content = kwargs["messages"][0]["content"]
        self.assertTrue(content[0]["image"].startswith("data:image/png;base64,"))
        self.assertIn("JSON schema", content[1]["text"])

    def test_error_status_is_a_transport_error(self) -> None:
        response = SimpleNamespace(status_code=429, message="Throttled", output=None)
        with mock.patch("dashscope.MultiModalConversation.call", return_value=response):
            with self.assertRaises(ProviderTransportError):
                QwenProvider(api_key="sk-test").generate(_request())

    def test_missing_key_is_a_transport_error(self) -> None:
        with self.assertRaises(ProviderTransportError):
            QwenProvider().generate(_request())


if __name__ == "__main__":
    unittest.main()
