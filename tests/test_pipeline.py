"""Regression tests for the unattended AdCreativeGenerator pipeline."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from adflow.config import WorkflowConfig
from adflow.errors import InvalidProviderResponse
from adflow.pipeline import AdCreativeGenerator, RunRequest
from adflow.services.mock import MockProvider
from adflow.state import WorkflowStage


def _create_product_image(directory: Path) -> Path:
    """Write a small PNG that stands in for a product photo."""
    image_path = directory / "product.png"
    Image.new("RGB", (64, 48), color=(200, 120, 40)).save(image_path, format="PNG")
    return image_path


class PipelineIntegrationTest(unittest.TestCase):
    """Covers the top-level pipeline behaviour."""

    def _generator(self, tmp: str, provider: MockProvider | None = None) -> AdCreativeGenerator:
        config = WorkflowConfig(runs_dir=str(Path(tmp) / "runs"), trace_steps=False)
        return AdCreativeGenerator(config=config, provider=provider)

    def test_still_run(self) -> None:
        """Ensure a still run reaches image prompts with the chosen choices applied."""
        with tempfile.TemporaryDirectory() as tmp:
            image_path = _create_product_image(Path(tmp))
            provider = MockProvider()
            generator = self._generator(tmp, provider)

            state = generator.run(
                RunRequest(
                    image_path=str(image_path),
                    advert_format="still",
                    cta_url="shop.example.com",
                    price_tag="$49",
                    style_index=2,
                    idea_indices=(1, 3),
                    edits=[(0, "technicalSpecs.mood", "Sunlit and calm")],
                    enhance_styling=True,
                )
            )

            self.assertEqual(state.stage, WorkflowStage.OUTPUTS_READY)
            self.assertEqual(len(state.image_prompts), 2)
            self.assertEqual(state.chosen_style, state.styles[2])
            self.assertEqual(state.chosen_ideas, (state.ideas[1], state.ideas[3]))
            self.assertEqual(state.final_concepts[0].technical_specs.mood, "Sunlit and calm")
            self.assertIn("$49", state.image_prompts[0].prompt)
            self.assertEqual(state.inputs.image.mime_type, "image/jpeg")

            tasks = [request.task for request in provider.requests]
            self.assertEqual(tasks.count("styling_notes"), 2)
            self.assertEqual(tasks[-1], "image_prompts")

            runs_dir = Path(tmp) / "runs"
            self.assertTrue(list(runs_dir.rglob("styles-prompt.txt")))
            self.assertTrue(list(runs_dir.rglob("image_prompts-response.json")))

    def test_video_run_takes_the_video_branch(self) -> None:
        """The conditional edge routes video runs to the script stage."""
        with tempfile.TemporaryDirectory() as tmp:
            image_path = _create_product_image(Path(tmp))
            generator = self._generator(tmp)

            state = generator.run(
                RunRequest(image_path=str(image_path), advert_format="video", cta_whatsapp="+1 555 0100")
            )

            self.assertEqual(state.stage, WorkflowStage.OUTPUTS_READY)
            self.assertEqual(len(state.video_scripts), 2)
            self.assertEqual(state.image_prompts, ())

    def test_failed_stage_is_logged(self) -> None:
        """Provider output that breaks the schema surfaces and leaves an error log."""
        with tempfile.TemporaryDirectory() as tmp:
            image_path = _create_product_image(Path(tmp))
            generator = self._generator(tmp, MockProvider({"ideas": "[]"}))

            with self.assertRaises(InvalidProviderResponse):
                generator.run(RunRequest(image_path=str(image_path)))

            self.assertTrue(list((Path(tmp) / "runs").rglob("ideas-error.json")))


if __name__ == "__main__":
    unittest.main()
