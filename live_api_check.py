#!/usr/bin/env python3
"""Run live connectivity checks against the OpenAI-compatible and Qwen providers."""

from __future__ import annotations

import argparse
import sys
import textwrap
from typing import Iterable

from adflow.services.base import ContentProvider
from adflow.services.openai_compat import OpenAICompatibleProvider
from adflow.services.qwen import QwenProvider
from adflow.utils.images import load_image
from adflow.workflow import Workflow


def run_styles_check(provider: ContentProvider, image_path: str, advert_format: str) -> str:
    """Drive one real stage through the workflow and summarise the result."""
    workflow = Workflow(provider)
    workflow.load_image(load_image(image_path))
    workflow.select_format(advert_format)
    state = workflow.generate_styles()
    titles = ", ".join(style.title for style in state.styles)
    return f"Received {len(state.styles)} styles: {titles}"


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Smoke-test the content providers with a real styles request.
            Each check only runs when the corresponding --*-key argument is supplied; otherwise it is skipped.
            """
        ),
    )
    parser.add_argument("image_path", help="Product image sent with the request.")
    parser.add_argument("--format", choices=["still", "video"], default="still", help="Advert format.")

    parser.add_argument("--openai-key", help="API key for the OpenAI-compatible endpoint.")
    parser.add_argument("--openai-url", help="Optional base URL of the OpenAI-compatible endpoint.")
    parser.add_argument("--openai-model", default="gpt-4o", help="Model used for structured requests.")

    parser.add_argument("--qwen-key", help="Qwen DashScope API key.")
    parser.add_argument("--qwen-model", default="qwen-vl-max", help="Qwen-VL model used for structured requests.")
    return parser.parse_args(list(argv))


def main(argv: Iterable[str]) -> int:
    args = parse_args(argv)

    results: list[tuple[str, bool, str]] = []

    if args.openai_key:
        provider = OpenAICompatibleProvider(
            api_key=args.openai_key, api_url=args.openai_url, json_model=args.openai_model
        )
        try:
            results.append(("OpenAI", True, run_styles_check(provider, args.image_path, args.format)))
        except Exception as exc:  # noqa: BLE001 - surface connectivity failures
            results.append(("OpenAI", False, repr(exc)))
    else:
        results.append(("OpenAI", False, "Skipped (no --openai-key provided)"))

    if args.qwen_key:
        provider = QwenProvider(api_key=args.qwen_key, json_model=args.qwen_model)
        try:
            results.append(("Qwen", True, run_styles_check(provider, args.image_path, args.format)))
        except Exception as exc:  # noqa: BLE001
            results.append(("Qwen", False, repr(exc)))
    else:
        results.append(("Qwen", False, "Skipped (no --qwen-key provided)"))

    any_failure = False
    for name, ok, detail in results:
        status = "SUCCESS" if ok else "FAIL"
        print(f"[{name}] {status}: {detail}")
        if not ok and "Skipped" not in detail:
            any_failure = True

    return 0 if not any_failure else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
