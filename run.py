"""Command-line entry point for the ad creative workflow."""

from __future__ import annotations

import argparse
import json
import sys

from adflow.errors import AdflowError
from adflow.pipeline import AdCreativeGenerator, RunRequest


def _edit(value: str) -> tuple[int, str, str]:
    """Parse ``INDEX:FIELD=VALUE`` into an edit tuple."""
    try:
        target, text = value.split("=", 1)
        index, path = target.split(":", 1)
        return int(index), path, text
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected INDEX:FIELD=VALUE, got {value!r}") from exc


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Generate ad concepts and final prompts from a product image.")
    parser.add_argument("image_path", help="Path to the product image.")
    parser.add_argument(
        "--format",
        choices=["still", "video"],
        default="still",
        help="Advert format: still image prompts or short video scripts.",
    )
    parser.add_argument("--url", help="Website to send customers to.")
    parser.add_argument("--whatsapp", help="WhatsApp number customers can message.")
    parser.add_argument("--brand-guidelines", default="", help="Tone, colours or rules the ad must respect.")
    parser.add_argument("--concept", default="", help="Draft idea to enhance instead of inventing new ones.")
    parser.add_argument("--price-tag", default="", help="Price shown on still image ads, e.g. '$49'.")
    parser.add_argument("--language", help="Language for hooks and CTAs (defaults to config).")
    parser.add_argument("--style", type=int, default=0, help="Index of the trending style to pick (0-4).")
    parser.add_argument(
        "--ideas",
        type=int,
        nargs=2,
        default=[0, 1],
        metavar=("FIRST", "SECOND"),
        help="Indices of the two concept ideas to expand (0-4).",
    )
    parser.add_argument(
        "--edit",
        type=_edit,
        action="append",
        default=[],
        metavar="INDEX:FIELD=VALUE",
        help="Edit a concept field before copy generation, e.g. 0:technicalSpecs.mood=Calm.",
    )
    parser.add_argument(
        "--enhance-styling",
        action="store_true",
        help="Ask the provider to rewrite the styling notes of both concepts.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point used by ``python run.py``."""
    args = parse_args(argv or sys.argv[1:])
    generator = AdCreativeGenerator()
    request = RunRequest(
        image_path=args.image_path,
        advert_format=args.format,
        cta_url=args.url,
        cta_whatsapp=args.whatsapp,
        brand_guidelines=args.brand_guidelines,
        user_concept=args.concept,
        price_tag=args.price_tag,
        copy_language=args.language,
        style_index=args.style,
        idea_indices=tuple(args.ideas),
        enhance_styling=args.enhance_styling,
        edits=list(args.edit),
    )
    try:
        state = generator.run(request)
    except AdflowError as exc:
        print(exc.user_message, file=sys.stderr)
        return 1

    outputs = state.video_scripts or state.image_prompts
    print("Generation completed.")
    print(json.dumps([item.to_wire() for item in outputs], ensure_ascii=False, indent=2))
    print(f"Prompts and responses stored under {generator.logger.base_dir}/")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
