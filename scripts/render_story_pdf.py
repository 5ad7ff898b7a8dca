"""
List stored stories or render one of them into a printable PDF.

Usage:
    python scripts/render_story_pdf.py --list
    python scripts/render_story_pdf.py --story-id <id> --output story.pdf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storybook_ai import StoryStore, StorybookPDFBuilder, YamlFileKeyValueStore  # noqa: E402
from storybook_ai.pdf_generation import PAGE_SIZES, format_created_at  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a stored story into a storybook PDF."
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored stories, most recent first, and exit.",
    )
    parser.add_argument(
        "--story-id",
        default=None,
        help="Id of the story to render (default: the most recent story).",
    )
    parser.add_argument(
        "--output",
        default="storybook.pdf",
        help="Destination PDF file path (default: storybook.pdf).",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="square",
        help="Page size to render (default: square).",
    )
    parser.add_argument(
        "--margin-mm",
        type=float,
        default=18.0,
        help="Page margin in millimetres (default: 18).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for downloading illustration assets (default: 30).",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Path of the local store file (default: STORYBOOK_STORE_PATH or ~/.storybook_ai/store.yaml).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    story_store = StoryStore(YamlFileKeyValueStore(args.store))

    if args.list:
        stories = story_store.list()
        if not stories:
            print("No stories yet.")
        for story in stories:
            print(
                f"{story.id}  {story.title}\n"
                f"    Created: {format_created_at(story.metadata.created_at)} • "
                f"{len(story.pages)} pages • Age: {story.metadata.options.age_range}"
            )
        return 0

    if args.story_id:
        story = story_store.get(args.story_id)
    else:
        stories = story_store.list()
        story = stories[0] if stories else None

    if story is None:
        print("Story not found. Use --list to see stored stories.", file=sys.stderr)
        return 1

    builder = StorybookPDFBuilder(
        page_size=PAGE_SIZES[args.page_size],
        margin_mm=args.margin_mm,
        request_timeout=args.timeout,
    )
    output = builder.build(story, args.output)

    print(f"Rendered storybook PDF to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
