"""
CLI to generate a story from a prompt and save it to the local story store.

Usage:
    python scripts/generate_story.py "a brave fox who is afraid of the dark" \
        --pages 6 --age-range 5-8 --theme Adventure --pdf fox_story.pdf

Run scripts/configure_services.py first to store provider keys.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storybook_ai import (  # noqa: E402
    AIServiceManager,
    ConfigurationError,
    ConfigurationStore,
    GenerationOptions,
    StoryGenerationError,
    StoryStore,
    StorybookPDFBuilder,
    YamlFileKeyValueStore,
)
from storybook_ai.story_generation.options import AGE_RANGES, DEFAULT_AGE_RANGE, DEFAULT_PAGE_COUNT  # noqa: E402

LOADING_MESSAGES = {
    "story": [
        "Crafting a fantastical story...",
        "Brewing up some imagination...",
        "Weaving tales of wonder...",
        "Sprinkling in some magic...",
        "Gathering inspiration...",
        "Writing the perfect beginning...",
        "Adding a dash of excitement...",
        "Creating memorable characters...",
    ],
    "images": [
        "Coloring in the lines...",
        "Painting magical scenes...",
        "Bringing characters to life...",
        "Adding the finishing touches...",
        "Making everything beautiful...",
        "Mixing the perfect colors...",
        "Sketching wonderful illustrations...",
        "Adding sparkle to the scenes...",
    ],
}


class ProgressTracker:
    """
    Command-line progress updates for story generation.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "story:generating":
                self._write(f"[1/3] {random.choice(LOADING_MESSAGES['story'])}")
            case "story:generated":
                title = payload.get("title", "Untitled")
                total = payload.get("total_pages", 0)
                self._write(f"[1/3] Wrote \"{title}\" ({total} pages).")
            case "images:generating":
                total = payload.get("total_pages", 0)
                self._write(f"[2/3] {random.choice(LOADING_MESSAGES['images'])}")
                self._page_bar = tqdm(total=total, desc="Illustrated pages", unit="page")
            case "images:batch":
                total_batches = payload.get("total_batches", 1)
                if total_batches > 1 and self._page_bar is not None:
                    self._page_bar.set_description(
                        f"Batch {payload.get('batch_number')}/{total_batches}"
                    )
            case "image:done":
                if self._page_bar is not None:
                    self._page_bar.update(1)
            case "images:done":
                self.close()
                illustrated = payload.get("illustrated_pages", 0)
                total = payload.get("total_pages", 0)
                self._write(f"[2/3] Illustrated {illustrated} of {total} pages.")
            case "story:complete":
                self._write("[3/3] Story complete.")

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an illustrated children's story.")
    parser.add_argument("prompt", help="What the story should be about.")
    parser.add_argument(
        "--pages",
        type=int,
        default=None,
        help=f"Number of pages, 1-20 (default: {DEFAULT_PAGE_COUNT}).",
    )
    parser.add_argument(
        "--age-range",
        choices=AGE_RANGES,
        default=None,
        help=f"Target reader age range (default: {DEFAULT_AGE_RANGE}).",
    )
    parser.add_argument("--theme", default=None, help="Optional story theme.")
    parser.add_argument(
        "--no-images",
        dest="include_images",
        action="store_false",
        default=None,
        help="Skip illustration generation.",
    )
    parser.add_argument(
        "--options-file",
        default=None,
        help="YAML/JSON file with generation options; command-line flags take precedence.",
    )
    parser.add_argument(
        "--pdf",
        default=None,
        help="Optional path to also render the finished story as a PDF.",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Path of the local store file (default: STORYBOOK_STORE_PATH or ~/.storybook_ai/store.yaml).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level.")
    return parser.parse_args(argv)


def load_options_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported options file format. Use YAML or JSON.")

    if not isinstance(data, dict):
        raise ValueError("Options file must deserialize to a mapping.")
    return data


def build_options(args: argparse.Namespace) -> GenerationOptions:
    mapping: Dict[str, Any] = {}
    if args.options_file:
        mapping.update(load_options_mapping(Path(args.options_file)))

    overrides = {
        "page_count": args.pages,
        "age_range": args.age_range,
        "include_images": args.include_images,
        "theme": args.theme,
    }
    for key, value in overrides.items():
        if value is not None:
            mapping[key] = value
    return GenerationOptions.from_mapping(mapping)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if not args.prompt.strip():
        print("Invalid prompt: describe what the story should be about.", file=sys.stderr)
        return 2

    try:
        options = build_options(args)
    except ValueError as exc:
        print(f"Invalid options: {exc}", file=sys.stderr)
        return 2

    backend = YamlFileKeyValueStore(args.store)
    config_store = ConfigurationStore(backend)
    story_store = StoryStore(backend)

    tracker = ProgressTracker()
    try:
        manager = AIServiceManager.from_store(config_store, story_store=story_store)
        story = manager.generate_story_sync(args.prompt, options, progress_callback=tracker)
    except ConfigurationError as exc:
        print(f"{exc} Run scripts/configure_services.py to set them.", file=sys.stderr)
        return 2
    except StoryGenerationError as exc:
        print(f"An error occurred while generating the story: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.close()

    print(f"Saved \"{story.title}\" to {backend.path} (id: {story.id})")

    if args.pdf:
        output = StorybookPDFBuilder().build(story, args.pdf)
        print(f"Rendered storybook PDF to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
