"""
CLI to choose text/image providers and store their API keys.

Usage:
    python scripts/configure_services.py \
        --text-service anthropic --text-api-key sk-ant-... \
        --image-service replicate --image-api-key r8_...

    python scripts/configure_services.py --from-env
    python scripts/configure_services.py --show
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storybook_ai import (  # noqa: E402
    AIServiceConfig,
    ConfigurationError,
    ConfigurationStore,
    ServiceSelection,
    YamlFileKeyValueStore,
)
from storybook_ai.config import KNOWN_SERVICES  # noqa: E402
from storybook_ai.providers import resolve_image_binding, resolve_text_binding  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Configure the AI services used for stories.")
    parser.add_argument("--text-service", choices=KNOWN_SERVICES, default=None)
    parser.add_argument("--text-api-key", default=None)
    parser.add_argument("--image-service", choices=KNOWN_SERVICES, default=None)
    parser.add_argument("--image-api-key", default=None)
    parser.add_argument(
        "--from-env",
        action="store_true",
        help="Start from environment variables (OPENAI_API_KEY, REPLICATE_API_TOKEN, ...).",
    )
    parser.add_argument("--show", action="store_true", help="Print the stored configuration.")
    parser.add_argument(
        "--store",
        default=None,
        help="Path of the local store file (default: STORYBOOK_STORE_PATH or ~/.storybook_ai/store.yaml).",
    )
    return parser.parse_args()


def _mask(api_key: str) -> str:
    if not api_key:
        return "(not set)"
    return f"{api_key[:4]}…{api_key[-2:]}" if len(api_key) > 8 else "****"


def _merge(current: ServiceSelection, service: str | None, api_key: str | None) -> ServiceSelection:
    return ServiceSelection(
        service=service or current.service,
        api_key=current.api_key if api_key is None else api_key.strip(),
    )


def print_config(config: AIServiceConfig | None, store: ConfigurationStore) -> None:
    if config is None:
        print("No AI service configuration stored yet.")
        return
    print(f"Text service : {config.text_service.service} (key {_mask(config.text_service.api_key)})")
    print(f"Image service: {config.image_service.service} (key {_mask(config.image_service.api_key)})")
    print(f"Configured   : {'yes' if store.is_configured() else 'no'}")


def main() -> int:
    args = parse_args()
    store = ConfigurationStore(YamlFileKeyValueStore(args.store))

    if args.show:
        print_config(store.get(), store)
        return 0

    base = AIServiceConfig.from_env() if args.from_env else (store.get() or AIServiceConfig.default())
    config = AIServiceConfig(
        text_service=_merge(base.text_service, args.text_service, args.text_api_key),
        image_service=_merge(base.image_service, args.image_service, args.image_api_key),
    )

    try:
        resolve_text_binding(config.text_service)
        resolve_image_binding(config.image_service)
    except ConfigurationError as exc:
        print(f"{exc}", file=sys.stderr)
        return 2

    store.set(config)
    print_config(config, store)
    if not config.is_complete():
        print("Both API keys are required before stories can be generated.", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
