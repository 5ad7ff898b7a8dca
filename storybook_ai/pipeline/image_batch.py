"""
Per-page illustration requests, batched and paced for rate-limited providers.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Sequence

from storybook_ai.ai_generation import build_page_image_prompt
from storybook_ai.providers import BatchPolicy, ImageBinding, ImageClient, build_image_client
from storybook_ai.story_generation.schema import Character, Page

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]
SleepCallable = Callable[[float], Awaitable[Any]]
PageResult = tuple[int, str | BaseException]


def plan_batches(total_pages: int, policy: BatchPolicy | None) -> list[range]:
    """
    Group page indices into request batches.

    Without a policy every page goes out in one unbounded batch.
    """
    if total_pages <= 0:
        return []
    if policy is None:
        return [range(total_pages)]
    return [
        range(start, min(start + policy.batch_size, total_pages))
        for start in range(0, total_pages, policy.batch_size)
    ]


class ImageBatchGenerator:
    """
    Fills in ``Page.image_url`` for every page whose illustration request succeeds.

    Requests inside a batch run concurrently; the next batch starts only once the
    whole batch has settled and, for paced providers, the policy delay has passed.
    A failing page is logged and left without an image.
    """

    def __init__(
        self,
        *,
        binding: ImageBinding,
        image_client: ImageClient | None = None,
        sleep: SleepCallable | None = None,
    ) -> None:
        self._binding = binding
        self._image_client = image_client
        self._sleep: SleepCallable = sleep or asyncio.sleep

    @property
    def policy(self) -> BatchPolicy | None:
        return self._binding.policy

    async def generate_images(
        self,
        pages: Sequence[Page],
        characters: Sequence[Character],
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        if not self._binding.api_key:
            logger.warning("No image service API key provided, skipping image generation.")
            return

        client = self._image_client or build_image_client(self._binding)
        batches = plan_batches(len(pages), self.policy)
        total_pages = len(pages)

        for batch_number, indices in enumerate(batches, start=1):
            logger.info(
                "Processing image batch %d/%d (%d pages) with %s.",
                batch_number,
                len(batches),
                len(indices),
                self._binding.service,
            )
            _notify(
                progress_callback,
                "images:batch",
                batch_number=batch_number,
                total_batches=len(batches),
                batch_size=len(indices),
            )

            # One worker per page so the whole batch is in flight together.
            with ThreadPoolExecutor(
                max_workers=len(indices), thread_name_prefix="storybook-image"
            ) as executor:
                results: list[PageResult] = await asyncio.gather(
                    *(
                        self._render_page(
                            client,
                            executor,
                            index=index,
                            page=pages[index],
                            characters=characters,
                            total_pages=total_pages,
                            progress_callback=progress_callback,
                        )
                        for index in indices
                    )
                )
            apply_image_results(pages, results)

            if self.policy is not None and batch_number < len(batches):
                logger.info(
                    "Waiting %.0f seconds before processing next batch...",
                    self.policy.delay_seconds,
                )
                await self._sleep(self.policy.delay_seconds)

    async def _render_page(
        self,
        client: ImageClient,
        executor: Executor,
        *,
        index: int,
        page: Page,
        characters: Sequence[Character],
        total_pages: int,
        progress_callback: ProgressCallback | None,
    ) -> PageResult:
        prompt = build_page_image_prompt(page, characters)
        logger.info("Generating image %d/%d...", index + 1, total_pages)
        try:
            loop = asyncio.get_running_loop()
            image_url = await loop.run_in_executor(executor, client.generate_image, prompt)
        except Exception as exc:
            logger.exception("Error generating image %d/%d.", index + 1, total_pages)
            _notify(progress_callback, "image:done", page_index=index, succeeded=False)
            return index, exc

        _notify(progress_callback, "image:done", page_index=index, succeeded=True)
        return index, image_url


def apply_image_results(pages: Sequence[Page], results: Sequence[PageResult]) -> None:
    """
    Write successful URLs back onto their pages; failures leave the page untouched.
    """
    for index, outcome in results:
        if isinstance(outcome, str) and outcome:
            pages[index].image_url = outcome


def _notify(callback: ProgressCallback | None, stage: str, **payload: Any) -> None:
    if callback is not None:
        callback(stage, payload)
