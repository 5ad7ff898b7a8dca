"""Unit tests for batched, paced per-page illustration."""

import os
import threading

import pytest

from conftest import SleepRecorder, StubImageClient, make_story_payload
from storybook_ai.pipeline import ImageBatchGenerator, apply_image_results, plan_batches
from storybook_ai.providers import BatchPolicy, DallEImageBinding, ReplicateImageBinding
from storybook_ai.story_generation import StoryOutline


class RecordingImageClient(StubImageClient):
    """Stub client that also logs each request into a shared event list."""

    def __init__(self, events, fail_markers=()):
        super().__init__(fail_markers=fail_markers)
        self.events = events

    def generate_image(self, prompt, **model_kwargs):
        self.events.append("request")
        return super().generate_image(prompt, **model_kwargs)


class BarrierImageClient(StubImageClient):
    """Stub client whose requests only complete once `parties` of them are running together."""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=2)

    def generate_image(self, prompt, **model_kwargs):
        self.barrier.wait()
        return super().generate_image(prompt, **model_kwargs)


def _outline(page_count):
    return StoryOutline.from_dict(make_story_payload(page_count=page_count))


class TestPlanBatches:
    def test_no_pages(self):
        assert plan_batches(0, BatchPolicy()) == []

    def test_unbounded_is_a_single_batch(self):
        assert plan_batches(13, None) == [range(13)]

    def test_chunks_by_policy(self):
        batches = plan_batches(13, BatchPolicy(batch_size=6, delay_seconds=60))
        assert [len(batch) for batch in batches] == [6, 6, 1]
        assert [index for batch in batches for index in batch] == list(range(13))

    def test_exact_multiple(self):
        assert [len(batch) for batch in plan_batches(12, BatchPolicy())] == [6, 6]


class TestImageBatchGenerator:
    @pytest.mark.asyncio
    async def test_paced_provider_runs_batches_with_delays_between(self):
        events = []
        client = RecordingImageClient(events)
        sleep = SleepRecorder(events)
        outline = _outline(13)
        stages = []

        generator = ImageBatchGenerator(
            binding=DallEImageBinding(api_key="sk-image"),
            image_client=client,
            sleep=sleep,
        )
        await generator.generate_images(
            outline.pages,
            outline.characters,
            progress_callback=lambda stage, payload: stages.append((stage, payload)),
        )

        assert events == ["request"] * 6 + ["sleep"] + ["request"] * 6 + ["sleep"] + ["request"]
        assert sleep.delays == [60.0, 60.0]
        assert all(page.image_url for page in outline.pages)
        batch_sizes = [payload["batch_size"] for stage, payload in stages if stage == "images:batch"]
        assert batch_sizes == [6, 6, 1]

    @pytest.mark.asyncio
    async def test_single_batch_never_sleeps(self):
        sleep = SleepRecorder()
        outline = _outline(4)
        generator = ImageBatchGenerator(
            binding=DallEImageBinding(api_key="sk-image"),
            image_client=StubImageClient(),
            sleep=sleep,
        )

        await generator.generate_images(outline.pages, outline.characters)

        assert sleep.delays == []
        assert all(page.image_url for page in outline.pages)

    @pytest.mark.asyncio
    async def test_unbounded_provider_issues_everything_at_once(self):
        events = []
        sleep = SleepRecorder(events)
        outline = _outline(13)
        generator = ImageBatchGenerator(
            binding=ReplicateImageBinding(api_key="r8"),
            image_client=RecordingImageClient(events),
            sleep=sleep,
        )

        await generator.generate_images(outline.pages, outline.characters)

        assert events == ["request"] * 13
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_failed_page_keeps_no_image(self):
        outline = _outline(3)
        stages = []
        generator = ImageBatchGenerator(
            binding=ReplicateImageBinding(api_key="r8"),
            image_client=StubImageClient(fail_markers=("Scene 2:",)),
        )

        await generator.generate_images(
            outline.pages,
            outline.characters,
            progress_callback=lambda stage, payload: stages.append((stage, payload)),
        )

        assert outline.pages[0].image_url is not None
        assert outline.pages[1].image_url is None
        assert outline.pages[2].image_url is not None
        done = {payload["page_index"]: payload["succeeded"] for stage, payload in stages if stage == "image:done"}
        assert done == {0: True, 1: False, 2: True}

    @pytest.mark.asyncio
    async def test_missing_api_key_is_a_no_op(self):
        client = StubImageClient()
        outline = _outline(2)
        generator = ImageBatchGenerator(
            binding=DallEImageBinding(api_key=""),
            image_client=client,
        )

        await generator.generate_images(outline.pages, outline.characters)

        assert client.prompts == []
        assert all(page.image_url is None for page in outline.pages)

    @pytest.mark.asyncio
    async def test_prompts_carry_character_sheet_details(self):
        client = StubImageClient()
        outline = _outline(1)
        generator = ImageBatchGenerator(
            binding=ReplicateImageBinding(api_key="r8"),
            image_client=client,
        )

        await generator.generate_images(outline.pages, outline.characters)

        (prompt,) = client.prompts
        assert "Finn the Fox (red fox)" in prompt.positive
        assert prompt.positive.endswith(outline.pages[0].image)


class TestApplyImageResults:
    def test_only_successful_urls_are_written(self):
        outline = _outline(3)
        apply_image_results(
            outline.pages,
            [(0, "https://images.example/a.png"), (1, RuntimeError("boom")), (2, "")],
        )
        assert [page.image_url for page in outline.pages] == [
            "https://images.example/a.png",
            None,
            None,
        ]


class TestBatchConcurrency:
    @pytest.mark.asyncio
    async def test_full_paced_batch_is_in_flight_on_a_single_cpu_host(self, monkeypatch):
        monkeypatch.setattr(os, "cpu_count", lambda: 1)
        outline = _outline(6)
        generator = ImageBatchGenerator(
            binding=DallEImageBinding(api_key="sk-image"),
            image_client=BarrierImageClient(parties=6),
            sleep=SleepRecorder(),
        )

        await generator.generate_images(outline.pages, outline.characters)

        assert all(page.image_url for page in outline.pages)

    @pytest.mark.asyncio
    async def test_unbounded_provider_runs_every_page_together(self, monkeypatch):
        monkeypatch.setattr(os, "cpu_count", lambda: 1)
        outline = _outline(13)
        generator = ImageBatchGenerator(
            binding=ReplicateImageBinding(api_key="r8"),
            image_client=BarrierImageClient(parties=13),
        )

        await generator.generate_images(outline.pages, outline.characters)

        assert all(page.image_url for page in outline.pages)
