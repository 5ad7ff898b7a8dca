"""Unit tests for the LiteLLM wrappers."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from storybook_ai.common import call_chat_completion, call_image_generation


class TestCallChatCompletion:
    def test_forwards_optional_arguments_only_when_set(self):
        response = {"choices": [{"message": {"content": "  {\"title\": \"x\"}  "}}]}
        with patch("storybook_ai.common.llm.completion", return_value=response) as completion:
            result = call_chat_completion(
                model="openai/o3-mini",
                messages=[{"role": "user", "content": "hi"}],
                api_key="sk-1",
                response_format={"type": "json_object"},
            )

        kwargs = completion.call_args.kwargs
        assert kwargs["api_key"] == "sk-1"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "temperature" not in kwargs
        assert "max_tokens" not in kwargs
        assert result.text == '{"title": "x"}'
        assert result.raw is response

    def test_null_content_becomes_empty_text(self):
        response = {"choices": [{"message": {"content": None}}]}
        with patch("storybook_ai.common.llm.completion", return_value=response):
            result = call_chat_completion(model="m", messages=[], temperature=0.7)
        assert result.text == ""

    def test_unexpected_shape_raises(self):
        with patch("storybook_ai.common.llm.completion", return_value={"choices": []}):
            with pytest.raises(RuntimeError, match="Unexpected LiteLLM response format"):
                call_chat_completion(model="m", messages=[])


class TestCallImageGeneration:
    def test_collects_urls_from_objects(self):
        response = SimpleNamespace(
            data=[SimpleNamespace(url="https://images.example/1.png"), SimpleNamespace(url=None)]
        )
        with patch("storybook_ai.common.llm.image_generation", return_value=response) as generate:
            result = call_image_generation(
                model="dall-e-3", prompt="a fox", size="1024x1024", n=1, api_key="sk-img"
            )

        generate.assert_called_once_with(
            model="dall-e-3", prompt="a fox", size="1024x1024", n=1, api_key="sk-img"
        )
        assert result.urls == ["https://images.example/1.png"]

    def test_collects_urls_from_mappings(self):
        response = {"data": [{"url": "https://images.example/2.png"}]}
        with patch("storybook_ai.common.llm.image_generation", return_value=response):
            result = call_image_generation(model="dall-e-3", prompt="a fox")
        assert result.urls == ["https://images.example/2.png"]

    def test_missing_data_raises(self):
        with patch("storybook_ai.common.llm.image_generation", return_value={}):
            with pytest.raises(RuntimeError, match="image response"):
                call_image_generation(model="dall-e-3", prompt="a fox")
