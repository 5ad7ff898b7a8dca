"""Unit tests for GenerationOptions validation and mapping."""

import pytest

from storybook_ai.story_generation.options import AGE_RANGES, GenerationOptions


class TestGenerationOptions:
    def test_defaults_match_prompt_form(self):
        options = GenerationOptions()
        assert options.page_count == 5
        assert options.age_range == "5-8"
        assert options.include_images is True
        assert options.theme is None

    @pytest.mark.parametrize("page_count", [1, 10, 20])
    def test_accepts_page_counts_in_range(self, page_count):
        assert GenerationOptions(page_count=page_count).page_count == page_count

    @pytest.mark.parametrize("page_count", [0, 21, -3])
    def test_rejects_page_counts_out_of_range(self, page_count):
        with pytest.raises(ValueError, match="between 1 and 20"):
            GenerationOptions(page_count=page_count)

    @pytest.mark.parametrize("age_range", AGE_RANGES)
    def test_accepts_known_age_ranges(self, age_range):
        assert GenerationOptions(age_range=age_range).age_range == age_range

    def test_rejects_unknown_age_range(self):
        with pytest.raises(ValueError, match="age_range"):
            GenerationOptions(age_range="2-4")

    def test_blank_theme_becomes_none(self):
        assert GenerationOptions(theme="   ").theme is None

    def test_options_are_immutable(self):
        options = GenerationOptions()
        with pytest.raises(AttributeError):
            options.page_count = 7


class TestFromMapping:
    def test_reads_camel_case_keys(self):
        options = GenerationOptions.from_mapping(
            {"pageCount": 3, "ageRange": "8-12", "includeImages": False, "theme": "Friendship"}
        )
        assert options == GenerationOptions(
            page_count=3, age_range="8-12", include_images=False, theme="Friendship"
        )

    def test_reads_snake_case_keys_and_coerces_strings(self):
        options = GenerationOptions.from_mapping(
            {"page_count": "4", "age_range": "12+", "include_images": "no"}
        )
        assert options.page_count == 4
        assert options.age_range == "12+"
        assert options.include_images is False

    def test_missing_keys_fall_back_to_defaults(self):
        assert GenerationOptions.from_mapping({}) == GenerationOptions()

    def test_non_numeric_page_count_raises(self):
        with pytest.raises(ValueError, match="integer page count"):
            GenerationOptions.from_mapping({"pageCount": "lots"})

    def test_to_dict_omits_absent_theme(self):
        assert GenerationOptions(page_count=2).to_dict() == {
            "pageCount": 2,
            "ageRange": "5-8",
            "includeImages": True,
        }
