"""
Tests for locator and LLM configuration.
"""

import pytest

from element_locator.config import LLMConfig
from element_locator.config.locator_config import (
    DEFAULT_CONFIG,
    LocatorConfig,
    create_custom_config,
    get_locator_config,
)


class TestLocatorConfig:
    """Tests for LocatorConfig defaults and validation."""

    def test_defaults(self):
        config = LocatorConfig()

        assert config.unattended_mode is False
        assert config.retriever_top_n == 3
        assert config.min_target_retrieval_score == 0.85
        assert config.min_general_retrieval_score == 0.4
        assert config.visual_similarity_threshold == 0.8
        assert config.min_intersection_area_ratio == 0.8
        assert config.vision_proposal_count == 3
        assert config.quorum_vote_count == 5
        assert len(config.label_palette) == 9

    def test_global_config(self):
        assert get_locator_config() is DEFAULT_CONFIG

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_target_retrieval_score": 1.5},
            {"visual_similarity_threshold": -0.1},
            {"quorum_vote_count": 0},
            {"min_general_retrieval_score": 0.9, "min_target_retrieval_score": 0.8},
            {"min_cluster_population": 3},
            {"model_call_timeout_seconds": 0},
            {"label_palette": ()},
            {"label_palette": ("red", "red")},
            {"label_palette": ("red", "chartreuse")},
            {"bounding_box_color": "chartreuse"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            LocatorConfig(**overrides)


class TestConfigFromEnv:
    """Tests for LocatorConfig.from_env."""

    def test_overrides_from_environment(self, monkeypatch):
        monkeypatch.setenv("UNATTENDED_MODE", "true")
        monkeypatch.setenv("RETRIEVER_TOP_N", "5")
        monkeypatch.setenv("VALIDATION_MODEL_VOTE_COUNT", "7")
        monkeypatch.setenv("VISUAL_SIMILARITY_THRESHOLD", "0.9")
        monkeypatch.setenv("BOUNDING_BOX_COLOR", "Blue")

        config = LocatorConfig.from_env()

        assert config.unattended_mode is True
        assert config.retriever_top_n == 5
        assert config.quorum_vote_count == 7
        assert config.visual_similarity_threshold == 0.9
        assert config.bounding_box_color == "blue"

    def test_blank_values_are_ignored(self, monkeypatch):
        monkeypatch.setenv("RETRIEVER_TOP_N", "  ")

        assert LocatorConfig.from_env().retriever_top_n == 3

    def test_invalid_value_names_variable(self, monkeypatch):
        monkeypatch.setenv("DEBUG_MODE", "maybe")

        with pytest.raises(ValueError, match="DEBUG_MODE"):
            LocatorConfig.from_env()


class TestCreateCustomConfig:
    """Tests for create_custom_config."""

    def test_overrides_base(self):
        base = LocatorConfig(unattended_mode=True)

        config = create_custom_config(base, quorum_vote_count=9)

        assert config.unattended_mode is True
        assert config.quorum_vote_count == 9
        assert base.quorum_vote_count == 5

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown configuration fields"):
            create_custom_config(votes=3)

    def test_overrides_are_validated(self):
        with pytest.raises(ValueError):
            create_custom_config(min_intersection_area_ratio=2.0)


class TestLLMConfig:
    """Tests for LLMConfig provider selection."""

    def setup_method(self):
        LLMConfig.clear_cache()

    def teardown_method(self):
        LLMConfig.clear_cache()

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported vision LLM provider"):
            LLMConfig.get_vision_llm(provider="unknown")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            LLMConfig.get_vision_llm(provider="openai")
