"""
Tests for locator wiring and text similarity helpers.
"""

from unittest.mock import Mock

import pytest

from conftest import HashingEmbedder, make_screen
from element_locator.config.locator_config import LocatorConfig
from element_locator.services.embeddings import cosine_similarity, text_similarity
from element_locator.services.factory import create_element_locator
from element_locator.services.locator import ElementLocator


@pytest.fixture
def screenshot_tool():
    tool = Mock()
    tool.capture.return_value = make_screen()
    tool.scaling_factor = 2.0
    return tool


class TestCreateElementLocator:
    """Tests for create_element_locator."""

    def test_unattended_locator_has_no_surface(self, screenshot_tool):
        locator = create_element_locator(
            LocatorConfig(unattended_mode=True),
            llm=Mock(),
            store=Mock(),
            screenshot_tool=screenshot_tool,
        )

        assert isinstance(locator, ElementLocator)
        assert locator.fallback.surface is None
        assert locator.scaling_factor() == 2.0
        assert locator.capture_screen() is screenshot_tool.capture.return_value

    def test_components_share_configuration(self, screenshot_tool):
        config = LocatorConfig(unattended_mode=True, quorum_vote_count=7)
        store = Mock()

        locator = create_element_locator(
            config, llm=Mock(), store=store, screenshot_tool=screenshot_tool
        )

        assert locator.quorum.config is config
        assert locator.detectors.config is config
        assert locator.retriever.store is store
        assert locator.fallback.store is store
        assert locator.quorum.model_client is locator.model_client

    def test_given_surface_is_used(self, screenshot_tool):
        surface = Mock()

        locator = create_element_locator(
            LocatorConfig(), llm=Mock(), store=Mock(), surface=surface, screenshot_tool=screenshot_tool
        )

        assert locator.fallback.surface is surface


class TestTextSimilarity:
    """Tests for the embedding similarity helpers."""

    def test_cosine_similarity(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_blank_text_is_unrelated(self):
        embedder = Mock()

        assert text_similarity(embedder, "Login page", "   ") == 0.0
        embedder.embed.assert_not_called()

    def test_same_words_are_similar(self):
        embedder = HashingEmbedder()

        assert text_similarity(embedder, "Login page", "login  page") == pytest.approx(1.0)
        assert text_similarity(embedder, "Login page", "Shopping cart") < 0.5
