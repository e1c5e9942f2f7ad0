"""
Tests for the top-level element location flow.
"""

import threading
from collections import deque
from unittest.mock import Mock

import pytest

from conftest import make_screen, make_textured_patch
from element_locator.config.locator_config import LocatorConfig
from element_locator.exceptions import CatalogAmbiguityError, ModelCallError
from element_locator.schemas.catalog import RetrievedCandidate
from element_locator.schemas.detection import DetectionSet
from element_locator.schemas.geometry import Rectangle
from element_locator.schemas.model_responses import PageSummary, VoteBallot
from element_locator.schemas.outcomes import (
    FallbackReason,
    Found,
    NoPatternMatch,
    NoVisualConfirmation,
)
from element_locator.services.consensus import ConsensusResolver
from element_locator.services.locator import ElementLocator
from element_locator.services.quorum import QuorumDisambiguator
from element_locator.services.retriever import CandidateRetriever


class FakeModel:
    """Model client answering page summaries and scripted ballots."""

    def __init__(self, ballots=(), page_summary="Login page of the web shop"):
        self.ballots = deque(ballots)
        self.page_summary = page_summary
        self.ballot_calls = 0
        self.summary_calls = 0
        self._lock = threading.Lock()

    def generate(self, prompt, images, response_model, purpose=None):
        with self._lock:
            if response_model is PageSummary:
                self.summary_calls += 1
                if isinstance(self.page_summary, Exception):
                    raise self.page_summary
                return PageSummary(summary=self.page_summary)
            self.ballot_calls += 1
            answer = self.ballots.popleft() if self.ballots else None
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return VoteBallot(success=False)
        return VoteBallot(success=True, element_id=answer, message="match")


@pytest.fixture
def login_patch():
    return make_textured_patch(80, 30, seed=11)


@pytest.fixture
def screenshot():
    return make_screen()


@pytest.fixture
def store():
    store = Mock()
    store.search.return_value = []
    store.similarity = Mock(return_value=0.0)
    return store


@pytest.fixture
def detectors():
    detectors = Mock()
    detectors.detect.return_value = DetectionSet()
    return detectors


@pytest.fixture
def fallback():
    fallback = Mock()
    fallback.handle.return_value = None
    return fallback


@pytest.fixture
def build(store, detectors, fallback, screenshot):
    def _build(model=None, scaling=1.0, **config_overrides):
        config = LocatorConfig(model_call_timeout_seconds=5.0, **config_overrides)
        model = model or FakeModel()
        capture = Mock(return_value=screenshot)
        locator = ElementLocator(
            retriever=CandidateRetriever(store, config),
            detectors=detectors,
            consensus=ConsensusResolver(config),
            quorum=QuorumDisambiguator(model, config),
            fallback=fallback,
            model_client=model,
            capture_screen=capture,
            scaling_factor=lambda: scaling,
            config=config,
        )
        return locator, model, capture

    return _build


class TestLoginButtonScenario:
    """Template and feature agree, the quorum confirms the single region."""

    def test_confirmed_region_is_scaled(
        self, build, store, detectors, fallback, make_element, login_patch
    ):
        login = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=login, name_score=0.92)]
        detectors.detect.return_value = DetectionSet(
            template_matched=(Rectangle(100, 200, 80, 30),),
            feature_matched=(Rectangle(98, 202, 82, 28),),
        )
        failure = ModelCallError("timeout")
        model = FakeModel(ballots=["1", "1", "1", "1", failure, failure, failure])
        locator, _, capture = build(model=model, scaling=2.0, quorum_vote_count=7)

        location = locator.locate_element_on_screen("Login button")

        assert location == Rectangle(100, 202, 80, 28).scaled(2.0)
        assert model.ballot_calls == 7
        capture.assert_called_once()
        fallback.handle.assert_not_called()

    def test_three_confirmations_are_not_enough(
        self, build, store, detectors, fallback, make_element, login_patch
    ):
        login = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=login, name_score=0.92)]
        detectors.detect.return_value = DetectionSet(
            template_matched=(Rectangle(100, 200, 80, 30),),
            feature_matched=(Rectangle(98, 202, 82, 28),),
        )
        model = FakeModel(ballots=["1", "1", "1"])
        locator, _, _ = build(model=model, quorum_vote_count=7)

        assert locator.locate_element_on_screen("Login button") is None

        reason, description, candidates, _ = fallback.handle.call_args[0]
        assert reason == FallbackReason.NO_VISUAL_CONFIRMATION
        assert description == "Login button"
        assert candidates == [login]


class TestCatalogBranches:
    """Retrieval outcomes routed to the fallback workflow."""

    def test_no_candidates(self, build, fallback):
        locator, _, capture = build()

        assert locator.locate_element_on_screen("Login button") is None

        fallback.handle.assert_called_once_with(
            FallbackReason.NO_CANDIDATES_IN_CATALOG,
            "Login button",
            [],
            locator.locate_element_on_screen,
        )
        capture.assert_not_called()

    def test_low_confidence_candidates(self, build, store, fallback, make_element):
        similar = make_element("Logout button")
        store.search.return_value = [RetrievedCandidate(element=similar, name_score=0.6)]
        locator, _, capture = build()

        locator.locate_element_on_screen("Login button")

        reason, _, candidates, _ = fallback.handle.call_args[0]
        assert reason == FallbackReason.LOW_CONFIDENCE_CANDIDATES
        assert candidates == [similar]
        capture.assert_not_called()

    def test_page_relevance_picks_single_element(
        self, build, store, detectors, make_element, login_patch
    ):
        shop_login = make_element("Login button", image=login_patch, page_summary="Shop login")
        admin_login = make_element("Login button", image=login_patch, page_summary="Admin login")
        store.search.return_value = [
            RetrievedCandidate(element=shop_login, name_score=0.95),
            RetrievedCandidate(element=admin_login, name_score=0.95),
        ]
        store.similarity.side_effect = lambda page, summary: 0.9 if summary == "Shop login" else 0.1
        locator, model, _ = build()

        locator.locate_element_on_screen("Login button")

        assert model.summary_calls == 1
        assert detectors.detect.call_args[0][1] == shop_login

    def test_several_page_relevant_elements(self, build, store, fallback, make_element):
        first = make_element("Login button", page_summary="Shop login")
        second = make_element("Login button", page_summary="Shop login dialog")
        store.search.return_value = [
            RetrievedCandidate(element=first, name_score=0.95),
            RetrievedCandidate(element=second, name_score=0.9),
        ]
        store.similarity.return_value = 0.8
        locator, _, _ = build()

        locator.locate_element_on_screen("Login button")

        reason, _, candidates, _ = fallback.handle.call_args[0]
        assert reason == FallbackReason.AMBIGUOUS_BY_PAGE
        assert candidates == [first, second]

    def test_no_page_relevant_element(self, build, store, fallback, make_element):
        first = make_element("Login button", page_summary="Admin login")
        second = make_element("Login button", page_summary="Forum login")
        store.search.return_value = [
            RetrievedCandidate(element=first, name_score=0.95),
            RetrievedCandidate(element=second, name_score=0.9),
        ]
        store.similarity.return_value = 0.1
        locator, _, _ = build()

        locator.locate_element_on_screen("Login button")

        reason, _, candidates, _ = fallback.handle.call_args[0]
        assert reason == FallbackReason.LOW_CONFIDENCE_CANDIDATES
        assert candidates == [first, second]

    def test_failed_page_summary(self, build, store, fallback, make_element):
        store.search.return_value = [
            RetrievedCandidate(element=make_element("Login button"), name_score=0.95),
            RetrievedCandidate(element=make_element("Login button"), name_score=0.9),
        ]
        model = FakeModel(page_summary=ModelCallError("unavailable"))
        locator, _, _ = build(model=model)

        locator.locate_element_on_screen("Login button")

        assert fallback.handle.call_args[0][0] == FallbackReason.LOW_CONFIDENCE_CANDIDATES


class TestVisualBranches:
    """Detector and consensus outcomes."""

    def test_element_without_reference_image(self, build, store, detectors, fallback, make_element):
        element = make_element("Login button")
        store.search.return_value = [RetrievedCandidate(element=element, name_score=0.95)]
        locator, _, _ = build()

        locator.locate_element_on_screen("Login button")

        detectors.detect.assert_not_called()
        assert fallback.handle.call_args[0][0] == FallbackReason.NO_PATTERN_MATCH

    def test_nothing_detected(self, build, store, fallback, make_element, login_patch):
        element = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=element, name_score=0.95)]
        locator, _, _ = build()

        locator.locate_element_on_screen("Login button")

        reason, _, candidates, _ = fallback.handle.call_args[0]
        assert reason == FallbackReason.NO_PATTERN_MATCH
        assert candidates == [element]

    def test_triple_agreement_skips_quorum(
        self, build, store, detectors, fallback, make_element, login_patch
    ):
        element = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=element, name_score=0.95)]
        region = Rectangle(100, 200, 80, 30)
        detectors.detect.return_value = DetectionSet(
            vision_proposed=(region,), template_matched=(region,), feature_matched=(region,)
        )
        locator, model, _ = build()

        assert locator.locate_element_on_screen("Login button") == region
        assert model.ballot_calls == 0
        fallback.handle.assert_not_called()

    def test_locate_returns_raw_outcome(self, build, store, detectors, make_element, login_patch):
        element = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=element, name_score=0.95)]
        region = Rectangle(100, 200, 80, 30)
        detectors.detect.return_value = DetectionSet(template_matched=(region,))
        locator, _, _ = build(model=FakeModel(ballots=[None] * 5))

        assert locator.locate("Login button") == NoVisualConfirmation()

        detectors.detect.return_value = DetectionSet()
        assert locator.locate("Login button") == NoPatternMatch()

        detectors.detect.return_value = DetectionSet(
            vision_proposed=(region,), template_matched=(region,), feature_matched=(region,)
        )
        assert locator.locate("Login button") == Found(region)

    def test_locate_raises_for_ambiguous_catalog(self, build, store, detectors, fallback, make_element):
        first = make_element("Login button", page_summary="Shop login")
        second = make_element("Login button", page_summary="Shop login dialog")
        store.search.return_value = [
            RetrievedCandidate(element=first, name_score=0.95),
            RetrievedCandidate(element=second, name_score=0.9),
        ]
        store.similarity.return_value = 0.8
        locator, _, _ = build()

        with pytest.raises(CatalogAmbiguityError) as exc_info:
            locator.locate("Login button")

        assert exc_info.value.element_names == ["Login button", "Login button"]
        detectors.detect.assert_not_called()
        fallback.handle.assert_not_called()

    def test_locate_without_page_relevant_element(self, build, store, detectors, make_element):
        store.search.return_value = [
            RetrievedCandidate(element=make_element("Login button"), name_score=0.95),
            RetrievedCandidate(element=make_element("Login button"), name_score=0.9),
        ]
        store.similarity.return_value = 0.1
        locator, _, _ = build()

        assert locator.locate("Login button") == NoPatternMatch()
        detectors.detect.assert_not_called()

    def test_cancel_during_detection(self, build, store, detectors, fallback, make_element, login_patch):
        element = make_element("Login button", image=login_patch)
        store.search.return_value = [RetrievedCandidate(element=element, name_score=0.95)]
        locator, _, _ = build()

        def detect_and_cancel(screenshot, element):
            locator.cancel()
            return DetectionSet()

        detectors.detect.side_effect = detect_and_cancel

        assert locator.locate_element_on_screen("Login button") is None
        fallback.handle.assert_not_called()
        detectors.cancel.assert_called_once()
