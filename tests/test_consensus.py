"""
Tests for the consensus resolver precedence policy.
"""

import pytest

from element_locator.config.locator_config import LocatorConfig
from element_locator.schemas.detection import DetectionSet
from element_locator.schemas.geometry import Rectangle
from element_locator.schemas.outcomes import Ambiguous, Found, NoPatternMatch
from element_locator.services.consensus import ConsensusResolver

ORIGINAL_AREA = 80 * 30


@pytest.fixture
def resolver():
    return ConsensusResolver(LocatorConfig())


def _detections(vision=(), template=(), feature=()):
    return DetectionSet(
        vision_proposed=tuple(vision),
        template_matched=tuple(template),
        feature_matched=tuple(feature),
    )


class TestConsensusResolver:
    """Tests for ConsensusResolver.resolve."""

    def test_nothing_detected(self, resolver):
        assert resolver.resolve(_detections(), ORIGINAL_AREA) == NoPatternMatch()

    def test_template_and_feature_agreement_is_disambiguated(self, resolver):
        outcome = resolver.resolve(
            _detections(
                template=[Rectangle(100, 200, 80, 30)],
                feature=[Rectangle(98, 202, 82, 28)],
            ),
            ORIGINAL_AREA,
        )

        assert outcome == Ambiguous((Rectangle(100, 202, 80, 28),))

    def test_template_and_feature_disagreement_uses_union(self, resolver):
        template = Rectangle(100, 200, 80, 30)
        feature = Rectangle(400, 300, 80, 30)

        outcome = resolver.resolve(
            _detections(template=[template], feature=[feature]), ORIGINAL_AREA
        )

        assert outcome == Ambiguous((template, feature))

    def test_only_template_matches(self, resolver):
        template = [Rectangle(100, 200, 80, 30), Rectangle(300, 200, 80, 30)]

        outcome = resolver.resolve(_detections(template=template), ORIGINAL_AREA)

        assert outcome == Ambiguous(tuple(template))

    def test_lone_vision_proposal_is_never_accepted(self, resolver):
        vision = Rectangle(100, 200, 80, 30)

        outcome = resolver.resolve(_detections(vision=[vision]), ORIGINAL_AREA)

        assert outcome == Ambiguous((vision,))

    def test_triple_agreement_on_one_region_is_accepted(self, resolver):
        outcome = resolver.resolve(
            _detections(
                vision=[Rectangle(99, 200, 81, 30)],
                template=[Rectangle(100, 200, 80, 30)],
                feature=[Rectangle(98, 202, 82, 28)],
            ),
            ORIGINAL_AREA,
        )

        assert isinstance(outcome, Found)
        assert outcome.rectangle == Rectangle(100, 202, 80, 28)

    def test_triple_agreement_on_several_regions(self, resolver):
        first = Rectangle(100, 200, 80, 30)
        second = Rectangle(400, 300, 80, 30)

        outcome = resolver.resolve(
            _detections(vision=[first, second], template=[first, second], feature=[first, second]),
            ORIGINAL_AREA,
        )

        assert outcome == Ambiguous((first, second))

    def test_pairwise_agreement_without_triple(self, resolver):
        vision = Rectangle(100, 200, 80, 30)
        template = Rectangle(100, 200, 80, 30)
        feature = Rectangle(400, 300, 80, 30)

        outcome = resolver.resolve(
            _detections(vision=[vision], template=[template], feature=[feature]), ORIGINAL_AREA
        )

        assert outcome == Ambiguous((vision,))

    def test_vision_with_single_pattern_detector_needs_vote(self, resolver):
        rectangle = Rectangle(100, 200, 80, 30)

        outcome = resolver.resolve(
            _detections(vision=[rectangle], template=[rectangle]), ORIGINAL_AREA
        )

        assert outcome == Ambiguous((rectangle,))

    def test_no_agreement_uses_full_union(self, resolver):
        vision = Rectangle(0, 0, 80, 30)
        template = Rectangle(200, 200, 80, 30)
        feature = Rectangle(400, 400, 80, 30)

        outcome = resolver.resolve(
            _detections(vision=[vision], template=[template], feature=[feature]), ORIGINAL_AREA
        )

        assert outcome == Ambiguous((vision, template, feature))
