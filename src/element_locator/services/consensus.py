"""
Merges the regions of all visual detectors into one location outcome.

Agreement between independent detectors is preferred over any single one.
Only a single region confirmed by all three detectors is accepted without a
quorum vote.
"""

import logging
from typing import List, Optional, Sequence

from ..config.locator_config import LocatorConfig, get_locator_config
from ..schemas.detection import DetectionSet
from ..schemas.geometry import Rectangle
from ..schemas.outcomes import Ambiguous, Found, LocationOutcome, NoPatternMatch
from ..utils.geometry import intersect_rectangle_sets, union_rectangle_sets

logger = logging.getLogger(__name__)


class ConsensusResolver:
    """
    Precedence policy over vision (V), template (T) and feature (F) regions.
    """

    def __init__(self, config: Optional[LocatorConfig] = None):
        """
        Initialize resolver.

        Args:
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()

    def resolve(self, detections: DetectionSet, original_area: float) -> LocationOutcome:
        """
        Resolve detector regions into an outcome.

        Args:
            detections: Regions of every detector in screenshot pixels
            original_area: Area of the element's reference image

        Returns:
            NoPatternMatch, Found (triple agreement on one region) or Ambiguous
        """
        if detections.is_empty:
            logger.info("No detector found any region")
            return NoPatternMatch()

        vision = list(detections.vision_proposed)
        template = list(detections.template_matched)
        feature = list(detections.feature_matched)

        if not vision:
            return self._resolve_pattern_matches(template, feature, original_area)

        if not template and not feature:
            logger.info(
                "Only the vision model proposed regions, all %d need confirmation", len(vision)
            )
            return Ambiguous(tuple(vision))

        return self._resolve_with_vision(vision, template, feature, original_area)

    def _resolve_pattern_matches(
        self,
        template: List[Rectangle],
        feature: List[Rectangle],
        original_area: float,
    ) -> Ambiguous:
        common = self._intersect(template, feature, original_area)
        if common:
            logger.info(
                "Template and feature matches agree on %d region(s)", len(common)
            )
            return Ambiguous(tuple(common))

        union = union_rectangle_sets(template, feature)
        logger.info(
            "Template and feature matches do not agree, %d region(s) in their union",
            len(union),
        )
        return Ambiguous(tuple(union))

    def _resolve_with_vision(
        self,
        vision: List[Rectangle],
        template: List[Rectangle],
        feature: List[Rectangle],
        original_area: float,
    ) -> LocationOutcome:
        vision_template = self._intersect(vision, template, original_area)
        vision_feature = self._intersect(vision, feature, original_area)
        triple = self._intersect(vision_template, vision_feature, original_area)

        if len(triple) == 1:
            logger.info("All detectors agree on one region %s, accepting it", triple[0])
            return Found(triple[0])
        if triple:
            logger.info("All detectors agree on %d regions", len(triple))
            return Ambiguous(tuple(triple))

        pairwise = union_rectangle_sets(vision_template, vision_feature)
        if pairwise:
            logger.info(
                "Vision proposals agree with one pattern detector on %d region(s)",
                len(pairwise),
            )
            return Ambiguous(tuple(pairwise))

        union = union_rectangle_sets(vision, template, feature)
        logger.info("Detectors do not agree, %d region(s) in their union", len(union))
        return Ambiguous(tuple(union))

    def _intersect(
        self,
        first: Sequence[Rectangle],
        second: Sequence[Rectangle],
        original_area: float,
    ) -> List[Rectangle]:
        if not first or not second:
            return []
        return intersect_rectangle_sets(
            first, second, original_area, self.config.min_intersection_area_ratio
        )
