"""
Runs every visual detector for one element concurrently.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from PIL import Image

from ...config.locator_config import LocatorConfig, get_locator_config
from ...schemas.catalog import CatalogElement
from ...schemas.detection import DetectionSet, DetectionSource
from ...schemas.geometry import Rectangle
from .feature_matcher import FeatureMatcher
from .template_matcher import TemplateMatcher
from .vision_proposer import VisionBoxProposer

logger = logging.getLogger(__name__)

Detector = Callable[[Image.Image, CatalogElement], List[Rectangle]]


class VisualDetectors:
    """
    Fixed set of detectors feeding the consensus resolver.

    Each detector is independent and may return nothing. A detector that
    raises is logged and treated as having found nothing.
    """

    def __init__(
        self,
        vision_proposer: VisionBoxProposer,
        template_matcher: Optional[TemplateMatcher] = None,
        feature_matcher: Optional[FeatureMatcher] = None,
        config: Optional[LocatorConfig] = None,
    ):
        """
        Initialize detectors.

        Args:
            vision_proposer: Vision model proposer
            template_matcher: Template matcher, created from config if omitted
            feature_matcher: Feature matcher, created from config if omitted
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()
        self.vision_proposer = vision_proposer
        self.template_matcher = template_matcher or TemplateMatcher(self.config)
        self.feature_matcher = feature_matcher or FeatureMatcher(self.config)

        self._detectors: Dict[DetectionSource, Detector] = {
            DetectionSource.VISION_PROPOSED: self._propose_with_vision_model,
            DetectionSource.TEMPLATE_MATCHED: self._match_template,
            DetectionSource.FEATURE_MATCHED: self._match_features,
        }
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def detect(self, screenshot: Image.Image, element: CatalogElement) -> DetectionSet:
        """
        Run all detectors on the screenshot and wait for every one of them.

        Args:
            screenshot: Current screenshot
            element: Catalog element with a reference image

        Returns:
            DetectionSet with the rectangles of each detector
        """
        with ThreadPoolExecutor(
            max_workers=len(self._detectors), thread_name_prefix="detector"
        ) as executor:
            futures = {
                source: executor.submit(detector, screenshot, element)
                for source, detector in self._detectors.items()
            }
            with self._lock:
                self._pending = list(futures.values())

            results: Dict[DetectionSource, List[Rectangle]] = {}
            for source, future in futures.items():
                results[source] = self._collect(source, future)

        with self._lock:
            self._pending = []

        detections = DetectionSet.from_results(results)
        logger.info("Detectors for '%s' found: %s", element.name, detections.summary())
        return detections

    def cancel(self) -> None:
        """Cancel detectors that have not started yet."""
        with self._lock:
            for future in self._pending:
                future.cancel()

    def _collect(self, source: DetectionSource, future: Future) -> List[Rectangle]:
        if future.cancelled():
            logger.debug("Detector %s was cancelled", source.value)
            return []
        try:
            return list(future.result())
        except Exception as e:
            logger.error("Detector %s failed: %s", source.value, e, exc_info=True)
            return []

    def _propose_with_vision_model(
        self, screenshot: Image.Image, element: CatalogElement
    ) -> List[Rectangle]:
        return self.vision_proposer.propose(screenshot, element)

    def _match_template(
        self, screenshot: Image.Image, element: CatalogElement
    ) -> List[Rectangle]:
        if element.reference_image is None:
            return []
        return self.template_matcher.find_matches(screenshot, element.reference_image.to_image())

    def _match_features(
        self, screenshot: Image.Image, element: CatalogElement
    ) -> List[Rectangle]:
        if element.reference_image is None:
            return []
        return self.feature_matcher.find_matches(screenshot, element.reference_image.to_image())
