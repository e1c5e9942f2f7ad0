"""
OpenCV template matching for visual element detection.
"""

import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from ...config.locator_config import LocatorConfig, get_locator_config
from ...schemas.geometry import Rectangle
from ...utils.geometry import merge_overlapping_rectangles
from ...utils.image_utils import to_gray_array

logger = logging.getLogger(__name__)


class TemplateMatcher:
    """
    Template matching using normalized cross-correlation.

    Returns up to top_visual_matches distinct peaks above the similarity
    threshold. Every accepted peak's neighborhood is flood-filled with zeros
    in the correlation map before the next peak is searched.
    """

    def __init__(self, config: Optional[LocatorConfig] = None):
        """
        Initialize template matcher.

        Args:
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()

    def find_matches(
        self, screenshot: Image.Image, template: Image.Image
    ) -> List[Rectangle]:
        """
        Find template matches in screenshot.

        Args:
            screenshot: Main image to search in
            template: Reference image of the element

        Returns:
            Matched regions in screenshot pixels, best first, overlaps unioned
        """
        peaks = self.find_peaks(screenshot, template)
        rectangles = [rectangle for rectangle, _ in peaks]
        return merge_overlapping_rectangles(rectangles)

    def find_peaks(
        self, screenshot: Image.Image, template: Image.Image
    ) -> List[Tuple[Rectangle, float]]:
        """
        Find distinct correlation peaks with their scores.

        Args:
            screenshot: Main image to search in
            template: Reference image of the element

        Returns:
            (rectangle, score) pairs sorted by descending score
        """
        screen_gray = to_gray_array(screenshot)
        template_gray = to_gray_array(template)

        template_h, template_w = template_gray.shape
        screen_h, screen_w = screen_gray.shape
        if template_w == 0 or template_h == 0:
            return []
        if template_w > screen_w or template_h > screen_h:
            logger.debug(
                "Template %sx%s is larger than screenshot %sx%s, skipping",
                template_w, template_h, screen_w, screen_h,
            )
            return []

        result = cv2.matchTemplate(screen_gray, template_gray, cv2.TM_CCOEFF_NORMED)
        result = np.nan_to_num(result, nan=0.0, posinf=0.0, neginf=0.0).astype(np.float32)

        matches: List[Tuple[Rectangle, float]] = []
        while len(matches) < self.config.top_visual_matches:
            _, max_val, _, max_loc = cv2.minMaxLoc(result)
            if max_val < self.config.visual_similarity_threshold:
                break

            x, y = max_loc
            matches.append((Rectangle(x, y, template_w, template_h), float(max_val)))
            self._suppress_peak(result, max_loc)

        matches.sort(key=lambda m: m[1], reverse=True)
        logger.debug(
            "Template matching found %d peak(s) above %.2f",
            len(matches), self.config.visual_similarity_threshold,
        )
        return matches

    def _suppress_peak(self, result: np.ndarray, location: Tuple[int, int]) -> None:
        """
        Zero the connected neighborhood of a peak in the correlation map.

        Flood fill spreads over neighbors whose value is within the full
        correlation range below the peak, so the whole hill around it goes.
        """
        peak_value = float(result[location[1], location[0]])
        mask = np.zeros((result.shape[0] + 2, result.shape[1] + 2), dtype=np.uint8)
        cv2.floodFill(
            result,
            mask,
            location,
            0.0,
            loDiff=peak_value - self.config.visual_similarity_threshold,
            upDiff=1.0,
            flags=4 | cv2.FLOODFILL_FIXED_RANGE,
        )
        result[location[1], location[0]] = 0.0
