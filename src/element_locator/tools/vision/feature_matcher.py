"""
ORB feature matching with spatial clustering and per-cluster homography.

Finds every occurrence of a reference image in a screenshot even when it is
slightly scaled or distorted:
1. ORB keypoints and descriptors on both images
2. kNN matching with Lowe's ratio test
3. DBSCAN over the matched screenshot keypoints, one cluster per occurrence
4. RANSAC homography per cluster, rejected below the inlier ratio
5. Template corners projected into the screenshot, bounding box clipped
"""

import logging
import math
from typing import List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image
from sklearn.cluster import DBSCAN

from ...config.locator_config import LocatorConfig, get_locator_config
from ...schemas.geometry import Rectangle
from ...utils.image_utils import to_gray_array

logger = logging.getLogger(__name__)

KNN_MATCHES_PER_QUERY = 2


class FeatureMatcher:
    """
    Keypoint-based detector complementing plain template matching.
    """

    def __init__(self, config: Optional[LocatorConfig] = None):
        """
        Initialize feature matcher.

        Args:
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()

    def _create_orb(self):
        # ORB instances are not shared between threads
        return cv2.ORB_create(
            nfeatures=self.config.orb_max_features,
            scaleFactor=self.config.orb_scale_factor,
            nlevels=self.config.orb_levels,
            edgeThreshold=self.config.orb_edge_threshold,
            firstLevel=0,
            WTA_K=2,
            scoreType=cv2.ORB_HARRIS_SCORE,
            patchSize=self.config.orb_patch_size,
            fastThreshold=self.config.orb_fast_threshold,
        )

    def find_matches(
        self, screenshot: Image.Image, template: Image.Image
    ) -> List[Rectangle]:
        """
        Find regions of the screenshot matching the template.

        Args:
            screenshot: Main image to search in
            template: Reference image of the element

        Returns:
            Matched regions in screenshot pixels, highest inlier count first
        """
        return [rectangle for rectangle, _ in self.find_scored_matches(screenshot, template)]

    def find_scored_matches(
        self, screenshot: Image.Image, template: Image.Image
    ) -> List[Tuple[Rectangle, int]]:
        """
        Find matching regions together with their RANSAC inlier counts.

        Returns:
            (rectangle, inlier count) pairs sorted by descending inlier count
        """
        screen_gray = to_gray_array(screenshot)
        template_gray = to_gray_array(template)
        if screen_gray.size == 0 or template_gray.size == 0:
            logger.warning("Cannot match features, one or both images are empty")
            return []

        orb = self._create_orb()
        template_keypoints, template_descriptors = orb.detectAndCompute(template_gray, None)
        screen_keypoints, screen_descriptors = orb.detectAndCompute(screen_gray, None)

        if (
            template_descriptors is None
            or screen_descriptors is None
            or len(screen_keypoints) < KNN_MATCHES_PER_QUERY
        ):
            logger.debug("No descriptors found in one or both images")
            return []

        good_matches = self._filter_good_matches(template_descriptors, screen_descriptors)
        if len(good_matches) < self.config.min_good_feature_matches:
            logger.debug(
                "Not enough good matches found (%d) to form reliable clusters",
                len(good_matches),
            )
            return []

        template_h, template_w = template_gray.shape
        screen_h, screen_w = screen_gray.shape

        template_points = np.float32([template_keypoints[m.queryIdx].pt for m in good_matches])
        screen_points = np.float32([screen_keypoints[m.trainIdx].pt for m in good_matches])

        eps = math.hypot(template_w, template_h) * self.config.cluster_radius_ratio
        labels = DBSCAN(
            eps=eps, min_samples=self.config.min_cluster_population
        ).fit(screen_points).labels_

        found: List[Tuple[Rectangle, int]] = []
        for label in sorted(set(labels)):
            if label == -1:
                continue
            indices = np.where(labels == label)[0]
            if len(indices) < self.config.min_cluster_population:
                continue

            match = self._locate_cluster(
                template_points[indices],
                screen_points[indices],
                (template_w, template_h),
                (screen_w, screen_h),
            )
            if match is not None:
                found.append(match)

        found.sort(key=lambda m: m[1], reverse=True)
        logger.debug("Feature matching accepted %d cluster(s)", len(found))
        return found[: self.config.top_visual_matches]

    def _filter_good_matches(self, template_descriptors, screen_descriptors) -> list:
        matcher = cv2.BFMatcher(cv2.NORM_HAMMING, crossCheck=False)
        knn_matches = matcher.knnMatch(
            template_descriptors, screen_descriptors, k=KNN_MATCHES_PER_QUERY
        )

        good_matches = []
        for pair in knn_matches:
            if len(pair) < KNN_MATCHES_PER_QUERY:
                continue
            best, second = pair[0], pair[1]
            if best.distance < self.config.lowe_ratio_threshold * second.distance:
                good_matches.append(best)
        return good_matches

    def _locate_cluster(
        self,
        template_points: np.ndarray,
        screen_points: np.ndarray,
        template_size: Tuple[int, int],
        screen_size: Tuple[int, int],
    ) -> Optional[Tuple[Rectangle, int]]:
        """
        Estimate the homography of one cluster and project the template into the screenshot.

        Returns:
            (bounding box, inlier count), or None if the cluster is rejected
        """
        homography, mask = cv2.findHomography(
            template_points.reshape(-1, 1, 2),
            screen_points.reshape(-1, 1, 2),
            cv2.RANSAC,
            self.config.ransac_reprojection_threshold,
        )
        if homography is None or mask is None or homography.shape != (3, 3):
            return None

        inliers = int(mask.ravel().sum())
        inlier_ratio = inliers / len(template_points)
        if inlier_ratio < self.config.min_homography_inlier_ratio:
            logger.debug(
                "Rejecting cluster with inlier ratio %.2f (%d/%d)",
                inlier_ratio, inliers, len(template_points),
            )
            return None

        template_w, template_h = template_size
        corners = np.float32(
            [[0, 0], [template_w, 0], [template_w, template_h], [0, template_h]]
        ).reshape(-1, 1, 2)
        projected = cv2.perspectiveTransform(corners, homography).reshape(-1, 2)
        if not np.all(np.isfinite(projected)):
            return None

        xs, ys = projected[:, 0], projected[:, 1]
        bounding_box = Rectangle.from_corners(xs.min(), ys.min(), xs.max(), ys.max())
        clipped = bounding_box.clip(*screen_size)
        if clipped is None:
            return None

        if not self._has_plausible_dimensions(clipped, template_size):
            logger.debug(
                "Rejecting projected box %s, dimensions deviate too much from %sx%s",
                clipped, template_w, template_h,
            )
            return None

        return clipped, inliers

    def _has_plausible_dimensions(
        self, rectangle: Rectangle, template_size: Tuple[int, int]
    ) -> bool:
        template_w, template_h = template_size
        max_deviation = self.config.found_matches_dimension_deviation_ratio
        width_deviation = abs(rectangle.width - template_w) / template_w
        height_deviation = abs(rectangle.height - template_h) / template_h
        return width_deviation <= max_deviation and height_deviation <= max_deviation
