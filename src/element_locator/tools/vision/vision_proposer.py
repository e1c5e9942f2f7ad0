"""
Bounding box proposals from the vision model.

The model is asked several times independently; proposals that overlap
strongly are treated as the same region and averaged, regions proposed
more often come first.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

from PIL import Image

from ...config.locator_config import LocatorConfig, get_locator_config
from ...exceptions import ModelCallError
from ...prompts.locator_prompts import get_bounding_box_prompt
from ...schemas.catalog import CatalogElement
from ...schemas.geometry import Rectangle
from ...schemas.model_responses import (
    NORMALIZED_GRID_SIZE,
    ProposedBoundingBoxes,
    ProposedBox,
)

logger = logging.getLogger(__name__)


def normalized_box_to_rectangle(box: ProposedBox, width: int, height: int) -> Optional[Rectangle]:
    """
    Convert a box on the normalized grid to screenshot pixels.

    Args:
        box: Box proposed by the model
        width: Screenshot width in pixels
        height: Screenshot height in pixels

    Returns:
        Rectangle in screenshot pixels, None if the box is degenerate
    """
    rectangle = Rectangle.from_corners(
        box.x1 * width / NORMALIZED_GRID_SIZE,
        box.y1 * height / NORMALIZED_GRID_SIZE,
        box.x2 * width / NORMALIZED_GRID_SIZE,
        box.y2 * height / NORMALIZED_GRID_SIZE,
    )
    if rectangle.is_empty:
        return None
    return rectangle.clip(width, height)


def overlap_of_smaller(first: Rectangle, second: Rectangle) -> float:
    """Intersection area relative to the smaller of both rectangles."""
    overlap = first.intersection(second)
    smaller = min(first.area, second.area)
    if overlap is None or smaller == 0:
        return 0.0
    return overlap.area / smaller


def cluster_proposals(proposals: List[Rectangle], min_ratio: float) -> List[Rectangle]:
    """
    Group proposals of the same region and average every group.

    A proposal joins the first cluster that has a member it overlaps by at
    least min_ratio of the smaller box.

    Args:
        proposals: Boxes from all model calls
        min_ratio: Minimum intersection over the smaller area

    Returns:
        Mean box per cluster, most supported cluster first
    """
    clusters: List[List[Rectangle]] = []
    for proposal in proposals:
        for cluster in clusters:
            if any(overlap_of_smaller(proposal, member) >= min_ratio for member in cluster):
                cluster.append(proposal)
                break
        else:
            clusters.append([proposal])

    # stable sort keeps first-seen order among equally supported clusters
    clusters.sort(key=len, reverse=True)

    result = []
    for cluster in clusters:
        count = len(cluster)
        result.append(
            Rectangle.from_corners(
                sum(r.x for r in cluster) / count,
                sum(r.y for r in cluster) / count,
                sum(r.right for r in cluster) / count,
                sum(r.bottom for r in cluster) / count,
            )
        )
    return result


class VisionBoxProposer:
    """
    Asks the vision model for bounding boxes of a catalog element.
    """

    def __init__(self, model_client, config: Optional[LocatorConfig] = None):
        """
        Initialize proposer.

        Args:
            model_client: MultimodalModelClient used for the requests
            config: Locator configuration, defaults to the global one
        """
        self.model_client = model_client
        self.config = config or get_locator_config()

    def propose(self, screenshot: Image.Image, element: CatalogElement) -> List[Rectangle]:
        """
        Collect clustered box proposals for the element.

        Args:
            screenshot: Current screenshot
            element: Catalog element to look for

        Returns:
            Proposed regions in screenshot pixels, possibly empty
        """
        prompt = get_bounding_box_prompt(element)
        request_count = self.config.vision_proposal_count
        width, height = screenshot.size

        executor = ThreadPoolExecutor(
            max_workers=min(request_count, self.config.max_parallel_model_calls),
            thread_name_prefix="vision-proposal",
        )
        try:
            futures = [
                executor.submit(
                    self.model_client.generate,
                    prompt,
                    [screenshot],
                    ProposedBoundingBoxes,
                    "bounding box proposal",
                )
                for _ in range(request_count)
            ]
            done, not_done = wait(futures, timeout=self.config.model_call_timeout_seconds)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if not_done:
            logger.warning(
                "%d bounding box proposal(s) timed out after %.0fs",
                len(not_done), self.config.model_call_timeout_seconds,
            )

        proposals: List[Rectangle] = []
        for future in futures:
            if future not in done:
                continue
            try:
                response = future.result()
            except ModelCallError as e:
                logger.warning("Skipping failed bounding box proposal: %s", e)
                continue
            except Exception as e:
                logger.warning("Skipping bounding box proposal after unexpected error: %s", e)
                continue

            for box in response.boxes:
                rectangle = normalized_box_to_rectangle(box, width, height)
                if rectangle is not None:
                    proposals.append(rectangle)

        regions = cluster_proposals(
            proposals, self.config.bbox_clustering_min_intersection_ratio
        )
        logger.debug(
            "Vision model proposed %d box(es) for '%s', clustered into %d region(s)",
            len(proposals), element.name, len(regions),
        )
        return regions
