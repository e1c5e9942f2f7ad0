"""
Quorum vote of the multimodal model over labeled candidate regions.

Every candidate region is outlined in its own color with a numeric label,
then the model is asked several times independently which label holds the
target element. A region is confirmed only if more than half of the
configured ballots name a valid label.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence, Union

from PIL import Image

from ..config.locator_config import LocatorConfig, get_locator_config
from ..exceptions import ModelCallError, PaletteExhaustedError
from ..prompts.locator_prompts import get_identification_prompt
from ..schemas.catalog import CatalogElement
from ..schemas.geometry import Rectangle
from ..schemas.model_responses import VoteBallot
from ..schemas.outcomes import Found, NoVisualConfirmation
from ..utils.geometry import area_sort_key
from ..utils.image_utils import draw_labeled_boxes, get_color_by_name, save_debug_image

logger = logging.getLogger(__name__)


def normalize_label(label: str) -> str:
    """Label as written on the screenshot, without quotes, spaces or case."""
    return (label or "").strip().strip("\"'#").strip().lower()


class QuorumDisambiguator:
    """
    Picks one of several candidate regions by majority vote.
    """

    def __init__(self, model_client, config: Optional[LocatorConfig] = None):
        """
        Initialize disambiguator.

        Args:
            model_client: MultimodalModelClient used for the ballots
            config: Locator configuration, defaults to the global one
        """
        self.model_client = model_client
        self.config = config or get_locator_config()
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def disambiguate(
        self,
        screenshot: Image.Image,
        candidates: Sequence[Rectangle],
        element: CatalogElement,
        description: str,
    ) -> Union[Found, NoVisualConfirmation]:
        """
        Let the model vote which candidate region is the target element.

        Args:
            screenshot: Screenshot the candidates were found on
            candidates: Candidate regions in screenshot pixels
            element: Catalog element being located
            description: Original free-text description

        Returns:
            Found with the winning region, or NoVisualConfirmation

        Raises:
            PaletteExhaustedError: More candidates than label colors
        """
        palette = self.config.label_palette
        if len(candidates) > len(palette):
            raise PaletteExhaustedError(len(candidates), len(palette))
        if not candidates:
            return NoVisualConfirmation()

        labeled: Dict[str, Rectangle] = {}
        boxes = []
        for index, rectangle in enumerate(candidates):
            label = str(index + 1)
            labeled[label] = rectangle
            boxes.append((label, rectangle, get_color_by_name(palette[index])))

        annotated = draw_labeled_boxes(screenshot, boxes)
        if self.config.debug_mode:
            path = save_debug_image(
                annotated, self.config.screenshots_save_folder, f"{element.name}_candidates"
            )
            logger.debug("Saved labeled candidates to %s", path)

        prompt = get_identification_prompt(
            description,
            element,
            [(label, palette[index]) for index, label in enumerate(labeled)],
        )
        ballots = self._collect_ballots(prompt, annotated)

        votes = Counter()
        for ballot in ballots:
            label = normalize_label(ballot.element_id)
            if ballot.success and label in labeled:
                votes[label] += 1

        vote_count = self.config.quorum_vote_count
        total_valid = sum(votes.values())
        logger.info(
            "Quorum for '%s': %d/%d valid ballot(s), tally %s",
            element.name, total_valid, vote_count, dict(votes),
        )
        if total_valid <= vote_count / 2:
            return NoVisualConfirmation()

        winner = self._pick_winner(votes, labeled)
        logger.info("Candidate %s %s confirmed for '%s'", winner, labeled[winner], element.name)
        return Found(labeled[winner])

    def cancel(self) -> None:
        """Cancel ballots that have not started yet."""
        with self._lock:
            for future in self._pending:
                future.cancel()

    def _collect_ballots(self, prompt: str, annotated: Image.Image) -> List[VoteBallot]:
        """
        Issue all ballots concurrently and keep the ones finished in time.
        """
        vote_count = self.config.quorum_vote_count
        executor = ThreadPoolExecutor(
            max_workers=min(vote_count, self.config.max_parallel_model_calls),
            thread_name_prefix="quorum-ballot",
        )
        try:
            futures = [
                executor.submit(
                    self.model_client.generate,
                    prompt,
                    [annotated],
                    VoteBallot,
                    "candidate identification",
                )
                for _ in range(vote_count)
            ]
            with self._lock:
                self._pending = futures
            done, not_done = wait(futures, timeout=self.config.model_call_timeout_seconds)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
            with self._lock:
                self._pending = []

        if not_done:
            logger.warning(
                "%d ballot(s) did not finish within %.0fs and are not counted",
                len(not_done), self.config.model_call_timeout_seconds,
            )

        ballots = []
        for future in futures:
            if future not in done or future.cancelled():
                continue
            try:
                ballot = future.result()
            except ModelCallError as e:
                logger.warning("Ballot failed and is not counted: %s", e)
                continue
            except Exception as e:
                logger.warning("Ballot failed with unexpected error and is not counted: %s", e)
                continue
            logger.debug(
                "Ballot: success=%s, id='%s', message='%s'",
                ballot.success, ballot.element_id, ballot.message,
            )
            ballots.append(ballot)
        return ballots

    def _pick_winner(self, votes: Counter, labeled: Dict[str, Rectangle]) -> str:
        """
        Label with most votes; ties go to the largest area, then the top-left-most region.
        """
        top = max(votes.values())
        tied = [label for label in labeled if votes.get(label, 0) == top]
        if len(tied) > 1:
            logger.info("Vote tie between candidates %s, preferring the largest one", tied)
        return min(tied, key=lambda label: (*area_sort_key(labeled[label]), int(label)))
