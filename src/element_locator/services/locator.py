"""
Top-level element location: catalog retrieval, visual detection, consensus
and quorum, with the attended fallback workflow for everything else.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from PIL import Image

from ..config.locator_config import LocatorConfig, get_locator_config
from ..exceptions import CatalogAmbiguityError, ModelCallError
from ..prompts.locator_prompts import get_page_summary_prompt
from ..schemas.catalog import CatalogElement, RetrievedCandidate
from ..schemas.geometry import Rectangle
from ..schemas.model_responses import PageSummary
from ..schemas.outcomes import (
    Ambiguous,
    FallbackReason,
    Found,
    LocationOutcome,
    NoPatternMatch,
)
from ..tools.vision.visual_detectors import VisualDetectors
from ..utils.geometry import scale_rectangle
from .consensus import ConsensusResolver
from .fallback import AttendedFallbackWorkflow
from .quorum import QuorumDisambiguator
from .retriever import CandidateRetriever

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Decision:
    """Catalog element chosen for a description, or why none could be chosen."""

    element: Optional[CatalogElement] = None
    reason: Optional[FallbackReason] = None
    candidates: List[CatalogElement] = field(default_factory=list)


class ElementLocator:
    """
    Locates a described UI element on the current screen.

    One call is synchronous and has no overall timeout; retrying is left to
    the caller.
    """

    def __init__(
        self,
        retriever: CandidateRetriever,
        detectors: VisualDetectors,
        consensus: ConsensusResolver,
        quorum: QuorumDisambiguator,
        fallback: AttendedFallbackWorkflow,
        model_client,
        capture_screen: Callable[[], Image.Image],
        scaling_factor: Callable[[], float],
        config: Optional[LocatorConfig] = None,
    ):
        """
        Initialize locator.

        Args:
            retriever: Catalog retriever
            detectors: Visual detectors
            consensus: Consensus resolver over detector regions
            quorum: Quorum disambiguator
            fallback: Workflow for lookups automation could not decide
            model_client: MultimodalModelClient used for the page summary
            capture_screen: Returns a fresh screenshot
            scaling_factor: Returns screenshot pixels per logical screen pixel
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()
        self.retriever = retriever
        self.detectors = detectors
        self.consensus = consensus
        self.quorum = quorum
        self.fallback = fallback
        self.model_client = model_client
        self.capture_screen = capture_screen
        self.scaling_factor = scaling_factor
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """
        Abort the running lookup as far as possible.

        Pending detector and ballot tasks are cancelled and the current call
        returns None once its running tasks are done.
        """
        logger.info("Element location cancelled")
        self._cancelled.set()
        self.detectors.cancel()
        self.quorum.cancel()

    def locate_element_on_screen(self, description: str) -> Optional[Rectangle]:
        """
        Find the element matching the description on the current screen.

        Args:
            description: Free-text element description

        Returns:
            Element rectangle in logical screen coordinates, None if not found

        Raises:
            CatalogAmbiguityError: Several catalog elements fit the current view
            PaletteExhaustedError: More candidate regions than label colors
            UserTerminationRequested: The user terminated the execution
        """
        self._cancelled.clear()
        logger.info("Locating element '%s'", description)

        retrieved = self.retriever.retrieve(
            description,
            self.config.retriever_top_n,
            self.config.min_general_retrieval_score,
        )
        if not retrieved:
            return self._fall_back(FallbackReason.NO_CANDIDATES_IN_CATALOG, description, [])

        tiers = self.retriever.classify(retrieved)
        if not tiers.confident:
            return self._fall_back(
                FallbackReason.LOW_CONFIDENCE_CANDIDATES,
                description,
                [c.element for c in tiers.general],
            )

        screenshot = self.capture_screen()
        decision = self._choose_element(description, list(tiers.confident), screenshot)
        if decision.element is None:
            return self._fall_back(decision.reason, description, decision.candidates)
        if self._cancelled.is_set():
            return None

        element = decision.element
        outcome = self.locate_in_screenshot(screenshot, element, description)
        if self._cancelled.is_set():
            return None

        if isinstance(outcome, Found):
            location = scale_rectangle(outcome.rectangle, self.scaling_factor())
            logger.info("Element '%s' found at %s", element.name, location)
            return location
        if isinstance(outcome, NoPatternMatch):
            return self._fall_back(FallbackReason.NO_PATTERN_MATCH, description, [element])
        return self._fall_back(FallbackReason.NO_VISUAL_CONFIRMATION, description, [element])

    def locate(self, description: str) -> LocationOutcome:
        """
        Run one automated pass without any fallback.

        Args:
            description: Free-text element description

        Returns:
            Outcome of the pass; NoPatternMatch also when no single confident
            catalog element could be chosen

        Raises:
            CatalogAmbiguityError: Several catalog elements fit the current view
            PaletteExhaustedError: More candidate regions than label colors
        """
        self._cancelled.clear()
        retrieved = self.retriever.retrieve(
            description,
            self.config.retriever_top_n,
            self.config.min_general_retrieval_score,
        )
        confident = list(self.retriever.classify(retrieved).confident)
        if not confident:
            return NoPatternMatch()

        screenshot = self.capture_screen()
        decision = self._choose_element(description, confident, screenshot)
        if decision.reason == FallbackReason.AMBIGUOUS_BY_PAGE:
            raise CatalogAmbiguityError(description, [c.name for c in decision.candidates])
        if decision.element is None:
            return NoPatternMatch()
        return self.locate_in_screenshot(screenshot, decision.element, description)

    def locate_in_screenshot(
        self, screenshot: Image.Image, element: CatalogElement, description: str
    ) -> LocationOutcome:
        """
        Find one catalog element on a given screenshot.

        Returns:
            Found (screenshot pixels), NoPatternMatch or NoVisualConfirmation
        """
        if element.reference_image is None:
            logger.warning("Catalog element '%s' has no reference screenshot", element.name)
            return NoPatternMatch()

        detections = self.detectors.detect(screenshot, element)
        if self._cancelled.is_set():
            return NoPatternMatch()

        outcome = self.consensus.resolve(detections, element.reference_area)
        if isinstance(outcome, Ambiguous):
            return self.quorum.disambiguate(
                screenshot, outcome.candidates, element, description
            )
        return outcome

    def _choose_element(
        self,
        description: str,
        confident: List[RetrievedCandidate],
        screenshot: Image.Image,
    ) -> _Decision:
        if len(confident) == 1:
            return _Decision(element=confident[0].element)

        names = [c.element.name for c in confident]
        logger.info(
            "%d confident catalog elements for '%s': %s, checking page relevance",
            len(confident), description, names,
        )
        page_summary = self._summarize_page(screenshot)
        if page_summary is None:
            return _Decision(
                reason=FallbackReason.LOW_CONFIDENCE_CANDIDATES,
                candidates=[c.element for c in confident],
            )

        scored = self.retriever.retrieve_with_page_context(
            description,
            page_summary,
            self.config.retriever_top_n,
            self.config.min_target_retrieval_score,
        )
        relevant = self.retriever.filter_by_page_relevance(scored)
        logger.info(
            "Page relevance for '%s': %s",
            page_summary,
            [f"{c.element.name} ({c.page_relevance_score:.2f})" for c in scored],
        )

        if len(relevant) == 1:
            return _Decision(element=relevant[0].element)
        if relevant:
            return _Decision(
                reason=FallbackReason.AMBIGUOUS_BY_PAGE,
                candidates=[c.element for c in relevant],
            )
        return _Decision(
            reason=FallbackReason.LOW_CONFIDENCE_CANDIDATES,
            candidates=[c.element for c in confident],
        )

    def _summarize_page(self, screenshot: Image.Image) -> Optional[str]:
        try:
            response = self.model_client.generate(
                get_page_summary_prompt(), [screenshot], PageSummary, "page summary"
            )
        except ModelCallError as e:
            logger.warning("Could not summarize the current view: %s", e)
            return None
        return response.summary

    def _fall_back(
        self,
        reason: FallbackReason,
        description: str,
        candidates: Sequence[CatalogElement],
    ) -> Optional[Rectangle]:
        if self._cancelled.is_set():
            return None
        logger.info("Automatic location of '%s' failed: %s", description, reason.value)
        return self.fallback.handle(
            reason, description, candidates, self.locate_element_on_screen
        )
