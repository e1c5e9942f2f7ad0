"""
Semantic retrieval of catalog elements for a free-text description.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config.locator_config import LocatorConfig, get_locator_config
from ..schemas.catalog import RetrievedCandidate
from .candidate_store import CandidateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateTiers:
    """
    Retrieved candidates split by how confidently their names match.
    """

    confident: Tuple[RetrievedCandidate, ...] = field(default_factory=tuple)
    """Candidates at or above the target retrieval score"""

    general: Tuple[RetrievedCandidate, ...] = field(default_factory=tuple)
    """Every candidate at or above the general retrieval score, confident ones included"""


class CandidateRetriever:
    """
    Finds catalog elements by name similarity and optionally by page relevance.
    """

    def __init__(self, store: CandidateStore, config: Optional[LocatorConfig] = None):
        """
        Initialize retriever.

        Args:
            store: Catalog store
            config: Locator configuration, defaults to the global one
        """
        self.store = store
        self.config = config or get_locator_config()

    def retrieve(
        self,
        description: str,
        top_n: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[RetrievedCandidate]:
        """
        Retrieve the catalog elements whose names best match the description.

        Args:
            description: Free-text element description
            top_n: Max number of candidates, defaults to retriever_top_n
            min_score: Minimum name score, defaults to min_general_retrieval_score

        Returns:
            Candidates ordered by descending name score, unique by element id
        """
        top_n = self.config.retriever_top_n if top_n is None else top_n
        min_score = self.config.min_general_retrieval_score if min_score is None else min_score

        candidates = self.store.search(description, top_n, min_score)

        unique: List[RetrievedCandidate] = []
        seen_ids = set()
        for candidate in sorted(candidates, key=lambda c: -c.name_score):
            if candidate.element.id in seen_ids or candidate.name_score < min_score:
                continue
            seen_ids.add(candidate.element.id)
            unique.append(candidate)

        unique = unique[:top_n]
        logger.info(
            "Retrieved %d catalog element(s) for '%s': %s",
            len(unique),
            description,
            [f"{c.element.name} ({c.name_score:.2f})" for c in unique],
        )
        return unique

    def retrieve_with_page_context(
        self,
        description: str,
        page_context: str,
        top_n: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[RetrievedCandidate]:
        """
        Retrieve candidates and score each one against the current view.

        Args:
            description: Free-text element description
            page_context: Summary of the currently displayed view
            top_n: Max number of candidates
            min_score: Minimum name score

        Returns:
            Same candidates as retrieve, each with page_relevance_score set
        """
        candidates = self.retrieve(description, top_n, min_score)
        return [self.score_page_relevance(candidate, page_context) for candidate in candidates]

    def score_page_relevance(
        self, candidate: RetrievedCandidate, page_context: str
    ) -> RetrievedCandidate:
        """Copy of the candidate with its page relevance to the given view."""
        page_summary = candidate.element.page_summary
        if not page_summary or not page_summary.strip():
            score = 0.0
        else:
            score = self.store.similarity(page_context, page_summary)
        return candidate.model_copy(update={"page_relevance_score": score})

    def classify(self, candidates: List[RetrievedCandidate]) -> CandidateTiers:
        """
        Split candidates into confident and general tiers.
        """
        confident = tuple(
            c for c in candidates if c.name_score >= self.config.min_target_retrieval_score
        )
        general = tuple(
            c for c in candidates if c.name_score >= self.config.min_general_retrieval_score
        )
        return CandidateTiers(confident=confident, general=general)

    def filter_by_page_relevance(
        self,
        candidates: List[RetrievedCandidate],
        threshold: Optional[float] = None,
    ) -> List[RetrievedCandidate]:
        """
        Keep candidates relevant to the current view.

        Args:
            candidates: Candidates with page_relevance_score set
            threshold: Minimum page relevance, defaults to min_page_relevance_score

        Returns:
            Candidates whose page relevance reaches the threshold, order kept
        """
        threshold = self.config.min_page_relevance_score if threshold is None else threshold
        return [
            c
            for c in candidates
            if c.page_relevance_score is not None and c.page_relevance_score >= threshold
        ]
