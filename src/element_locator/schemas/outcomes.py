"""
Terminal results of one automated location pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from .geometry import Rectangle


@dataclass(frozen=True)
class Found:
    """Exactly one region was confirmed for the element."""

    rectangle: Rectangle


@dataclass(frozen=True)
class NoPatternMatch:
    """No detector produced any region."""


@dataclass(frozen=True)
class NoVisualConfirmation:
    """Regions exist, but the quorum did not confirm any of them."""


@dataclass(frozen=True)
class Ambiguous:
    """Several regions remain and must pass the quorum vote."""

    candidates: Tuple[Rectangle, ...] = field(default_factory=tuple)


LocationOutcome = Union[Found, NoPatternMatch, NoVisualConfirmation, Ambiguous]


class FallbackReason(str, Enum):
    """Why automation could not return a location on its own."""

    NO_CANDIDATES_IN_CATALOG = "no_candidates_in_catalog"
    LOW_CONFIDENCE_CANDIDATES = "low_confidence_candidates"
    AMBIGUOUS_BY_PAGE = "ambiguous_by_page"
    NO_PATTERN_MATCH = "no_pattern_match"
    NO_VISUAL_CONFIRMATION = "no_visual_confirmation"
