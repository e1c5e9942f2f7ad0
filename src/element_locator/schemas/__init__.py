"""
Data models for element location.
"""

from .geometry import Rectangle
from .catalog import CatalogElement, ReferenceImage, RetrievedCandidate
from .detection import DetectionSet, DetectionSource
from .outcomes import (
    Ambiguous,
    FallbackReason,
    Found,
    LocationOutcome,
    NoPatternMatch,
    NoVisualConfirmation,
)
from .model_responses import (
    ElementDescriptionDraft,
    PageSummary,
    ProposedBoundingBoxes,
    ProposedBox,
    VoteBallot,
)

__all__ = [
    "Rectangle",
    "CatalogElement",
    "ReferenceImage",
    "RetrievedCandidate",
    "DetectionSet",
    "DetectionSource",
    "Ambiguous",
    "FallbackReason",
    "Found",
    "LocationOutcome",
    "NoPatternMatch",
    "NoVisualConfirmation",
    "ElementDescriptionDraft",
    "PageSummary",
    "ProposedBoundingBoxes",
    "ProposedBox",
    "VoteBallot",
]
