"""
Detector result types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Tuple

from .geometry import Rectangle


class DetectionSource(str, Enum):
    """Closed set of detectors whose results feed the consensus resolver."""

    VISION_PROPOSED = "vision_proposed"
    TEMPLATE_MATCHED = "template_matched"
    FEATURE_MATCHED = "feature_matched"


@dataclass(frozen=True)
class DetectionSet:
    """
    Rectangles found by every detector for one element on one screenshot.

    All rectangles are in screenshot pixel coordinates. Any detector may
    legitimately contribute nothing.
    """

    vision_proposed: Tuple[Rectangle, ...] = field(default_factory=tuple)
    template_matched: Tuple[Rectangle, ...] = field(default_factory=tuple)
    feature_matched: Tuple[Rectangle, ...] = field(default_factory=tuple)

    @classmethod
    def from_results(
        cls, results: Dict[DetectionSource, Iterable[Rectangle]]
    ) -> "DetectionSet":
        """
        Build a detection set from per-source results.

        Args:
            results: Rectangles keyed by detector source, missing sources are empty
        """
        return cls(
            vision_proposed=tuple(results.get(DetectionSource.VISION_PROPOSED, ())),
            template_matched=tuple(results.get(DetectionSource.TEMPLATE_MATCHED, ())),
            feature_matched=tuple(results.get(DetectionSource.FEATURE_MATCHED, ())),
        )

    def of(self, source: DetectionSource) -> Tuple[Rectangle, ...]:
        """Rectangles produced by one detector."""
        return getattr(self, source.value)

    @property
    def total(self) -> int:
        return sum(len(self.of(source)) for source in DetectionSource)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def summary(self) -> str:
        return ", ".join(f"{source.value}={len(self.of(source))}" for source in DetectionSource)
