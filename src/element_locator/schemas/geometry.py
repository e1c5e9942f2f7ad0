"""
Axis-aligned rectangle used for every detected region.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Rectangle:
    """
    Axis-aligned region in pixels.

    The coordinate system (reference image, screenshot or logical screen) is
    defined by the producer. Rectangles from different systems must be
    scaled explicitly before they are compared.
    """

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> "Rectangle":
        """
        Build a rectangle from two opposite corners.

        Args:
            x1, y1: First corner
            x2, y2: Opposite corner

        Returns:
            Rectangle covering both corners
        """
        left, right = sorted((x1, x2))
        top, bottom = sorted((y1, y2))
        return cls(
            int(round(left)),
            int(round(top)),
            int(round(right - left)),
            int(round(bottom - top)),
        )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        if self.is_empty:
            return 0
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.width // 2, self.y + self.height // 2)

    def intersection(self, other: "Rectangle") -> Optional["Rectangle"]:
        """
        Overlapping region of two rectangles.

        Returns:
            The intersection, or None if the rectangles do not overlap
        """
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return Rectangle(left, top, right - left, bottom - top)

    def intersects(self, other: "Rectangle") -> bool:
        """True if both rectangles share a region of positive area."""
        return self.intersection(other) is not None

    def union(self, other: "Rectangle") -> "Rectangle":
        """Smallest rectangle containing both rectangles."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return Rectangle(left, top, right - left, bottom - top)

    def clip(self, width: int, height: int) -> Optional["Rectangle"]:
        """
        Clip the rectangle to an image of the given size.

        Returns:
            Clipped rectangle, or None if nothing remains inside the image
        """
        return self.intersection(Rectangle(0, 0, width, height))

    def scaled(self, factor: float) -> "Rectangle":
        """Rectangle with every coordinate divided by factor."""
        if factor <= 0:
            raise ValueError(f"Scaling factor must be positive, got {factor}")
        return Rectangle(
            int(round(self.x / factor)),
            int(round(self.y / factor)),
            int(round(self.width / factor)),
            int(round(self.height / factor)),
        )

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def __str__(self) -> str:
        return f"[x={self.x}, y={self.y}, w={self.width}, h={self.height}]"
