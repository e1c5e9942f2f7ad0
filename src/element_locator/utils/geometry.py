"""
Rectangle set operations used by the detectors and the consensus resolver.

Overlap between detector boxes is measured against the area of the
element's reference image rather than against the boxes themselves, so a
large box that loosely covers a small one is not rewarded.
"""

from typing import Iterable, List, Optional, Sequence

from ..schemas.geometry import Rectangle


def intersection_area_ratio(
    first: Rectangle, second: Rectangle, original_area: float
) -> float:
    """
    Intersection area of two rectangles divided by the original element area.

    Args:
        first: First rectangle
        second: Second rectangle
        original_area: Area of the element's reference image

    Returns:
        Ratio, 0.0 when the rectangles do not overlap or the area is unknown
    """
    if original_area <= 0:
        return 0.0
    overlap = first.intersection(second)
    if overlap is None:
        return 0.0
    return overlap.area / original_area


def _should_merge(
    first: Rectangle,
    second: Rectangle,
    original_area: Optional[float],
    min_ratio: Optional[float],
) -> bool:
    if min_ratio is None or original_area is None:
        return first.intersects(second)
    return intersection_area_ratio(first, second, original_area) >= min_ratio


def merge_overlapping_rectangles(
    rectangles: Iterable[Rectangle],
    original_area: Optional[float] = None,
    min_ratio: Optional[float] = None,
) -> List[Rectangle]:
    """
    Union overlapping rectangles until no mergeable pair is left.

    Without a ratio every positive-area overlap is merged. With
    original_area and min_ratio only pairs whose intersection-to-original-area
    ratio reaches min_ratio are merged.

    Args:
        rectangles: Rectangles to merge
        original_area: Area of the element's reference image
        min_ratio: Minimum intersection-to-original-area ratio

    Returns:
        Merged rectangles in first-seen order, without duplicates
    """
    merged = union_rectangle_sets(r for r in rectangles if not r.is_empty)
    changed = True
    while changed:
        changed = False
        for i in range(len(merged)):
            for j in range(i + 1, len(merged)):
                if _should_merge(merged[i], merged[j], original_area, min_ratio):
                    merged[i] = merged[i].union(merged[j])
                    del merged[j]
                    changed = True
                    break
            if changed:
                break
    return union_rectangle_sets(merged)


def intersect_rectangle_sets(
    first: Sequence[Rectangle],
    second: Sequence[Rectangle],
    original_area: float,
    min_ratio: float,
) -> List[Rectangle]:
    """
    Pairwise intersections of two rectangle sets that clear the area ratio.

    Args:
        first: Rectangles of one detector
        second: Rectangles of another detector
        original_area: Area of the element's reference image
        min_ratio: Minimum intersection-to-original-area ratio

    Returns:
        Intersection regions, near-identical ones merged into one
    """
    regions = []
    for a in first:
        for b in second:
            if intersection_area_ratio(a, b, original_area) >= min_ratio:
                regions.append(a.intersection(b))
    return merge_overlapping_rectangles(regions, original_area, min_ratio)


def union_rectangle_sets(*rectangle_sets: Iterable[Rectangle]) -> List[Rectangle]:
    """
    Concatenate rectangle sets keeping first-seen order and dropping duplicates.
    """
    seen = set()
    result = []
    for rectangle_set in rectangle_sets:
        for rectangle in rectangle_set:
            if rectangle not in seen:
                seen.add(rectangle)
                result.append(rectangle)
    return result


def scale_rectangle(rectangle: Rectangle, scaling_factor: float) -> Rectangle:
    """
    Convert a rectangle from screenshot pixels to logical screen coordinates.

    Args:
        rectangle: Rectangle in physical screenshot pixels
        scaling_factor: Screenshot pixels per logical screen pixel (2.0 on Retina)

    Returns:
        Rectangle in logical screen coordinates
    """
    if scaling_factor == 1.0:
        return rectangle
    return rectangle.scaled(scaling_factor)


def area_sort_key(rectangle: Rectangle):
    """
    Ordering key preferring larger rectangles, then the top-most, left-most one.
    """
    return (-rectangle.area, rectangle.y, rectangle.x)
