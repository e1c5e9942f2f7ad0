"""
Structured response shapes requested from the multimodal model.
"""

from typing import List

from pydantic import BaseModel, Field

# Vision models report boxes on a fixed grid independent of the screenshot size.
NORMALIZED_GRID_SIZE = 1000


class VoteBallot(BaseModel):
    """
    The identified best match for a target UI element among labeled candidates.
    """

    success: bool = Field(
        description=(
            'Must be "false" if you are sure that no UI element candidate matches the '
            'description of the target UI element, "true" otherwise.'
        )
    )
    element_id: str = Field(
        default="",
        description=(
            "The ID (label) of the best matching UI element candidate. Must be an empty "
            'string if "success" is "false".'
        ),
    )
    message: str = Field(
        default="",
        description=(
            "Why this candidate was identified as the best match, or why no candidate "
            "matches at all."
        ),
    )


class ProposedBox(BaseModel):
    """
    Bounding box on a 0-1000 grid, (0, 0) being the top-left screenshot corner.
    """

    x1: int = Field(description="Left edge on the 0-1000 horizontal grid", ge=0, le=1000)
    y1: int = Field(description="Top edge on the 0-1000 vertical grid", ge=0, le=1000)
    x2: int = Field(description="Right edge on the 0-1000 horizontal grid", ge=0, le=1000)
    y2: int = Field(description="Bottom edge on the 0-1000 vertical grid", ge=0, le=1000)


class ProposedBoundingBoxes(BaseModel):
    """
    Bounding boxes of all UI elements matching the target description.
    """

    boxes: List[ProposedBox] = Field(
        default_factory=list,
        description="Bounding boxes of matching elements, empty if there is none",
    )


class PageSummary(BaseModel):
    """
    Short summary of the currently displayed view.
    """

    summary: str = Field(
        description="One or two sentences naming the application view shown in the screenshot"
    )


class ElementDescriptionDraft(BaseModel):
    """
    The extracted information about the UI element marked with a bounding box.
    """

    name: str = Field(description="Short name of the target element")
    own_description: str = Field(
        description="Information which describes the target element itself"
    )
    anchors_description: str = Field(
        description="Information about UI elements located nearby the target element"
    )
    page_summary: str = Field(
        description="Very short summary of the view in which the element is located"
    )
