"""
Catalog element models shared by the retriever, locator and fallback workflow.
"""

from typing import Optional, Tuple
from uuid import UUID, uuid4

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.image_utils import base64_to_image, image_to_base64


class ReferenceImage(BaseModel):
    """
    Reference screenshot of a catalog element, stored as base64.
    """

    model_config = ConfigDict(frozen=True)

    file_extension: str = Field(default="png", description="Image file extension")
    mime_type: str = Field(default="image/png", description="Image MIME type")
    base64_data: str = Field(description="Base64 encoded image bytes")

    @classmethod
    def from_image(cls, image: Image.Image, file_extension: str = "png") -> "ReferenceImage":
        """
        Encode a PIL Image as a reference image.

        Args:
            image: Element screenshot
            file_extension: Image format used for encoding

        Returns:
            ReferenceImage
        """
        return cls(
            file_extension=file_extension,
            mime_type=f"image/{file_extension}",
            base64_data=image_to_base64(image, format=file_extension.upper()),
        )

    def to_image(self) -> Image.Image:
        """Decode the stored bytes into a PIL Image."""
        return base64_to_image(self.base64_data)

    @property
    def size(self) -> Tuple[int, int]:
        return self.to_image().size


class CatalogElement(BaseModel):
    """
    A learned UI element: identity, semantics and one reference screenshot.

    The name is the only field that gets embedded for semantic retrieval.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Stable element identity")
    name: str = Field(description="Short, unique name of the element")
    own_description: str = Field(
        default="", description="Visual and functional description of the element itself"
    )
    anchors_description: str = Field(
        default="", description="Description of the elements located nearby"
    )
    page_summary: str = Field(
        default="", description="Short summary of the view the element belongs to"
    )
    reference_image: Optional[ReferenceImage] = Field(
        default=None, description="Reference screenshot used for visual matching"
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Catalog element name must not be empty")
        return value

    @property
    def reference_area(self) -> int:
        """Area of the reference screenshot in pixels, 0 when there is none."""
        if self.reference_image is None:
            return 0
        width, height = self.reference_image.size
        return width * height

    def with_reference_image(self, image: Image.Image) -> "CatalogElement":
        """Copy of this element carrying the given reference screenshot."""
        return self.model_copy(update={"reference_image": ReferenceImage.from_image(image)})

    def __str__(self) -> str:
        return (
            f"CatalogElement[name='{self.name}', ownDescription='{self.own_description}', "
            f"anchorsDescription='{self.anchors_description}', pageSummary='{self.page_summary}']"
        )


class RetrievedCandidate(BaseModel):
    """
    Catalog element returned by semantic retrieval with its scores.
    """

    model_config = ConfigDict(frozen=True)

    element: CatalogElement
    name_score: float = Field(description="Similarity between the query and the element name")
    page_relevance_score: Optional[float] = Field(
        default=None,
        description="Similarity between the current view summary and the element page summary",
    )
