"""
Faults that are allowed to cross the element locator boundary.

Everything else (detector failures, empty consensus, a failed quorum) is
translated into a LocationOutcome and never raised.
"""

from typing import Iterable


class ElementLocatorError(Exception):
    """Base class for element locator faults."""


class CatalogAmbiguityError(ElementLocatorError):
    """
    Several confidently named, page-relevant catalog elements match one description.

    Retrying cannot fix this, the catalog itself has to be cleaned up.
    """

    def __init__(self, description: str, element_names: Iterable[str]):
        self.description = description
        self.element_names = list(element_names)
        super().__init__(
            f"Found {len(self.element_names)} catalog elements matching '{description}' "
            f"which are all relevant to the current view: {self.element_names}. "
            "The element catalog must be refined so that only one of them matches."
        )


class PaletteExhaustedError(ElementLocatorError):
    """More disambiguation candidates than distinct label colors."""

    def __init__(self, candidate_count: int, palette_size: int):
        self.candidate_count = candidate_count
        self.palette_size = palette_size
        super().__init__(
            f"Amount of bounding boxes to plot ({candidate_count}) exceeds the amount of "
            f"available label colors ({palette_size}). Either tighten the detector thresholds "
            "or extend the label palette."
        )


class ModelCallError(ElementLocatorError):
    """A single multimodal model call failed or returned an unusable response."""


class ElementCaptureError(ElementLocatorError):
    """The bounding box marked by the user cannot be used as a reference image."""


class UserTerminationRequested(BaseException):
    """
    The user chose to terminate the execution.

    Derives from BaseException so that it unwinds the whole enclosing test
    case instead of being handled as an ordinary lookup error.
    """

    def __init__(self, message: str = "The user decided to terminate the execution"):
        super().__init__(message)


class UserInterruptedExecution(UserTerminationRequested):
    """A blocking dialog was closed without giving a decision."""

    def __init__(self, message: str = "The user interrupted the execution"):
        super().__init__(message)
