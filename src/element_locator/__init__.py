"""
Locates described UI elements on the screen using a learned element catalog,
classical vision detectors and a quorum vote of a multimodal model.
"""

from .config import LocatorConfig, create_custom_config, get_locator_config
from .exceptions import (
    CatalogAmbiguityError,
    ElementCaptureError,
    ElementLocatorError,
    ModelCallError,
    PaletteExhaustedError,
    UserInterruptedExecution,
    UserTerminationRequested,
)
from .schemas import (
    Ambiguous,
    CatalogElement,
    FallbackReason,
    Found,
    LocationOutcome,
    NoPatternMatch,
    NoVisualConfirmation,
    Rectangle,
    ReferenceImage,
    RetrievedCandidate,
)
from .services import ChromaCandidateStore, ElementLocator, create_element_locator
from .utils.logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    "LocatorConfig",
    "create_custom_config",
    "get_locator_config",
    "CatalogAmbiguityError",
    "ElementCaptureError",
    "ElementLocatorError",
    "ModelCallError",
    "PaletteExhaustedError",
    "UserInterruptedExecution",
    "UserTerminationRequested",
    "Ambiguous",
    "CatalogElement",
    "FallbackReason",
    "Found",
    "LocationOutcome",
    "NoPatternMatch",
    "NoVisualConfirmation",
    "Rectangle",
    "ReferenceImage",
    "RetrievedCandidate",
    "ChromaCandidateStore",
    "ElementLocator",
    "create_element_locator",
    "setup_logging",
]
