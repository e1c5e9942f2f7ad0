"""
Visual detectors: template matching, feature matching and vision model proposals.
"""

from .template_matcher import TemplateMatcher
from .feature_matcher import FeatureMatcher
from .vision_proposer import VisionBoxProposer
from .visual_detectors import VisualDetectors

__all__ = [
    "TemplateMatcher",
    "FeatureMatcher",
    "VisionBoxProposer",
    "VisualDetectors",
]
