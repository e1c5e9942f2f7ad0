"""
Thresholds and tuning knobs for element location.

One LocatorConfig instance is injected into every component, so tests can
substitute any threshold without touching global state.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Optional, Tuple

from dotenv import load_dotenv

from ..utils.image_utils import NAMED_COLORS

DEFAULT_LABEL_PALETTE: Tuple[str, ...] = (
    "red",
    "blue",
    "green",
    "yellow",
    "black",
    "orange",
    "pink",
    "cyan",
    "magenta",
)


@dataclass(frozen=True)
class LocatorConfig:
    """
    Centralized configuration of the element locator.
    """

    unattended_mode: bool = False
    """Fail closed instead of asking a human when automation cannot decide"""

    debug_mode: bool = False
    """Save annotated disambiguation screenshots"""

    screenshots_save_folder: str = "screens"
    """Where debug screenshots are written"""

    # Retrieval
    retriever_top_n: int = 3
    """Max catalog elements returned per query"""

    min_target_retrieval_score: float = 0.85
    """Name similarity above which a catalog element is a confident match"""

    min_general_retrieval_score: float = 0.4
    """Name similarity above which a catalog element is worth showing a human"""

    min_page_relevance_score: float = 0.5
    """Page summary similarity needed to keep one of several confident matches"""

    # Template matching
    visual_similarity_threshold: float = 0.8
    """Minimum normalized cross-correlation of a template match"""

    top_visual_matches: int = 3
    """Max regions each pattern detector returns"""

    # Feature matching
    orb_max_features: int = 10000
    orb_scale_factor: float = 1.05
    orb_levels: int = 12
    orb_edge_threshold: int = 8
    orb_patch_size: int = 31
    orb_fast_threshold: int = 6

    lowe_ratio_threshold: float = 0.75
    """Nearest/second-nearest descriptor distance ratio for a good match"""

    min_good_feature_matches: int = 10
    """Good matches needed before clustering is attempted"""

    min_cluster_population: int = 4
    """Minimum keypoints per cluster, at least 4 for a homography"""

    cluster_radius_ratio: float = 0.5
    """Cluster neighborhood radius as a fraction of the template diagonal"""

    ransac_reprojection_threshold: float = 5.0
    """Max reprojection error in pixels for a RANSAC inlier"""

    min_homography_inlier_ratio: float = 0.75
    """Share of cluster points that must be homography inliers"""

    found_matches_dimension_deviation_ratio: float = 0.3
    """Max relative width/height deviation of a feature match from the template"""

    # Consensus
    min_intersection_area_ratio: float = 0.8
    """Intersection-to-original-area ratio for two detector boxes to agree"""

    # Vision model
    vision_proposal_count: int = 3
    """Independent bounding box requests sent to the vision model"""

    bbox_clustering_min_intersection_ratio: float = 0.7
    """Overlap (relative to the smaller box) for two proposals to be one region"""

    quorum_vote_count: int = 5
    """Independent identification ballots per disambiguation"""

    model_call_timeout_seconds: float = 120.0
    """Time after which a single ballot or proposal is treated as absent"""

    max_parallel_model_calls: int = 8
    """Worker threads used for concurrent model calls"""

    label_palette: Tuple[str, ...] = DEFAULT_LABEL_PALETTE
    """Distinct colors used to label disambiguation candidates"""

    bounding_box_color: str = "green"
    """Color used to mark a newly captured element for the model"""

    # Catalog storage
    vector_db_path: Optional[str] = None
    """Directory of a persistent chroma database"""

    vector_db_url: Optional[str] = None
    """URL of a chroma server, used when no path is set"""

    collection_name: str = "ui_elements"

    embedding_model_name: str = "all-MiniLM-L6-v2"
    """Sentence-transformers model embedding element names"""

    def __post_init__(self):
        for name in (
            "min_target_retrieval_score",
            "min_general_retrieval_score",
            "min_page_relevance_score",
            "visual_similarity_threshold",
            "lowe_ratio_threshold",
            "min_homography_inlier_ratio",
            "min_intersection_area_ratio",
            "bbox_clustering_min_intersection_ratio",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

        for name in (
            "retriever_top_n",
            "top_visual_matches",
            "min_good_feature_matches",
            "vision_proposal_count",
            "quorum_vote_count",
            "max_parallel_model_calls",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")

        if self.min_general_retrieval_score > self.min_target_retrieval_score:
            raise ValueError(
                "min_general_retrieval_score must not exceed min_target_retrieval_score"
            )
        if self.min_cluster_population < 4:
            raise ValueError(
                "min_cluster_population must be at least 4 to estimate a homography"
            )
        if self.cluster_radius_ratio <= 0 or self.model_call_timeout_seconds <= 0:
            raise ValueError("cluster_radius_ratio and model_call_timeout_seconds must be positive")
        if not self.label_palette:
            raise ValueError("label_palette must contain at least one color")
        if len(set(self.label_palette)) != len(self.label_palette):
            raise ValueError("label_palette colors must be distinct")
        for color in (*self.label_palette, self.bounding_box_color):
            if color not in NAMED_COLORS:
                raise ValueError(
                    f"Unknown color '{color}'. Supported colors: {sorted(NAMED_COLORS)}"
                )

    @classmethod
    def from_env(cls) -> "LocatorConfig":
        """
        Build the configuration from environment variables (and a .env file).

        Environment Variables:
        - UNATTENDED_MODE, DEBUG_MODE, SCREENSHOTS_SAVE_FOLDER
        - RETRIEVER_TOP_N, ELEMENT_RETRIEVAL_MIN_TARGET_SCORE,
          ELEMENT_RETRIEVAL_MIN_GENERAL_SCORE, ELEMENT_RETRIEVAL_MIN_PAGE_RELEVANCE_SCORE
        - VISUAL_SIMILARITY_THRESHOLD, TOP_VISUAL_MATCHES_TO_FIND,
          FOUND_MATCHES_DIMENSION_DEVIATION_RATIO, MIN_INTERSECTION_PERCENTAGE
        - VISUAL_GROUNDING_MODEL_VOTE_COUNT, BBOX_CLUSTERING_MIN_INTERSECTION_RATIO,
          VALIDATION_MODEL_VOTE_COUNT, MODEL_CALL_TIMEOUT_SECONDS
        - BOUNDING_BOX_COLOR, VECTOR_DB_PATH, VECTOR_DB_URL, EMBEDDING_MODEL_NAME

        Returns:
            LocatorConfig with environment overrides applied
        """
        load_dotenv()

        env_fields = {
            "unattended_mode": ("UNATTENDED_MODE", _parse_bool),
            "debug_mode": ("DEBUG_MODE", _parse_bool),
            "screenshots_save_folder": ("SCREENSHOTS_SAVE_FOLDER", str),
            "retriever_top_n": ("RETRIEVER_TOP_N", int),
            "min_target_retrieval_score": ("ELEMENT_RETRIEVAL_MIN_TARGET_SCORE", float),
            "min_general_retrieval_score": ("ELEMENT_RETRIEVAL_MIN_GENERAL_SCORE", float),
            "min_page_relevance_score": ("ELEMENT_RETRIEVAL_MIN_PAGE_RELEVANCE_SCORE", float),
            "visual_similarity_threshold": ("VISUAL_SIMILARITY_THRESHOLD", float),
            "top_visual_matches": ("TOP_VISUAL_MATCHES_TO_FIND", int),
            "found_matches_dimension_deviation_ratio": (
                "FOUND_MATCHES_DIMENSION_DEVIATION_RATIO",
                float,
            ),
            "min_intersection_area_ratio": ("MIN_INTERSECTION_PERCENTAGE", float),
            "vision_proposal_count": ("VISUAL_GROUNDING_MODEL_VOTE_COUNT", int),
            "bbox_clustering_min_intersection_ratio": (
                "BBOX_CLUSTERING_MIN_INTERSECTION_RATIO",
                float,
            ),
            "quorum_vote_count": ("VALIDATION_MODEL_VOTE_COUNT", int),
            "model_call_timeout_seconds": ("MODEL_CALL_TIMEOUT_SECONDS", float),
            "bounding_box_color": ("BOUNDING_BOX_COLOR", lambda s: s.lower()),
            "vector_db_path": ("VECTOR_DB_PATH", str),
            "vector_db_url": ("VECTOR_DB_URL", str),
            "embedding_model_name": ("EMBEDDING_MODEL_NAME", str),
        }

        overrides = {}
        for field_name, (env_var, converter) in env_fields.items():
            value = _read_env(env_var, converter)
            if value is not None:
                overrides[field_name] = value

        return cls(**overrides)


def _read_env(env_var: str, converter: Callable[[str], Any]) -> Any:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return None
    try:
        return converter(raw.strip())
    except ValueError as e:
        raise ValueError(
            f"Environment variable {env_var} has an invalid value '{raw}': {e}"
        ) from e


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"not a boolean: {value}")


DEFAULT_CONFIG = LocatorConfig()


def get_locator_config() -> LocatorConfig:
    """
    Get the default configuration instance.
    """
    return DEFAULT_CONFIG


def create_custom_config(base: Optional[LocatorConfig] = None, **overrides) -> LocatorConfig:
    """
    Create a configuration with some fields overridden.

    Args:
        base: Configuration to start from, defaults to DEFAULT_CONFIG
        **overrides: Field values to replace

    Returns:
        New validated LocatorConfig
    """
    known = {f.name for f in fields(LocatorConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown configuration fields: {sorted(unknown)}")
    return replace(base or DEFAULT_CONFIG, **overrides)
