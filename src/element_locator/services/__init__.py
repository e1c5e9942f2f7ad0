"""
Element location services: catalog retrieval, consensus, quorum and fallback.
"""

from .candidate_store import CandidateStore, ChromaCandidateStore
from .consensus import ConsensusResolver
from .embeddings import SentenceTransformerEmbedder
from .fallback import (
    AttendedFallbackWorkflow,
    InteractionSurface,
    NextAction,
    RefinementChoice,
)
from .locator import ElementLocator
from .model_client import MultimodalModelClient
from .quorum import QuorumDisambiguator
from .retriever import CandidateRetriever, CandidateTiers
from .factory import create_element_locator

__all__ = [
    "CandidateStore",
    "ChromaCandidateStore",
    "ConsensusResolver",
    "SentenceTransformerEmbedder",
    "AttendedFallbackWorkflow",
    "InteractionSurface",
    "NextAction",
    "RefinementChoice",
    "ElementLocator",
    "MultimodalModelClient",
    "QuorumDisambiguator",
    "CandidateRetriever",
    "CandidateTiers",
    "create_element_locator",
]
