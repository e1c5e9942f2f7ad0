"""
Text embeddings for semantic catalog retrieval.
"""

import logging
import threading
from typing import List, Optional, Protocol, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class TextEmbedder(Protocol):
    """Anything that turns texts into fixed-size vectors."""

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class SentenceTransformerEmbedder:
    """
    Sentence-transformers embedder with normalized output vectors.

    The model is loaded on first use and then shared by all threads.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None
        self._lock = threading.Lock()

    def _load_model(self):
        """Lazy load sentence transformer for text embedding similarity."""
        with self._lock:
            if self._model is None:
                from sentence_transformers import SentenceTransformer

                logger.info("Loading embedding model '%s'", self.model_name)
                self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts.

        Args:
            texts: Texts to embed

        Returns:
            One unit-length vector per text
        """
        if not texts:
            return []
        model = self._load_model()
        embeddings = model.encode(
            list(texts), normalize_embeddings=True, show_progress_bar=False
        )
        return np.asarray(embeddings, dtype=float).tolist()


def cosine_similarity(first: Sequence[float], second: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors, 0.0 if either of them is zero.
    """
    a = np.asarray(first, dtype=float)
    b = np.asarray(second, dtype=float)
    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm)


def text_similarity(embedder: TextEmbedder, first: str, second: str) -> float:
    """
    Semantic similarity of two texts with the given embedder.

    Returns:
        Cosine similarity, 0.0 if one of the texts is blank
    """
    if not first or not first.strip() or not second or not second.strip():
        return 0.0
    first_vector, second_vector = embedder.embed([first.strip(), second.strip()])
    return cosine_similarity(first_vector, second_vector)


_default_embedder: Optional[SentenceTransformerEmbedder] = None


def get_default_embedder(model_name: str = "all-MiniLM-L6-v2") -> SentenceTransformerEmbedder:
    """Get the process-wide embedder for the given model."""
    global _default_embedder
    if _default_embedder is None or _default_embedder.model_name != model_name:
        _default_embedder = SentenceTransformerEmbedder(model_name)
    return _default_embedder
