"""
Persistent catalog of UI elements backed by a chroma vector database.

Only the element name is embedded. Every other field, including the base64
reference screenshot, is stored as metadata of the same record.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlparse
from uuid import UUID

import chromadb
from chromadb.config import Settings

from ..config.locator_config import LocatorConfig, get_locator_config
from ..schemas.catalog import CatalogElement, ReferenceImage, RetrievedCandidate
from .embeddings import TextEmbedder, get_default_embedder, text_similarity

logger = logging.getLogger(__name__)


class CandidateStore(Protocol):
    """Storage of catalog elements with semantic name search."""

    def search(self, text: str, top_n: int, min_score: float) -> List[RetrievedCandidate]:
        ...

    def similarity(self, text_a: str, text_b: str) -> float:
        ...

    def insert(self, element: CatalogElement) -> None:
        ...

    def update(self, original: CatalogElement, updated: CatalogElement) -> None:
        ...

    def remove(self, element: CatalogElement) -> None:
        ...

    def get(self, element_id: UUID) -> Optional[CatalogElement]:
        ...


def create_chroma_client(config: LocatorConfig):
    """
    Create the chroma client matching the configuration.

    A persistent client is used when vector_db_path is set, an HTTP client
    when vector_db_url is set, and an in-memory client otherwise.
    """
    settings = Settings(anonymized_telemetry=False)
    if config.vector_db_path:
        logger.info("Using persistent chroma database at %s", config.vector_db_path)
        return chromadb.PersistentClient(path=config.vector_db_path, settings=settings)
    if config.vector_db_url:
        parsed = urlparse(config.vector_db_url)
        if not parsed.hostname:
            raise ValueError(f"Invalid vector database URL: {config.vector_db_url}")
        ssl = parsed.scheme == "https"
        port = parsed.port or (443 if ssl else 8000)
        logger.info("Connecting to chroma server at %s:%s", parsed.hostname, port)
        return chromadb.HttpClient(host=parsed.hostname, port=port, ssl=ssl, settings=settings)
    logger.warning("No vector database configured, the element catalog is kept in memory only")
    return chromadb.EphemeralClient(settings=settings)


class ChromaCandidateStore:
    """
    Catalog store using one chroma collection with cosine distance.
    """

    def __init__(
        self,
        config: Optional[LocatorConfig] = None,
        embedder: Optional[TextEmbedder] = None,
        client=None,
    ):
        """
        Initialize store.

        Args:
            config: Locator configuration, defaults to the global one
            embedder: Text embedder, defaults to the sentence-transformers model from config
            client: Chroma client, created from config if omitted
        """
        self.config = config or get_locator_config()
        self.embedder = embedder or get_default_embedder(self.config.embedding_model_name)
        self.client = client or create_chroma_client(self.config)
        self.collection = self.client.get_or_create_collection(
            name=self.config.collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )

    def search(self, text: str, top_n: int, min_score: float) -> List[RetrievedCandidate]:
        """
        Find elements whose name is semantically close to the text.

        Args:
            text: Free-text element description
            top_n: Max number of results
            min_score: Minimum cosine similarity

        Returns:
            Candidates ordered by descending name score, unique by id
        """
        if not text or not text.strip() or top_n < 1:
            return []

        count = self.collection.count()
        if count == 0:
            return []

        query_embedding = self.embedder.embed([text.strip()])[0]
        results = self.collection.query(
            query_embeddings=[query_embedding],
            n_results=min(top_n, count),
            include=["metadatas", "distances"],
        )

        ids = results["ids"][0] if results["ids"] else []
        metadatas = results["metadatas"][0] if results.get("metadatas") else []
        distances = results["distances"][0] if results.get("distances") else []

        candidates: Dict[str, RetrievedCandidate] = {}
        for element_id, metadata, distance in zip(ids, metadatas, distances):
            score = 1.0 - float(distance)
            if score < min_score:
                continue
            existing = candidates.get(element_id)
            if existing is None or existing.name_score < score:
                candidates[element_id] = RetrievedCandidate(
                    element=_metadata_to_element(element_id, metadata),
                    name_score=score,
                )

        return sorted(
            candidates.values(),
            key=lambda c: (-c.name_score, c.element.name, str(c.element.id)),
        )

    def similarity(self, text_a: str, text_b: str) -> float:
        """Semantic similarity of two texts with the store's embedding model."""
        return text_similarity(self.embedder, text_a, text_b)

    def insert(self, element: CatalogElement) -> None:
        """Add a new element to the catalog."""
        self.collection.add(
            ids=[str(element.id)],
            embeddings=self.embedder.embed([element.name.strip()]),
            metadatas=[_element_to_metadata(element)],
            documents=[element.name.strip()],
        )
        logger.info("Inserted catalog element '%s' (%s)", element.name, element.id)

    def update(self, original: CatalogElement, updated: CatalogElement) -> None:
        """Replace the stored record of original with updated."""
        self.collection.delete(ids=[str(original.id)])
        self.insert(updated)
        logger.info("Updated catalog element '%s' -> '%s'", original.name, updated.name)

    def remove(self, element: CatalogElement) -> None:
        """Delete an element from the catalog."""
        self.collection.delete(ids=[str(element.id)])
        logger.info("Removed catalog element '%s' (%s)", element.name, element.id)

    def get(self, element_id: UUID) -> Optional[CatalogElement]:
        """Load one element by id, None if it does not exist."""
        results = self.collection.get(ids=[str(element_id)], include=["metadatas"])
        if not results["ids"]:
            return None
        return _metadata_to_element(results["ids"][0], results["metadatas"][0])


def _element_to_metadata(element: CatalogElement) -> Dict[str, Any]:
    image = element.reference_image
    return {
        "name": element.name,
        "own_description": element.own_description,
        "anchors_description": element.anchors_description,
        "page_summary": element.page_summary,
        "screenshot_file_extension": image.file_extension if image else "",
        "screenshot_mime_type": image.mime_type if image else "",
        "screenshot_base64": image.base64_data if image else "",
    }


def _metadata_to_element(element_id: str, metadata: Dict[str, Any]) -> CatalogElement:
    reference_image = None
    if metadata.get("screenshot_base64"):
        reference_image = ReferenceImage(
            file_extension=metadata.get("screenshot_file_extension") or "png",
            mime_type=metadata.get("screenshot_mime_type") or "image/png",
            base64_data=metadata["screenshot_base64"],
        )
    return CatalogElement(
        id=UUID(element_id),
        name=metadata["name"],
        own_description=metadata.get("own_description", ""),
        anchors_description=metadata.get("anchors_description", ""),
        page_summary=metadata.get("page_summary", ""),
        reference_image=reference_image,
    )
