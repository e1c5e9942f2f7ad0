"""
Pytest configuration and fixtures.
"""

import hashlib
import re
import sys
from pathlib import Path
from uuid import uuid4

import numpy as np
import pytest
from PIL import Image

# Add src to path
SRC_PATH = Path(__file__).parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from element_locator.config.locator_config import LocatorConfig  # noqa: E402
from element_locator.schemas.catalog import CatalogElement, ReferenceImage  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    for marker in ("vision", "retrieval", "quorum", "fallback"):
        config.addinivalue_line("markers", f"{marker}: {marker} related tests")


def pytest_collection_modifyitems(config, items):
    """
    Modify test items to add helpful markers.
    """
    for item in items:
        node_id = item.nodeid.lower()
        if "matcher" in node_id or "detector" in node_id or "proposer" in node_id:
            item.add_marker("vision")
        if "retriever" in node_id or "candidate_store" in node_id:
            item.add_marker("retrieval")
        if "quorum" in node_id:
            item.add_marker("quorum")
        if "fallback" in node_id:
            item.add_marker("fallback")


def make_textured_patch(width: int, height: int, seed: int = 0, block: int = 6) -> Image.Image:
    """
    Random high-contrast block texture with plenty of corners for ORB.
    """
    rng = np.random.default_rng(seed)
    blocks = rng.integers(0, 256, size=(height // block + 1, width // block + 1), dtype=np.uint8)
    texture = np.kron(blocks, np.ones((block, block), dtype=np.uint8))[:height, :width].astype(np.uint8)
    return Image.fromarray(np.stack([texture] * 3, axis=-1))


def make_screen(width: int = 640, height: int = 480, patches=(), background: int = 128) -> Image.Image:
    """
    Uniform screenshot with patches pasted at the given top-left positions.
    """
    screen = Image.new("RGB", (width, height), (background, background, background))
    for patch, position in patches:
        screen.paste(patch, position)
    return screen


class HashingEmbedder:
    """
    Deterministic bag-of-words embedder for store tests.
    """

    dimensions = 2048

    def embed(self, texts):
        vectors = []
        for text in texts:
            vector = np.zeros(self.dimensions)
            for token in re.findall(r"\w+", text.lower()):
                digest = hashlib.md5(token.encode()).hexdigest()
                vector[int(digest, 16) % self.dimensions] += 1.0
            norm = np.linalg.norm(vector)
            if norm > 0:
                vector = vector / norm
            else:
                vector[0] = 1.0
            vectors.append(vector.tolist())
        return vectors


@pytest.fixture
def config():
    """Default configuration with a fast model call timeout."""
    return LocatorConfig(model_call_timeout_seconds=5.0)


@pytest.fixture
def reference_patch():
    return make_textured_patch(120, 120, seed=7)


@pytest.fixture
def make_element():
    """Factory of catalog elements."""

    def _make(name="Login button", image=None, page_summary="", **kwargs):
        reference = ReferenceImage.from_image(image) if image is not None else None
        return CatalogElement(
            name=name,
            own_description=kwargs.pop("own_description", f"The {name}"),
            anchors_description=kwargs.pop("anchors_description", ""),
            page_summary=page_summary,
            reference_image=reference,
            **kwargs,
        )

    return _make


@pytest.fixture
def embedder():
    return HashingEmbedder()


@pytest.fixture
def collection_name():
    return f"test_{uuid4().hex[:12]}"
