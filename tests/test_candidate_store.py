"""
Tests for the chroma backed element catalog.
"""

import pytest

from conftest import make_textured_patch
from element_locator.config.locator_config import LocatorConfig
from element_locator.services.candidate_store import ChromaCandidateStore, create_chroma_client


@pytest.fixture
def store(embedder, collection_name):
    config = LocatorConfig(collection_name=collection_name)
    store = ChromaCandidateStore(config, embedder=embedder, client=create_chroma_client(config))
    yield store
    store.client.delete_collection(collection_name)


class TestChromaCandidateStore:
    """Tests for ChromaCandidateStore."""

    def test_search_empty_catalog(self, store):
        assert store.search("Login button", top_n=3, min_score=0.0) == []

    def test_exact_name_is_retrieved_first(self, store, make_element):
        login = make_element("Login button")
        store.insert(make_element("Search field"))
        store.insert(login)
        store.insert(make_element("Logout link"))

        results = store.search("Login button", top_n=3, min_score=0.4)

        assert results[0].element.id == login.id
        assert results[0].name_score > 0.99

    def test_min_score_filters_unrelated_names(self, store, make_element):
        store.insert(make_element("Login button"))
        store.insert(make_element("Search field"))

        results = store.search("Login button", top_n=5, min_score=0.4)

        assert [r.element.name for r in results] == ["Login button"]

    def test_top_n_limits_results(self, store, make_element):
        for name in ("Save button", "Save as button", "Save all button"):
            store.insert(make_element(name))

        results = store.search("Save button", top_n=2, min_score=0.0)

        assert len(results) == 2
        assert results[0].name_score >= results[1].name_score

    def test_reference_image_round_trip(self, store, make_element):
        patch = make_textured_patch(40, 20, seed=3)
        element = make_element("Login button", image=patch, page_summary="Login page")
        store.insert(element)

        loaded = store.get(element.id)

        assert loaded == element
        assert loaded.reference_image.size == (40, 20)
        assert list(loaded.reference_image.to_image().getdata()) == list(patch.getdata())

    def test_get_missing_element(self, store, make_element):
        assert store.get(make_element("Ghost").id) is None

    def test_update_replaces_record(self, store, make_element):
        original = make_element("Login button")
        store.insert(original)
        updated = original.model_copy(update={"name": "Sign in button"})

        store.update(original, updated)

        assert store.collection.count() == 1
        assert store.get(original.id).name == "Sign in button"
        results = store.search("Sign in button", top_n=1, min_score=0.9)
        assert results[0].element.id == original.id

    def test_remove_deletes_record(self, store, make_element):
        element = make_element("Login button")
        store.insert(element)

        store.remove(element)

        assert store.get(element.id) is None
        assert store.search("Login button", top_n=3, min_score=0.0) == []

    def test_similarity_of_texts(self, store):
        assert store.similarity("Login page", "login page") == pytest.approx(1.0)
        assert store.similarity("Login page", "") == 0.0
