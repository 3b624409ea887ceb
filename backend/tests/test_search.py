# Overview: Pytest coverage for semantic search and search-vector maintenance.

import logging

import pytest

from conftest import add_member
from wms.models import Product, Store
from wms.services import products_service, search_service
from wms.services.embedding_client import EmbeddingException
from wms.services.search_service import SearchHit


class ScriptedProvider:
    """Returns canned hits per store id, regardless of the query vector."""

    def __init__(self, hits_by_store):
        self.hits_by_store = hits_by_store
        self.queried = []

    def query(self, vector, store_ids, top_k):
        store_ids = list(store_ids)
        self.queried.append(store_ids)
        hits = []
        for store_id in store_ids:
            hits.extend(self.hits_by_store.get(store_id, []))
        return hits[:top_k]


class FailingEmbedder:
    def embed(self, text):
        raise EmbeddingException("upstream unavailable")


@pytest.fixture
def provider(app):
    original = app.extensions["wms.search_provider"]
    holder = {}

    def install(hits_by_store):
        holder["provider"] = ScriptedProvider(hits_by_store)
        app.extensions["wms.search_provider"] = holder["provider"]
        return holder["provider"]

    yield install
    app.extensions["wms.search_provider"] = original


class TestVectorMaintenance:

    def test_create_stores_vector(self, db_session, embedder, owner, store_a):
        product = products_service.create_product(
            owner.id, store_a.id, {"name": "Brass valve", "sku": "BV-1", "description": "Quarter turn"}
        )
        refreshed = db_session.get(Product, product.id)
        assert refreshed.search_vector is not None
        assert len(refreshed.search_vector) == embedder.dimensions
        assert embedder.calls[-1] == "Brass valve. Quarter turn"

    def test_update_regenerates_vector(self, db_session, embedder, owner, product_a):
        products_service.update_product(owner.id, product_a.id, {"description": "22mm"})
        assert embedder.calls[-1] == "Copper pipe. 22mm"

    def test_no_embedder_skips_refresh(self, db_session, owner, store_a, caplog):
        with caplog.at_level(logging.WARNING):
            product = products_service.create_product(owner.id, store_a.id, {"name": "Tap", "sku": "T-1"})
        assert db_session.get(Product, product.id).search_vector is None
        assert "skipping vector refresh" in caplog.text

    def test_embedding_failure_does_not_fail_write(self, app, db_session, owner, store_a, caplog):
        app.extensions["wms.embedder"] = FailingEmbedder()
        try:
            product = products_service.create_product(owner.id, store_a.id, {"name": "Hose", "sku": "H-1"})
        finally:
            app.extensions["wms.embedder"] = None
        assert db_session.get(Product, product.id).search_vector is None
        assert "regenerate_product_vector" in caplog.text

    def test_regenerate_missing_product_is_noop(self, db_session, embedder):
        assert search_service.regenerate_product_vector(123456) is False
        assert embedder.calls == []

    def test_backfill(self, db_session, embedder, product_a, product_b):
        result = search_service.backfill_missing_vectors()
        assert result == {"processed": 2, "errors": 0}
        assert db_session.query(Product).filter(Product.search_vector.is_(None)).count() == 0
        # Second run has nothing left to do
        assert search_service.backfill_missing_vectors() == {"processed": 0, "errors": 0}

    def test_backfill_without_embedder(self, db_session, product_a):
        with pytest.raises(EmbeddingException):
            search_service.backfill_missing_vectors()


class TestSemanticSearch:

    def test_results_limited_to_accessible_stores(self, db_session, embedder, owner, outsider, store_a, store_b):
        mine = products_service.create_product(
            owner.id, store_a.id, {"name": "Copper pipe", "sku": "CP-1", "description": "copper"}
        )
        products_service.create_product(
            outsider.id, store_b.id, {"name": "Copper cable", "sku": "CC-1", "description": "copper"}
        )

        results = search_service.semantic_search(owner.id, "copper")

        assert [r["id"] for r in results] == [mine.id]
        assert results[0]["store_name"] == "Plumbing A"
        assert results[0]["warehouse_name"] == "Warehouse A"
        assert "score" in results[0]

    def test_most_similar_first_within_store(self, db_session, embedder, owner, store_a):
        products_service.create_product(owner.id, store_a.id, {"name": "Drain cleaner", "sku": "D-1"})
        pipe = products_service.create_product(owner.id, store_a.id, {"name": "Copper pipe", "sku": "P-1"})

        results = search_service.semantic_search(owner.id, "Copper pipe")

        assert results[0]["id"] == pipe.id

    def test_duplicate_hits_across_stores_appear_once(
        self, db_session, embedder, provider, owner, warehouse_a, store_a, product_a
    ):
        second = Store(warehouse_id=warehouse_a.id, name="Plumbing A2", store_type="plumbing")
        db_session.add(second)
        db_session.commit()

        hit = SearchHit(product_id=product_a.id, score=0.9)
        provider({store_a.id: [hit], second.id: [hit]})

        results = search_service.semantic_search(owner.id, "pipe")

        assert [r["id"] for r in results] == [product_a.id]

    def test_provider_hits_outside_tenant_dropped(
        self, db_session, embedder, provider, owner, store_a, product_a, product_b
    ):
        provider({store_a.id: [SearchHit(product_b.id, 0.99), SearchHit(product_a.id, 0.5)]})

        results = search_service.semantic_search(owner.id, "copper")

        assert [r["id"] for r in results] == [product_a.id]

    def test_result_cap(self, app, db_session, embedder, provider, owner, store_a):
        products = []
        for i in range(5):
            p = Product(store_id=store_a.id, name=f"Fitting {i}", sku=f"F-{i}")
            db_session.add(p)
            products.append(p)
        db_session.commit()
        provider({store_a.id: [SearchHit(p.id, 1.0 - i / 10) for i, p in enumerate(products)]})

        app.config["SEARCH_RESULT_LIMIT"] = 3
        try:
            results = search_service.semantic_search(owner.id, "fitting")
        finally:
            app.config["SEARCH_RESULT_LIMIT"] = 20

        assert [r["id"] for r in results] == [p.id for p in products[:3]]

    def test_staff_can_search(self, db_session, embedder, warehouse_a, store_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        products_service.create_product(staff_user.id, store_a.id, {"name": "Copper elbow", "sku": "E-1"})
        assert len(search_service.semantic_search(staff_user.id, "copper elbow")) == 1

    def test_blank_query(self, db_session, embedder, owner, product_a):
        assert search_service.semantic_search(owner.id, "   ") == []
        assert embedder.calls == []

    def test_no_memberships(self, db_session, embedder, outsider):
        assert search_service.semantic_search(outsider.id, "anything") == []

    def test_no_embedder_returns_empty(self, db_session, owner, product_a):
        assert search_service.semantic_search(owner.id, "copper") == []


class TestSqlVectorSearchProvider:

    def test_skips_dimension_mismatch(self, db_session, store_a):
        good = Product(store_id=store_a.id, name="A", sku="A", search_vector=[1.0, 0.0])
        bad = Product(store_id=store_a.id, name="B", sku="B", search_vector=[1.0, 0.0, 0.0])
        db_session.add_all([good, bad])
        db_session.commit()

        hits = search_service.SqlVectorSearchProvider().query([1.0, 0.0], [store_a.id], 10)

        assert [h.product_id for h in hits] == [good.id]
        assert hits[0].score == pytest.approx(1.0)

    def test_empty_store_list(self, db_session):
        assert search_service.SqlVectorSearchProvider().query([1.0], [], 5) == []
