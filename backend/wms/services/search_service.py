# Overview: Tenant-scoped semantic search and search-vector maintenance.

"""
Semantic search over the caller's accessible stores.

The embedder (text -> vector) and the search provider (nearest neighbours
filtered to a store) are collaborators resolved from app.extensions, so a
hosted vector index can replace the SQL provider without touching the
fan-out below.

Results are concatenated in per-store query order and deduplicated by
product id (first occurrence wins); scores are never compared across stores.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Product
from .embedding_client import EmbeddingConfig, EmbeddingException, OpenAIEmbedder
from .task_queue import tasks
from .tenant_service import annotate_product, get_accessible_stores

REGENERATE_VECTOR_TASK = "regenerate_product_vector"


@dataclass(frozen=True)
class SearchHit:
    product_id: int
    score: float


def _cosine(a, b) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


class SqlVectorSearchProvider:
    """
    Brute-force cosine similarity over vectors stored on product rows.

    Adequate for per-store candidate sets; swap for an indexed provider when
    stores grow large.
    """

    def query(self, vector, store_ids, top_k: int) -> list[SearchHit]:
        store_ids = list(store_ids)
        if not store_ids or top_k <= 0:
            return []

        rows = (
            db.session.query(Product.id, Product.search_vector)
            .filter(Product.store_id.in_(store_ids), Product.search_vector.isnot(None))
            .all()
        )
        hits = [
            SearchHit(product_id=product_id, score=_cosine(vector, stored))
            for product_id, stored in rows
            if stored and len(stored) == len(vector)
        ]
        hits.sort(key=lambda h: (-h.score, h.product_id))
        return hits[:top_k]


def init_search(app) -> None:
    config = EmbeddingConfig.from_app_config(app.config)
    app.extensions["wms.embedder"] = OpenAIEmbedder(config) if config else None
    app.extensions["wms.search_provider"] = SqlVectorSearchProvider()


def get_embedder():
    return current_app.extensions.get("wms.embedder")


def get_search_provider():
    return current_app.extensions["wms.search_provider"]


def product_text(product: Product) -> str:
    return f"{product.name}. {product.description or ''}"


def semantic_search(user_id: int, text: str) -> list[dict]:
    text = (text or "").strip()
    if not text:
        return []

    pairs = get_accessible_stores(user_id, "inventory:view")
    if not pairs:
        return []

    embedder = get_embedder()
    if embedder is None:
        current_app.logger.warning("Semantic search requested but no embedder is configured")
        return []

    limit = current_app.config.get("SEARCH_RESULT_LIMIT", 20)
    per_store = current_app.config.get("SEARCH_PER_STORE_LIMIT", 10)
    provider = get_search_provider()
    accessible = {store.id: (store, warehouse) for store, warehouse in pairs}

    vector = embedder.embed(text)
    seen: set[int] = set()
    results: list[dict] = []

    for store, _warehouse in pairs:
        for hit in provider.query(vector, [store.id], per_store):
            if hit.product_id in seen:
                continue
            product = db.session.query(Product).filter_by(id=hit.product_id).first()
            # The provider is approximate; re-check the tenant on the row itself
            if not product or product.store_id not in accessible:
                continue
            seen.add(hit.product_id)

            owner_store, owner_warehouse = accessible[product.store_id]
            row = annotate_product(product, owner_store, owner_warehouse)
            row["score"] = hit.score
            results.append(row)
            if len(results) >= limit:
                return results

    return results


# -- Search vector maintenance --

def schedule_vector_refresh(product_id: int):
    """Fire-and-forget regeneration after a product write."""
    if get_embedder() is None:
        current_app.logger.warning("No embedder configured; skipping vector refresh for product %s", product_id)
        return None
    return tasks.run_async(REGENERATE_VECTOR_TASK, product_id=product_id)


@tasks.task(REGENERATE_VECTOR_TASK)
def regenerate_product_vector(product_id: int) -> bool:
    """
    Recompute and store one product's search vector.

    A missing product is a no-op. Concurrent regenerations for the same
    product are last-write-wins.
    """
    embedder = get_embedder()
    if embedder is None:
        return False

    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product:
        return False

    vector = embedder.embed(product_text(product))
    db.session.query(Product).filter_by(id=product_id).update(
        {"search_vector": vector}, synchronize_session=False
    )
    db.session.commit()
    return True


def backfill_missing_vectors() -> dict:
    """Generate vectors for every product that has none."""
    if get_embedder() is None:
        raise EmbeddingException("No embedding client configured (set OPENAI_API_KEY)")

    product_ids = [
        row[0]
        for row in db.session.query(Product.id)
        .filter(Product.search_vector.is_(None))
        .order_by(Product.id.asc())
        .all()
    ]

    processed = 0
    errors = 0
    for product_id in product_ids:
        try:
            if regenerate_product_vector(product_id):
                processed += 1
        except EmbeddingException:
            db.session.rollback()
            errors += 1
            current_app.logger.exception("Failed to generate vector for product %s", product_id)

    return {"processed": processed, "errors": errors}
