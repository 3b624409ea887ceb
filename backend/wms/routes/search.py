# Overview: Flask API route for semantic product search.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.services import search_service
from wms.services.embedding_client import EmbeddingException


search_bp = Blueprint("search", __name__, url_prefix="/api/search")


@search_bp.get("")
@require_user
def search():
    """
    Semantic search across every store the caller may view inventory in.

    Query: ?q=<text>
    """
    text = request.args.get("q", "")
    try:
        results = search_service.semantic_search(g.current_user.id, text)
    except EmbeddingException:
        current_app.logger.exception("Semantic search failed")
        return jsonify({"error": "Search is temporarily unavailable", "code": "embedding_unavailable"}), 503
    return jsonify({"query": text, "results": results}), 200
