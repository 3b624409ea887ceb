# backend/wms/__init__.py
from flask import Flask, jsonify

from .config import Config
from .errors import ServiceError
from .extensions import db, migrate


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Collaborators: background tasks, object storage, embedder + search provider
    from .services.task_queue import tasks
    from .services.object_storage import init_object_storage
    from .services.search_service import init_search  # registers the vector task

    tasks.init_app(app)
    init_object_storage(app)
    init_search(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.warehouses import warehouses_bp
    from .routes.stores import stores_bp
    from .routes.products import products_bp
    from .routes.members import members_bp
    from .routes.invitations import invitations_bp
    from .routes.search import search_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(warehouses_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(invitations_bp)
    app.register_blueprint(search_bp)

    from .services.embedding_client import EmbeddingException

    @app.errorhandler(ServiceError)
    def handle_service_error(exc):
        return jsonify(exc.to_dict()), exc.http_status

    @app.errorhandler(EmbeddingException)
    def handle_embedding_error(exc):
        app.logger.warning("Embedding service failure: %s", exc)
        return jsonify({"error": "Search is temporarily unavailable", "code": "embedding_unavailable"}), 503

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
