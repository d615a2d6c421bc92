# backend/storebooks/__init__.py
from flask import Flask, request

from .config import get_config_class, validate_config
from .extensions import db, migrate


def create_app(config_object=None, document_storage=None) -> Flask:
    """
    Application factory.

    config_object defaults to the class named by STOREBOOKS_ENV.
    document_storage overrides the S3 storage built from config (tests pass a
    fake here).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or get_config_class())
    validate_config(app.config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    if document_storage is None:
        from .services.document_storage import S3DocumentStorage
        document_storage = S3DocumentStorage.from_config(app.config)
    if document_storage is None:
        app.logger.info("Document storage not configured; uploads are disabled")
    app.extensions["document_storage"] = document_storage

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.clients import clients_bp
    from .routes.stores import stores_bp
    from .routes.users import users_bp
    from .routes.roles import roles_bp
    from .routes.records import sales_bp, purchases_bp, expenses_bp
    from .routes.transactions import transactions_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or ())

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
