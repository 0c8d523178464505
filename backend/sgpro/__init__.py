# backend/sgpro/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db



def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    logging.getLogger("sgpro").setLevel(app.config["SGPRO_LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)

    # Import models so the storage table is registered on the metadata
    from . import models  # noqa: F401
    from .decorators import STORE_EXTENSION_KEY
    from .storage import SqlStorage
    from .store import Store

    with app.app_context():
        db.create_all()
        app.extensions[STORE_EXTENSION_KEY] = Store(
            SqlStorage(),
            prefix=app.config["SGPRO_STORAGE_PREFIX"],
            seed_defaults=app.config["SGPRO_SEED_DEFAULTS"],
        ).init()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.expenses import expenses_bp
    from .routes.users import users_bp
    from .routes.logs import logs_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(reports_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
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
