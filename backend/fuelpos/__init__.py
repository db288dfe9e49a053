# backend/fuelpos/__init__.py
import logging

from flask import Flask, g, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import AuthorizationError, ServiceError
from .extensions import db, migrate


def _register_error_handlers(app: Flask) -> None:
    def _service_error_handler(e: ServiceError):
        db.session.rollback()
        if isinstance(e, AuthorizationError) and hasattr(g, "current_user"):
            from .services.permission_service import log_security_event
            log_security_event(
                user_id=g.current_user.id,
                event_type="CROSS_STATION_DENIED",
                success=False,
                resource=request.path,
                action=request.method,
                reason=e.message,
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
                station_id=getattr(g, "station_id", None),
            )
        return jsonify(e.to_dict()), e.status_code

    def _integrity_error_handler(e: IntegrityError):
        db.session.rollback()
        app.logger.warning("IntegrityError caught: %s", getattr(e, "orig", e))
        return jsonify({"error": "Conflicts with existing data"}), 409

    def _unexpected_error_handler(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    app.register_error_handler(ServiceError, _service_error_handler)
    app.register_error_handler(IntegrityError, _integrity_error_handler)
    app.register_error_handler(Exception, _unexpected_error_handler)


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.stations import stations_bp
    from .routes.products import products_bp
    from .routes.tanks import tanks_bp
    from .routes.pumps import pumps_bp
    from .routes.parties import parties_bp
    from .routes.payments import payments_bp
    from .routes.sales import sales_bp
    from .routes.purchase_orders import purchase_orders_bp
    from .routes.accounting import accounting_bp
    from .routes.dashboard import dashboard_bp
    from .routes.imports import imports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(stations_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(tanks_bp)
    app.register_blueprint(pumps_bp)
    app.register_blueprint(parties_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(accounting_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(imports_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
