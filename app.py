"""Application factory for the visa application service."""

import logging
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from models.revoked_token import RevokedToken
from routes.admin import admin_bp
from routes.applications import applications_bp
from routes.auth import auth_bp
from routes.billing import billing_bp
from routes.catalog import catalog_bp
from routes.notifications import notifications_bp
from services.notifications import register_notifier
from storage import LocalStorage

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

BLUEPRINTS = (
    (auth_bp, "/auth"),
    (catalog_bp, "/catalog"),
    (applications_bp, "/applications"),
    (notifications_bp, "/notifications"),
    (admin_bp, "/admin"),
    (billing_bp, "/billing"),
)


def _engine_options(app: Flask) -> dict:
    """Connection timeouts for the configured database."""

    timeout = app.config.get("DB_TIMEOUT_SECONDS", 15)
    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if uri.startswith("sqlite"):
        # Busy timeout; requests are served on several threads.
        return {"connect_args": {"timeout": timeout, "check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_timeout": timeout}


def _init_rate_limiting(app: Flask) -> None:
    global limiter

    prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())
    app.config["RATELIMIT_KEY_PREFIX"] = prefix
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=prefix,
    )
    limiter.init_app(app)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", _engine_options(app))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )
    _init_rate_limiting(app)

    app.extensions["document_storage"] = LocalStorage(app.config.get("UPLOAD_DIR"))
    register_notifier(app)

    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)

    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    _register_request_ids(app)
    _register_error_handlers(app)
    _register_jwt_callbacks()

    app.logger.debug("Application created with %s", config_class.__name__)
    return app


def _error_response(status_code: int, error: str, detail: str, extra: dict | None = None):
    """Render the JSON error body shared by every failure path.

    ``extra`` adds fields to the body but never replaces error, detail or
    request_id.
    """

    request_id = g.get("request_id") or str(uuid.uuid4())
    payload = dict(extra or {})
    payload.update(error=error, detail=detail, request_id=request_id)
    response = jsonify(payload)
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_request_ids(app: Flask) -> None:
    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _echo_request_id(response):
        if g.get("request_id"):
            response.headers.setdefault("X-Request-ID", g.request_id)
        return response


def _register_jwt_callbacks() -> None:
    """Render token failures in the same JSON shape as other errors."""

    @jwt.token_in_blocklist_loader
    def _token_revoked(jwt_header, jwt_payload) -> bool:
        return RevokedToken.is_revoked(jwt_payload["jti"])

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _error_response(401, "Unauthorized", reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _error_response(401, "Unauthorized", reason)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _error_response(401, "Unauthorized", "Token has expired.")

    @jwt.revoked_token_loader
    def _revoked_token(jwt_header, jwt_payload):
        return _error_response(401, "Unauthorized", "Token has been revoked.")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        extra = dict(getattr(error, "extra", None) or {})
        if getattr(error, "retryable", False):
            extra["retryable"] = True
        response = _error_response(
            error.code or 500, getattr(error, "name", "Error"), error.description, extra
        )
        # Keep headers such as Retry-After and Allow set by the exception.
        for name, value in error.get_headers():
            if name.lower() != "content-type":
                response.headers.setdefault(name, value)
        return response

    @app.errorhandler(OperationalError)
    def _handle_database_unavailable(error: OperationalError):
        db.session.rollback()
        app.logger.exception("Database unavailable", exc_info=error)
        return _error_response(
            503,
            "Service Unavailable",
            "The database is temporarily unavailable.",
            {"retryable": True},
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        return _error_response(500, "Internal Server Error", "An unexpected error occurred.")


if __name__ == "__main__":
    logging.basicConfig(level=Config.LOG_LEVEL)
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
