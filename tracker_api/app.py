import logging

import redis
from flask import Flask, jsonify, request
from flask_cors import CORS
from pymongo import MongoClient
from werkzeug.exceptions import HTTPException

from .auth import auth_bp
from .config import Config
from .docs import init_docs
from .logging_config import setup_logging
from .routes import register_routes


logger = logging.getLogger(__name__)


def build_redis_client(app: Flask):
    """
    Create the Redis client used for response caching.

    Args:
        app (Flask): Application holding the cache settings.

    Returns:
        Redis | None: Client, or None when caching is disabled.
    """
    if not app.config.get("CACHE_ENABLED"):
        return None
    return redis.Redis.from_url(app.config["REDIS_URL"])


def register_error_handlers(app: Flask):
    """
    Answer framework errors and unexpected exceptions with JSON.

    Args:
        app (Flask): Application being built.
    """
    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500


def create_app(test_config: dict | None = None, mongo_client=None, redis_client=None):
    """
    Build the Flask application.

    Args:
        test_config (dict | None): Settings overriding ``Config``.
        mongo_client (MongoClient | None): Client to use instead of connecting to ``MONGO_URI``.
        redis_client (Redis | None): Client to use instead of connecting to ``REDIS_URL``.

    Returns:
        Flask: Configured application.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]

    setup_logging(app.config["LOG_LEVEL"], app.config["LOG_FILE"])
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    if mongo_client is None:
        mongo_client = MongoClient(app.config["MONGO_URI"])
    if redis_client is None:
        redis_client = build_redis_client(app)

    app.extensions["tracker"] = {
        "mongo_client": mongo_client,
        "db": mongo_client[app.config["MONGO_DB_NAME"]],
        "redis": redis_client,
    }

    @app.before_request
    def log_route_hit():
        logger.info("Route hit: %s %s", request.method, request.full_path.rstrip("?"))

    app.register_blueprint(auth_bp)
    init_docs(app)
    register_routes(app)
    register_error_handlers(app)
    return app


def main():
    app = create_app()
    logger.info("Movie tracker API listening on port %s", app.config["PORT"])
    app.run(host="0.0.0.0", port=app.config["PORT"])


if __name__ == "__main__":
    main()
