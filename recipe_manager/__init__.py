from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request
from flask.wrappers import Response

from .config import Settings
from .errors import AuthError
from .models import Recipe, User
from .users import UserDirectory


def create_app(users: Optional[UserDirectory] = None, settings: Optional[Settings] = None) -> Flask:
    """Create and configure the auth server.

    Parameters
    ----------
    users:
        Optional user directory. When ``None`` the application will build a
        :class:`UserDirectory` from ``DATABASE_URL``.
    settings:
        Optional settings. When ``None`` they are read from the environment.
    """

    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["CORS_ALLOW_ORIGIN"] = settings.cors_origin

    if users is None:
        users = UserDirectory.from_url(settings.database_url)
    app.config["USER_DIRECTORY"] = users

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = app.config["CORS_ALLOW_ORIGIN"]
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(AuthError)
    def handle_auth_error(exc: AuthError) -> Tuple[Response, int]:
        return jsonify(success=False, error=exc.message), exc.status_code

    @app.get("/api/health")
    def health() -> Tuple[Response, int]:
        directory: UserDirectory = app.config["USER_DIRECTORY"]
        if not directory.ping():
            return jsonify(success=False, error="Database connection failed"), 500
        return jsonify(
            success=True,
            message="Database connected successfully!",
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        ), 200

    @app.post("/api/login")
    def login() -> Response:
        data = _json_body()
        directory: UserDirectory = app.config["USER_DIRECTORY"]

        user = directory.authenticate(data.get("email"), data.get("password"))
        app.logger.info("User %s logged in", user.id)
        return jsonify(success=True, user=user.to_dict())

    @app.post("/api/register")
    def register() -> Tuple[Response, int]:
        data = _json_body()
        directory: UserDirectory = app.config["USER_DIRECTORY"]

        user = directory.register(data.get("name"), data.get("email"), data.get("password"))
        app.logger.info("User %s registered", user.id)
        return jsonify(success=True, user=user.to_dict()), 201

    return app


def _json_body() -> Dict[str, Any]:
    if not request.get_data():
        raise AuthError("No data received")
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise AuthError("Invalid JSON data")
    return data


__all__ = ["create_app", "Recipe", "User"]
