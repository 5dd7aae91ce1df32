from __future__ import annotations

import atexit
import logging
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from signage.blueprints.api.schedules import schedules_api
from signage.config import load_config, setup_logging


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    setup_logging(debug=config.DEBUG, log_dir=config.log_dir, level=config.log_level)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"
    flask_app.json.sort_keys = False

    from signage.services.container import ServiceContainer

    container = ServiceContainer.build(config)
    flask_app.config["CONTAINER"] = container
    flask_app.teardown_appcontext(container.database.close_db)
    atexit.register(container.shutdown)

    # Global JSON error handler: domain exceptions carry their own
    # ``http_status``; anything else on /api/ becomes a generic 500.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from signage.domain.exceptions import SignageError
        from signage.utils.http import error_response, safe_error, signage_error_response

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, SignageError):
            return signage_error_response(exc, "Request failed")

        return safe_error(exc, 500, context="unhandled")

    V1 = "/api/v1"
    flask_app.register_blueprint(schedules_api, url_prefix=f"{V1}/schedules")

    logging.info("Signage scheduler app created (env=%s)", config.environment)
    return flask_app
