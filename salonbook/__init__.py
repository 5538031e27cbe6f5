import logging

from flask import Flask
from flask.logging import default_handler
from flask_cors import CORS

from .config import DEFAULT_SECRET_KEY, Config
from .extensions import db
from .notifications import init_notifications
from .routes import register_routes


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)

    # Service modules log through "salonbook.*"; send them where Flask logs.
    package_logger = logging.getLogger(__name__)
    package_logger.setLevel(level)
    if default_handler not in package_logger.handlers:
        package_logger.addHandler(default_handler)


def create_app(config_object=None, notification_sink=None):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(config_object or Config)
    app.config.from_envvar("APP_SETTINGS", silent=True)

    _configure_logging(app)
    if app.config.get("SECRET_KEY") == DEFAULT_SECRET_KEY and not app.testing:
        app.logger.warning(
            "SECRET_KEY is not set; session and CSRF tokens are signed with the "
            "development default and can be forged"
        )
    db.init_app(app)
    init_notifications(app, notification_sink)

    # Allow the booking frontend to talk to the backend
    CORS(app,
         origins=app.config.get("CORS_ORIGINS", ["*"]),
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
         methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"]
    )

    register_routes(app)

    return app
