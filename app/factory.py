"""Flask application factory."""

import logging
import os

import sentry_sdk
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from flask_restx import Api
from sentry_sdk.integrations.flask import FlaskIntegration

from app.models import db
from app.routes.api.v1.payments import payments_ns
from app.routes.api.v1.subscriptions import subscriptions_ns
from config import config as config_classes
from leadmagnet.logging import configure_logging
from leadmagnet.plans import build_plan_catalog


def init_sentry(app):
    """Initialize Sentry when a DSN is configured."""
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        logging.debug("SENTRY_DSN not set, error reporting disabled")
        return
    sentry_sdk.init(
        dsn=dsn,
        environment=app.config.get("SENTRY_ENVIRONMENT"),
        integrations=[FlaskIntegration()],
        traces_sample_rate=1.0,
    )
    logging.info("Sentry initialized")


def create_app(config=None):
    """Create Flask application.

    Parameters
    ----------
    config : dict, optional
        Settings applied on top of the configuration class selected by the
        ENVIRONMENT variable.
    """
    app = Flask(__name__)

    # Load configuration
    config_class = config_classes[os.getenv("ENVIRONMENT", "default")]
    app.config.from_object(config_class)
    if config is not None:
        app.config.update(config)
    config_class.init_app(app)

    configure_logging(app)
    init_sentry(app)

    # Initialize extensions
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    db.init_app(app)
    Migrate(app, db)

    # The plan catalog is built once and never changes while the app runs
    app.extensions["plan_catalog"] = build_plan_catalog(app.config)

    # Register CLI commands
    from app.cli import init_db_command, sign_webhook_command

    app.cli.add_command(init_db_command)
    app.cli.add_command(sign_webhook_command)

    # Security headers
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        return response

    # Initialize API
    api = Api(
        app,
        version="1.0",
        title="Lead Magnet Payments API",
        description="""
        Order creation, payment webhooks and entitlement state for the lead
        magnet generator.

        ## Errors
        The API uses standard HTTP response codes:
        - 2xx: Success, including webhook events that need no action
        - 4xx: Client errors (invalid input, invalid signature, plan limit reached)
        - 5xx: Server errors (configuration, payment provider or database failure)

        Error responses include an error field with details.
        """,
        doc="/swagger",
        prefix="/api/v1",
        ordered=True,  # Keep the order of fields in models
        default_mediatype="application/json",
    )

    # Add namespaces
    api.add_namespace(payments_ns)
    api.add_namespace(subscriptions_ns)

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        """Handle not found error."""
        logging.error("Resource not found - %s", error)
        return jsonify({"message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle method not allowed error."""
        logging.error("Method not allowed - %s", error)
        return jsonify({"message": "Method Not Allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        """Handle internal server error."""
        logging.error("Internal server error - %s", error)
        return jsonify({"message": "Internal server error"}), 500

    return app
