"""Application factory and app-wide configuration."""

from typing import Optional

from flask import Flask
from flask_cors import CORS

from commission_engine.app.api.routes import api_bp
from commission_engine.config import Settings, get_settings
from commission_engine.core.rates import RateTable, StaticRateTable
from commission_engine.log import setup_logging


def create_app(
    settings: Optional[Settings] = None,
    rate_table: Optional[RateTable] = None,
) -> Flask:
    """Build the Flask app instance."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = Flask(__name__)
    app.config["COMMISSION_SETTINGS"] = settings
    app.extensions["rate_table"] = rate_table or StaticRateTable()

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
