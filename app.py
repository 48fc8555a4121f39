# SPDX-License-Identifier: AGPL-3.0-only

"""
Flask application for the market trends analyzer.
"""

import logging
import os

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS                 # allow front-end origin

# Load environment variables from .env file before the settings are read
load_dotenv()

from market_trends.config import config
from market_trends.endpoints import register_market_endpoints


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app(pipeline_factory=None, registry=None) -> Flask:
    """Build the Flask app with market analysis endpoints registered."""
    app = Flask(__name__)

    origins = [
        "http://localhost:5173",  # Development frontend
        "http://127.0.0.1:5173",  # Alternative localhost
    ]
    extra_origins = os.getenv("MARKET_TRENDS_CORS_ORIGINS", "")
    origins.extend(o.strip() for o in extra_origins.split(",") if o.strip())

    CORS(
        app,
        resources={r"/api/*": {"origins": origins}}
    )

    register_market_endpoints(app, pipeline_factory=pipeline_factory, registry=registry)
    return app


configure_logging(config.log_level)
logger = logging.getLogger(__name__)

if not config.validate_ai_config():
    logger.warning("Gemini API key is not configured; analyses will fail until it is set")

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
