"""
Configuration for Jewel Order Desk.

The Google Sheet endpoint URL is NOT configured here: it is entered on the
setup page and persisted by EndpointConfigService in ENDPOINT_SETTINGS_FILE.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _optional_float(name: str):
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB image uploads
    SESSION_COOKIE_NAME = "jewel_order_desk_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Google Sheet endpoint
    # ==========================================================================
    # ENDPOINT_SETTINGS_FILE: JSON file holding the saved web app URL
    # SHEET_REQUEST_TIMEOUT: seconds per request; unset = wait indefinitely
    # ==========================================================================
    ENDPOINT_SETTINGS_FILE = os.environ.get(
        "ENDPOINT_SETTINGS_FILE",
        str(BASE_DIR / "instance" / "settings.json")
    )
    SHEET_REQUEST_TIMEOUT = _optional_float("SHEET_REQUEST_TIMEOUT")

    # ==========================================================================
    # AI summary
    # ==========================================================================
    # Leave OPENAI_API_KEY empty to disable the summary button's backend.
    # ==========================================================================
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    OPENAI_API_KEY = ""
