"""
Runtime configuration for the Compost Assistant service.

Values are read once from the environment at import time.
"""
import os

APP_TITLE = os.environ.get("APP_TITLE", "Compost Assistant API")

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./compost.db")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

SEED_DEFAULT_METHODS = os.environ.get("SEED_DEFAULT_METHODS", "true").lower() in ("1", "true", "yes")
