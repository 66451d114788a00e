# backend/shopflow/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopflow.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopflow.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Applied to new shops; each shop stores its own rate afterwards (800 = 8%)
    DEFAULT_TAX_RATE_BPS = int(os.environ.get("DEFAULT_TAX_RATE_BPS", "800"))
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
