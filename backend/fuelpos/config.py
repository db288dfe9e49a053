# backend/fuelpos/config.py
from __future__ import annotations
import os


class Config:
    # Override outside development
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/fuelpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///fuelpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Stations without an explicit zone bucket their days in this one
    DEFAULT_STATION_TIMEZONE = os.environ.get("DEFAULT_STATION_TIMEZONE", "UTC")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "12"))
    SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "120"))

    # bcrypt cost; tests lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }
