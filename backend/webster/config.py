# backend/webster/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/webster.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///webster.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    # Legacy behaviors, preserved by default. See DESIGN.md.
    # False: customer code lookups are not filtered by owner.
    STRICT_CUSTOMER_CODE_SCOPE = _env_flag("STRICT_CUSTOMER_CODE_SCOPE")
    # False: every authenticated user sees every pack check.
    SCOPE_PACK_CHECKS_TO_OWNER = _env_flag("SCOPE_PACK_CHECKS_TO_OWNER")
    # False: deleting a customer leaves its medications, checks and scan-outs orphaned.
    CASCADE_CUSTOMER_DELETE = _env_flag("CASCADE_CUSTOMER_DELETE")
