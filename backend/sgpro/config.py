from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # SQLite DB stored in backend/instance/sgpro.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///sgpro.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Prefix for every persisted key (sgpro_products, sgpro_sales, ...)
    SGPRO_STORAGE_PREFIX = os.environ.get("SGPRO_STORAGE_PREFIX", "sgpro_")

    # Seed default users and sample products when the collections are empty
    SGPRO_SEED_DEFAULTS = _env_flag("SGPRO_SEED_DEFAULTS", True)

    SGPRO_LOG_LEVEL = os.environ.get("SGPRO_LOG_LEVEL", "INFO")
