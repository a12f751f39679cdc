"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from kudos_importer.config.settings import Settings, settings

Base = declarative_base()


def build_connect_args(config: Settings) -> dict[str, Any]:
    """psycopg2 connection arguments carrying the configured timeouts."""
    connect_args: dict[str, Any] = {"connect_timeout": config.DATABASE_CONNECT_TIMEOUT_SECONDS}
    if config.DATABASE_STATEMENT_TIMEOUT_MS > 0:
        connect_args["options"] = f"-c statement_timeout={config.DATABASE_STATEMENT_TIMEOUT_MS}"
    return connect_args


def build_engine(config: Settings = settings):
    return create_engine(
        config.DATABASE_URL,
        pool_pre_ping=True,
        connect_args=build_connect_args(config),
    )


# Engine creation is lazy about connecting; nothing touches the network until a session runs a statement.
engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
