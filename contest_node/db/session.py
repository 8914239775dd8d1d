from __future__ import annotations

import os

from sqlmodel import Session, create_engine


def database_url() -> str:
    user = os.getenv("POSTGRES_USER", "contest")
    password = os.getenv("POSTGRES_PASSWORD", "contest")
    host = os.getenv("POSTGRES_HOST", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "contest")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


engine = create_engine(database_url())


def create_session() -> Session:
    return Session(engine)
