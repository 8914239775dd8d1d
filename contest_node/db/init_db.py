from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlmodel import SQLModel

from contest_node.badges.registry import get_default_registry
from contest_node.db import tables  # noqa: F401  registers every table on SQLModel.metadata
from contest_node.db.repositories import DBBadgeRepository
from contest_node.db.session import create_session, engine
from contest_node.entities.badge import Badge
from contest_node.schemas import BadgeDefinitionEnvelope


def tables_to_reset() -> list[str]:
    # dependents before the tables they reference
    return [
        "user_badges",
        "badge_awards",
        "badges",
        "drivers",
        "contests",
        "alembic_version",
    ]


def badge_id_for(key: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", key.lower()).strip("-")


def default_badge_definitions() -> list[dict[str, Any]]:
    # One badge per builtin checker, keyed by a slug of its registry key.
    return [
        {"id": badge_id_for(key), "awarded_how": key, "name": key}
        for key in get_default_registry().available()
    ]


def load_badge_definitions() -> list[dict[str, Any]]:
    path = os.getenv("BADGE_DEFINITIONS_PATH")
    if not path:
        return default_badge_definitions()

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError("BADGE_DEFINITIONS_PATH must point to a JSON array")
    return payload


def seed_badges(definitions: list[dict[str, Any]] | None = None) -> int:
    """Upsert badge definitions. Membership rows are never touched."""
    if definitions is None:
        definitions = load_badge_definitions()
    registry = get_default_registry()
    with create_session() as session:
        repository = DBBadgeRepository(session)
        for definition in definitions:
            envelope = BadgeDefinitionEnvelope.model_validate(definition)
            if envelope.awarded_how not in registry:
                print(f"⚠️  Badge {envelope.id} uses unregistered checker {envelope.awarded_how!r}")
            repository.save(Badge(
                id=envelope.id,
                awarded_how=envelope.awarded_how,
                name=envelope.name or envelope.awarded_how,
                rarity=envelope.rarity,
            ))
        repository.commit()
    return len(definitions)


def _find_alembic_dir() -> Path | None:
    """Locate the Alembic migrations directory.

    ``ALEMBIC_DIR`` wins when it points at a directory holding ``env.py`` and
    ``versions/``; otherwise the repo-root ``alembic/``. ``None`` means
    neither is available and ``create_all()`` is used instead.
    """
    def _is_valid(p: Path) -> bool:
        return p.is_dir() and (p / "env.py").exists() and (p / "versions").is_dir()

    env_dir = os.getenv("ALEMBIC_DIR")
    if env_dir and _is_valid(Path(env_dir)):
        return Path(env_dir)

    repo_dir = Path(__file__).resolve().parent.parent.parent / "alembic"
    return repo_dir if _is_valid(repo_dir) else None


def _run_alembic_upgrade(alembic_dir: Path) -> None:
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(alembic_dir))
    # str(url) masks the password; configparser treats % as interpolation
    url = engine.url.render_as_string(hide_password=False)
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")


def migrate() -> None:
    """Bring the schema to head and seed badge definitions. Never drops data."""
    alembic_dir = _find_alembic_dir()
    if alembic_dir is None:
        print("➡️  No Alembic migrations directory found, using SQLModel create_all...")
        SQLModel.metadata.create_all(engine)
    else:
        print(f"➡️  Running Alembic migrations from {alembic_dir} ...")
        try:
            _run_alembic_upgrade(alembic_dir)
        except Exception as exc:
            print(f"⚠️  Alembic migration failed ({exc}), falling back to create_all...")
            SQLModel.metadata.create_all(engine)

    print("➡️  Upserting badge definitions...")
    count = seed_badges()
    print(f"✅ Database migration complete ({count} badges).")


def reset_db() -> None:
    """Drop every contest table and migrate again. Destroys all data."""
    print("⚠️  Dropping all tables...")
    with engine.begin() as conn:
        for table in tables_to_reset():
            conn.execute(text(f"DROP TABLE IF EXISTS {table} CASCADE"))

    migrate()
    print("✅ Database reset complete.")


if __name__ == "__main__":
    import sys

    if "--reset" in sys.argv:
        reset_db()
    else:
        migrate()
    sys.exit(0)
