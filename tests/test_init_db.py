import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from pydantic import ValidationError
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel

from contest_node.badges import get_default_registry
from contest_node.db.init_db import (
    _find_alembic_dir,
    _run_alembic_upgrade,
    badge_id_for,
    default_badge_definitions,
    load_badge_definitions,
    seed_badges,
    tables_to_reset,
)
from contest_node.db.tables import BadgeRow


def _patched_session():
    session = MagicMock()
    session.get.return_value = None
    factory = MagicMock()
    factory.return_value.__enter__.return_value = session
    factory.return_value.__exit__.return_value = False
    return factory, session


class TestInitDb(unittest.TestCase):
    def test_reset_covers_every_contest_table(self):
        registered = set(SQLModel.metadata.tables)
        self.assertTrue({"contests", "drivers", "badges", "badge_awards", "user_badges"} <= registered)
        self.assertTrue(registered <= set(tables_to_reset()))

    def test_dependent_tables_drop_first(self):
        order = tables_to_reset()
        self.assertLess(order.index("badge_awards"), order.index("badges"))

    def test_alembic_dir_from_environment(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "env.py").write_text("")
            (Path(tmp) / "versions").mkdir()
            with patch.dict(os.environ, {"ALEMBIC_DIR": tmp}):
                self.assertEqual(_find_alembic_dir(), Path(tmp))

    def test_incomplete_alembic_dir_is_ignored(self):
        with tempfile.TemporaryDirectory() as tmp:
            with patch.dict(os.environ, {"ALEMBIC_DIR": tmp}):
                found = _find_alembic_dir()
        self.assertNotEqual(found, Path(tmp))

    def test_upgrade_gets_the_unmasked_engine_url(self):
        url = make_url("postgresql+psycopg2://contest:pa%25ss@db:5432/contest")
        fake_engine = MagicMock(url=url)
        with patch("contest_node.db.init_db.engine", fake_engine), patch("alembic.command.upgrade") as upgrade:
            _run_alembic_upgrade(Path("/srv/alembic"))

        config, revision = upgrade.call_args.args
        self.assertEqual(revision, "head")
        self.assertEqual(config.get_main_option("sqlalchemy.url"), url.render_as_string(hide_password=False))
        self.assertEqual(config.get_main_option("script_location"), "/srv/alembic")


class TestBadgeDefinitions(unittest.TestCase):
    def test_badge_ids_are_slugs(self):
        self.assertEqual(badge_id_for("Moustache & Mullet"), "moustache-mullet")
        self.assertEqual(badge_id_for("Won With P9 or P11"), "won-with-p9-or-p11")

    def test_defaults_cover_every_builtin_checker(self):
        definitions = default_badge_definitions()
        self.assertEqual({d["awarded_how"] for d in definitions}, set(get_default_registry()))
        self.assertEqual(len({d["id"] for d in definitions}), len(definitions))

    def test_definitions_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "badges.json"
            path.write_text(json.dumps([{"id": "b-win", "awarded_how": "Round Win", "rarity": 1}]))
            with patch.dict(os.environ, {"BADGE_DEFINITIONS_PATH": str(path)}):
                self.assertEqual(load_badge_definitions()[0]["id"], "b-win")

    def test_definitions_file_must_hold_a_list(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "badges.json"
            path.write_text(json.dumps({"id": "b-win"}))
            with patch.dict(os.environ, {"BADGE_DEFINITIONS_PATH": str(path)}):
                with self.assertRaises(ValueError):
                    load_badge_definitions()

    def test_seed_inserts_new_badges(self):
        factory, session = _patched_session()
        with patch("contest_node.db.init_db.create_session", factory):
            count = seed_badges([
                {"id": "b-win", "awarded_how": "Round Win"},
                {"id": "b-last", "awarded_how": "Round Last", "name": "Backmarker", "rarity": 3},
            ])

        self.assertEqual(count, 2)
        rows = [c.args[0] for c in session.add.call_args_list]
        self.assertTrue(all(isinstance(r, BadgeRow) for r in rows))
        self.assertEqual([(r.id, r.name, r.rarity) for r in rows],
                         [("b-win", "Round Win", 0), ("b-last", "Backmarker", 3)])
        session.commit.assert_called_once()

    def test_seed_rejects_invalid_definitions(self):
        factory, _ = _patched_session()
        with patch("contest_node.db.init_db.create_session", factory):
            with self.assertRaises(ValidationError):
                seed_badges([{"id": "b-win", "awarded_how": "Round Win", "rarity": -1}])


if __name__ == "__main__":
    unittest.main()
