import unittest
from datetime import date, datetime, timezone
from unittest.mock import MagicMock

from contest_node.db.repositories import (
    DBBadgeRepository,
    DBContestRepository,
    DBDriverRepository,
    DBUserRepository,
)
from contest_node.db.tables import BadgeAwardRow, BadgeRow, ContestRow, DriverRow, UserBadgeRow
from contest_node.entities.badge import Badge, BadgeAward
from contest_node.entities.contest import (
    CompetitorEntry,
    Contest,
    ContestSettings,
    DiscoveredBadge,
    DriverEntry,
    Round,
    RoundStatus,
)
from contest_node.entities.driver import DriverStats
from contest_node.errors import StaleContestError
from contest_node.scoring.points import StandardScoring, TightTargetScoring

STAMP = datetime(2026, 3, 1, 18, 30, tzinfo=timezone.utc)


def _contest(version=0) -> Contest:
    return Contest(
        id="c1",
        name="Spring cup",
        scoring=StandardScoring(table={10: 25, 9: 18, 11: 18}),
        rounds=[
            Round(
                round=1,
                status=RoundStatus.BETTING_CLOSED,
                status_changed_at=STAMP,
                competitors=[CompetitorEntry(competitor="X", bet="A", bet_placed_at=STAMP)],
                drivers=[DriverEntry(driver="A", position_actual=10)],
            ),
        ],
        competitors=["X"],
        champ_badges=["b-win"],
        settings=ContestSettings(skip_results=True),
        discovered_badges=[DiscoveredBadge(badge="b-win", discovered_by="X", discovered_at=STAMP)],
        season=2,
        version=version,
        created_at=STAMP,
    )


def _result(rows):
    result = MagicMock()
    result.all.return_value = rows
    result.first.return_value = rows[0] if rows else None
    return result


class TestContestRowCodec(unittest.TestCase):
    def test_stored_row_decodes_to_the_same_contest(self):
        contest = _contest(version=3)
        row = ContestRow(id=contest.id, version=contest.version, **DBContestRepository._domain_to_values(contest))

        decoded = DBContestRepository._row_to_domain(row)

        self.assertEqual(decoded.scoring, contest.scoring)
        self.assertEqual(decoded.rounds, contest.rounds)
        self.assertEqual(decoded.rounds[0].status, RoundStatus.BETTING_CLOSED)
        self.assertEqual(decoded.settings, contest.settings)
        self.assertEqual(decoded.discovered_badges, contest.discovered_badges)
        self.assertEqual((decoded.season, decoded.version), (2, 3))

    def test_legacy_points_structure_is_used_without_scoring_column(self):
        row = ContestRow(
            id="old",
            name="legacy",
            scoring_jsonb={},
            points_structure_jsonb=[{"position": 10, "points": 2}, {"position": 0, "points": 1}],
        )

        decoded = DBContestRepository._row_to_domain(row)

        self.assertEqual(decoded.scoring, TightTargetScoring(winner_points=2, runner_up_points=1, qualifying_rank=9))
        self.assertEqual(decoded.rounds, [])

    def test_values_keep_legacy_points_structure_in_step(self):
        values = DBContestRepository._domain_to_values(_contest())
        self.assertEqual(values["scoring_jsonb"]["mode"], "standard")
        self.assertIn({"position": 10, "points": 25}, values["points_structure_jsonb"])


class TestContestSave(unittest.TestCase):
    def test_first_save_inserts_at_version_one(self):
        session = MagicMock()
        session.get.return_value = None
        contest = _contest()

        DBContestRepository(session).save(contest)

        inserted = session.add.call_args.args[0]
        self.assertIsInstance(inserted, ContestRow)
        self.assertEqual(inserted.version, 1)
        self.assertEqual(contest.version, 1)
        session.flush.assert_called_once()
        session.commit.assert_not_called()

    def test_update_bumps_version(self):
        session = MagicMock()
        session.get.return_value = object()
        session.execute.return_value = MagicMock(rowcount=1)
        contest = _contest(version=4)

        DBContestRepository(session).save(contest)

        self.assertEqual(contest.version, 5)
        session.commit.assert_not_called()

    def test_stale_version_rolls_back_and_raises(self):
        session = MagicMock()
        session.get.return_value = object()
        session.execute.return_value = MagicMock(rowcount=0)
        contest = _contest(version=4)

        with self.assertRaises(StaleContestError) as ctx:
            DBContestRepository(session).save(contest)

        self.assertEqual(ctx.exception.expected_version, 4)
        self.assertEqual(contest.version, 4)
        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestDriverRepository(unittest.TestCase):
    def test_row_decodes_attributes_and_stats(self):
        row = DriverRow(
            id="A",
            name="Driver A",
            attributes_jsonb={"nationality": "FI", "birthday": "1990-05-17", "moustache": True},
            stats_jsonb={"rounds_completed": 4, "position_history": {"10": 2}},
        )

        profile = DBDriverRepository._row_to_domain(row)

        self.assertEqual(profile.attributes.birthday, date(1990, 5, 17))
        self.assertTrue(profile.attributes.moustache)
        self.assertEqual(profile.stats.position_history, {"10": 2})
        self.assertEqual(profile.stats.rounds_won, 0)

    def test_bulk_update_stats_is_one_statement(self):
        session = MagicMock()
        DBDriverRepository(session).bulk_update_stats({
            "A": DriverStats(rounds_completed=1),
            "B": DriverStats(rounds_completed=2, form_score=4.5),
        })

        self.assertEqual(session.execute.call_count, 1)
        params = session.execute.call_args.args[1]
        self.assertEqual([p["id"] for p in params], ["A", "B"])
        self.assertEqual(params[1]["stats_jsonb"]["form_score"], 4.5)
        session.commit.assert_not_called()

    def test_empty_stats_skip_the_database(self):
        session = MagicMock()
        DBDriverRepository(session).bulk_update_stats({})
        session.execute.assert_not_called()

    def test_no_ids_skip_the_database(self):
        session = MagicMock()
        self.assertEqual(DBDriverRepository(session).fetch_by_ids([]), {})
        session.exec.assert_not_called()

    def test_save_updates_existing_row_in_place(self):
        session = MagicMock()
        existing = DriverRow(id="A", name="Old", attributes_jsonb={}, stats_jsonb={})
        session.get.return_value = existing
        profile = DBDriverRepository._row_to_domain(existing)
        profile.name = "New"
        profile.stats.rounds_won = 3

        DBDriverRepository(session).save(profile)

        session.add.assert_not_called()
        self.assertEqual(existing.name, "New")
        self.assertEqual(existing.stats_jsonb["rounds_won"], 3)


class TestBadgeRepository(unittest.TestCase):
    def test_fetch_keeps_requested_order_and_membership(self):
        session = MagicMock()
        session.exec.side_effect = [
            _result([
                BadgeRow(id="b2", awarded_how="lucky", name="Lucky"),
                BadgeRow(id="b1", awarded_how="winner", name="Winner"),
            ]),
            _result([BadgeAwardRow(badge_id="b1", user_id="X")]),
        ]

        badges = DBBadgeRepository(session).fetch_by_ids(["b1", "b2", "missing", "b1"])

        self.assertEqual([b.id for b in badges], ["b1", "b2"])
        self.assertEqual(badges[0].awarded_to, {"X"})
        self.assertEqual(badges[1].awarded_to, set())

    def test_save_inserts_new_badge(self):
        session = MagicMock()
        session.get.return_value = None

        DBBadgeRepository(session).save(Badge(id="b1", awarded_how="Round Win", name="Winner", rarity=2))

        row = session.add.call_args.args[0]
        self.assertEqual((row.id, row.awarded_how, row.rarity), ("b1", "Round Win", 2))

    def test_add_awarded_to_skips_empty_batches(self):
        session = MagicMock()
        DBBadgeRepository(session).add_awarded_to({"b1": []})
        session.execute.assert_not_called()
        session.commit.assert_not_called()

    def test_add_awarded_to_stages_one_insert(self):
        session = MagicMock()
        DBBadgeRepository(session).add_awarded_to({"b1": ["X", "Y"], "b2": ["X"]})
        self.assertEqual(session.execute.call_count, 1)
        session.commit.assert_not_called()


class TestUserRepository(unittest.TestCase):
    def test_append_nothing_skips_the_database(self):
        session = MagicMock()
        DBUserRepository(session).append_badges([])
        session.execute.assert_not_called()

    def test_fetch_badges_maps_rows_to_awards(self):
        session = MagicMock()
        session.exec.return_value = _result([
            UserBadgeRow(user_id="X", badge_id="b1", contest_id="c1", round_index=0, awarded_at=STAMP),
        ])

        awards = DBUserRepository(session).fetch_badges("X")

        self.assertEqual(awards, [BadgeAward(badge_id="b1", user_id="X", contest_id="c1", round_index=0, awarded_at=STAMP)])

    def test_repositories_commit_and_roll_back_their_session(self):
        for cls in (DBContestRepository, DBDriverRepository, DBBadgeRepository, DBUserRepository):
            session = MagicMock()
            repository = cls(session)
            repository.commit()
            repository.rollback()
            session.commit.assert_called_once()
            session.rollback.assert_called_once()

    def test_repositories_on_one_session_share_a_transaction(self):
        session = MagicMock()
        session.get.return_value = object()
        session.execute.return_value = MagicMock(rowcount=1)
        contests = DBContestRepository(session)
        drivers = DBDriverRepository(session)

        contests.save(_contest())
        drivers.bulk_update_stats({"A": DriverStats(rounds_completed=1)})
        session.commit.assert_not_called()

        contests.commit()
        session.commit.assert_called_once()


if __name__ == "__main__":
    unittest.main()
