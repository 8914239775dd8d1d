import unittest

from contest_node.entities.contest import Contest, DriverEntry, Round
from contest_node.entities.driver import DriverProfile, DriverStats
from contest_node.scoring.points import TightTargetScoring
from contest_node.services.stats import aggregate_driver_stats


def _contest(finishes_by_round, total_rounds=None):
    rounds = [
        Round(round=i + 1, drivers=[DriverEntry(driver=d, position_actual=p) for d, p in finishes])
        for i, finishes in enumerate(finishes_by_round)
    ]
    for i in range(len(rounds), total_rounds or len(rounds)):
        rounds.append(Round(round=i + 1))
    return Contest(id="c1", name="c", scoring=TightTargetScoring(), rounds=rounds)


class TestAggregateDriverStats(unittest.TestCase):
    def setUp(self):
        self.profiles = {
            "A": DriverProfile(id="A", name="Alpha"),
            "B": DriverProfile(id="B", name="Bravo", stats=DriverStats(
                rounds_completed=4, position_history={"1": 2}, pole_positions=2,
            )),
        }

    def test_counts_finish_categories(self):
        contest = _contest([[("A", 10), ("B", 1)]], total_rounds=3)
        stats = aggregate_driver_stats(contest, 0, self.profiles)

        self.assertEqual(stats["A"].rounds_completed, 1)
        self.assertEqual(stats["A"].rounds_won, 1)
        self.assertEqual(stats["A"].position_history, {"10": 1})
        self.assertEqual(stats["B"].rounds_completed, 5)
        self.assertEqual(stats["B"].pole_positions, 3)
        self.assertEqual(stats["B"].top_three_finishes, 1)
        self.assertEqual(stats["B"].position_history, {"1": 3})

    def test_input_profiles_are_not_modified(self):
        contest = _contest([[("B", 1)]])
        aggregate_driver_stats(contest, 0, self.profiles)
        self.assertEqual(self.profiles["B"].stats.position_history, {"1": 2})
        self.assertEqual(self.profiles["B"].stats.rounds_completed, 4)

    def test_championship_counters_only_on_final_round(self):
        contest = _contest([[("A", 10)]], total_rounds=2)
        contest.rounds[0].drivers[0].position_drivers = 1
        stats = aggregate_driver_stats(contest, 0, self.profiles)
        self.assertEqual((stats["A"].champs_completed, stats["A"].champs_won), (0, 0))

        final = _contest([[("A", 10), ("B", 2)]])
        final.rounds[0].drivers[0].position_drivers = 1
        final.rounds[0].drivers[1].position_drivers = 2
        stats = aggregate_driver_stats(final, 0, self.profiles)
        self.assertEqual((stats["A"].champs_completed, stats["A"].champs_won), (1, 1))
        self.assertEqual((stats["B"].champs_completed, stats["B"].champs_won), (1, 0))

    def test_form_is_mean_of_last_three_finishes(self):
        contest = _contest([[("A", 1)], [("A", 4)], [("A", 5)], [("A", 9)]])
        stats = aggregate_driver_stats(contest, 3, self.profiles)
        self.assertEqual(stats["A"].form_score, 6.0)

    def test_missing_profile_skipped_with_warning(self):
        contest = _contest([[("A", 10), ("ghost", 3)]])
        with self.assertLogs("contest_node.services.stats", level="WARNING"):
            stats = aggregate_driver_stats(contest, 0, self.profiles)
        self.assertEqual(set(stats), {"A"})

    def test_unknown_finish_counts_participation_only(self):
        contest = _contest([[("A", None)]])
        stats = aggregate_driver_stats(contest, 0, self.profiles)
        self.assertEqual(stats["A"].rounds_completed, 1)
        self.assertEqual(stats["A"].position_history, {})
        self.assertEqual(stats["A"].rounds_won, 0)


if __name__ == "__main__":
    unittest.main()
