from contest_node.scoring.engine import score_competitors, score_drivers, score_teams
from contest_node.scoring.points import (
    ScoringConfig,
    StandardScoring,
    TightTargetScoring,
    parse_scoring,
    points_structure_for,
    scoring_from_points_structure,
)
from contest_node.scoring.rank import TARGET_POSITION, rank, resolve_rank

__all__ = [
    "TARGET_POSITION", "rank", "resolve_rank",
    "ScoringConfig", "StandardScoring", "TightTargetScoring",
    "parse_scoring", "points_structure_for", "scoring_from_points_structure",
    "score_competitors", "score_drivers", "score_teams",
]
