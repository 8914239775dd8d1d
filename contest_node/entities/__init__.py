from contest_node.entities.badge import Badge, BadgeAward
from contest_node.entities.contest import (
    ACTIVE_STATUSES,
    CompetitorEntry,
    Contest,
    ContestSettings,
    DiscoveredBadge,
    DriverEntry,
    Round,
    RoundStatus,
    TeamEntry,
)
from contest_node.entities.driver import DriverAttributes, DriverProfile, DriverStats

__all__ = [
    "ACTIVE_STATUSES",
    "Badge", "BadgeAward",
    "CompetitorEntry", "Contest", "ContestSettings", "DiscoveredBadge",
    "DriverEntry", "Round", "RoundStatus", "TeamEntry",
    "DriverAttributes", "DriverProfile", "DriverStats",
]
