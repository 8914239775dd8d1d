from .badges import BadgeAwardRow, BadgeRow, UserBadgeRow
from .contests import ContestRow, utc_now
from .drivers import DriverRow

__all__ = ["BadgeAwardRow", "BadgeRow", "ContestRow", "DriverRow", "UserBadgeRow", "utc_now"]
