from contest_node.interfaces.badge_repository import BadgeRepository
from contest_node.interfaces.contest_repository import ContestRepository
from contest_node.interfaces.driver_repository import DriverRepository
from contest_node.interfaces.transactional import TransactionalRepository
from contest_node.interfaces.user_repository import UserRepository

__all__ = [
    "BadgeRepository",
    "ContestRepository",
    "DriverRepository",
    "TransactionalRepository",
    "UserRepository",
]
