from contest_node.badges.context import BadgeContext
from contest_node.badges.evaluator import AwardBatch, BadgeEvaluator
from contest_node.badges.registry import (
    BadgeChecker,
    BadgeCheckResult,
    BadgeRegistry,
    get_default_registry,
)

__all__ = [
    "AwardBatch", "BadgeChecker", "BadgeCheckResult", "BadgeContext",
    "BadgeEvaluator", "BadgeRegistry", "get_default_registry",
]
