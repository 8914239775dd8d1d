"""Badge checker registry: discriminator key to pure predicate."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from contest_node.badges.context import BadgeContext
from contest_node.entities.driver import DriverProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeCheckResult:
    earned: bool


# Checker signature:
#   fn(context: BadgeContext, drivers: Mapping[str, DriverProfile] | None) → BadgeCheckResult
BadgeChecker = Callable[[BadgeContext, Mapping[str, DriverProfile] | None], BadgeCheckResult]


class BadgeRegistry(Mapping[str, BadgeChecker]):
    """Read-only mapping of badge keys to checkers.

    Usage:
        registry = BadgeRegistry([("Round Win", check_round_win)])
        bigger = registry.extended([("Round Last", check_round_last)])

        result = bigger.check("Round Win", ctx)
        # → True / False, or None when the key is not registered
    """

    def __init__(self, checkers: Iterable[tuple[str, BadgeChecker]] | Mapping[str, BadgeChecker] = ()) -> None:
        items = checkers.items() if isinstance(checkers, Mapping) else checkers
        self._checkers: Mapping[str, BadgeChecker] = MappingProxyType(dict(items))

    def __getitem__(self, key: str) -> BadgeChecker:
        return self._checkers[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._checkers)

    def __len__(self) -> int:
        return len(self._checkers)

    def available(self) -> list[str]:
        """List all registered badge keys."""
        return sorted(self._checkers.keys())

    def extended(self, checkers: Iterable[tuple[str, BadgeChecker]]) -> "BadgeRegistry":
        """Return a new registry with extra checkers; this one is left untouched."""
        merged = dict(self._checkers)
        merged.update(dict(checkers))
        return BadgeRegistry(merged)

    def check(
        self,
        key: str,
        context: BadgeContext,
        drivers: Mapping[str, DriverProfile] | None = None,
    ) -> bool | None:
        """Run one checker. None for an unregistered key; a raising checker counts as not earned."""
        fn = self._checkers.get(key)
        if fn is None:
            return None
        try:
            return bool(fn(context, drivers).earned)
        except Exception as exc:
            logger.warning("badge checker %r failed for %s: %s", key, context.competitor_id, exc)
            return False


# ── Global default registry ──

_default_registry: BadgeRegistry | None = None


def get_default_registry() -> BadgeRegistry:
    """Get the builtin registry, building it on first call."""
    global _default_registry
    if _default_registry is None:
        from contest_node.badges.builtins import builtin_checkers
        _default_registry = BadgeRegistry(builtin_checkers())
    return _default_registry
