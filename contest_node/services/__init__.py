from contest_node.services.lifecycle import (
    RoundLifecycleService,
    check_round_expiry,
    transition_round,
)
from contest_node.services.settlement import SettlementResult, SettlementService
from contest_node.services.stats import aggregate_driver_stats

__all__ = [
    "RoundLifecycleService", "SettlementResult", "SettlementService",
    "aggregate_driver_stats", "check_round_expiry", "transition_round",
]
