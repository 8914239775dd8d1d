from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import os


@dataclass(frozen=True)
class RuntimeSettings:
    target_position: int
    round_expiry_hours: float
    expiry_check_interval_seconds: int
    settle_channel: str
    settled_channel: str

    @property
    def round_expiry(self) -> timedelta:
        return timedelta(hours=self.round_expiry_hours)

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        return cls(
            target_position=int(os.getenv("TARGET_POSITION", "10")),
            round_expiry_hours=float(os.getenv("ROUND_EXPIRY_HOURS", "24")),
            expiry_check_interval_seconds=int(os.getenv("EXPIRY_CHECK_INTERVAL_SECONDS", "300")),
            settle_channel=os.getenv("SETTLE_CHANNEL", "round_results"),
            settled_channel=os.getenv("SETTLED_CHANNEL", "round_settled"),
        )
