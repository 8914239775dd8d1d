from contest_node.schemas.payload_contracts import (
    AwardEnvelope,
    BadgeDefinitionEnvelope,
    RoundSettledEnvelope,
    SettleRequestEnvelope,
)

__all__ = ["AwardEnvelope", "BadgeDefinitionEnvelope", "RoundSettledEnvelope", "SettleRequestEnvelope"]
