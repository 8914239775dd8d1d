from contest_node.config.runtime import RuntimeSettings

__all__ = ["RuntimeSettings"]
