"""Application lifecycle events."""

from zap_gateway.core.events.lifespan import lifespan


__all__ = ["lifespan"]
