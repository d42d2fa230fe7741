"""Discovery domain exports."""

from .service import DiscoveryService

__all__ = ["DiscoveryService"]
