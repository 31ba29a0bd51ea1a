"""Shared cross-layer types and exceptions."""

from explox.shared.exceptions import ExternalServiceError, PersistenceError

__all__ = ["ExternalServiceError", "PersistenceError"]
