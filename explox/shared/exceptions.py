"""Shared (non-domain) exceptions."""


class ExternalServiceError(Exception):
    """External service call failed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"[{service}] {message}")


class PersistenceError(Exception):
    """Store read or write failed."""
