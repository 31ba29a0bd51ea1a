"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class QueryValidationError(DomainError):
    """Raised when search parameters cannot be turned into a query."""


class GenerationCancelled(DomainError):
    """Raised when a generation run is cancelled by its caller."""
