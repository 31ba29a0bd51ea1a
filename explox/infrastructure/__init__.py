"""Infrastructure helpers: HTTP, caching, structured logging."""
