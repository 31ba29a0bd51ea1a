"""Tool protocols and I/O schemas."""
