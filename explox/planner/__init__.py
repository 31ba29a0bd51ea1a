"""Route generation stages."""
