"""Route handlers for API v1."""
