"""Chat assistant API package."""
