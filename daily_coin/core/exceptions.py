# daily_coin/core/exceptions.py


class GenerationError(Exception):
    """The text generator failed or returned something unusable. Not retried."""


class ConcurrentUpdateError(Exception):
    """A versioned write kept losing to other writers of the same row."""
