class BotError(Exception):
    """Base bot error."""


class UpstreamError(BotError):
    """Raised when a backing service fails or times out."""


class CircuitOpenError(UpstreamError):
    """Raised when calls are rejected because the breaker is open."""


class NotFoundError(BotError):
    """Raised when a coin, watchlist or alert is missing."""


class LimitExceededError(BotError):
    """Raised when a creation limit is reached."""


class ValidationError(BotError):
    """Raised for invalid user input."""
