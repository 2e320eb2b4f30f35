class StatsError(Exception):
    """Base class for failures while building a stats report."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class Unauthorized(StatsError):
    """Raised when the caller has no active session."""


class MissingCredential(StatsError):
    """Raised when the user has no stored GitHub access token."""


class UpstreamFailure(StatsError):
    """Raised when a GitHub request fails or returns a malformed payload."""


class StoreFailure(StatsError):
    """Raised when a database query fails."""
