"""Exception hierarchy for the audio resolver.

Fetch failures are per-instance and get swallowed by the instance walk.
NoConfidentMatch and ExhaustedFailure end a single strategy. Only
InvalidRequestFailure reaches the caller directly.
"""


class ResolverError(Exception):
    """Base exception for all resolver errors."""


class FetchError(ResolverError):
    """An outbound call to one instance did not produce a usable response."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class TimeoutFailure(FetchError):
    """The call exceeded its time budget."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"{url} timed out after {timeout:g}s", url)
        self.timeout = timeout


class NetworkFailure(FetchError):
    """Transport-level error (DNS, connection refused, reset)."""


class UpstreamStatusFailure(FetchError):
    """Reachable instance answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"{url} returned HTTP {status_code}", url)
        self.status_code = status_code


class MalformedResponseFailure(FetchError):
    """2xx response whose body is not the expected JSON shape."""


class NoConfidentMatch(ResolverError):
    """Metadata search answered but no candidate cleared the scoring bar."""


class ExhaustedFailure(ResolverError):
    """Every configured instance in a pool failed."""

    def __init__(self, pool: str, attempted: int) -> None:
        super().__init__(f"All {attempted} {pool} instances failed")
        self.pool = pool
        self.attempted = attempted


class InvalidRequestFailure(ResolverError):
    """Required request input is missing."""
