"""Custom exception hierarchy for songscout.

All application exceptions inherit from :class:`SongScoutError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "chartmetric", "spotify_api", "sqlite") caused the
failure.

The hierarchy is organized by pipeline domain:

    SongScoutError  (base -- catch-all for any songscout error)
    +-- ProviderUnavailableError (adapter HTTP / transport failure)
    +-- RateLimitError           (provider answered 429)
    +-- ProviderAuthError        (token acquisition failed)
    +-- PlaylistFetchError       (fetch batch cannot run)
    |   +-- PlaylistValidationError (no playlists match the request)
    +-- PersistenceError         (store write failed)
    +-- JobQueueError            (invalid job submission)
    +-- ConfigurationError       (startup / missing config)

Provider errors are caught per attempt by the fetch orchestrator and turn
into a fallback to the next provider.  ``PersistenceError`` is the one
error the batch path re-raises: tracks that never reached the store must
not be handed to the enrichment queue.
"""


class SongScoutError(Exception):
    """Base exception for all songscout errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[chartmetric] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(SongScoutError):
    """Raised when a track provider is unreachable or answers with an error.

    The fetch orchestrator catches this to try the next provider in the
    playlist's chain.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(SongScoutError):
    """Raised when a provider rejects a call with HTTP 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderAuthError(SongScoutError):
    """Raised when a provider access token cannot be obtained."""

    def __init__(
        self,
        message: str = "Provider authentication failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Fetch / persistence / queue errors
# ---------------------------------------------------------------------------

class PlaylistFetchError(SongScoutError):
    """Raised when a playlist fetch batch cannot be started."""

    def __init__(
        self,
        message: str = "Playlist fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PlaylistValidationError(PlaylistFetchError):
    """Raised when the requested fetch mode selects no tracked playlists."""

    def __init__(
        self,
        message: str = "No tracked playlists match the request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(SongScoutError):
    """Raised when a write against the catalog or job store fails."""

    def __init__(
        self,
        message: str = "Persistence operation failed",
        provider_name: str | None = "sqlite",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class JobQueueError(SongScoutError):
    """Raised when a job submission is invalid (e.g. no track IDs)."""

    def __init__(
        self,
        message: str = "Invalid enrichment job",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(SongScoutError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
