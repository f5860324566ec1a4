"""Utility modules for songscout.

Available utility modules (re-exported here for convenience):

- **errors** -- Domain exception hierarchy rooted at SongScoutError; the
  fetch orchestrator falls back on provider errors and re-raises
  persistence errors.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **rate_limiter** -- Interval and concurrency limiters plus the registry
  that owns one limiter per external provider.
- **concurrency** -- ``settle_all`` bounded fan-out that collects failures
  instead of cancelling siblings.
- **credit_normalizer** -- Staged splitting of songwriter credit strings
  into individual names.
- **name_matching** -- Songwriter name normalization and the token
  agreement policy used by identity resolution.
"""

# -- Domain exception hierarchy --------------------------------------------
from songscout.utils.errors import (
    ConfigurationError,
    JobQueueError,
    PersistenceError,
    PlaylistFetchError,
    PlaylistValidationError,
    ProviderAuthError,
    ProviderUnavailableError,
    RateLimitError,
    SongScoutError,
)

# -- Structured logging setup ----------------------------------------------
from songscout.utils.logging import configure_logging, get_logger

# -- Rate limiting and fan-out ---------------------------------------------
from songscout.utils.rate_limiter import (
    ConcurrencyRateLimiter,
    IntervalRateLimiter,
    RateLimiterRegistry,
)
from songscout.utils.concurrency import settle_all

# -- Credit splitting and name matching ------------------------------------
from songscout.utils.credit_normalizer import normalize_credit_list, process_credit_entries
from songscout.utils.name_matching import TokenMatchPolicy, normalize_songwriter_name

__all__ = [
    "ConcurrencyRateLimiter",
    "ConfigurationError",
    "IntervalRateLimiter",
    "JobQueueError",
    "PersistenceError",
    "PlaylistFetchError",
    "PlaylistValidationError",
    "ProviderAuthError",
    "ProviderUnavailableError",
    "RateLimitError",
    "RateLimiterRegistry",
    "SongScoutError",
    "TokenMatchPolicy",
    "configure_logging",
    "get_logger",
    "normalize_credit_list",
    "normalize_songwriter_name",
    "process_credit_entries",
    "settle_all",
]
