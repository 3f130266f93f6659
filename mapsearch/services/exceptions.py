"""Search error taxonomy."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for failures reported by a location search provider."""

    message_key = "search.error.generic"
    retryable = False
    retry_delay = 1.0


class SearchTransportError(SearchError):
    message_key = "search.error.network"
    retryable = True
    retry_delay = 2.0


class SearchTimeoutError(SearchTransportError):
    message_key = "search.error.timeout"
    retry_delay = 1.0


class ServiceUnavailableError(SearchError):
    message_key = "search.error.unavailable"
    retryable = True
    retry_delay = 3.0


class ProviderAuthError(ServiceUnavailableError):
    """The provider rejected our credentials; retrying cannot help."""

    retryable = False


class RateLimitExceededError(SearchError):
    message_key = "search.error.rate_limited"


class NoResultsError(SearchError):
    message_key = "search.error.no_results"


class InvalidQueryError(SearchError):
    message_key = "search.error.invalid_query"


class SearchCancelled(Exception):
    """Raised inside a superseded search; never shown to the user."""


class PersistenceError(Exception):
    pass


__all__ = [
    "SearchError",
    "SearchTransportError",
    "SearchTimeoutError",
    "ServiceUnavailableError",
    "ProviderAuthError",
    "RateLimitExceededError",
    "NoResultsError",
    "InvalidQueryError",
    "SearchCancelled",
    "PersistenceError",
]
