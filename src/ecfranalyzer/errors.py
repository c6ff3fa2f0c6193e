"""Exception hierarchy for fetching, processing and persisting eCFR metrics.

A synchronization pass touches the network, parses semi-structured content and
writes to a store. Each of those failure modes maps to one exception class so
the orchestrator can decide the recovery scope from the type alone:

    - TransientFetchError: a single request failed after every retry.
    - UpstreamUnavailable: a catalog could not be obtained, so the whole pass
      switches to the synthetic fallback dataset.
    - MalformedContent: one title's body or one catalog entry could not be
      interpreted; the entity is counted as zero.
    - PersistenceError: one store write failed; only that record is lost.
"""

from typing import Optional

__all__ = [
    "ECFRAnalyzerError",
    "TransientFetchError",
    "UpstreamUnavailable",
    "MalformedContent",
    "PersistenceError",
]


class ECFRAnalyzerError(RuntimeError):
    """Base exception for all ECFR Analyzer failures."""


class TransientFetchError(ECFRAnalyzerError):
    """Raised when a remote resource could not be fetched after all retries."""

    def __init__(
        self,
        message: str,
        *,
        resource: Optional[str] = None,
        attempts: int = 0,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.resource = resource
        self.attempts = attempts
        self.status_code = status_code


class UpstreamUnavailable(ECFRAnalyzerError):
    """Raised when a catalog endpoint is unreachable, malformed or empty."""


class MalformedContent(ECFRAnalyzerError):
    """Raised when a response body cannot be interpreted."""


class PersistenceError(ECFRAnalyzerError):
    """Raised when a store operation fails."""

    def __init__(self, message: str, *, collection: Optional[str] = None) -> None:
        super().__init__(message)
        self.collection = collection
