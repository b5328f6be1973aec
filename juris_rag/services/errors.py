# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Error taxonomy for retrieval and embedding ingestion.

EmbeddingError subclasses tell the caller what to do next:
    AuthError       -> fatal, abort the run
    RateLimited     -> back off through the RateLimiter, retry the same text
    TransientError  -> retry a bounded number of times, then give up
"""


class JurisRagError(Exception):
    """Base class for all errors raised by this package."""


class EmbeddingError(JurisRagError):
    """A call to the embedding provider did not return a usable vector."""


class AuthError(EmbeddingError):
    """Invalid or missing credential for the embedding provider."""


class RateLimited(EmbeddingError):
    """The provider answered with a throttling signal (HTTP 429)."""

    def __init__(self, message: str = "rate limited", retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class TransientError(EmbeddingError):
    """Network failure, timeout, 5xx or malformed provider response."""


class MalformedEntityError(JurisRagError):
    """Entity cannot be embedded (empty content, identifier collision)."""

    def __init__(self, entity_id: str, reason: str):
        super().__init__(f"{entity_id}: {reason}")
        self.entity_id = entity_id
        self.reason = reason


class StoreUnavailable(JurisRagError):
    """The entity store could not be reached or rejected the request."""


class IngestionCancelled(JurisRagError):
    """The caller asked the ingestion run to stop."""
