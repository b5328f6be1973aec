# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Embedding Service for legal entities and search queries
Generates embeddings through an OpenAI-compatible endpoint (default: Mistral mistral-embed)
"""

import openai
from openai import OpenAI

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import config
from juris_rag.services.errors import AuthError, RateLimited, TransientError

logger = setup_logger(__name__)


def _retry_after_seconds(exc: openai.APIStatusError) -> float | None:
    """Parse the Retry-After header of a 429 response, if present."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class EmbeddingClient:
    """
    One-shot embedding calls with a typed error mapping.

    The client never retries and keeps no backoff state: rate limiting and
    retry policy belong to the caller (RateLimiter / IngestionPipeline).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        dimensions: int | None = None,
        max_input_chars: int | None = None,
        timeout: float | None = None,
        client: OpenAI | None = None,
    ):
        """
        Initialize embedder

        Args:
            api_key: Provider API key (defaults to EMBEDDING_API_KEY / MISTRAL_API_KEY)
            model: Embedding model to use
            base_url: OpenAI-compatible API base URL
            dimensions: Expected vector length; other lengths are rejected
            max_input_chars: Input is cut to this many characters before the request
            timeout: Per-request timeout in seconds
            client: Pre-built OpenAI client (tests)
        """
        self.api_key = api_key if api_key is not None else config.EMBEDDING_API_KEY
        self.model = model or config.EMBEDDING_MODEL
        self.base_url = base_url or config.EMBEDDING_API_BASE
        self.dimensions = dimensions or config.EMBEDDING_DIMENSIONS
        self.max_input_chars = max_input_chars or config.EMBEDDING_MAX_INPUT_CHARS
        self.timeout = timeout or config.EMBEDDING_TIMEOUT_SECONDS
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise AuthError("Embedding API key missing. Set EMBEDDING_API_KEY or MISTRAL_API_KEY.")
            # SDK retries are disabled: a retried 429 inside the SDK would bypass the rate limiter.
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def embed(self, text: str) -> list[float]:
        """
        Generate embedding for a single text

        Args:
            text: Text to embed (truncated to max_input_chars)

        Returns:
            Embedding vector of exactly `dimensions` floats

        Raises:
            AuthError: credential missing or rejected (401/403)
            RateLimited: provider throttled the call (429)
            TransientError: network failure, timeout, 5xx or malformed response
        """
        payload = (text or "")[: self.max_input_chars]
        client = self.client

        try:
            response = client.embeddings.create(model=self.model, input=[payload])
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise AuthError(f"Embedding provider rejected the credential: {e}") from e
        except openai.RateLimitError as e:
            raise RateLimited(str(e), retry_after=_retry_after_seconds(e)) from e
        except openai.APIConnectionError as e:
            # Includes APITimeoutError
            raise TransientError(f"Embedding request failed: {type(e).__name__}: {e}") from e
        except openai.APIStatusError as e:
            raise TransientError(f"Embedding provider returned HTTP {e.status_code}") from e
        except openai.APIError as e:
            raise TransientError(f"Embedding provider error: {e}") from e

        data = getattr(response, "data", None) or []
        if not data or not getattr(data[0], "embedding", None):
            raise TransientError("Embedding provider returned no vector")

        vector = [float(v) for v in data[0].embedding]
        if len(vector) != self.dimensions:
            raise TransientError(f"Embedding has {len(vector)} dimensions, expected {self.dimensions}")
        return vector

    def embed_query(self, query_text: str) -> list[float]:
        """Generate embedding for a search query (same request as embed)."""
        return self.embed(query_text)
