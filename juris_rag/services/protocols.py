# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Service Protocols (Interfaces)

Defines the contracts for key services so they can be mocked in tests and swapped
in production without coupling to concrete implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from juris_rag.services.models import Corpus, LegalEntity, SearchConfig, SearchResult


# ---------------------------------------------------------------------------
# Embedding
# ---------------------------------------------------------------------------
@runtime_checkable
class EmbeddingService(Protocol):
    """Contract for embedding generation.

    Implementations perform exactly one provider call per invocation and raise
    AuthError / RateLimited / TransientError instead of retrying themselves.
    """

    def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for one text."""
        ...

    def embed_query(self, query_text: str) -> list[float]:
        """Generate an embedding vector for a search query."""
        ...


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
@runtime_checkable
class EntityStore(Protocol):
    """Contract for the entity store used by the ingestion pipeline.

    Any backend (Supabase, in-memory stub) that can list pending entities and
    write one embedding at a time satisfies this protocol.
    """

    def fetch_pending(self, corpus: Corpus, limit: int, after_id: str | None = None) -> list[LegalEntity]:
        """Entities with no embedding, ordered by id, strictly after *after_id*."""
        ...

    def update_embedding(self, corpus: Corpus, entity_id: str, embedding: list[float]) -> None:
        """Persist one entity's embedding."""
        ...

    def count_pending(self, corpus: Corpus) -> int:
        """Number of entities still waiting for an embedding."""
        ...


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------
@runtime_checkable
class SearchService(Protocol):
    """Contract for the query-time multi-corpus search."""

    async def search(self, query: str, config: SearchConfig | None = None) -> list[SearchResult]:
        """Classify, search every enabled corpus and return the fused source list."""
        ...
