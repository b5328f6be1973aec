# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Entity Store
Reads pending legal entities from Supabase and writes their embeddings back,
one entity per write.
"""

import os
from collections.abc import Iterable
from dataclasses import dataclass

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client, create_client

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import config
from juris_rag.services.errors import StoreUnavailable
from juris_rag.services.models import CORPUS_SCHEMAS, Corpus, LegalEntity, entity_from_row

logger = setup_logger(__name__)

# postgrest errors, httpx transport failures (refused, reset, timeout) and socket errors
_STORE_ERRORS = (PostgrestAPIError, httpx.HTTPError, OSError)


@dataclass(frozen=True)
class CoverageStats:
    """Embedding coverage of one corpus."""

    total: int
    embedded: int

    @property
    def pending(self) -> int:
        return max(self.total - self.embedded, 0)

    @property
    def coverage(self) -> float:
        """Share of entities with an embedding, 0.0-100.0."""
        return round(100.0 * self.embedded / self.total, 1) if self.total else 0.0


class SupabaseEntityStore:
    """
    Supabase-backed entity store (sync client, used by the ingestion scripts).

    Pending = `embedding IS NULL`. Rows are paged by primary key so a run never
    sees the same entity twice, even when some of them fail.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: Client | None = None,
        dimensions: int | None = None,
    ):
        """Initialize Supabase client.

        Args:
            url: Supabase project URL. Falls back to SUPABASE_URL env var.
            key: Supabase anon/service key. Falls back to SUPABASE_KEY env var.
            client: Pre-built client (tests). Skips URL/KEY checks.
            dimensions: Required embedding length. Defaults to EMBEDDING_DIMENSIONS.
        """
        self.dimensions = dimensions or config.EMBEDDING_DIMENSIONS
        if client is not None:
            self.client = client
            return

        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_KEY")
        if not self.url or not self.key:
            raise ValueError("Supabase URL and KEY required. Set SUPABASE_URL and SUPABASE_KEY env vars.")

        self.client: Client = create_client(self.url, self.key)

    def fetch_pending(self, corpus: Corpus, limit: int, after_id: str | None = None) -> list[LegalEntity]:
        """Next page of entities without an embedding, ordered by id."""
        schema = CORPUS_SCHEMAS[corpus]
        query = self.client.table(schema.table).select(schema.select_columns).is_("embedding", "null")
        if after_id is not None:
            query = query.gt("id", after_id)

        try:
            response = query.order("id").limit(limit).execute()
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Could not read pending {corpus.value} entities: {e}") from e

        return [entity_from_row(corpus, row) for row in response.data or []]

    def update_embedding(self, corpus: Corpus, entity_id: str, embedding: list[float]) -> None:
        """Write one entity's embedding. The vector length is checked before the write."""
        if len(embedding) != self.dimensions:
            raise ValueError(f"Embedding for {entity_id} has {len(embedding)} dimensions, expected {self.dimensions}")

        schema = CORPUS_SCHEMAS[corpus]
        try:
            self.client.table(schema.table).update({"embedding": embedding}).eq("id", entity_id).execute()
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Could not store embedding for {corpus.value} {entity_id}: {e}") from e

    def _count(self, corpus: Corpus, pending_only: bool) -> int:
        schema = CORPUS_SCHEMAS[corpus]
        query = self.client.table(schema.table).select("id", count="exact")
        if pending_only:
            query = query.is_("embedding", "null")
        try:
            response = query.limit(1).execute()
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Could not count {corpus.value} entities: {e}") from e
        return response.count or 0

    def count_pending(self, corpus: Corpus) -> int:
        return self._count(corpus, pending_only=True)

    def coverage_stats(self, corpora: Iterable[Corpus] | None = None) -> dict[Corpus, CoverageStats]:
        """Total / embedded / pending counts per corpus."""
        stats: dict[Corpus, CoverageStats] = {}
        for corpus in corpora or list(Corpus):
            total = self._count(corpus, pending_only=False)
            pending = self._count(corpus, pending_only=True)
            stats[corpus] = CoverageStats(total=total, embedded=max(total - pending, 0))
            logger.info(
                "Coverage %s: %s/%s embedded (%s%%)",
                corpus.value,
                stats[corpus].embedded,
                total,
                stats[corpus].coverage,
            )
        return stats
