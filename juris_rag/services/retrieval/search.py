# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Multi-Corpus Retrieval Service
Searches statutes, case law and methodology resources concurrently:
per-corpus vector similarity (pgvector RPC) plus direct identifier lookup
for articles and decisions named in the query, fused into one source list.
"""

import asyncio
import os
import time
from collections.abc import Mapping

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import AsyncClient, create_async_client

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import config  # load_dotenv() runs here
from juris_rag.services.common.embedder import EmbeddingClient
from juris_rag.services.errors import AuthError, EmbeddingError, StoreUnavailable
from juris_rag.services.models import (
    CORPUS_SCHEMAS,
    Corpus,
    CorpusSearchConfig,
    EntitySummary,
    MatchKind,
    SearchConfig,
    SearchResult,
    entity_from_row,
)
from juris_rag.services.protocols import EmbeddingService
from juris_rag.services.retrieval.classifier import ClassifiedQuery, classify_query
from juris_rag.services.retrieval.fusion import fuse, rank_key
from juris_rag.utils.retry import retry_async

logger = setup_logger(__name__)


class MultiCorpusSearch:
    """
    Query-time search over every enabled corpus

    Methods:
    - semantic_search: similarity RPC on one corpus, threshold re-checked client-side
    - exact_lookup: direct identifier match (score 1.0), bypasses vector search
    - search: classify -> embed -> search all corpora concurrently -> fuse
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        embedder: EmbeddingService | None = None,
        search_config: SearchConfig | None = None,
        corpus_timeout: float | None = None,
        embed_retries: int = 2,
        embed_retry_delay: float = 0.5,
    ):
        """Initialize Supabase settings and the query embedder.

        Args:
            url: Supabase project URL. Falls back to SUPABASE_URL env var.
            key: Supabase anon/service key. Falls back to SUPABASE_KEY env var.
            embedder: Embedding service for query vectors. Falls back to
                      the default EmbeddingClient (mistral-embed).
            search_config: Default per-corpus budgets. Falls back to settings.
            corpus_timeout: Seconds allowed for each store call.
            embed_retries: Retries of the query embedding on transient errors.
            embed_retry_delay: Fixed delay between those retries.
        """
        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_KEY")

        if not self.url or not self.key:
            raise ValueError("Supabase URL and KEY required")

        self.client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self.embedder: EmbeddingService = embedder or EmbeddingClient()
        self.search_config = search_config or SearchConfig.from_settings()
        self.corpus_timeout = corpus_timeout or config.SEARCH_CORPUS_TIMEOUT
        self.embed_retries = embed_retries
        self.embed_retry_delay = embed_retry_delay
        self.max_query_length = config.MAX_QUERY_LENGTH

    async def _get_client(self) -> AsyncClient:
        """Lazy load async client."""
        async with self._client_lock:
            if self.client is None:
                self.client = await create_async_client(self.url, self.key)
        return self.client

    async def _reset_client(self) -> AsyncClient:
        """Force-recreate the Supabase client after a connection failure."""
        async with self._client_lock:
            logger.warning("Resetting Supabase client (stale connection)")
            self.client = await create_async_client(self.url, self.key)
        return self.client

    async def _timed(self, coro, label: str) -> list[SearchResult]:
        """Run one store call with a timeout; any store failure degrades to no results."""
        try:
            return await asyncio.wait_for(coro, timeout=self.corpus_timeout)
        except asyncio.TimeoutError:
            logger.warning("  %s timed out after %.0fs", label, self.corpus_timeout)
            return []
        except (PostgrestAPIError, StoreUnavailable) as exc:
            logger.error("  %s failed: %s", label, exc)
            return []
        except (httpx.HTTPError, OSError) as exc:
            message = str(exc).lower()
            if "closed" in message or "transport" in message:
                logger.warning("  %s hit stale connection, resetting client: %s", label, exc)
                try:
                    await self._reset_client()
                except (httpx.HTTPError, OSError) as reset_exc:
                    logger.error("  client reset after %s failed: %s", label, reset_exc)
            else:
                logger.error("  %s failed: %s", label, exc)
            return []

    async def _embed_query(self, query_text: str) -> list[float] | None:
        """Embed the query in a worker thread. None when the provider is unavailable."""
        loop = asyncio.get_running_loop()
        try:
            return await retry_async(
                lambda: loop.run_in_executor(None, self.embedder.embed_query, query_text),
                retries=self.embed_retries,
                initial_delay=self.embed_retry_delay,
            )
        except AuthError as e:
            logger.error("Query embedding rejected (credential), exact lookups only: %s", e)
            return None
        except EmbeddingError as e:
            logger.warning("Query embedding failed, exact lookups only: %s", e)
            return None

    # ------------------------------------------------------------------
    # Per-corpus searches
    # ------------------------------------------------------------------
    async def semantic_search(
        self,
        corpus: Corpus,
        query_embedding: list[float],
        corpus_config: CorpusSearchConfig,
    ) -> list[SearchResult]:
        """
        Similarity search on one corpus via its pgvector RPC.

        The RPC already filters on match_threshold; rows are re-checked here
        so a lenient RPC never leaks results at or below the threshold.
        """
        schema = CORPUS_SCHEMAS[corpus]
        threshold = corpus_config.similarity_threshold

        client = await self._get_client()
        response = await client.rpc(
            schema.similarity_rpc,
            {
                "query_embedding": query_embedding,
                "match_threshold": threshold,
                "match_count": corpus_config.max_results,
            },
        ).execute()

        results: list[SearchResult] = []
        for row in response.data or []:
            similarity = float(row.get("similarity") or 0.0)
            if similarity <= threshold:
                continue
            entity = entity_from_row(corpus, row)
            results.append(
                SearchResult(
                    entity=EntitySummary.from_entity(entity),
                    score=min(similarity, 1.0),
                    match_kind=MatchKind.SEMANTIC,
                )
            )

        results.sort(key=rank_key)
        return results[: corpus_config.max_results]

    async def exact_lookup(
        self,
        corpus: Corpus,
        identifiers: frozenset[str],
        scopes: Mapping[str, str | None] | None = None,
    ) -> list[SearchResult]:
        """
        Fetch entities by identifier. Every hit is an exact match (score 1.0).

        *scopes* maps an identifier to the code it was cited under; a row in
        another code is dropped. Identifiers without a scope match any code.
        """
        scopes = scopes or {}
        if not identifiers:
            return []

        schema = CORPUS_SCHEMAS[corpus]
        client = await self._get_client()
        response = (
            await client.table(schema.table)
            .select(schema.select_columns)
            .in_(schema.identifier_column, sorted(identifiers))
            .execute()
        )

        results: list[SearchResult] = []
        for row in response.data or []:
            entity = entity_from_row(corpus, row)
            expected = scopes.get(entity.identifier)
            if expected and entity.scope and entity.scope != expected:
                continue
            results.append(SearchResult(entity=EntitySummary.from_entity(entity), score=1.0, match_kind=MatchKind.EXACT))

        logger.info("Direct %s lookup → %s/%s identifiers found", corpus.value, len(results), len(identifiers))
        return results

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------
    async def search(self, query: str, config: SearchConfig | None = None) -> list[SearchResult]:
        """
        Search every enabled corpus and return the fused, ranked source list.

        Store and embedding failures only remove the affected results; the
        caller always gets a (possibly empty) list.
        """
        search_config = config or self.search_config
        query_text = (query or "").strip()
        if not query_text:
            return []
        if len(query_text) > self.max_query_length:
            query_text = query_text[: self.max_query_length]

        t0 = time.time()
        classified: ClassifiedQuery = classify_query(query_text)
        corpora = search_config.enabled_corpora

        # Exact lookups do not need the embedding: start them right away.
        embedding_task = asyncio.create_task(self._embed_query(query_text))
        exact_tasks: dict[Corpus, asyncio.Task] = {}
        for corpus in corpora:
            identifiers = classified.identifiers_for(corpus)
            if identifiers:
                scopes = classified.article_scopes if corpus is Corpus.STATUTE else None
                exact_tasks[corpus] = asyncio.create_task(
                    self._timed(self.exact_lookup(corpus, identifiers, scopes), f"exact_{corpus.value}")
                )

        query_embedding = await embedding_task
        semantic_tasks: dict[Corpus, asyncio.Task] = {}
        if query_embedding is not None:
            for corpus in corpora:
                semantic_tasks[corpus] = asyncio.create_task(
                    self._timed(
                        self.semantic_search(corpus, query_embedding, search_config.for_corpus(corpus)),
                        f"vec_{corpus.value}",
                    )
                )

        await asyncio.gather(*exact_tasks.values(), *semantic_tasks.values())

        per_corpus: dict[Corpus, list[SearchResult]] = {}
        for corpus in corpora:
            hits: list[SearchResult] = []
            if corpus in exact_tasks:
                hits.extend(exact_tasks[corpus].result())
            if corpus in semantic_tasks:
                hits.extend(semantic_tasks[corpus].result())
            per_corpus[corpus] = hits

        fused = fuse(per_corpus, search_config)
        logger.info(
            "Search: %.1fs, %s results (%s)",
            time.time() - t0,
            len(fused),
            ", ".join(f"{c.value}={len(per_corpus[c])}" for c in corpora),
        )
        return fused
