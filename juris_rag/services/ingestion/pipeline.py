# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Embedding ingestion pipeline.

Fills the `embedding` column of pending entities, one corpus at a time, under
the provider's rate limit. The embedding column is the only progress marker:
an interrupted run is resumed by running again, and a run with nothing pending
makes no embedding calls.

Per entity:
    wait_turn -> embed -> (429: report_throttled, same entity again)
                       -> (transient: bounded retry, then counted as failed)
                       -> (auth: abort the whole run)
              -> report_success -> update_embedding
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import config
from juris_rag.services.errors import (
    AuthError,
    IngestionCancelled,
    MalformedEntityError,
    RateLimited,
    StoreUnavailable,
    TransientError,
)
from juris_rag.services.ingestion.enrichment import build_enriched_text
from juris_rag.services.models import Corpus, LegalEntity
from juris_rag.services.protocols import EmbeddingService, EntityStore
from juris_rag.utils.rate_limiter import RateLimiter
from juris_rag.utils.retry import call_with_retry

logger = setup_logger(__name__)


@dataclass
class CorpusReport:
    """Counters for one corpus run."""

    corpus: Corpus
    embedded: int = 0
    failed: int = 0
    skipped: int = 0
    throttled: int = 0
    batches: int = 0
    paused_seconds: float = 0.0
    pending_at_start: int | None = None
    aborted: bool = False
    cancelled: bool = False
    failed_ids: list[str] = field(default_factory=list)
    skipped_ids: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.embedded + self.failed + self.skipped


@dataclass
class IngestionReport:
    corpora: dict[Corpus, CorpusReport] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def embedded(self) -> int:
        return sum(r.embedded for r in self.corpora.values())

    @property
    def failed(self) -> int:
        return sum(r.failed for r in self.corpora.values())

    @property
    def skipped(self) -> int:
        return sum(r.skipped for r in self.corpora.values())

    @property
    def throttled(self) -> int:
        return sum(r.throttled for r in self.corpora.values())

    @property
    def ok(self) -> bool:
        """True when nothing failed and no corpus was aborted."""
        return self.failed == 0 and not any(r.aborted for r in self.corpora.values())


class IngestionPipeline:
    """
    Batch embedding of pending entities.

    Dependencies are injected so that tests can drive the pipeline with an
    in-memory store, a scripted embedder and a fake-clock rate limiter.
    """

    def __init__(
        self,
        store: EntityStore,
        embedder: EmbeddingService,
        rate_limiter: RateLimiter,
        batch_size: int | None = None,
        transient_retries: int | None = None,
        transient_retry_delay: float | None = None,
        sleep: Callable[[float], None] | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.store = store
        self.embedder = embedder
        self.rate_limiter = rate_limiter
        self.batch_size = batch_size or config.INGESTION_BATCH_SIZE
        self.transient_retries = (
            transient_retries if transient_retries is not None else config.INGESTION_TRANSIENT_RETRIES
        )
        self.transient_retry_delay = (
            transient_retry_delay if transient_retry_delay is not None else config.INGESTION_TRANSIENT_RETRY_DELAY
        )
        self._sleep_fn = sleep or time.sleep
        if cancel_event is not None and rate_limiter.cancel_event not in (None, cancel_event):
            raise ValueError("cancel_event differs from the rate limiter's cancel_event")
        self.cancel_event = cancel_event or rate_limiter.cancel_event or threading.Event()
        if rate_limiter.cancel_event is None:
            rate_limiter.cancel_event = self.cancel_event

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def cancel(self) -> None:
        """Ask the run to stop after the current entity."""
        self.cancel_event.set()

    def _raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise IngestionCancelled("Ingestion cancelled")

    def _pause(self, seconds: float) -> None:
        self._raise_if_cancelled()
        self._sleep_fn(seconds)
        self._raise_if_cancelled()

    def _log_checkpoint(self, report: CorpusReport) -> None:
        logger.info(
            "Checkpoint %s batch %s: embedded=%s failed=%s skipped=%s throttled=%s paused=%.1fs window=%s/%s",
            report.corpus.value,
            report.batches,
            report.embedded,
            report.failed,
            report.skipped,
            report.throttled,
            report.paused_seconds,
            self.rate_limiter.requests_in_window(),
            self.rate_limiter.max_requests,
        )

    # ------------------------------------------------------------------
    # Embedding with rate limiting
    # ------------------------------------------------------------------
    def _embed_once(self, text: str, report: CorpusReport) -> list[float]:
        """One logical embedding: repeats the same request while the provider throttles."""
        while True:
            report.paused_seconds += self.rate_limiter.wait_turn()
            try:
                vector = self.embedder.embed(text)
            except RateLimited as e:
                report.throttled += 1
                report.paused_seconds += self.rate_limiter.report_throttled(e.retry_after)
                continue
            self.rate_limiter.report_success()
            return vector

    def _embed_entity(self, entity: LegalEntity, text: str, report: CorpusReport) -> list[float] | None:
        try:
            return call_with_retry(
                self._embed_once,
                text,
                report,
                retries=self.transient_retries,
                initial_delay=self.transient_retry_delay,
                sleep=self._pause,
            )
        except TransientError as e:
            logger.error("Embedding failed for %s %s: %s", entity.corpus.value, entity.id, e)
            report.failed += 1
            report.failed_ids.append(entity.id)
            return None
        except AuthError as e:
            logger.error("Embedding provider rejected the credential, aborting ingestion: %s", e)
            raise

    def _process_batch(
        self,
        corpus: Corpus,
        batch: list[LegalEntity],
        report: CorpusReport,
        seen: dict[tuple[str, str], str],
    ) -> None:
        """Embed one batch. `seen` maps (scope, identifier) to the first entity id of the corpus run."""
        for entity in batch:
            self._raise_if_cancelled()

            try:
                text = build_enriched_text(entity)
                if entity.identifier:
                    key = (entity.scope, entity.identifier)
                    if key in seen:
                        raise MalformedEntityError(entity.id, f"identifier {entity.identifier!r} also used by {seen[key]}")
                    seen[key] = entity.id
            except MalformedEntityError as e:
                logger.warning("Skipping %s %s: %s", corpus.value, e.entity_id, e.reason)
                report.skipped += 1
                report.skipped_ids.append(entity.id)
                continue

            vector = self._embed_entity(entity, text, report)
            if vector is None:
                continue

            try:
                self.store.update_embedding(corpus, entity.id, vector)
            except (StoreUnavailable, ValueError) as e:
                logger.error("Could not store embedding for %s %s: %s", corpus.value, entity.id, e)
                report.failed += 1
                report.failed_ids.append(entity.id)
                continue

            report.embedded += 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run_corpus(self, corpus: Corpus, limit: int | None = None) -> CorpusReport:
        """
        Embed pending entities of one corpus.

        Args:
            corpus: Corpus to process
            limit: Maximum number of entities to look at (None = all pending)

        Returns:
            CorpusReport with per-outcome counts

        Raises:
            AuthError: the provider rejected the credential
        """
        report = CorpusReport(corpus=corpus)
        cursor: str | None = None
        seen_count = 0
        seen_identifiers: dict[tuple[str, str], str] = {}

        try:
            report.pending_at_start = self.store.count_pending(corpus)
        except StoreUnavailable as e:
            logger.warning("Could not count pending %s entities: %s", corpus.value, e)
        logger.info(
            "Ingestion started for %s: %s pending (batch size %s, limit %s)",
            corpus.value,
            "unknown" if report.pending_at_start is None else report.pending_at_start,
            self.batch_size,
            limit,
        )

        while True:
            if self.cancel_event.is_set():
                report.cancelled = True
                break

            page_size = self.batch_size if limit is None else min(self.batch_size, limit - seen_count)
            if page_size <= 0:
                break

            try:
                batch = self.store.fetch_pending(corpus, limit=page_size, after_id=cursor)
            except StoreUnavailable as e:
                logger.error("Store unavailable while selecting %s batch, aborting corpus: %s", corpus.value, e)
                report.aborted = True
                break

            if not batch:
                break

            cursor = batch[-1].id
            seen_count += len(batch)
            report.batches += 1

            try:
                self._process_batch(corpus, batch, report, seen_identifiers)
            except IngestionCancelled:
                report.cancelled = True
                self._log_checkpoint(report)
                break

            self._log_checkpoint(report)
            if len(batch) < page_size:
                break

        logger.info(
            "Ingestion finished for %s: embedded=%s failed=%s skipped=%s%s%s",
            corpus.value,
            report.embedded,
            report.failed,
            report.skipped,
            " (aborted)" if report.aborted else "",
            " (cancelled)" if report.cancelled else "",
        )
        return report

    def run(self, corpora: Iterable[Corpus] | None = None, limit: int | None = None) -> IngestionReport:
        """
        Embed pending entities of every requested corpus, in canonical corpus order.

        Raises:
            AuthError: the provider rejected the credential (the run stops immediately)
        """
        requested = set(corpora) if corpora is not None else set(Corpus)
        report = IngestionReport()

        for corpus in Corpus:
            if corpus not in requested:
                continue
            if self.cancel_event.is_set():
                report.cancelled = True
                break
            corpus_report = self.run_corpus(corpus, limit=limit)
            report.corpora[corpus] = corpus_report
            if corpus_report.cancelled:
                report.cancelled = True
                break

        logger.info(
            "Ingestion run complete: embedded=%s failed=%s skipped=%s throttled=%s",
            report.embedded,
            report.failed,
            report.skipped,
            report.throttled,
        )
        return report
