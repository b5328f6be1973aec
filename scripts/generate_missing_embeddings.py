# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Generate embeddings for every entity that does not have one yet.

Run from project root:
    python3 scripts/generate_missing_embeddings.py
    python3 scripts/generate_missing_embeddings.py --corpus statute --limit 200
    python3 scripts/generate_missing_embeddings.py --corpus case_law --batch-size 25

Safe to interrupt (Ctrl+C stops after the current entity) and to re-run:
only entities whose embedding is still NULL are selected.
Uses SUPABASE_URL, SUPABASE_KEY and EMBEDDING_API_KEY (or MISTRAL_API_KEY) from .env.
"""

import argparse
import os
import signal
import sys
import threading
from pathlib import Path

# scripts/generate_missing_embeddings.py -> project root = 2 levels up
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

os.environ.setdefault("LOG_FORMAT", "text")

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import config, validate_env_for_app
from juris_rag.services.common.embedder import EmbeddingClient
from juris_rag.services.errors import AuthError
from juris_rag.services.ingestion.pipeline import IngestionPipeline, IngestionReport
from juris_rag.services.models import Corpus
from juris_rag.services.storage.entity_store import SupabaseEntityStore
from juris_rag.utils.rate_limiter import RateLimiter

logger = setup_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Embed pending statutes, decisions and methodology resources.")
    parser.add_argument(
        "--corpus",
        choices=[c.value for c in Corpus],
        action="append",
        default=None,
        help="Corpus to process (repeatable). Default: all, in order statute, case_law, methodology.",
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum entities to process per corpus.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=config.INGESTION_BATCH_SIZE,
        help=f"Entities selected per batch (default {config.INGESTION_BATCH_SIZE}).",
    )
    return parser.parse_args(argv)


def _log_report(report: IngestionReport) -> None:
    logger.info("=" * 60)
    for corpus, corpus_report in report.corpora.items():
        status = "aborted" if corpus_report.aborted else "cancelled" if corpus_report.cancelled else "done"
        logger.info(
            "%-12s %-9s embedded=%s failed=%s skipped=%s throttled=%s paused=%.0fs",
            corpus.value,
            status,
            corpus_report.embedded,
            corpus_report.failed,
            corpus_report.skipped,
            corpus_report.throttled,
            corpus_report.paused_seconds,
        )
        if corpus_report.failed_ids:
            logger.info("  failed ids: %s", ", ".join(corpus_report.failed_ids[:20]))
    logger.info("Total: embedded=%s failed=%s skipped=%s", report.embedded, report.failed, report.skipped)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    validate_env_for_app(require_embeddings=True)

    cancel_event = threading.Event()

    def _on_sigint(signum, frame):
        logger.warning("Interrupt received, stopping after the current entity (Ctrl+C again to force)")
        cancel_event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _on_sigint)

    corpora = [Corpus(value) for value in args.corpus] if args.corpus else None
    pipeline = IngestionPipeline(
        store=SupabaseEntityStore(),
        embedder=EmbeddingClient(),
        rate_limiter=RateLimiter.from_settings(cancel_event=cancel_event),
        batch_size=args.batch_size,
        cancel_event=cancel_event,
    )

    try:
        report = pipeline.run(corpora=corpora, limit=args.limit)
    except AuthError as e:
        logger.error("Aborted: %s", e)
        return 1

    _log_report(report)
    if report.cancelled:
        logger.info("Run cancelled; re-run the script to continue where it stopped.")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
