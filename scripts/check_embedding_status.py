# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Show embedding coverage per corpus (total, embedded, pending).

Run from project root: python3 scripts/check_embedding_status.py [--corpus statute]
Uses SUPABASE_URL and SUPABASE_KEY from .env.
"""

import argparse
import os
import sys
from pathlib import Path

_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

os.environ.setdefault("LOG_FORMAT", "text")

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import validate_env_for_app
from juris_rag.services.errors import StoreUnavailable
from juris_rag.services.models import Corpus
from juris_rag.services.storage.entity_store import SupabaseEntityStore

logger = setup_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Embedding coverage per corpus.")
    parser.add_argument("--corpus", choices=[c.value for c in Corpus], action="append", default=None)
    args = parser.parse_args(argv)

    validate_env_for_app(require_embeddings=False)
    corpora = [Corpus(value) for value in args.corpus] if args.corpus else list(Corpus)

    try:
        stats = SupabaseEntityStore().coverage_stats(corpora)
    except StoreUnavailable as e:
        logger.error("Could not read coverage: %s", e)
        return 1

    logger.info("%-12s %8s %8s %8s %7s", "corpus", "total", "embedded", "pending", "cover")
    for corpus, s in stats.items():
        logger.info("%-12s %8s %8s %8s %6.1f%%", corpus.value, s.total, s.embedded, s.pending, s.coverage)
    return 0


if __name__ == "__main__":
    sys.exit(main())
