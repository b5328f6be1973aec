# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Run a multi-corpus search and print the ranked sources.

Run from project root:
    python3 scripts/search_sources.py "Que dit l'article 1240 du Code civil ?"
    python3 scripts/search_sources.py "responsabilité du fait des choses" --max-total 6
"""

import argparse
import asyncio
import dataclasses
import os
import sys
from pathlib import Path

_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

os.environ.setdefault("LOG_FORMAT", "text")

from juris_rag.config.logging_config import setup_logger
from juris_rag.config.settings import validate_env_for_app
from juris_rag.services.models import SearchConfig
from juris_rag.services.retrieval.search import MultiCorpusSearch

logger = setup_logger(__name__)


async def _search(query: str, max_total: int | None) -> int:
    search_config = SearchConfig.from_settings()
    if max_total is not None:
        search_config = dataclasses.replace(search_config, max_total_results=max_total)

    results = await MultiCorpusSearch(search_config=search_config).search(query)
    if not results:
        logger.info("No sources found")
        return 0

    for rank, result in enumerate(results, 1):
        entity = result.entity
        logger.info(
            "%2d. [%s] %s %s (%s %.3f) %s",
            rank,
            entity.corpus.value,
            entity.identifier,
            entity.scope or "",
            result.match_kind.value,
            result.score,
            entity.url,
        )
        if entity.title:
            logger.info("    %s", entity.title)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search statutes, case law and methodology resources.")
    parser.add_argument("query", help="Question or keywords")
    parser.add_argument("--max-total", type=int, default=None, help="Override MAX_TOTAL_RESULTS")
    args = parser.parse_args(argv)

    validate_env_for_app(require_embeddings=False)
    return asyncio.run(_search(args.query, args.max_total))


if __name__ == "__main__":
    sys.exit(main())
