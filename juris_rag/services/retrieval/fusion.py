# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Score fusion: merges exact and semantic hits from every corpus into one
ranked, deduplicated source list.

Ranking key (deterministic):
    score desc -> exact before semantic -> corpus order -> natural identifier order -> id

Caps:
    per corpus  - all exact hits are kept, semantic hits fill up to max_results
    global      - exact hits and the best hit of every corpus are reserved
                  before the remaining slots are filled in rank order
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from juris_rag.config.logging_config import setup_logger
from juris_rag.services.models import Corpus, SearchConfig, SearchResult, identifier_sort_key

logger = setup_logger(__name__)


def rank_key(result: SearchResult) -> tuple:
    """Sort key implementing the documented tie-break order."""
    entity = result.entity
    return (
        -result.score,
        0 if result.is_exact else 1,
        entity.corpus.rank,
        identifier_sort_key(entity.identifier),
        entity.id,
    )


def _better(candidate: SearchResult, current: SearchResult) -> bool:
    if candidate.score != current.score:
        return candidate.score > current.score
    return candidate.is_exact and not current.is_exact


def dedupe(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Keep one result per entity: the higher score, exact on a tie."""
    best: dict[tuple[Corpus, str], SearchResult] = {}
    for result in results:
        ref = result.entity_ref
        current = best.get(ref)
        if current is None or _better(result, current):
            best[ref] = result
    return sorted(best.values(), key=rank_key)


def _cap_corpus(results: list[SearchResult], max_results: int) -> list[SearchResult]:
    """Exact hits always survive; semantic hits fill the remaining budget."""
    exact = [r for r in results if r.is_exact]
    semantic = [r for r in results if not r.is_exact]
    room = max(max_results - len(exact), 0)
    return sorted(exact + semantic[:room], key=rank_key)


def _apply_global_cap(ranked: list[SearchResult], cap: int) -> list[SearchResult]:
    if len(ranked) <= cap:
        return ranked

    reserved: list[SearchResult] = [r for r in ranked if r.is_exact]
    seen_corpora = {r.entity.corpus for r in reserved}
    corpus_bests: list[SearchResult] = []
    for result in ranked:
        corpus = result.entity.corpus
        if corpus not in seen_corpora:
            seen_corpora.add(corpus)
            corpus_bests.append(result)

    if len(reserved) + len(corpus_bests) >= cap:
        kept = (reserved + corpus_bests)[:cap]
        if len(reserved) > cap:
            logger.warning("%s exact matches exceed the global cap of %s; extra exact matches dropped", len(reserved), cap)
        return sorted(kept, key=rank_key)

    kept_refs = {r.entity_ref for r in reserved + corpus_bests}
    kept = reserved + corpus_bests
    for result in ranked:
        if len(kept) >= cap:
            break
        if result.entity_ref not in kept_refs:
            kept.append(result)
            kept_refs.add(result.entity_ref)
    return sorted(kept, key=rank_key)


def fuse(per_corpus: Mapping[Corpus, list[SearchResult]], config: SearchConfig) -> list[SearchResult]:
    """
    Merge per-corpus results into the final ranked source list.

    Args:
        per_corpus: Raw exact + semantic hits for each searched corpus
        config: Per-corpus and global result budgets

    Returns:
        Deduplicated results sorted by rank_key, at most max_total_results long
    """
    capped: list[SearchResult] = []
    for corpus in Corpus:
        results = per_corpus.get(corpus) or []
        if not results:
            continue
        corpus_config = config.for_corpus(corpus)
        capped.extend(_cap_corpus(dedupe(results), corpus_config.max_results))

    ranked = dedupe(capped)
    fused = _apply_global_cap(ranked, config.max_total_results)
    logger.debug("Fusion: %s candidates -> %s results", len(ranked), len(fused))
    return fused
