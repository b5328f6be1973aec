# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Legal Corpus Domain Models

Pure data structures shared by retrieval and ingestion: the closed set of
corpora, the entities stored in each one, search results and the typed
per-corpus search configuration.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from juris_rag.utils.legal_codes import build_legifrance_url


class Corpus(str, Enum):
    """The three entity collections. Member order is the canonical corpus order."""

    STATUTE = "statute"
    CASE_LAW = "case_law"
    METHODOLOGY = "methodology"

    @property
    def rank(self) -> int:
        return _CORPUS_ORDER[self]


_CORPUS_ORDER: dict[Corpus, int] = {c: i for i, c in enumerate(Corpus)}


class MatchKind(str, Enum):
    EXACT = "exact"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class CorpusSchema:
    """Where a corpus lives in the store and how it is queried."""

    table: str
    identifier_column: str
    select_columns: str
    similarity_rpc: str


CORPUS_SCHEMAS: dict[Corpus, CorpusSchema] = {
    Corpus.STATUTE: CorpusSchema(
        table="legal_articles",
        identifier_column="article_number",
        select_columns="id, article_number, title, content, section_path, legifrance_url, legal_codes(display_name)",
        similarity_rpc="search_similar_articles",
    ),
    Corpus.CASE_LAW: CorpusSchema(
        table="case_law",
        identifier_column="decision_number",
        select_columns="id, decision_number, title, decision_date, summary, full_text, url, jurisdictions(name)",
        similarity_rpc="search_similar_case_law",
    ),
    Corpus.METHODOLOGY: CorpusSchema(
        table="methodology_resources",
        identifier_column="title",
        select_columns="id, title, type, category, subcategory, content, keywords, level",
        similarity_rpc="search_similar_methodologies",
    ),
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dataclass
class LegalEntity:
    """A unit of legal text with an optional embedding (None = pending ingestion)."""

    corpus: ClassVar[Corpus]

    id: str
    identifier: str
    content: str
    scope: str = ""  # code, jurisdiction or category the identifier is unique within
    title: str | None = None
    category: str | None = None
    date: str | None = None
    url: str = ""
    embedding: list[float] | None = None

    @property
    def is_pending(self) -> bool:
        return self.embedding is None

    @property
    def scoped_key(self) -> tuple[str, str, str]:
        return (self.corpus.value, self.scope, self.identifier)


@dataclass
class StatuteArticle(LegalEntity):
    corpus: ClassVar[Corpus] = Corpus.STATUTE

    section_path: str | None = None

    @property
    def code(self) -> str:
        return self.scope


@dataclass
class CaseLawDecision(LegalEntity):
    corpus: ClassVar[Corpus] = Corpus.CASE_LAW

    summary: str | None = None

    @property
    def jurisdiction(self) -> str:
        return self.scope


@dataclass
class MethodologyResource(LegalEntity):
    corpus: ClassVar[Corpus] = Corpus.METHODOLOGY

    resource_type: str | None = None
    subcategory: str | None = None
    keywords: list[str] = field(default_factory=list)
    level: str | None = None


ENTITY_TYPES: dict[Corpus, type[LegalEntity]] = {
    Corpus.STATUTE: StatuteArticle,
    Corpus.CASE_LAW: CaseLawDecision,
    Corpus.METHODOLOGY: MethodologyResource,
}


def parse_embedding(value: Any) -> list[float] | None:
    """pgvector columns come back either as a list or as the text form "[0.1,0.2,...]"."""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    return [float(v) for v in value]


def _nested(row: dict, relation: str, column: str) -> str:
    related = row.get(relation)
    if isinstance(related, list):
        related = related[0] if related else None
    if isinstance(related, dict):
        return related.get(column) or ""
    return ""


def entity_from_row(corpus: Corpus, row: dict) -> LegalEntity:
    """Build the concrete entity for *corpus* from a store row."""
    embedding = parse_embedding(row.get("embedding"))

    if corpus is Corpus.STATUTE:
        code = _nested(row, "legal_codes", "display_name") or row.get("code") or ""
        return StatuteArticle(
            id=str(row["id"]),
            identifier=str(row.get("article_number") or ""),
            content=row.get("content") or "",
            scope=code,
            title=row.get("title"),
            category=row.get("category"),
            url=row.get("legifrance_url") or (build_legifrance_url(code) if code else ""),
            embedding=embedding,
            section_path=row.get("section_path"),
        )

    if corpus is Corpus.CASE_LAW:
        return CaseLawDecision(
            id=str(row["id"]),
            identifier=str(row.get("decision_number") or ""),
            content=row.get("full_text") or row.get("summary") or "",
            scope=_nested(row, "jurisdictions", "name") or row.get("jurisdiction") or "",
            title=row.get("title"),
            category=row.get("category"),
            date=row.get("decision_date"),
            url=row.get("url") or "",
            embedding=embedding,
            summary=row.get("summary"),
        )

    return MethodologyResource(
        id=str(row["id"]),
        identifier=str(row.get("title") or ""),
        content=row.get("content") or "",
        scope=row.get("category") or "",
        title=row.get("title"),
        category=row.get("category"),
        embedding=embedding,
        resource_type=row.get("type"),
        subcategory=row.get("subcategory"),
        keywords=list(row.get("keywords") or []),
        level=row.get("level"),
    )


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class EntitySummary:
    """What the answer generator receives for one source."""

    id: str
    corpus: Corpus
    identifier: str
    scope: str = ""
    title: str | None = None
    category: str | None = None
    date: str | None = None
    content: str = ""
    url: str = ""

    @classmethod
    def from_entity(cls, entity: LegalEntity) -> EntitySummary:
        return cls(
            id=entity.id,
            corpus=entity.corpus,
            identifier=entity.identifier,
            scope=entity.scope,
            title=entity.title,
            category=entity.category,
            date=entity.date,
            content=entity.content,
            url=entity.url,
        )


@dataclass(frozen=True)
class SearchResult:
    entity: EntitySummary
    score: float
    match_kind: MatchKind

    @property
    def entity_ref(self) -> tuple[Corpus, str]:
        return (self.entity.corpus, self.entity.id)

    @property
    def is_exact(self) -> bool:
        return self.match_kind is MatchKind.EXACT


_NATURAL_SPLIT_RE = re.compile(r"(\d+)")


def identifier_sort_key(identifier: str) -> tuple:
    """Natural ordering for identifiers: "2" < "10" < "1240" < "1240-1" < "L1234"."""
    parts = []
    for token in _NATURAL_SPLIT_RE.split(identifier or ""):
        if not token:
            continue
        if token.isdigit():
            parts.append((0, int(token), ""))
        else:
            parts.append((1, 0, token.lower()))
    return tuple(parts)


# ---------------------------------------------------------------------------
# Search configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CorpusSearchConfig:
    enabled: bool = True
    max_results: int = 5
    similarity_threshold: float = 0.5


@dataclass(frozen=True)
class SearchConfig:
    corpora: dict[Corpus, CorpusSearchConfig]
    max_total_results: int = 14

    def for_corpus(self, corpus: Corpus) -> CorpusSearchConfig:
        return self.corpora.get(corpus, CorpusSearchConfig(enabled=False))

    @property
    def enabled_corpora(self) -> list[Corpus]:
        return [c for c in Corpus if self.for_corpus(c).enabled]

    @classmethod
    def from_settings(cls, settings: Any = None) -> SearchConfig:
        """Build the search budgets from environment settings."""
        if settings is None:
            from juris_rag.config.settings import config as settings

        return cls(
            corpora={
                Corpus.STATUTE: CorpusSearchConfig(
                    enabled=settings.STATUTE_SEARCH_ENABLED,
                    max_results=settings.STATUTE_MAX_RESULTS,
                    similarity_threshold=settings.STATUTE_SIMILARITY_THRESHOLD,
                ),
                Corpus.CASE_LAW: CorpusSearchConfig(
                    enabled=settings.CASE_LAW_SEARCH_ENABLED,
                    max_results=settings.CASE_LAW_MAX_RESULTS,
                    similarity_threshold=settings.CASE_LAW_SIMILARITY_THRESHOLD,
                ),
                Corpus.METHODOLOGY: CorpusSearchConfig(
                    enabled=settings.METHODOLOGY_SEARCH_ENABLED,
                    max_results=settings.METHODOLOGY_MAX_RESULTS,
                    similarity_threshold=settings.METHODOLOGY_SIMILARITY_THRESHOLD,
                ),
            },
            max_total_results=settings.MAX_TOTAL_RESULTS,
        )
