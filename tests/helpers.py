"""
Shared test helpers. Used across unit tests to avoid duplication.
"""

from juris_rag.services.models import (
    CaseLawDecision,
    Corpus,
    CorpusSearchConfig,
    EntitySummary,
    LegalEntity,
    MatchKind,
    MethodologyResource,
    SearchConfig,
    SearchResult,
    StatuteArticle,
)

TEST_DIMENSIONS = 4


def make_statute(entity_id: str, number: str = "1240", **overrides: object) -> StatuteArticle:
    """Create a minimal StatuteArticle (pending unless an embedding is given)."""
    defaults: dict[str, object] = {
        "id": entity_id,
        "identifier": number,
        "content": f"Texte de l'article {number}.",
        "scope": "Code civil",
    }
    defaults.update(overrides)
    return StatuteArticle(**defaults)


def make_decision(entity_id: str, docket: str = "23-15.432", **overrides: object) -> CaseLawDecision:
    defaults: dict[str, object] = {
        "id": entity_id,
        "identifier": docket,
        "content": "La Cour de cassation rejette le pourvoi.",
        "scope": "Cour de cassation",
        "date": "2024-03-12",
    }
    defaults.update(overrides)
    return CaseLawDecision(**defaults)


def make_methodology(entity_id: str, title: str = "Le commentaire d'arrêt", **overrides: object) -> MethodologyResource:
    defaults: dict[str, object] = {
        "id": entity_id,
        "identifier": title,
        "title": title,
        "content": "Introduction, problématique, plan en deux parties.",
        "scope": "commentaire",
        "category": "commentaire",
    }
    defaults.update(overrides)
    return MethodologyResource(**defaults)


def make_result(
    corpus: Corpus,
    entity_id: str,
    identifier: str = "",
    score: float = 0.5,
    kind: MatchKind = MatchKind.SEMANTIC,
) -> SearchResult:
    """Create a SearchResult without going through an entity."""
    return SearchResult(
        entity=EntitySummary(id=entity_id, corpus=corpus, identifier=identifier or entity_id),
        score=score,
        match_kind=kind,
    )


def make_search_config(
    statute: tuple[int, float] = (3, 0.75),
    case_law: tuple[int, float] = (8, 0.40),
    methodology: tuple[int, float] = (3, 0.60),
    max_total_results: int = 14,
) -> SearchConfig:
    """(max_results, threshold) per corpus; defaults mirror the shipped settings."""
    return SearchConfig(
        corpora={
            Corpus.STATUTE: CorpusSearchConfig(True, *statute),
            Corpus.CASE_LAW: CorpusSearchConfig(True, *case_law),
            Corpus.METHODOLOGY: CorpusSearchConfig(True, *methodology),
        },
        max_total_results=max_total_results,
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------
class FakeClock:
    """Monotonic clock advanced only by its own sleep()."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeEntityStore:
    """In-memory EntityStore with the same paging contract as SupabaseEntityStore."""

    def __init__(self, entities: list[LegalEntity] | None = None):
        self.entities: dict[Corpus, dict[str, LegalEntity]] = {c: {} for c in Corpus}
        for entity in entities or []:
            self.entities[entity.corpus][entity.id] = entity
        self.fetch_calls: list[tuple[Corpus, int, str | None]] = []
        self.updates: list[tuple[Corpus, str]] = []
        self.fetch_error: Exception | None = None
        self.update_errors: dict[str, Exception] = {}
        self.count_error: Exception | None = None

    def fetch_pending(self, corpus: Corpus, limit: int, after_id: str | None = None) -> list[LegalEntity]:
        self.fetch_calls.append((corpus, limit, after_id))
        if self.fetch_error is not None:
            raise self.fetch_error
        pending = sorted(
            (e for e in self.entities[corpus].values() if e.embedding is None and (after_id is None or e.id > after_id)),
            key=lambda e: e.id,
        )
        return pending[:limit]

    def update_embedding(self, corpus: Corpus, entity_id: str, embedding: list[float]) -> None:
        if entity_id in self.update_errors:
            raise self.update_errors[entity_id]
        self.entities[corpus][entity_id].embedding = list(embedding)
        self.updates.append((corpus, entity_id))

    def count_pending(self, corpus: Corpus) -> int:
        if self.count_error is not None:
            raise self.count_error
        return sum(1 for e in self.entities[corpus].values() if e.embedding is None)


class ScriptedEmbedder:
    """
    EmbeddingService whose outcomes are scripted per call.

    `outcomes` is consumed in call order: an Exception instance is raised,
    anything else means success. Once exhausted every call succeeds.
    """

    def __init__(self, outcomes: list | None = None, dimensions: int = TEST_DIMENSIONS, on_call=None):
        self.outcomes = list(outcomes or [])
        self.dimensions = dimensions
        self.on_call = on_call
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.on_call is not None:
            self.on_call(len(self.calls))
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
        return [0.1] * self.dimensions

    def embed_query(self, query_text: str) -> list[float]:
        return self.embed(query_text)
