# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Unit tests for scripts/generate_missing_embeddings.py: argument handling and
exit codes. Store, embedder and limiter are swapped for in-memory fakes.
"""

from unittest.mock import patch

import pytest

from juris_rag.services.errors import AuthError
from juris_rag.services.models import Corpus
from juris_rag.utils.rate_limiter import RateLimiter
from scripts import generate_missing_embeddings as script
from tests.helpers import FakeClock, FakeEntityStore, ScriptedEmbedder, make_decision, make_statute


def _run(store: FakeEntityStore, embedder: ScriptedEmbedder, argv: list[str]) -> int:
    clock = FakeClock()

    def _limiter(cancel_event=None, **_):
        return RateLimiter(min_delay=0.5, clock=clock, sleep=clock.sleep, cancel_event=cancel_event)

    with (
        patch.object(script, "SupabaseEntityStore", return_value=store),
        patch.object(script, "EmbeddingClient", return_value=embedder),
        patch.object(script.RateLimiter, "from_settings", side_effect=_limiter),
        patch.object(script.signal, "signal"),
    ):
        return script.main(argv)


class TestMain:
    def test_embeds_all_corpora_and_exits_zero(self) -> None:
        store = FakeEntityStore([make_statute("s1"), make_decision("c1")])

        assert _run(store, ScriptedEmbedder(), []) == 0
        assert store.count_pending(Corpus.STATUTE) == 0
        assert store.count_pending(Corpus.CASE_LAW) == 0

    def test_corpus_option_restricts_run(self) -> None:
        store = FakeEntityStore([make_statute("s1"), make_decision("c1")])

        _run(store, ScriptedEmbedder(), ["--corpus", "case_law"])

        assert store.count_pending(Corpus.STATUTE) == 1
        assert store.count_pending(Corpus.CASE_LAW) == 0

    def test_limit_option(self) -> None:
        store = FakeEntityStore([make_statute(f"s{i}", str(i)) for i in range(1, 6)])

        _run(store, ScriptedEmbedder(), ["--limit", "2", "--batch-size", "10"])

        assert store.count_pending(Corpus.STATUTE) == 3

    def test_auth_error_exits_one(self) -> None:
        store = FakeEntityStore([make_statute("s1")])

        assert _run(store, ScriptedEmbedder([AuthError("401")]), []) == 1

    def test_failed_entity_exits_one(self) -> None:
        store = FakeEntityStore([make_statute("s1")])
        store.update_errors["s1"] = ValueError("wrong length")

        assert _run(store, ScriptedEmbedder(), []) == 1

    def test_unknown_corpus_rejected(self) -> None:
        with pytest.raises(SystemExit):
            script._parse_args(["--corpus", "doctrine"])
