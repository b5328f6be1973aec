# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Unit tests for the query classifier: article numbers (single, lists, ranges,
prefixed), docket numbers, code scope detection and graceful degradation.

All tests are pure logic, with no network calls or database.
"""

from unittest.mock import patch

from juris_rag.services.models import Corpus
from juris_rag.services.retrieval.classifier import (
    MAX_ARTICLE_RANGE_SPAN,
    classify_query,
    extract_article_numbers,
    extract_docket_numbers,
    normalize_article_number,
)


# ---------------------------------------------------------------------------
# Article numbers
# ---------------------------------------------------------------------------
class TestArticleExtraction:
    """Article keyword followed by one or more numbers."""

    def test_single_article(self) -> None:
        assert extract_article_numbers("Que dit l'article 1240 du Code civil ?") == {"1240"}

    def test_abbreviated_keyword(self) -> None:
        assert extract_article_numbers("voir art. 1103") == {"1103"}
        assert extract_article_numbers("voir art 1103") == {"1103"}

    def test_hyphenated_number(self) -> None:
        assert extract_article_numbers("article 1240-1") == {"1240-1"}

    def test_unicode_hyphen_folded(self) -> None:
        assert extract_article_numbers("article 1240‑1") == {"1240-1"}

    def test_prefixed_labour_code_number(self) -> None:
        assert extract_article_numbers("l'article L. 1234-1 du code du travail") == {"L1234-1"}

    def test_prefix_without_dot_or_space(self) -> None:
        assert extract_article_numbers("article R1234-5") == {"R1234-5"}
        assert extract_article_numbers("art. D.12") == {"D12"}

    def test_list_with_commas_and_et(self) -> None:
        assert extract_article_numbers("articles 1240, 1241 et 1242") == {"1240", "1241", "1242"}

    def test_small_range_is_expanded(self) -> None:
        assert extract_article_numbers("articles 1240 à 1242") == {"1240", "1241", "1242"}

    def test_range_with_au(self) -> None:
        assert extract_article_numbers("des articles 6 au 9") == {"6", "7", "8", "9"}

    def test_wide_range_keeps_endpoints_only(self) -> None:
        end = 1 + MAX_ARTICLE_RANGE_SPAN + 1
        assert extract_article_numbers(f"articles 1 à {end}") == {"1", str(end)}

    def test_several_keywords_in_one_query(self) -> None:
        query = "Comparer l'article 1240 et l'article 1241 du Code civil"
        assert extract_article_numbers(query) == {"1240", "1241"}

    def test_number_without_keyword_is_ignored(self) -> None:
        assert extract_article_numbers("En 1804, le Code civil a été promulgué") == set()

    def test_keyword_inside_other_word_is_ignored(self) -> None:
        assert extract_article_numbers("un artisan 12 heures par jour") == set()

    def test_article_followed_by_words_only(self) -> None:
        assert extract_article_numbers("l'article de loi sur la responsabilité") == set()


class TestNormalizeArticleNumber:
    """Canonical forms and malformed tokens."""

    def test_leading_zeros_stripped(self) -> None:
        assert normalize_article_number(None, "01240") == "1240"

    def test_prefix_uppercased(self) -> None:
        assert normalize_article_number("l", "1234-1") == "L1234-1"

    def test_zero_is_malformed(self) -> None:
        assert normalize_article_number(None, "0") is None
        assert normalize_article_number(None, "000") is None

    def test_too_many_digits_is_malformed(self) -> None:
        assert normalize_article_number(None, "1234567") is None

    def test_malformed_tokens_dropped_silently(self) -> None:
        assert extract_article_numbers("article 0 et article 1234567") == set()


# ---------------------------------------------------------------------------
# Docket numbers
# ---------------------------------------------------------------------------
class TestDocketExtraction:
    """Cour de cassation docket numbers, normalized to NN-NN.NNN."""

    def test_canonical_form(self) -> None:
        assert extract_docket_numbers("pourvoi n° 23-15.432") == {"23-15.432"}

    def test_without_dot(self) -> None:
        assert extract_docket_numbers("arrêt n° 23-15432") == {"23-15.432"}

    def test_spaces_and_no(self) -> None:
        assert extract_docket_numbers("no 23 15 432") == {"23-15.432"}

    def test_pourvoi_without_marker(self) -> None:
        assert extract_docket_numbers("le pourvoi 21-10.001 a été rejeté") == {"21-10.001"}

    def test_plain_numbers_ignored(self) -> None:
        assert extract_docket_numbers("article 1240 du Code civil") == set()


# ---------------------------------------------------------------------------
# classify_query
# ---------------------------------------------------------------------------
class TestClassifyQuery:
    """End-to-end classification output."""

    def test_article_query_is_anchored_with_scope(self) -> None:
        classified = classify_query("Que dit l'article 1240 du Code civil ?")
        assert classified.identifiers_for(Corpus.STATUTE) == frozenset({"1240"})
        assert classified.statute_scope == "Code civil"
        assert classified.is_identifier_anchored is True

    def test_text_passed_through_unchanged(self) -> None:
        query = "Que dit l'article 1240 du Code civil ?"
        assert classify_query(query).text == query

    def test_semantic_only_query(self) -> None:
        classified = classify_query("Quelles sont les conditions de la responsabilité du fait des choses ?")
        assert classified.identifiers == {}
        assert classified.is_identifier_anchored is False
        assert classified.statute_scope is None

    def test_docket_query_targets_case_law(self) -> None:
        classified = classify_query("Que décide l'arrêt n° 23-15.432 ?")
        assert classified.identifiers_for(Corpus.CASE_LAW) == frozenset({"23-15.432"})
        assert classified.identifiers_for(Corpus.STATUTE) == frozenset()

    def test_methodology_never_gets_identifiers(self) -> None:
        classified = classify_query("méthodologie du commentaire de l'article 1240")
        assert classified.identifiers_for(Corpus.METHODOLOGY) == frozenset()

    def test_scope_for_other_codes(self) -> None:
        assert classify_query("article 121-3 du code pénal").statute_scope == "Code pénal"
        assert classify_query("article 455 du code de procédure civile").statute_scope == "Code de procédure civile"

    def test_each_article_bound_to_its_own_code(self) -> None:
        classified = classify_query("article 1240 du Code civil et article 121-3 du Code pénal")
        assert classified.identifiers_for(Corpus.STATUTE) == frozenset({"1240", "121-3"})
        assert classified.article_scopes == {"1240": "Code civil", "121-3": "Code pénal"}
        assert classified.statute_scope is None

    def test_code_named_before_the_article(self) -> None:
        assert classify_query("Code civil, article 1240").article_scopes == {"1240": "Code civil"}

    def test_list_shares_the_trailing_code(self) -> None:
        classified = classify_query("articles 1240 et 1241 du Code civil")
        assert classified.article_scopes == {"1240": "Code civil", "1241": "Code civil"}
        assert classified.statute_scope == "Code civil"

    def test_unscoped_article_among_two_codes(self) -> None:
        scopes = classify_query("article 1240, puis article 121-3 du Code pénal et le Code civil").article_scopes
        assert scopes["121-3"] == "Code pénal"
        assert scopes["1240"] is None

    def test_same_number_in_two_codes_is_unscoped(self) -> None:
        scopes = classify_query("article 12 du Code civil et article 12 du Code pénal").article_scopes
        assert scopes == {"12": None}

    def test_empty_query(self) -> None:
        classified = classify_query("")
        assert classified.text == ""
        assert classified.is_identifier_anchored is False

    def test_extraction_failure_degrades_to_semantic(self) -> None:
        with patch(
            "juris_rag.services.retrieval.classifier.extract_article_mentions",
            side_effect=ValueError("boom"),
        ):
            classified = classify_query("article 1240")
        assert classified.text == "article 1240"
        assert classified.identifiers == {}
