# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Unit tests for the French code registry.
"""

import pytest

from juris_rag.utils.legal_codes import LEGAL_CODES, build_legifrance_url, detect_code, detect_codes, fold_accents


class TestBuildLegifranceUrl:
    def test_code_civil(self) -> None:
        assert build_legifrance_url("Code civil") == (
            "https://www.legifrance.gouv.fr/codes/texte_lc/LEGITEXT000006070721"
        )

    def test_code_du_travail(self) -> None:
        assert build_legifrance_url("Code du travail").endswith("LEGITEXT000006072050")

    def test_unknown_code_falls_back_to_code_civil(self) -> None:
        assert build_legifrance_url("Code minier") == build_legifrance_url("Code civil")

    def test_every_registered_code_has_a_url(self) -> None:
        for name, text_id in LEGAL_CODES.items():
            assert build_legifrance_url(name).endswith(text_id)


class TestDetectCode:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("article 1240 du Code civil", "Code civil"),
            ("art. 1240 C. civ.", "Code civil"),
            ("article 121-3 du Code pénal", "Code pénal"),
            ("article 121-3 du code penal", "Code pénal"),
            ("article L. 1234-1 du Code du travail", "Code du travail"),
            ("article L. 110-1 du Code de commerce", "Code de commerce"),
            ("article 455 du Code de procédure civile", "Code de procédure civile"),
            ("article 593 du Code de procédure pénale", "Code de procédure pénale"),
        ],
    )
    def test_known_codes(self, text: str, expected: str) -> None:
        assert detect_code(text) == expected

    def test_no_code(self) -> None:
        assert detect_code("responsabilité du fait des choses") is None

    def test_empty(self) -> None:
        assert detect_code("") is None

    def test_abbreviation_does_not_match_inside_words(self) -> None:
        assert detect_code("le contrat est accompli") is None

    def test_first_mention_wins(self) -> None:
        assert detect_code("Code pénal puis Code civil") == "Code pénal"


def test_fold_accents() -> None:
    assert fold_accents("Procédure PÉNALE") == "procedure penale"


class TestDetectCodes:
    def test_every_code_in_order(self) -> None:
        text = "article 1240 du Code civil et article 121-3 du Code pénal"
        assert detect_codes(text) == ["Code civil", "Code pénal"]

    def test_repeated_code_listed_once(self) -> None:
        assert detect_codes("C. civ. art. 1240 et Code civil art. 1241") == ["Code civil"]

    def test_procedure_code_does_not_also_count_as_base_code(self) -> None:
        assert detect_codes("article 455 du Code de procédure civile") == ["Code de procédure civile"]

    def test_none(self) -> None:
        assert detect_codes("bail commercial") == []
        assert detect_codes("") == []
