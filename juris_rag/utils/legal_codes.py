# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
French code registry: display names, Légifrance text ids and the aliases
users type in questions ("C. civ.", "code penal", ...).
"""

import re
import unicodedata

LEGIFRANCE_CODE_URL = "https://www.legifrance.gouv.fr/codes/texte_lc/{text_id}"

DEFAULT_CODE = "Code civil"

# display name -> Légifrance LEGITEXT id
LEGAL_CODES: dict[str, str] = {
    "Code civil": "LEGITEXT000006070721",
    "Code pénal": "LEGITEXT000006070719",
    "Code de commerce": "LEGITEXT000005634379",
    "Code du travail": "LEGITEXT000006072050",
    "Code de procédure civile": "LEGITEXT000006070716",
    "Code de procédure pénale": "LEGITEXT000006071154",
}

# Longest aliases first so "code de procédure civile" never resolves to "code civil".
_CODE_ALIASES: tuple[tuple[str, str], ...] = (
    (r"\bcode\s+de\s+procedure\s+civile\b|\bc\.?\s*pr\.?\s*civ\b|\bcpc\b", "Code de procédure civile"),
    (r"\bcode\s+de\s+procedure\s+penale\b|\bc\.?\s*pr\.?\s*pen\b|\bcpp\b", "Code de procédure pénale"),
    (r"\bcode\s+de\s+commerce\b|\bc\.?\s*com\b", "Code de commerce"),
    (r"\bcode\s+du\s+travail\b|\bc\.?\s*trav\b", "Code du travail"),
    (r"\bcode\s+penal\b|\bc\.?\s*pen\b", "Code pénal"),
    (r"\bcode\s+civil\b|\bc\.?\s*civ\b", "Code civil"),
)

_COMPILED_ALIASES = tuple((re.compile(pattern), name) for pattern, name in _CODE_ALIASES)


def fold_accents(text: str) -> str:
    """Lowercase and strip diacritics ("Pénal" -> "penal")."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def build_legifrance_url(code: str) -> str:
    """Légifrance link for a code display name; unknown codes fall back to the Code civil."""
    text_id = LEGAL_CODES.get(code) or LEGAL_CODES[DEFAULT_CODE]
    return LEGIFRANCE_CODE_URL.format(text_id=text_id)


def detect_code(text: str) -> str | None:
    """Return the display name of the first code mentioned in *text*, if any."""
    if not text:
        return None
    folded = fold_accents(text)
    best: tuple[int, str] | None = None
    for pattern, name in _COMPILED_ALIASES:
        match = pattern.search(folded)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), name)
    return best[1] if best else None


def detect_codes(text: str) -> list[str]:
    """Display names of every code mentioned in *text*, in order of first mention."""
    if not text:
        return []
    folded = fold_accents(text)
    taken: list[tuple[int, int]] = []
    found: list[tuple[int, str]] = []
    # Longest aliases claim their span first; shorter ones may not overlap it.
    for pattern, name in _COMPILED_ALIASES:
        for match in pattern.finditer(folded):
            start, end = match.span()
            if any(start < t_end and t_start < end for t_start, t_end in taken):
                continue
            taken.append((start, end))
            found.append((start, name))
    names: list[str] = []
    for _, name in sorted(found):
        if name not in names:
            names.append(name)
    return names
