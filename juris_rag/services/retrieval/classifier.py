# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Query classifier: pulls explicit legal identifiers out of a free-text question.

    "Que dit l'article 1240 du Code civil ?"
        -> statute identifiers {"1240"}, statute scope "Code civil"
    "pourvoi n° 23-15.432"
        -> case-law identifiers {"23-15.432"}

Pure and side-effect free. The query text is always passed through unchanged
for semantic search; identifiers only add exact lookups on top.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from juris_rag.config.logging_config import setup_logger
from juris_rag.services.models import Corpus
from juris_rag.utils.legal_codes import detect_code, detect_codes, fold_accents

logger = setup_logger(__name__)

# Integer ranges ("articles 1240 à 1245") are expanded only when this short.
MAX_ARTICLE_RANGE_SPAN = 20
# Longest leading number accepted as an article number.
MAX_ARTICLE_DIGITS = 6

_HYPHENS_RE = re.compile(r"[‐‑‒–—−]")

# "article", "articles", "art", "art." (text is accent-folded and lowercased first)
_KEYWORD_RE = re.compile(r"\b(?:articles?|arts?)\b\.?\s*")

# "1240", "1240-1", "l. 1234-1", "r1234-5", "d.12"
_ARTICLE_TOKEN_RE = re.compile(r"(?:([lrd])\s*\.?\s*)?(\d+(?:\s?-\s?\d+)*)\b")

_LIST_SEP_RE = re.compile(r"\s*(?:,|;|\bet\b|\band\b|\bou\b|\bor\b)\s*")
_RANGE_SEP_RE = re.compile(r"\s*(?:\ba\b|\bau\b|\bto\b)\s*")

# Cour de cassation docket: "pourvoi n° 23-15.432", "n° 23-15432", "no 23 15 432"
_DOCKET_RE = re.compile(
    r"(?:\bpourvoi\s+(?:n\s*[°o]\s*\.?\s*)?|\bn\s*[°o]\s*\.?\s*)"
    r"(\d{2})\s?[-.\s]?\s?(\d{2})\s?[.\s]?\s?(\d{3})\b"
)


@dataclass(frozen=True)
class ClassifiedQuery:
    """Query text plus the identifiers found in it, per corpus."""

    text: str
    identifiers: dict[Corpus, frozenset[str]] = field(default_factory=dict)
    # statute article number -> code named for it (None: any code)
    article_scopes: dict[str, str | None] = field(default_factory=dict)

    def identifiers_for(self, corpus: Corpus) -> frozenset[str]:
        return self.identifiers.get(corpus, frozenset())

    @property
    def statute_scope(self) -> str | None:
        """The code named for the articles, when they all share exactly one."""
        codes = set(self.article_scopes.values())
        if len(codes) == 1:
            return next(iter(codes))
        return None

    @property
    def is_identifier_anchored(self) -> bool:
        return any(self.identifiers.values())


# ---------------------------------------------------------------------------
# Statute article numbers
# ---------------------------------------------------------------------------
def normalize_article_number(prefix: str | None, number: str) -> str | None:
    """
    Canonical form of an article number, or None when malformed.

    "l", "01234 - 1" -> "L1234-1"; zero and over-long numbers are rejected.
    """
    parts = [p.strip() for p in number.split("-") if p.strip()]
    if not parts or not all(p.isdigit() for p in parts):
        return None
    head = parts[0].lstrip("0")
    if not head or len(head) > MAX_ARTICLE_DIGITS:
        return None
    tail = [p.lstrip("0") or "0" for p in parts[1:]]
    body = "-".join([head, *tail])
    return f"{prefix.upper()}{body}" if prefix else body


def _expand_range(start: tuple[str | None, str], end: tuple[str | None, str]) -> list[str]:
    first = normalize_article_number(*start)
    last = normalize_article_number(*end)
    if first is None:
        return [last] if last else []
    if last is None:
        return [first]

    plain = start[0] is None and end[0] is None and first.isdigit() and last.isdigit()
    if plain:
        lo, hi = int(first), int(last)
        if hi < lo:
            return [first]
        if hi - lo <= MAX_ARTICLE_RANGE_SPAN:
            return [str(n) for n in range(lo, hi + 1)]
    return [first, last]


def _scan_article_sequence(text: str, pos: int) -> tuple[list[str], int]:
    """
    Parse "1240, 1241 et 1242" / "1240 à 1245" starting right after a keyword.

    Returns the numbers found and the position just past the last one.
    """
    found: list[str] = []
    token = _ARTICLE_TOKEN_RE.match(text, pos)
    if not token:
        return found, pos

    while token:
        current = (token.group(1), token.group(2))
        pos = token.end()

        range_sep = _RANGE_SEP_RE.match(text, pos)
        if range_sep:
            end_token = _ARTICLE_TOKEN_RE.match(text, range_sep.end())
            if end_token:
                found.extend(_expand_range(current, (end_token.group(1), end_token.group(2))))
                pos = end_token.end()
                list_sep = _LIST_SEP_RE.match(text, pos)
                token = _ARTICLE_TOKEN_RE.match(text, list_sep.end()) if list_sep else None
                continue

        normalized = normalize_article_number(*current)
        if normalized:
            found.append(normalized)

        list_sep = _LIST_SEP_RE.match(text, pos)
        token = _ARTICLE_TOKEN_RE.match(text, list_sep.end()) if list_sep else None

    return found, pos


def extract_article_mentions(text: str) -> dict[str, str | None]:
    """
    Normalized article numbers mapped to the code named for them.

    A code binds the article sequence it follows, up to the next article
    keyword: "article 1240 du Code civil et article 121-3 du Code pénal"
    gives {"1240": "Code civil", "121-3": "Code pénal"}. Numbers with no code
    after them take the query's only code when it names exactly one
    ("Code civil, article 1240"), else None. A number cited under two
    different codes, or with and without one, maps to None.
    """
    folded = _HYPHENS_RE.sub("-", fold_accents(text))
    keywords = list(_KEYWORD_RE.finditer(folded))
    named = detect_codes(folded)
    sole_code = named[0] if len(named) == 1 else None

    mentions: dict[str, str | None] = {}
    for i, keyword in enumerate(keywords):
        numbers, end = _scan_article_sequence(folded, keyword.end())
        if not numbers:
            continue
        limit = keywords[i + 1].start() if i + 1 < len(keywords) else len(folded)
        code = detect_code(folded[end:limit]) or sole_code
        for number in numbers:
            if number in mentions and mentions[number] != code:
                mentions[number] = None
            else:
                mentions[number] = code
    return mentions


def extract_article_numbers(text: str) -> set[str]:
    """All normalized article numbers following an article keyword."""
    return set(extract_article_mentions(text))


# ---------------------------------------------------------------------------
# Case-law docket numbers
# ---------------------------------------------------------------------------
def extract_docket_numbers(text: str) -> set[str]:
    """Cour de cassation docket numbers normalized to NN-NN.NNN."""
    folded = _HYPHENS_RE.sub("-", fold_accents(text))
    return {f"{a}-{b}.{c}" for a, b, c in _DOCKET_RE.findall(folded)}


def classify_query(query: str) -> ClassifiedQuery:
    """
    Extract identifiers per corpus from a free-text query.

    Never raises: on any extraction failure the query degrades to
    semantic-only (no identifiers).
    """
    text = query or ""
    try:
        identifiers: dict[Corpus, frozenset[str]] = {}
        articles = extract_article_mentions(text)
        if articles:
            identifiers[Corpus.STATUTE] = frozenset(articles)
        dockets = extract_docket_numbers(text)
        if dockets:
            identifiers[Corpus.CASE_LAW] = frozenset(dockets)
    except (re.error, ValueError, TypeError) as e:
        logger.debug("Identifier extraction failed, falling back to semantic only: %s", e)
        return ClassifiedQuery(text=text)

    if identifiers:
        logger.debug("Query identifiers: %s (scopes=%s)", {c.value: sorted(v) for c, v in identifiers.items()}, articles)
    return ClassifiedQuery(text=text, identifiers=identifiers, article_scopes=articles)
