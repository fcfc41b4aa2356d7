"""
Text canonicalization and misspelling correction.

Every lookup in the engine (catalog search, shipping zones, keyword signals)
compares text in the same canonical form: lowercase, no accents except the
letter ñ, no symbols, single spaces.
"""

import re
import unicodedata

_COMBINING_TILDE = "\u0303"
_NON_ALNUM = re.compile(r"[^a-z0-9ñ\s]")
_WHITESPACE = re.compile(r"\s+")

# Brand names customers misspell most often in chat.
COMMON_CORRECTIONS: dict[str, str] = {
    "dogumet": "dogurmet",
    "doguermet": "dogurmet",
    "dogurme": "dogurmet",
    "dogumer": "dogurmet",
    "churru": "churu",
    "churuu": "churu",
    "churruu": "churu",
    "hilz": "hills",
    "hilss": "hills",
    "hillls": "hills",
}

_CORRECTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b" + re.escape(wrong) + r"\b"), right)
    for wrong, right in COMMON_CORRECTIONS.items()
]


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    kept: list[str] = []
    for char in decomposed:
        if unicodedata.combining(char):
            if char == _COMBINING_TILDE and kept and kept[-1] == "n":
                kept.append(char)
            continue
        kept.append(char)
    return unicodedata.normalize("NFC", "".join(kept))


def normalize_text(raw: object) -> str:
    """Canonicalize free text for matching.

    Examples:
        >>> normalize_text("  Churú ATÚN!! ")
        'churu atun'
        >>> normalize_text("Piñata  para Ñoño")
        'piñata para ñoño'
    """
    if raw is None:
        return ""
    text = _strip_accents(str(raw).lower())
    text = _NON_ALNUM.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def apply_corrections(normalized: str) -> str:
    """Rewrite known misspellings, only where they stand as whole words."""
    fixed = normalized
    for pattern, right in _CORRECTION_PATTERNS:
        fixed = pattern.sub(right, fixed)
    return fixed


def normalize_query(raw: object) -> str:
    """Normalize then correct: the form used for catalog queries."""
    return apply_corrections(normalize_text(raw))
