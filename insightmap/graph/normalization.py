"""
Entity name normalization for embedding-free duplicate detection.

Produces a merge key from a display name: case and accents folded,
French/English articles removed, and each word lightly stemmed so that
"Les transcriptions post-it" and "transcription post-it" share a key.

The stemmer is deliberately conservative: it only strips a handful of
plural/nominalization suffixes and never touches words of four letters
or fewer ("sous", "plus", "tous").
"""

from __future__ import annotations

import re
import unicodedata

# Leading French articles (longest alternatives are tried in order)
_LEADING_FRENCH_ARTICLES = re.compile(
    r"^(l'|la |le |les |un |une |des |du |de la |de l')", re.IGNORECASE
)

# Partitive contractions inside a name ("gestion des tickets")
_PARTITIVES = re.compile(r" (de la |de l'|du |des |d')")

_LEADING_ENGLISH_ARTICLES = re.compile(r"^(the |a |an )", re.IGNORECASE)

_WHITESPACE = re.compile(r"\s+")

_TOKEN_SEPARATORS = re.compile(r"[\s-]+")

# Suffixes stripped in sequence; the more specific forms come first
_STEM_SUFFIXES = ("tions", "tion", "ments", "ment", "s")

# Words at or below this length are never stemmed
MIN_STEM_LENGTH = 4


def strip_accents(text: str) -> str:
    """
    Remove diacritics using canonical decomposition.

    Examples:
        >>> strip_accents("développement")
        'developpement'
    """
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def stem_word(word: str) -> str:
    """
    Apply light French/English suffix stripping to a single word.

    Each suffix rule is applied once, in order, to the result of the
    previous rule.

    Examples:
        >>> stem_word("transcriptions")
        'transcrip'
        >>> stem_word("utilisateurs")
        'utilisateur'
        >>> stem_word("sous")
        'sous'
    """
    if len(word) <= MIN_STEM_LENGTH:
        return word

    for suffix in _STEM_SUFFIXES:
        if word.endswith(suffix):
            word = word[: -len(suffix)]
    return word


def normalize_entity_name(name: str) -> str:
    """
    Normalize an entity name into a lexical merge key.

    Steps:
    1. Lower-case, trim, strip accents
    2. Drop leading articles and mid-string partitives
    3. Collapse whitespace
    4. Split on whitespace/hyphens and stem each word
    5. Fall back to the accent-stripped original if nothing remains

    The key is not a fixed point in general: stemming a stemmed word can
    strip it again ("process" -> "proces" -> "proce"). Keys are only ever
    computed from raw names, never re-normalized.

    Args:
        name: Raw display name (may be empty).

    Returns:
        Normalized key. Only an empty (or blank) input yields "".

    Examples:
        >>> normalize_entity_name("Google Slides")
        'google slide'
        >>> normalize_entity_name("Les utilisateurs")
        'utilisateur'
    """
    if not name:
        return ""

    folded = strip_accents(name.lower().strip())

    text = _LEADING_FRENCH_ARTICLES.sub("", folded, count=1)
    text = _PARTITIVES.sub(" ", text)
    text = _LEADING_ENGLISH_ARTICLES.sub("", text, count=1)
    text = _WHITESPACE.sub(" ", text).strip()

    words = [stem_word(w) for w in _TOKEN_SEPARATORS.split(text)]
    normalized = " ".join(w for w in words if w)

    if not normalized:
        normalized = folded
    return normalized
