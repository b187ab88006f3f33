"""Inflection — singular/plural forms for resource names, paths and collections.

Invariants:
    - singularize(pluralize(w)) == w for common nouns (-s, -y, -ch/-sh/-x, -sis, irregulars)
    - Both functions are pure and deterministic (route derivation depends on it)
    - Snake-case names inflect only their last segment (user_tag -> user_tags)

Design Decisions:
    - Small rule table over an inflection library: resource names are short English
      nouns, and the same rules must hold in both directions
"""

_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "status": "statuses",
    "address": "addresses",
    "quiz": "quizzes",
    "crisis": "crises",
    "diagnosis": "diagnoses",
}
_IRREGULAR_SINGULARS = {v: k for k, v in _IRREGULAR_PLURALS.items()}

# Words whose plural equals their singular
_UNCOUNTABLE = frozenset({"news", "series", "species", "equipment", "information"})


def pluralize(word: str) -> str:
    """Convert a singular English noun to its plural form (tag -> tags)."""
    if not word:
        return word
    prefix, last = _split_last_segment(word)
    return prefix + _pluralize_word(last)


def singularize(word: str) -> str:
    """Convert a plural English noun to its singular form (tags -> tag).

    Already-singular words are returned unchanged.
    """
    if not word:
        return word
    prefix, last = _split_last_segment(word)
    return prefix + _singularize_word(last)


def _split_last_segment(word: str) -> tuple[str, str]:
    head, sep, tail = word.rpartition("_")
    return head + sep, tail


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE or lower in _IRREGULAR_SINGULARS:
        return word
    if lower in _IRREGULAR_PLURALS:
        return _match_case(word, _IRREGULAR_PLURALS[lower])
    if lower.endswith("sis"):
        return word[:-2] + "es"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def _singularize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE or lower in _IRREGULAR_PLURALS:
        return word
    if lower in _IRREGULAR_SINGULARS:
        return _match_case(word, _IRREGULAR_SINGULARS[lower])
    if lower.endswith("ies") and len(lower) > 3:
        return word[:-3] + "y"
    if lower.endswith(("yses", "theses")):
        return word[:-2] + "is"
    if lower.endswith(("ches", "shes", "sses", "xes", "zes")):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return word[:-1]
    return word


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement.capitalize()
    return replacement
