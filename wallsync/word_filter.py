"""
Keyword post-processing for analyzer output.

The vision model is asked for a flat comma-separated list, but replies
still arrive with markdown, parenthetical remarks and filler such as
"no text visible". Everything that is not a short ASCII keyword is dropped.
"""

import re

MARKUP_CHARACTERS = ("*", "`")
PARENTHETICAL = re.compile(r"\([^)]*\)")
SEPARATORS = re.compile(r"[,\n]+")
DISALLOWED = re.compile(r"[^a-zA-Z0-9 \-']")

MAX_WORD_LENGTH = 50
SINGLE_LETTER_WORDS = {"a", "i"}

META_PHRASES = (
    "no text",
    "not visible",
    "not readable",
    "cannot read",
    "no visible",
    "n/a",
    "nothing",
    "text not",
)


def _strip_markup(text: str) -> str:
    for char in MARKUP_CHARACTERS:
        text = text.replace(char, "")
    return PARENTHETICAL.sub("", text)


def is_valid_word(word: str) -> bool:
    """Check a lower-cased, trimmed token against the keyword rules."""
    if not word or len(word) > MAX_WORD_LENGTH:
        return False
    if DISALLOWED.search(word):
        return False
    if any(phrase in word for phrase in META_PHRASES):
        return False
    if len(word) == 1 and word not in SINGLE_LETTER_WORDS:
        return False
    return True


def filter_words(words: list[str]) -> list[str]:
    """
    Apply the keyword rules to a list of candidate tokens.

    Returns:
        Lower-cased, deduplicated keywords in first-seen order.
    """
    result = []
    seen = set()

    for candidate in words:
        word = _strip_markup(candidate).strip().lower()
        if word in seen or not is_valid_word(word):
            continue
        seen.add(word)
        result.append(word)

    return result


def parse_words(text: str) -> list[str]:
    """
    Parse a free-text model reply into keywords.

    Example:
        >>> parse_words("Mountain, *Sunset*, (no text visible), café, x, a")
        ['mountain', 'sunset', 'a']
    """
    text = _strip_markup(text.strip())
    return filter_words(SEPARATORS.split(text))
