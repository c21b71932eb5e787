"""
Text canonicalization used to compare paragraphs with LLM evidence quotes.
Quotes come back paraphrased, truncated or with different punctuation, so
both sides are reduced to lowercase alphanumeric tokens before scoring.
"""
import re
from functools import lru_cache
from typing import FrozenSet

# Left/right single and double curly quotes
SMART_QUOTES_RE = re.compile("[‘’“”]")
NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
WHITESPACE_RE = re.compile(r"\s+")

TRIGRAM = 3


@lru_cache(maxsize=4096)
def normalize(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace. normalize("") == ""."""
    t = text.lower()
    t = SMART_QUOTES_RE.sub('"', t)
    t = NON_ALNUM_RE.sub(" ", t)
    return WHITESPACE_RE.sub(" ", t).strip()


def word_set(text: str) -> FrozenSet[str]:
    """Distinct tokens longer than 3 chars."""
    return frozenset(w for w in normalize(text).split(" ") if len(w) > 3)


def ngrams(text: str, n: int = TRIGRAM) -> FrozenSet[str]:
    """Contiguous n-token windows over tokens longer than 2 chars."""
    words = [w for w in normalize(text).split(" ") if len(w) > 2]
    return frozenset(" ".join(words[i:i + n]) for i in range(len(words) - n + 1))
