"""
Input guardrails: refuse to send contracts containing personal data or
profanity to the model.
"""
import re
from collections import Counter
from typing import List, NamedTuple, Tuple

PROFANITY = ["fuck", "shit", "bitch", "asshole", "bastard"]

PATTERNS = {
    "ssn": re.compile(r"\b(?:\d{3}-\d{2}-\d{4}|\d{9})\b"),
    "phone": re.compile(r"\b(?:\+?1\s*)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}\b"),
    "email": re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
}


class GuardrailHit(NamedTuple):
    type: str
    match: str


def detect_sensitive_and_profanity(text: str) -> List[GuardrailHit]:
    hits = []
    for kind, regex in PATTERNS.items():
        hits.extend(GuardrailHit(kind, m.group(0)) for m in regex.finditer(text))
    lower = text.lower()
    # Substring match, so "Scunthorpe"-style false positives are possible
    hits.extend(GuardrailHit("profanity", w) for w in PROFANITY if w in lower)
    return hits


def is_input_safe(text: str) -> Tuple[bool, List[GuardrailHit]]:
    hits = detect_sensitive_and_profanity(text)
    return not hits, hits


def get_warning_message(hits: List[GuardrailHit]) -> str:
    counts = Counter(h.type for h in hits)
    parts = ", ".join(f"{t} ({n})" for t, n in counts.items())
    return f"Detected sensitive content: {parts}. Please remove and try again."
