"""
Locate LLM-flagged clauses in the original contract text.

Each paragraph is scored against every clause's evidence quotes and, for
clauses whose quotes don't land, against the clause's descriptive fields.
The single best candidate above threshold becomes the paragraph's
annotation. Pure functions; nothing is kept between calls.
"""
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from analyzer.config import EVIDENCE_THRESHOLD, FALLBACK_THRESHOLD, NGRAM_WEIGHT, WORD_WEIGHT
from analyzer.normalize import normalize
from analyzer.schemas import Clause, ParagraphAnnotation
from analyzer.scoring import check_weights, match_score

logger = logging.getLogger(__name__)

# Tried in this order when a clause has no evidence quote that matches.
FALLBACK_FIELDS = ("title", "category", "why_risky", "plain_english")

RISK_LABELS = {
    "high": ("HIGH RISK", "⚠️"),
    "medium": ("CAUTION", "⚡"),
}
DEFAULT_LABEL = ("REVIEW", "ℹ️")


@dataclass(frozen=True)
class MatchPolicy:
    evidence_threshold: float = EVIDENCE_THRESHOLD
    fallback_threshold: float = FALLBACK_THRESHOLD
    word_weight: float = WORD_WEIGHT
    ngram_weight: float = NGRAM_WEIGHT
    fallback_fields: Tuple[str, ...] = FALLBACK_FIELDS

    def __post_init__(self):
        check_weights(self.word_weight, self.ngram_weight)

    def score(self, a: str, b: str) -> float:
        return match_score(a, b, self.word_weight, self.ngram_weight)


DEFAULT_POLICY = MatchPolicy()


@dataclass(frozen=True)
class Candidate:
    clause_index: int
    clause: Clause
    source: str
    score: float
    threshold: float

    def beats(self, best: Optional["Candidate"]) -> bool:
        """Strictly greater than the current best, so ties keep the earlier candidate."""
        floor = best.score if best is not None else 0.0
        return self.score >= self.threshold and self.score > floor


def evidence_candidates(paragraph: str, index: int, clause: Clause, policy: MatchPolicy) -> Iterator[Candidate]:
    for ev in clause.evidence_quotes:
        score = policy.score(paragraph, normalize(ev.quote or ""))
        yield Candidate(index, clause, "evidence", score, policy.evidence_threshold)


def fallback_candidates(paragraph: str, index: int, clause: Clause, policy: MatchPolicy) -> Iterator[Candidate]:
    for field in policy.fallback_fields:
        value = getattr(clause, field, None)
        if not value:
            continue
        score = policy.score(paragraph, normalize(str(value)))
        yield Candidate(index, clause, field, score, policy.fallback_threshold)


def pick_best(candidates: Iterable[Candidate], best: Optional[Candidate] = None) -> Optional[Candidate]:
    """Fold over all candidates keeping the highest accepted score."""
    for cand in candidates:
        if cand.beats(best):
            best = cand
    return best


def pick_first(candidates: Iterable[Candidate], best: Optional[Candidate] = None) -> Optional[Candidate]:
    """Like pick_best but stops at the first accepted candidate."""
    for cand in candidates:
        if cand.beats(best):
            return cand
    return best


def _check_clauses(clauses) -> Sequence[Clause]:
    if isinstance(clauses, (str, bytes)) or not isinstance(clauses, Iterable):
        raise TypeError(f"clauses must be a sequence of Clause, got {type(clauses).__name__}")
    clauses = list(clauses)
    for i, c in enumerate(clauses):
        if not isinstance(c, Clause):
            raise TypeError(f"clauses[{i}] must be a Clause, got {type(c).__name__}")
    return clauses


def to_annotation(cand: Candidate) -> ParagraphAnnotation:
    label, icon = RISK_LABELS.get(cand.clause.risk, DEFAULT_LABEL)
    return ParagraphAnnotation(
        risk_label=label,
        icon=icon,
        source_clause_title=cand.clause.display_title,
        match_score=cand.score,
        risk=cand.clause.risk,
        clause_index=cand.clause_index,
        matched_on=cand.source,
    )


def annotate(paragraph: str, clauses: Sequence[Clause], policy: MatchPolicy = DEFAULT_POLICY) -> Optional[ParagraphAnnotation]:
    """
    Best-matching clause annotation for one paragraph, or None.
    - Evidence quotes of every clause compete on score (>= evidence_threshold).
    - A clause whose quotes didn't produce the new best falls back to its
      title/category/why_risky/plain_english; the first field reaching
      fallback_threshold and beating the best is taken.
    - Ties go to the clause listed first.
    """
    clauses = _check_clauses(clauses)
    if not paragraph or not paragraph.strip():
        return None

    para = normalize(paragraph)
    best = None
    for i, clause in enumerate(clauses):
        from_evidence = pick_best(evidence_candidates(para, i, clause, policy), best)
        if from_evidence is not best:
            best = from_evidence
            continue
        best = pick_first(fallback_candidates(para, i, clause, policy), best)

    return to_annotation(best) if best is not None else None


def split_paragraphs(text: str) -> List[str]:
    """Literal newline split. Blank lines are kept so indices match the rendered text."""
    return (text or "").split("\n")


def annotate_document(
    text: str, clauses: Sequence[Clause], policy: MatchPolicy = DEFAULT_POLICY
) -> List[Tuple[str, Optional[ParagraphAnnotation]]]:
    clauses = _check_clauses(clauses)
    out = [(p, annotate(p, clauses, policy)) for p in split_paragraphs(text)]
    logger.debug("Annotated %d of %d paragraphs", sum(1 for _, a in out if a), len(out))
    return out
