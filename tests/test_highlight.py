import pytest

from analyzer.highlight import (
    MatchPolicy,
    annotate,
    annotate_document,
    evidence_candidates,
    pick_best,
    split_paragraphs,
)
from analyzer.normalize import normalize
from conftest import make_clause

ARBITRATION_PARAGRAPH = "Disputes shall be resolved exclusively by binding arbitration."
ARBITRATION_QUOTE = "resolve disputes exclusively by binding arbitration"


def test_paraphrased_quote_matches_high_risk_clause():
    clause = make_clause("high", [ARBITRATION_QUOTE], title="Binding Arbitration")
    note = annotate(ARBITRATION_PARAGRAPH, [clause])
    assert note is not None
    assert note.risk_label == "HIGH RISK"
    assert note.icon == "⚠️"
    assert note.source_clause_title == "Binding Arbitration"
    assert note.matched_on == "evidence"
    assert note.match_score >= 0.25


def test_unrelated_paragraph_is_not_annotated():
    clause = make_clause(
        "high",
        [ARBITRATION_QUOTE],
        title="Arbitration",
        category="arbitration",
        why_risky="You waive your right to sue in court.",
        plain_english="Disagreements go to a private arbitrator.",
    )
    assert annotate("This is unrelated filler text about weather.", [clause]) is None


@pytest.mark.parametrize("paragraph", ["", "   ", "\t"])
def test_blank_paragraph_is_not_annotated(paragraph):
    clause = make_clause("high", [paragraph or "x"], title=paragraph or "x")
    assert annotate(paragraph, [clause]) is None


def test_fallback_to_category_when_no_evidence():
    clause = make_clause("medium", [], category="Liability Cap")
    note = annotate("LIABILITY CAP", [clause])
    assert note is not None
    assert note.risk_label == "CAUTION"
    assert note.icon == "⚡"
    assert note.matched_on == "category"
    assert note.source_clause_title == "Liability Cap"
    assert note.match_score == pytest.approx(0.4)


def test_fallback_below_threshold_is_rejected():
    # shares only "liability" with the category; scores well under 0.35
    clause = make_clause("medium", [], category="Liability Cap")
    assert annotate("We limit liability to fees paid in the last 12 months.", [clause]) is None


def test_ties_go_to_the_first_clause():
    first = make_clause("medium", [ARBITRATION_QUOTE], title="Clause A")
    second = make_clause("high", [ARBITRATION_QUOTE], title="Clause B")
    note = annotate(ARBITRATION_PARAGRAPH, [first, second])
    assert note.source_clause_title == "Clause A"
    assert note.clause_index == 0


def test_higher_score_in_later_clause_wins():
    first = make_clause("medium", [ARBITRATION_QUOTE], title="Clause A")
    second = make_clause("low", [ARBITRATION_PARAGRAPH], title="Clause B")
    note = annotate(ARBITRATION_PARAGRAPH, [first, second])
    assert note.source_clause_title == "Clause B"
    assert note.risk_label == "REVIEW"
    assert note.icon == "ℹ️"
    assert note.match_score == pytest.approx(1.0)


def test_best_quote_within_a_clause_wins():
    clause = make_clause("high", ["waive class actions entirely", ARBITRATION_PARAGRAPH], title="Arbitration")
    note = annotate(ARBITRATION_PARAGRAPH, [clause])
    assert note.match_score == pytest.approx(1.0)


TERMINATION = "Either party may terminate this agreement for convenience upon notice."


def test_evidence_takes_precedence_over_own_fallback_fields():
    # the title alone would score 1.0, but the clause's quote already matched
    clause = make_clause("high", ["terminate this agreement for convenience"], title=TERMINATION)
    note = annotate(TERMINATION, [clause])
    assert note.matched_on == "evidence"
    assert note.match_score == pytest.approx(0.4 * 4 / 8 + 0.6 * 3 / 8)


def test_later_clause_fallback_can_beat_earlier_evidence():
    first = make_clause("high", ["terminate this agreement for convenience"], title="Termination")
    second = make_clause("low", [], title=TERMINATION)
    note = annotate(TERMINATION, [first, second])
    assert note.clause_index == 1
    assert note.matched_on == "title"


def test_fallback_stops_at_first_accepted_field():
    paragraph = "Customer bears unlimited liability for all claims."
    clause = make_clause(
        "high", [], title="Unlimited liability for all claims", why_risky=paragraph,
    )
    note = annotate(paragraph, [clause])
    assert note.matched_on == "title"
    assert note.match_score == pytest.approx(0.6)


def test_quotes_below_threshold_fall_back_to_fields():
    clause = make_clause("high", ["completely different words here"], category="Liability Cap")
    note = annotate("Liability cap", [clause])
    assert note.matched_on == "category"


def test_display_title_defaults():
    no_title = make_clause("high", [ARBITRATION_QUOTE], category="arbitration")
    assert annotate(ARBITRATION_PARAGRAPH, [no_title]).source_clause_title == "arbitration"
    nothing = make_clause("high", [ARBITRATION_QUOTE], category="")
    assert annotate(ARBITRATION_PARAGRAPH, [nothing]).source_clause_title == "Clause"


def test_degraded_clauses_do_not_crash():
    clauses = [
        make_clause("high", [""]),
        make_clause("medium", [], title=None, category="", why_risky=None),
    ]
    assert annotate(ARBITRATION_PARAGRAPH, clauses) is None
    assert annotate(ARBITRATION_PARAGRAPH, []) is None


def test_annotate_is_deterministic():
    clauses = [
        make_clause("medium", [ARBITRATION_QUOTE], title="A"),
        make_clause("high", [], category="arbitration"),
    ]
    assert annotate(ARBITRATION_PARAGRAPH, clauses) == annotate(ARBITRATION_PARAGRAPH, clauses)


def test_policy_thresholds_are_per_call():
    clause = make_clause("high", [ARBITRATION_QUOTE], title="Arbitration")
    assert annotate(ARBITRATION_PARAGRAPH, [clause], MatchPolicy(evidence_threshold=0.5)) is None
    assert annotate(ARBITRATION_PARAGRAPH, [clause]) is not None


def test_policy_rejects_bad_weights():
    with pytest.raises(ValueError):
        MatchPolicy(word_weight=0.8, ngram_weight=0.6)


@pytest.mark.parametrize("bad", [None, 5, "clauses"])
def test_non_iterable_clauses_fail_fast(bad):
    with pytest.raises(TypeError):
        annotate(ARBITRATION_PARAGRAPH, bad)


def test_clause_entries_must_be_clauses():
    with pytest.raises(TypeError, match=r"clauses\[0\]"):
        annotate(ARBITRATION_PARAGRAPH, [{"risk": "high"}])


def test_pick_best_keeps_earliest_on_equal_scores():
    policy = MatchPolicy()
    para = normalize(ARBITRATION_PARAGRAPH)
    a = make_clause("high", [ARBITRATION_QUOTE, ARBITRATION_QUOTE], title="A")
    cands = list(evidence_candidates(para, 0, a, policy))
    assert pick_best(cands) is cands[0]


def test_split_paragraphs_keeps_blank_lines():
    assert split_paragraphs("A\n\nB") == ["A", "", "B"]
    assert split_paragraphs("") == [""]


def test_annotate_document():
    text = "Terms of Service\n\n" + ARBITRATION_PARAGRAPH
    clause = make_clause("high", [ARBITRATION_QUOTE], title="Binding Arbitration")
    result = annotate_document(text, [clause])
    assert [p for p, _ in result] == ["Terms of Service", "", ARBITRATION_PARAGRAPH]
    assert result[0][1] is None
    assert result[1][1] is None
    assert result[2][1].risk_label == "HIGH RISK"
