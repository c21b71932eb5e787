import pytest

from analyzer.schemas import Clause, EvidenceQuote

CLAUSE_DEFAULTS = {
    "id": "c1",
    "title": None,
    "category": "other",
    "who_benefits": "neutral",
    "plain_english": None,
    "why_risky": None,
    "pushback": None,
    "suggested_revision": None,
    "missing_info_questions": [],
    "severity_reasoning": None,
}


def make_clause(risk="high", quotes=(), **fields):
    """Clause as the highlighter may receive it: possibly partial, so validation is skipped."""
    return Clause.model_construct(
        risk=risk,
        evidence_quotes=[EvidenceQuote.model_construct(quote=q, location="Section 1") for q in quotes],
        **{**CLAUSE_DEFAULTS, **fields},
    )


@pytest.fixture
def analysis_payload():
    return {
        "overall": {
            "risk_score": 72,
            "risk_level": "high",
            "confidence": 0.8,
            "contract_type": "tos",
            "jurisdiction": "us_general",
            "persona": "user",
        },
        "clauses": [
            {
                "id": "c1",
                "title": "Binding Arbitration",
                "category": "arbitration",
                "risk": "high",
                "who_benefits": "company",
                "plain_english": "You can't sue in court.",
                "why_risky": "Waives your right to a jury trial and class actions.",
                "evidence_quotes": [
                    {
                        "quote": "resolve disputes exclusively by binding arbitration",
                        "location": "Paragraph 2",
                    }
                ],
                "pushback": "Ask for a small-claims carve out.",
                "suggested_revision": "Either party may bring claims in small claims court.",
                "missing_info_questions": [],
                "severity_reasoning": "Removes access to courts.",
            }
        ],
        "missing_or_weak_clauses": [
            {
                "category": "termination",
                "why_it_matters": "No way to exit the agreement.",
                "recommended_language": "Either party may terminate on 30 days notice.",
            }
        ],
        "recommendations": ["Negotiate the arbitration clause."],
    }
