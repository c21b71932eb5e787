"""
Typed contract for the LLM risk analysis and for the per-paragraph highlight
annotations derived from it.
"""
from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

RiskLevel = Literal["low", "medium", "high"]
ContractType = Literal["tos", "nda", "employment_offer", "saas_agreement", "lease", "other"]
Jurisdiction = Literal["us_general", "ca", "ny", "other"]
Persona = Literal["founder", "company", "user", "employee"]
WhoBenefits = Literal["company", "user", "employee", "neutral"]
Category = Literal[
    "arbitration", "liability", "termination", "ip", "privacy", "data_retention",
    "payment", "warranty", "governing_law", "assignment", "non_compete", "nda", "other",
]

CLAUSE_CATEGORIES = get_args(Category)


class EvidenceQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    quote: str = Field(min_length=5)
    location: str = Field(min_length=2)


class Clause(BaseModel):
    # Bounds match what the model must return; partial clauses go through model_construct().
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: Optional[str] = None
    category: Category = "other"
    risk: RiskLevel
    who_benefits: WhoBenefits = "neutral"
    plain_english: Optional[str] = None
    why_risky: str = Field(min_length=5)
    evidence_quotes: List[EvidenceQuote] = Field(default_factory=list)
    pushback: str = Field(min_length=5)
    suggested_revision: str = Field(min_length=5)
    missing_info_questions: List[str] = Field(default_factory=list)
    severity_reasoning: str = Field(min_length=5)

    @property
    def display_title(self) -> str:
        return self.title or self.category or "Clause"


class MissingClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str = Field(min_length=2)
    why_it_matters: str = Field(min_length=5)
    recommended_language: str = Field(min_length=5)


class Overall(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    confidence: float = Field(ge=0.0, le=1.0)
    contract_type: ContractType = "tos"
    jurisdiction: Jurisdiction = "us_general"
    persona: Persona = "company"


class ContractAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: Overall
    clauses: List[Clause] = Field(min_length=1)
    missing_or_weak_clauses: List[MissingClause] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class AnalyzeRequest(BaseModel):
    contract_text: str = Field(min_length=50)
    contract_type: ContractType = "tos"
    jurisdiction: Jurisdiction = "us_general"
    persona: Persona = "company"
    model_id: str = "gpt-4o-mini"


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0
    total: int = 0


class AnalyzeResponse(BaseModel):
    analysis: ContractAnalysis
    processing_time_ms: int
    tokens_used: TokenUsage
    model_used: str
    estimated_cost: float
    retry_count: int = 0
    temperature: float = 0.5


class ParagraphAnnotation(BaseModel):
    """Render hint for one paragraph of the source document."""

    model_config = ConfigDict(frozen=True)

    risk_label: Literal["HIGH RISK", "CAUTION", "REVIEW"]
    icon: str
    source_clause_title: str
    match_score: float
    risk: str
    clause_index: int
    # "evidence", or the name of the clause field the fallback matched on
    matched_on: str = "evidence"


def evidence_gaps(analysis: ContractAnalysis) -> List[str]:
    """Ids (or titles) of clauses with no usable evidence quote. Blank quotes don't count."""
    return [
        c.id or c.display_title
        for c in analysis.clauses
        if not any((q.quote or "").strip() for q in c.evidence_quotes)
    ]
