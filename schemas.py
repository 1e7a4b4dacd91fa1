"""Pydantic models for data validation and structure."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]
Complexity = Literal["simple", "moderate", "complex", "very_complex"]
DocumentType = Literal[
    "privacy_policy",
    "terms_of_service",
    "cookie_policy",
    "eula",
    "user_agreement",
    "legal_document",
]
ReadinessState = Literal["unavailable", "after-download", "readily", "error"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the host layers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- DETECTION ---

class ClassificationFactor(CamelModel):
    """Score for one analyzed dimension of a page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    matches: List[str] = Field(default_factory=list)
    keyword_matches: Optional[int] = None
    density: Optional[float] = None


class ClassificationResult(CamelModel):
    is_legal: bool
    confidence: float = Field(ge=0.0, le=1.0)
    factors: Dict[str, ClassificationFactor]
    reasons: List[str]


# --- ANALYSIS ---

class RiskFinding(CamelModel):
    """A concerning clause reported by risk detection."""

    severity: Severity
    clause: str
    issue: str
    explanation: Optional[str] = ""

    @field_validator("explanation", mode="before")
    @classmethod
    def null_explanation_as_empty(cls, v):
        return "" if v is None else v


class GlossaryTerm(CamelModel):
    """A legal term with a plain-language definition."""

    term: str
    definition: str


class AnalysisSummary(CamelModel):
    executive: str = ""
    key_points: List[str] = Field(default_factory=list)
    full_summary: str = ""


class AnalysisMetadata(CamelModel):
    analyzed_at: datetime
    document_length: int
    analysis_time_ms: int
    reading_time_minutes: int
    complexity: Complexity
    document_type: DocumentType
    source: Optional[str] = None
    file_name: Optional[str] = None
    capabilities_used: Dict[str, bool] = Field(default_factory=dict)
    chunked: bool = False


class AnalysisRecord(CamelModel):
    """Result of one analysis run, handed to the caller by value."""

    risk_score: Severity
    risk_factors: List[RiskFinding] = Field(default_factory=list)
    summary: AnalysisSummary
    glossary: List[GlossaryTerm] = Field(default_factory=list)
    metadata: AnalysisMetadata


class ChunkFindings(CamelModel):
    """Merged per-chunk results of the chunked analysis."""

    risks: List[RiskFinding] = Field(default_factory=list)
    terms: List[GlossaryTerm] = Field(default_factory=list)
    key_points: List[str] = Field(default_factory=list)


# --- CAPABILITIES ---

class CapabilityStatus(CamelModel):
    name: str
    present: bool
    state: ReadinessState
    requires_external_authorization: bool
    error: Optional[str] = None


class OverallStatus(CamelModel):
    all_present: bool
    any_ready: bool
    authorization_needed: bool
    download_needed: bool


class ProgressUpdate(CamelModel):
    percent: int = Field(ge=0, le=100)
    status: str


class PrepareResult(CamelModel):
    success: bool
    status: str
    error: Optional[str] = None
