"""
Data models and schemas for decision intake processing.

Wire names follow the public JSON contract (camelCase for record fields,
snake_case for meta and summary fields); Python code uses snake_case
attributes and populates by name.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """Base model that accepts both attribute names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True)


# ===== Enums =====

class PipelineStage(str, Enum):
    """Stages of the intake pipeline, in execution order."""
    START = "start"
    EXTRACT_TEXT = "extract_text"
    CHUNK = "chunk"
    EXTRACT_CANDIDATES = "extract_candidates"
    MERGE = "merge"
    SUMMARIZE = "summarize"
    DONE = "done"
    ERROR = "error"


class IntakeMode(str, Enum):
    """What the caller wants back."""
    EXTRACT = "extract"
    SUMMARIZE = "summarize"
    EXTRACT_AND_SUMMARIZE = "extract+summarize"

    @property
    def wants_summary(self) -> bool:
        return self is not IntakeMode.EXTRACT


# ===== Input Models =====

class PageText(_WireModel):
    """One page of text as returned by a page extractor."""
    page_number: int = Field(..., alias="pageNumber", gt=0, description="Page number (1-indexed)")
    text: str = Field(default="", description="Page text")


class Document(_WireModel):
    """An uploaded document: raw PDF bytes and/or already page-split text."""
    file_name: str = Field(..., alias="fileName", description="Original file name")
    content: Optional[bytes] = Field(default=None, description="Raw PDF bytes")
    content_type: Optional[str] = Field(default=None, alias="contentType", description="MIME type")
    pages: Optional[List[PageText]] = Field(default=None, description="Pre-split page texts")

    @property
    def is_pdf(self) -> bool:
        if self.pages is not None:
            return True
        return self.content_type == "application/pdf" or self.file_name.lower().endswith(".pdf")


class IntakeRequest(_WireModel):
    """Pipeline entrypoint request."""
    memo_text: Optional[str] = Field(default=None, alias="memoText", description="Pasted text")
    documents: List[Document] = Field(default_factory=list, description="Uploaded documents")
    mode: IntakeMode = Field(default=IntakeMode.EXTRACT_AND_SUMMARIZE, description="Requested output")


# ===== Pipeline Records =====

class PageRecord(_WireModel):
    """A single normalized page of input text."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_name: str = Field(..., alias="fileName")
    page_number: int = Field(..., alias="pageNumber", gt=0)
    text: str


class Chunk(_WireModel):
    """A bounded group of same-file pages submitted as one extraction unit."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_name: str = Field(..., alias="fileName")
    pages: List[PageRecord]
    text: str

    @property
    def page_numbers(self) -> List[int]:
        return [page.page_number for page in self.pages]

    @property
    def char_count(self) -> int:
        """Characters of page text carried by this chunk (markers excluded)."""
        return sum(len(page.text) for page in self.pages)


class RawModelCandidate(BaseModel):
    """
    Untrusted candidate shape as returned by the extraction model.

    Every field is kept as-is; validation happens in the candidate builder.
    """
    model_config = ConfigDict(extra="ignore")

    decision: Any = None
    evidence: Any = None
    source: Any = None
    tags: Any = None

    @classmethod
    def from_untrusted(cls, item: Any) -> Optional["RawModelCandidate"]:
        if not isinstance(item, dict):
            return None
        return cls(
            decision=item.get("decision"),
            evidence=item.get("evidence"),
            source=item.get("source"),
            tags=item.get("tags"),
        )


class CandidateSource(_WireModel):
    """Citation for a candidate."""
    file_name: str = Field(..., alias="fileName")
    page: int = Field(..., gt=0)


class EvidenceSource(_WireModel):
    """One provenance entry: where an excerpt supporting a decision was found."""
    file_name: str = Field(..., alias="fileName")
    page: int = Field(..., gt=0)
    excerpt: str


class DecisionItem(_WireModel):
    """Public decision record returned to the caller."""
    id: str
    decision: str
    evidence: str
    source: CandidateSource
    sources: List[EvidenceSource] = Field(default_factory=list)
    tags: Optional[List[str]] = None


class Candidate(DecisionItem):
    """Validated, scored decision candidate (internal)."""
    quality_score: int = Field(..., alias="qualityScore")

    def to_decision_item(self) -> DecisionItem:
        """Strip internal-only fields."""
        return DecisionItem(
            id=self.id,
            decision=self.decision,
            evidence=self.evidence,
            source=self.source,
            sources=list(self.sources),
            tags=list(self.tags) if self.tags is not None else None,
        )


# ===== Summary Models =====

class SummaryDecision(BaseModel):
    """One key decision in the narrative summary."""
    decision: str = Field(..., min_length=1)
    why_it_matters: Optional[str] = None
    source: Optional[CandidateSource] = None


class SummaryPayload(BaseModel):
    """Narrative summary of the final decision list."""
    key_decisions: List[SummaryDecision]
    themes: Optional[List[str]] = None
    unknowns: Optional[List[str]] = None


# ===== Response Models =====

class PipelineMeta(BaseModel):
    """Telemetry trail written by the orchestrator."""
    stage: PipelineStage = PipelineStage.START
    pages_processed: int = 0
    chunks_processed: int = 0
    candidates_extracted: int = 0
    decisions_final: int = 0
    truncated: bool = False
    warnings: List[str] = Field(default_factory=list)
    timing_ms: int = 0


class ErrorInfo(_WireModel):
    """Caller-visible error; never carries internal exception details."""
    message: str
    error_id: str = Field(..., alias="errorId")


class IntakeResponse(_WireModel):
    """Pipeline entrypoint response."""
    summary: Optional[SummaryPayload] = None
    decisions: List[DecisionItem] = Field(default_factory=list)
    meta: PipelineMeta = Field(default_factory=PipelineMeta)
    error: Optional[ErrorInfo] = None
    status_code: int = Field(default=200, exclude=True)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with public field names, omitting an absent error."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=False,
                               exclude={"error"} if self.error is None else None)
