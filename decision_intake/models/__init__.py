"""
Data models for Decision Intake.
"""

from decision_intake.models.schemas import (
    Candidate,
    CandidateSource,
    Chunk,
    DecisionItem,
    Document,
    ErrorInfo,
    EvidenceSource,
    IntakeMode,
    IntakeRequest,
    IntakeResponse,
    PageRecord,
    PageText,
    PipelineMeta,
    PipelineStage,
    RawModelCandidate,
    SummaryDecision,
    SummaryPayload,
)

__all__ = [
    "Candidate",
    "CandidateSource",
    "Chunk",
    "DecisionItem",
    "Document",
    "ErrorInfo",
    "EvidenceSource",
    "IntakeMode",
    "IntakeRequest",
    "IntakeResponse",
    "PageRecord",
    "PageText",
    "PipelineMeta",
    "PipelineStage",
    "RawModelCandidate",
    "SummaryDecision",
    "SummaryPayload",
]
