"""
LangGraph State Definition for decision intake.

Defines the state that flows through the processing graph. Nodes return
partial updates; `warnings` accumulates across nodes.
"""
from operator import add
from typing import Annotated, List, Optional, TypedDict

from decision_intake.models.schemas import (
    Candidate,
    Chunk,
    Document,
    IntakeMode,
    PageRecord,
    PipelineStage,
    SummaryPayload,
)


class IntakeState(TypedDict):
    """State that flows through the LangGraph workflow."""

    # Request identification
    request_id: str

    # Input
    memo_text: Optional[str]
    documents: List[Document]
    mode: IntakeMode

    # Current stage
    stage: PipelineStage

    # Stage outputs
    pages: List[PageRecord]
    chunks: List[Chunk]
    candidates: List[Candidate]
    decisions: List[Candidate]
    summary: Optional[SummaryPayload]

    # Telemetry counters
    pages_processed: int
    chunks_processed: int
    candidates_extracted: int
    decisions_final: int
    truncated: bool
    warnings: Annotated[List[str], add]

    # Error handling
    is_failed: bool
    error_kind: Optional[str]  # "client" | "server"
    error_message: Optional[str]
    failed_stage: Optional[PipelineStage]


def create_initial_state(
    request_id: str,
    memo_text: Optional[str],
    documents: List[Document],
    mode: IntakeMode,
) -> IntakeState:
    """
    Create initial state for one request.

    Args:
        request_id: Unique request identifier
        memo_text: Pasted text
        documents: Uploaded documents
        mode: Requested output mode

    Returns:
        Initial IntakeState
    """
    return IntakeState(
        request_id=request_id,
        memo_text=memo_text,
        documents=documents,
        mode=mode,
        stage=PipelineStage.START,
        pages=[],
        chunks=[],
        candidates=[],
        decisions=[],
        summary=None,
        pages_processed=0,
        chunks_processed=0,
        candidates_extracted=0,
        decisions_final=0,
        truncated=False,
        warnings=[],
        is_failed=False,
        error_kind=None,
        error_message=None,
        failed_stage=None,
    )
