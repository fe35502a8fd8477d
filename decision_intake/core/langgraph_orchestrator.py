"""
LangGraph-based orchestrator for decision intake.

Runs one request through the StateGraph
extract_text -> chunk -> extract_candidates -> merge -> [summarize] -> done,
with every stage able to route to the terminal error node.
"""
import time
import uuid
from typing import Any, AsyncIterator, Dict, Optional

from langgraph.graph import END, StateGraph

from decision_intake.core.chunking_strategy import ChunkingStrategy
from decision_intake.core.decision_aggregator import DecisionAggregator
from decision_intake.core.decision_extractor import DecisionExtractor
from decision_intake.core.graph_nodes import (
    INTERNAL_ERROR_MESSAGE,
    IntakeNodes,
    check_for_errors,
    route_after_merge,
)
from decision_intake.core.graph_state import IntakeState, create_initial_state
from decision_intake.core.input_normalizer import InputNormalizer
from decision_intake.core.pdf_processor import PDFProcessor
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.core.summarizer import DecisionSummarizer
from decision_intake.models.schemas import (
    ErrorInfo,
    IntakeRequest,
    IntakeResponse,
    PipelineMeta,
    PipelineStage,
)
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)


class DecisionIntakeOrchestrator:
    """
    Owns the pipeline for one service instance.

    Each call to process() or stream() runs with its own state; nothing
    is shared between requests except the injected collaborators.
    """

    def __init__(
        self,
        config: PipelineConfig,
        llm: Any,
        summary_llm: Optional[Any] = None,
        pdf_processor: Optional[PDFProcessor] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Pipeline limits
            llm: Chat model used for candidate extraction
            summary_llm: Chat model used for the summary (defaults to llm)
            pdf_processor: PDF page extractor (default PDFProcessor())
        """
        self.config = config
        self.nodes = IntakeNodes(
            normalizer=InputNormalizer(config, pdf_processor),
            chunker=ChunkingStrategy(config),
            extractor=DecisionExtractor(llm, config),
            aggregator=DecisionAggregator(config),
            summarizer=DecisionSummarizer(summary_llm or llm, config),
        )
        self.graph = self._build_graph()
        logger.info(f"Decision intake orchestrator initialized (model={config.model})")

    def _build_graph(self):
        """
        Build the LangGraph StateGraph with all nodes and edges.

        Returns:
            Compiled StateGraph
        """
        workflow = StateGraph(IntakeState)

        workflow.add_node("extract_text", self.nodes.extract_text)
        workflow.add_node("chunk", self.nodes.chunk)
        workflow.add_node("extract_candidates", self.nodes.extract_candidates)
        workflow.add_node("merge", self.nodes.merge)
        workflow.add_node("summarize", self.nodes.summarize)
        workflow.add_node("done", self.nodes.done)
        workflow.add_node("error", self.nodes.error)

        workflow.set_entry_point("extract_text")

        workflow.add_conditional_edges(
            "extract_text",
            check_for_errors,
            {"continue": "chunk", "error": "error"},
        )
        workflow.add_conditional_edges(
            "chunk",
            check_for_errors,
            {"continue": "extract_candidates", "error": "error"},
        )
        workflow.add_conditional_edges(
            "extract_candidates",
            check_for_errors,
            {"continue": "merge", "error": "error"},
        )
        workflow.add_conditional_edges(
            "merge",
            route_after_merge,
            {"summarize": "summarize", "done": "done", "error": "error"},
        )
        workflow.add_conditional_edges(
            "summarize",
            check_for_errors,
            {"continue": "done", "error": "error"},
        )

        workflow.add_edge("done", END)
        workflow.add_edge("error", END)

        return workflow.compile()

    async def process(self, request: IntakeRequest) -> IntakeResponse:
        """
        Run one request to completion.

        Never raises: input problems come back as a 400-class response and
        anything unexpected as a 500-class response with an opaque errorId.

        Args:
            request: IntakeRequest

        Returns:
            IntakeResponse
        """
        response = None
        async for event in self._execute(request):
            if event["node"] == "response":
                response = event["response"]
        return response

    async def stream(self, request: IntakeRequest) -> AsyncIterator[Dict[str, Any]]:
        """
        Stream progress as the request flows through the graph.

        Yields one dict per completed node ({request_id, node, stage,
        warnings}); the last item has node "response" and carries the
        wire-format payload and status code.
        """
        async for event in self._execute(request):
            if event["node"] == "response":
                response = event["response"]
                yield {
                    "request_id": event["request_id"],
                    "node": "response",
                    "stage": response.meta.stage.value,
                    "warnings": list(response.meta.warnings),
                    "status_code": response.status_code,
                    "response": response.to_wire(),
                }
            else:
                yield event

    async def _execute(self, request: IntakeRequest) -> AsyncIterator[Dict[str, Any]]:
        request_id = str(uuid.uuid4())
        started = time.monotonic()
        logger.info(
            f"[{request_id}] Starting decision intake: mode={request.mode.value}, "
            f"documents={len(request.documents)}, memo_chars={len(request.memo_text or '')}"
        )

        state = create_initial_state(
            request_id=request_id,
            memo_text=request.memo_text,
            documents=request.documents,
            mode=request.mode,
        )

        try:
            async for values in self.graph.astream(state, stream_mode="values"):
                new_warnings = values["warnings"][len(state["warnings"]):]
                state = values
                # First emission is the input state
                if state["stage"] is PipelineStage.START:
                    continue
                yield {
                    "request_id": request_id,
                    "node": state["stage"].value,
                    "stage": state["stage"].value,
                    "warnings": list(new_warnings),
                }
            response = self._build_response(state, started)
        except Exception as e:
            logger.error(
                f"[{request_id}] Decision intake failed: {e}",
                exc_info=True,
                extra={"error_id": request_id},
            )
            response = self._error_response(
                state, started, INTERNAL_ERROR_MESSAGE, request_id, status_code=500
            )

        logger.info(
            f"[{request_id}] Finished: stage={response.meta.stage.value}, "
            f"status={response.status_code}, decisions={len(response.decisions)}, "
            f"warnings={len(response.meta.warnings)}, {response.meta.timing_ms}ms"
        )
        yield {"request_id": request_id, "node": "response", "response": response}

    @staticmethod
    def _build_meta(state: IntakeState, started: float, stage: PipelineStage) -> PipelineMeta:
        return PipelineMeta(
            stage=stage,
            pages_processed=state["pages_processed"],
            chunks_processed=state["chunks_processed"],
            candidates_extracted=state["candidates_extracted"],
            decisions_final=state["decisions_final"],
            truncated=state["truncated"],
            warnings=list(state["warnings"]),
            timing_ms=int((time.monotonic() - started) * 1000),
        )

    def _build_response(self, state: IntakeState, started: float) -> IntakeResponse:
        if state["is_failed"]:
            status_code = 400 if state["error_kind"] == "client" else 500
            return self._error_response(
                state, started, state["error_message"], state["request_id"], status_code
            )

        return IntakeResponse(
            summary=state["summary"],
            decisions=[candidate.to_decision_item() for candidate in state["decisions"]],
            meta=self._build_meta(state, started, PipelineStage.DONE),
        )

    def _error_response(
        self,
        state: IntakeState,
        started: float,
        message: str,
        error_id: str,
        status_code: int,
    ) -> IntakeResponse:
        return IntakeResponse(
            summary=None,
            decisions=[],
            meta=self._build_meta(state, started, PipelineStage.ERROR),
            error=ErrorInfo(message=message, error_id=error_id),
            status_code=status_code,
        )
