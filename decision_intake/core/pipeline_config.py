"""
Explicit pipeline configuration.

Core stages receive a PipelineConfig instead of reading global settings,
so they can be exercised with injected limits and fake models.
"""
from pydantic import BaseModel, ConfigDict, Field

from decision_intake.settings import Settings


class PipelineConfig(BaseModel):
    """Limits and model parameters for one pipeline instance."""

    model_config = ConfigDict(frozen=True)

    model: str = "gpt-4o-mini"

    # Input normalization
    max_total_chars: int = Field(default=250_000, gt=0)
    max_pages: int = Field(default=20, gt=0)

    # Chunking
    chunk_char_limit: int = Field(default=12_000, gt=0)
    chunk_page_limit: int = Field(default=2, gt=0)
    max_chunks: int = Field(default=8, gt=0)

    # Extraction
    max_candidates_per_chunk: int = Field(default=25, gt=0)
    timeout_ms: int = Field(default=18_000, gt=0)
    chunk_concurrency: int = Field(default=2, gt=0)
    evidence_char_limit: int = Field(default=220, gt=0)
    filter_vague_decisions: bool = False

    # Ranking
    max_final_decisions: int = Field(default=80, gt=0)
    min_rich_decisions: int = Field(default=20, ge=0)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        """Build a pipeline configuration from environment settings."""
        return cls(
            model=settings.active_model,
            max_total_chars=settings.max_total_chars,
            max_pages=settings.max_pages,
            chunk_char_limit=settings.chunk_char_limit,
            chunk_page_limit=settings.chunk_page_limit,
            max_chunks=settings.max_chunks,
            max_candidates_per_chunk=settings.max_candidates_per_chunk,
            timeout_ms=settings.openai_timeout_ms,
            chunk_concurrency=settings.chunk_concurrency,
            evidence_char_limit=settings.evidence_char_limit,
            filter_vague_decisions=settings.filter_vague_decisions,
            max_final_decisions=settings.max_final_decisions,
            min_rich_decisions=settings.min_rich_decisions,
        )
