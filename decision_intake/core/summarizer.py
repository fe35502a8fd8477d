"""
Narrative summary of the final decision list.

Same discipline as extraction: one timed call, defensive parsing, and a
None summary plus a warning on any failure.
"""
import asyncio
from typing import Any, Dict, List, Optional

from openai import APITimeoutError
from pydantic import ValidationError

from decision_intake.core.extraction_prompts import build_summary_prompts
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Candidate, SummaryPayload
from decision_intake.utils.json_parsing import parse_model_json
from decision_intake.utils.llm import invoke_with_timeout
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

EMPTY_WARNING = "Summary response was empty."
INVALID_WARNING = "Summary response was not valid JSON."
TIMEOUT_WARNING = "Timed out while summarizing decisions."
FAILURE_WARNING = "Failed to summarize decisions."


class SummaryOutcome:
    """Summary (or None) and an optional warning."""

    def __init__(self, summary: Optional[SummaryPayload] = None, warning: Optional[str] = None):
        self.summary = summary
        self.warning = warning


def _string_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    return None


def validate_summary(parsed: Dict[str, Any]) -> Optional[SummaryPayload]:
    """
    Validate a parsed summary object.

    `key_decisions` must be a well-formed array or the whole summary is
    rejected; `themes` and `unknowns` pass through only when they are lists
    of strings.
    """
    key_decisions = parsed.get("key_decisions")
    if not isinstance(key_decisions, list):
        return None
    try:
        return SummaryPayload(
            key_decisions=key_decisions,
            themes=_string_list(parsed.get("themes")),
            unknowns=_string_list(parsed.get("unknowns")),
        )
    except ValidationError as e:
        logger.warning(f"Summary failed schema validation: {e.error_count()} errors")
        return None


class DecisionSummarizer:
    """Produces the optional narrative summary."""

    def __init__(self, llm: Any, config: PipelineConfig):
        self.llm = llm
        self.config = config

    async def summarize(self, decisions: List[Candidate], request_id: str = "-") -> SummaryOutcome:
        """
        Summarize ranked decisions. Never raises.

        Args:
            decisions: Final ranked candidates
            request_id: Request identifier for log correlation

        Returns:
            SummaryOutcome
        """
        system_prompt, user_prompt = build_summary_prompts(decisions)
        logger.info(f"[{request_id}] Summarizing {len(decisions)} decisions")

        try:
            content = await invoke_with_timeout(
                self.llm, system_prompt, user_prompt, self.config.timeout_seconds
            )
        except (asyncio.TimeoutError, APITimeoutError):
            logger.error(f"[{request_id}] Summary timed out after {self.config.timeout_ms}ms")
            return SummaryOutcome(warning=TIMEOUT_WARNING)
        except Exception as e:
            logger.error(f"[{request_id}] Summary failed: [{type(e).__name__}] {e}")
            return SummaryOutcome(warning=FAILURE_WARNING)

        if not content.strip():
            return SummaryOutcome(warning=EMPTY_WARNING)

        parsed = parse_model_json(content)
        summary = validate_summary(parsed) if parsed is not None else None
        if summary is None:
            logger.warning(f"[{request_id}] Summary response rejected")
            return SummaryOutcome(warning=INVALID_WARNING)

        logger.info(f"[{request_id}] Summary complete: {len(summary.key_decisions)} key decisions")
        return SummaryOutcome(summary=summary)
