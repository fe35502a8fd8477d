import json

from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.core.summarizer import (
    EMPTY_WARNING,
    FAILURE_WARNING,
    INVALID_WARNING,
    TIMEOUT_WARNING,
    DecisionSummarizer,
    validate_summary,
)

from tests.fakes import FakeChatModel, hang, make_candidate

DECISIONS = [make_candidate("Open the Austin plant", evidence="We will open Austin in 2025.", page=3)]


async def test_valid_summary(config):
    payload = {
        "key_decisions": [
            {"decision": "Open the Austin plant", "why_it_matters": "Capacity", "source": {"fileName": "a.pdf", "page": 3}}
        ],
        "themes": ["growth"],
        "unknowns": ["budget"],
    }
    llm = FakeChatModel(lambda s, u: json.dumps(payload))

    outcome = await DecisionSummarizer(llm, config).summarize(DECISIONS)

    assert outcome.warning is None
    assert outcome.summary.key_decisions[0].source.page == 3
    assert outcome.summary.themes == ["growth"]


async def test_prompt_sends_only_decision_evidence_and_source(config, fake_llm):
    await DecisionSummarizer(fake_llm, config).summarize(DECISIONS)

    sent = json.loads(fake_llm.calls[0]["user"])
    assert sent == {
        "decisions": [
            {
                "decision": "Open the Austin plant",
                "evidence": "We will open Austin in 2025.",
                "source": {"fileName": "a.pdf", "page": 3},
            }
        ]
    }


async def test_invalid_json(config):
    outcome = await DecisionSummarizer(FakeChatModel(lambda s, u: "nope"), config).summarize(DECISIONS)

    assert outcome.summary is None
    assert outcome.warning == INVALID_WARNING


async def test_missing_key_decisions_is_invalid(config):
    llm = FakeChatModel(lambda s, u: '{"themes": ["x"]}')

    outcome = await DecisionSummarizer(llm, config).summarize(DECISIONS)

    assert outcome.summary is None
    assert outcome.warning == INVALID_WARNING


async def test_empty_response(config):
    outcome = await DecisionSummarizer(FakeChatModel(lambda s, u: ""), config).summarize(DECISIONS)

    assert outcome.warning == EMPTY_WARNING


async def test_timeout():
    summarizer = DecisionSummarizer(FakeChatModel(hang), PipelineConfig(timeout_ms=50))

    outcome = await summarizer.summarize(DECISIONS)

    assert outcome.summary is None
    assert outcome.warning == TIMEOUT_WARNING


async def test_model_error(config):
    llm = FakeChatModel(lambda s, u: ConnectionError("reset"))

    outcome = await DecisionSummarizer(llm, config).summarize(DECISIONS)

    assert outcome.warning == FAILURE_WARNING


def test_validate_summary_drops_malformed_optional_lists():
    summary = validate_summary({"key_decisions": [{"decision": "Ship it"}], "themes": "growth", "unknowns": [1]})

    assert summary.themes is None
    assert summary.unknowns is None


def test_validate_summary_rejects_bad_key_decisions():
    assert validate_summary({"key_decisions": "Ship it"}) is None
    assert validate_summary({"key_decisions": [{"why_it_matters": "no decision"}]}) is None
