from decision_intake.core.decision_aggregator import DecisionAggregator, merge_sources
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import EvidenceSource

from tests.fakes import make_candidate

ADVISORY = (
    "Fewer than 20 decisions were extracted. "
    "Provide more explicit decision language for richer output."
)


def test_duplicates_collapse_to_higher_score_with_merged_sources():
    low = make_candidate("Expand the Austin plant", score=55, page=1, evidence="low")
    high = make_candidate("expand the austin plant!", score=75, page=4, evidence="high")

    result = DecisionAggregator(PipelineConfig()).aggregate([low, high])

    assert len(result.decisions) == 1
    survivor = result.decisions[0]
    assert survivor.quality_score == 75
    assert survivor.source.page == 4
    assert [(s.page, s.excerpt) for s in survivor.sources] == [(1, "low"), (4, "high")]


def test_tie_keeps_first_seen():
    first = make_candidate("Open the plant", score=60, page=1, candidate_id="first")
    second = make_candidate("Open the plant", score=60, page=2, candidate_id="second")

    result = DecisionAggregator(PipelineConfig()).aggregate([first, second])

    assert [d.id for d in result.decisions] == ["first"]


def test_ranking_is_stable_by_score():
    candidates = [
        make_candidate("Alpha decision", score=55, candidate_id="a"),
        make_candidate("Beta decision", score=80, candidate_id="b"),
        make_candidate("Gamma decision", score=55, candidate_id="c"),
        make_candidate("Delta decision", score=67, candidate_id="d"),
    ]

    result = DecisionAggregator(PipelineConfig()).aggregate(candidates)

    assert [d.id for d in result.decisions] == ["b", "d", "a", "c"]


def test_cap_adds_trim_warning():
    candidates = [make_candidate(f"Decision {i}", candidate_id=str(i)) for i in range(5)]
    config = PipelineConfig(max_final_decisions=3, min_rich_decisions=0)

    result = DecisionAggregator(config).aggregate(candidates)

    assert len(result.decisions) == 3
    assert result.unique_count == 5
    assert result.warnings == ["Trimmed decision list to the top 3 items for speed."]


def test_advisory_warning_for_thin_results():
    result = DecisionAggregator(PipelineConfig()).aggregate([make_candidate("Open the plant")])

    assert result.warnings == [ADVISORY]


def test_no_advisory_for_empty_results():
    result = DecisionAggregator(PipelineConfig()).aggregate([])

    assert result.decisions == []
    assert result.warnings == []


def test_merge_sources_dedupes_triples():
    a = EvidenceSource(file_name="a.pdf", page=1, excerpt="x")
    b = EvidenceSource(file_name="a.pdf", page=2, excerpt="x")

    assert merge_sources([a], [a, b]) == [a, b]
