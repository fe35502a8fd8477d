import pytest

from decision_intake.core.pipeline_config import PipelineConfig

from tests.fakes import FakeChatModel


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(timeout_ms=200)


@pytest.fixture
def fake_llm() -> FakeChatModel:
    return FakeChatModel()
