import pytest
from fastapi.testclient import TestClient

from decision_intake import __version__
from decision_intake.core.input_normalizer import NON_PDF_WARNING
from decision_intake.core.langgraph_orchestrator import DecisionIntakeOrchestrator
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import IntakeMode
from decision_intake.server import MISSING_CREDENTIALS_MESSAGE, create_app, parse_mode
from decision_intake.settings import Settings

from tests.fakes import FakeChatModel, StaticPDFProcessor
from tests.test_orchestrator import MEMO, memo_responder


@pytest.fixture
def llm():
    return FakeChatModel(memo_responder)


@pytest.fixture
def client(llm):
    pipeline = DecisionIntakeOrchestrator(
        PipelineConfig(timeout_ms=500),
        llm,
        pdf_processor=StaticPDFProcessor(pages={"plan.pdf": ["We will open the plant."]}),
    )
    settings = Settings(openai_api_key="sk-test", openai_model="gpt-4o-mini")
    return TestClient(create_app(orchestrator=pipeline, config=settings))


def test_health(client):
    response = client.get("/decision-intake/health")

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "has_api_key": True,
        "model": "gpt-4o-mini",
        "version": __version__,
    }


def test_memo_request(client):
    response = client.post("/decision-intake", data={"memo": MEMO, "mode": "extract+summarize"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["decisions"]) == 2
    assert body["summary"]["themes"] == ["growth"]
    assert body["meta"]["stage"] == "done"
    assert "error" not in body


def test_unknown_mode_falls_back_to_extract_and_summarize(client, llm):
    response = client.post("/decision-intake", data={"memo": MEMO, "mode": "everything"})

    assert response.status_code == 200
    assert response.json()["summary"] is not None
    assert len(llm.summary_calls) == 1


def test_empty_request_is_400(client, llm):
    response = client.post("/decision-intake", data={"memo": ""})

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["message"] == "Add PDFs or paste text to extract decisions."
    assert body["error"]["errorId"]
    assert body["decisions"] == []
    assert body["meta"]["stage"] == "error"
    assert llm.calls == []


def test_file_uploads(client):
    files = [
        ("files", ("plan.pdf", b"%PDF-1.4", "application/pdf")),
        ("files", ("notes.txt", b"hello", "text/plain")),
    ]

    response = client.post("/decision-intake", data={"mode": "extract"}, files=files)

    assert response.status_code == 200
    body = response.json()
    assert NON_PDF_WARNING in body["meta"]["warnings"]
    assert body["meta"]["pages_processed"] == 1
    assert body["summary"] is None


def test_missing_credentials_is_500():
    settings = Settings(llm_provider="openai", openai_api_key=None)
    client = TestClient(create_app(config=settings))

    response = client.post("/decision-intake", data={"memo": MEMO})

    assert response.status_code == 500
    assert response.json()["error"]["message"] == MISSING_CREDENTIALS_MESSAGE
    assert client.get("/decision-intake/health").json()["has_api_key"] is False


def test_parse_mode():
    assert parse_mode("extract") is IntakeMode.EXTRACT
    assert parse_mode("summarize") is IntakeMode.SUMMARIZE
    assert parse_mode("bogus") is IntakeMode.EXTRACT_AND_SUMMARIZE
    assert parse_mode(None) is IntakeMode.EXTRACT_AND_SUMMARIZE
