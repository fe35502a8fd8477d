"""
HTTP server for decision intake.

FastAPI application exposing the pipeline entrypoint and a health check.
"""
import time
import uuid
from typing import List, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from decision_intake import __version__
from decision_intake.core.langgraph_orchestrator import DecisionIntakeOrchestrator
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import (
    Document,
    ErrorInfo,
    IntakeMode,
    IntakeRequest,
    IntakeResponse,
    PipelineMeta,
    PipelineStage,
)
from decision_intake.settings import Settings, settings as default_settings
from decision_intake.utils.llm import get_llm
from decision_intake.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Model credentials are missing in the runtime environment."


def parse_mode(value: Optional[str]) -> IntakeMode:
    """Map a form value to a mode; anything unknown means extract+summarize."""
    try:
        return IntakeMode(value)
    except ValueError:
        return IntakeMode.EXTRACT_AND_SUMMARIZE


def build_orchestrator(config: Settings) -> DecisionIntakeOrchestrator:
    """
    Build the orchestrator from environment settings.

    Raises:
        ValueError: If the configured provider has no credentials
    """
    return DecisionIntakeOrchestrator(
        config=PipelineConfig.from_settings(config),
        llm=get_llm(temperature=config.extraction_temperature, config=config),
        summary_llm=get_llm(temperature=config.summary_temperature, config=config),
    )


def create_app(
    orchestrator: Optional[DecisionIntakeOrchestrator] = None,
    config: Optional[Settings] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator (built lazily from settings when omitted)
        config: Settings instance (the global settings when omitted)

    Returns:
        Configured FastAPI application
    """
    config = config or default_settings
    app = FastAPI(title=config.service_name, version=__version__)
    app.state.orchestrator = orchestrator

    def get_orchestrator() -> DecisionIntakeOrchestrator:
        if app.state.orchestrator is None:
            app.state.orchestrator = build_orchestrator(config)
        return app.state.orchestrator

    @app.get("/decision-intake/health")
    async def health_check():
        """Report whether the service is configured to call the model."""
        return {
            "ok": True,
            "has_api_key": config.has_api_key,
            "model": config.active_model,
            "version": __version__,
        }

    @app.post("/decision-intake")
    async def decision_intake(
        memo: str = Form(default=""),
        mode: str = Form(default=IntakeMode.EXTRACT_AND_SUMMARIZE.value),
        files: List[UploadFile] = File(default=[]),
    ):
        """Extract decisions from pasted text and uploaded PDFs."""
        started = time.monotonic()

        try:
            pipeline = get_orchestrator()
        except ValueError as e:
            error_id = str(uuid.uuid4())
            logger.error(f"[{error_id}] Cannot build orchestrator: {e}", extra={"error_id": error_id})
            response = IntakeResponse(
                meta=PipelineMeta(
                    stage=PipelineStage.ERROR,
                    timing_ms=int((time.monotonic() - started) * 1000),
                ),
                error=ErrorInfo(message=MISSING_CREDENTIALS_MESSAGE, error_id=error_id),
                status_code=500,
            )
            return JSONResponse(status_code=response.status_code, content=response.to_wire())

        documents = []
        for upload in files:
            documents.append(
                Document(
                    file_name=upload.filename or "document.pdf",
                    content=await upload.read(),
                    content_type=upload.content_type,
                )
            )

        request = IntakeRequest(memo_text=memo, documents=documents, mode=parse_mode(mode))
        response = await pipeline.process(request)
        if response.is_error:
            logger.warning(
                f"[{response.error.error_id}] Intake request rejected with {response.status_code}: "
                f"{response.error.message}"
            )
        return JSONResponse(status_code=response.status_code, content=response.to_wire())

    logger.info(f"Decision intake server created: {config.service_name} v{__version__}")
    return app


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    setup_logging(default_settings)

    logger.info("=" * 80)
    logger.info(f"Starting {default_settings.service_name}")
    logger.info("=" * 80)
    logger.info(f"Server: http://{default_settings.server_host}:{default_settings.server_port}")
    logger.info("Entrypoint: POST /decision-intake")
    logger.info("Health check: GET /decision-intake/health")
    logger.info("=" * 80)

    uvicorn.run(
        create_app(),
        host=default_settings.server_host,
        port=default_settings.server_port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
