"""
Configuration settings for the Decision Intake service.
Uses Pydantic BaseSettings for type-safe configuration with .env file support.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Decision Intake Settings.

    All settings can be configured via environment variables.
    Create a .env file in the working directory for local configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Server Configuration =====
    server_host: str = "0.0.0.0"
    server_port: int = 8001

    # ===== Service Metadata =====
    service_name: str = "Decision Intake"

    # ===== Logging Configuration =====
    log_level: str = "INFO"
    log_format: str = "text"  # Options: json, text
    log_file: Optional[str] = None  # e.g., "logs/decision_intake.log"
    log_rotation: str = "10MB"
    log_retention_days: int = 30

    # ===== LLM Provider Configuration =====
    llm_provider: str = "openai"  # Options: openai, azure, proxy
    llm_max_tokens: int = 4000
    extraction_temperature: float = 0.1
    summary_temperature: float = 0.2

    # ===== OpenAI Configuration =====
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # ===== Azure OpenAI Configuration =====
    azure_openai_api_key: Optional[str] = None
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_version: str = "2024-02-15-preview"
    azure_openai_deployment: str = "gpt-4o-mini"

    # ===== LiteLLM Proxy Configuration =====
    llm_api_key: Optional[str] = None
    llm_endpoint: Optional[str] = None
    llm_model: str = "gpt-4o-mini"

    # ===== Input Limits =====
    max_total_chars: int = 250_000
    max_pages: int = 20

    # ===== Chunking Configuration =====
    chunk_char_limit: int = 12_000
    chunk_page_limit: int = 2
    max_chunks: int = 8

    # ===== Extraction Configuration =====
    max_candidates_per_chunk: int = 25
    openai_timeout_ms: int = 18_000
    chunk_concurrency: int = 2  # Kept low to avoid rate/token limiting
    evidence_char_limit: int = 220
    filter_vague_decisions: bool = False

    # ===== Ranking Configuration =====
    max_final_decisions: int = 80
    min_rich_decisions: int = 20

    @property
    def active_model(self) -> str:
        """Model (or deployment) name for the configured provider."""
        provider = self.llm_provider.lower()
        if provider == "azure":
            return self.azure_openai_deployment
        if provider == "proxy":
            return self.llm_model
        return self.openai_model

    @property
    def has_api_key(self) -> bool:
        """Whether credentials for the configured provider are present."""
        provider = self.llm_provider.lower()
        if provider == "azure":
            return bool(self.azure_openai_api_key and self.azure_openai_endpoint)
        if provider == "proxy":
            return bool(self.llm_api_key and self.llm_endpoint)
        return bool(self.openai_api_key)


# Global settings instance
settings = Settings()
