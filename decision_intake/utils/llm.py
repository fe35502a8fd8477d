"""
LLM client provider for decision intake.

Builds a LangChain chat model for the configured provider (OpenAI, Azure
OpenAI or a LiteLLM proxy) in JSON mode, and wraps a single timed call.
"""
import asyncio
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from decision_intake.settings import Settings, settings as default_settings
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

JSON_MODE = {"response_format": {"type": "json_object"}}


def get_llm(
    temperature: Optional[float] = None,
    config: Optional[Settings] = None,
) -> BaseChatModel:
    """
    Initialize and return the chat model for the configured provider.

    Retries are disabled: each chunk gets exactly one attempt and the
    pipeline enforces its own per-call timeout.

    Args:
        temperature: Override the extraction temperature
        config: Settings instance (the global settings when omitted)

    Returns:
        Configured chat model (ChatOpenAI or AzureChatOpenAI)

    Raises:
        ValueError: If the provider is unknown or missing credentials
    """
    config = config or default_settings
    provider = config.llm_provider.lower()
    temp = config.extraction_temperature if temperature is None else temperature
    request_timeout = config.openai_timeout_ms / 1000.0

    if provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OpenAI requires OPENAI_API_KEY to be set.")
        llm = ChatOpenAI(
            model=config.openai_model,
            api_key=config.openai_api_key,
            temperature=temp,
            max_tokens=config.llm_max_tokens,
            timeout=request_timeout,
            max_retries=0,
            model_kwargs=JSON_MODE,
        )
    elif provider == "azure":
        if not config.azure_openai_api_key or not config.azure_openai_endpoint:
            raise ValueError("Azure OpenAI requires AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT to be set.")
        llm = AzureChatOpenAI(
            azure_deployment=config.azure_openai_deployment,
            api_version=config.azure_openai_api_version,
            azure_endpoint=config.azure_openai_endpoint,
            api_key=config.azure_openai_api_key,
            temperature=temp,
            max_tokens=config.llm_max_tokens,
            timeout=request_timeout,
            max_retries=0,
            model_kwargs=JSON_MODE,
        )
    elif provider == "proxy":
        if not config.llm_api_key or not config.llm_endpoint:
            raise ValueError("LiteLLM proxy requires LLM_API_KEY and LLM_ENDPOINT to be set.")
        llm = ChatOpenAI(
            model=config.llm_model,
            api_key=config.llm_api_key,
            base_url=config.llm_endpoint,
            temperature=temp,
            max_tokens=config.llm_max_tokens,
            timeout=request_timeout,
            max_retries=0,
            model_kwargs=JSON_MODE,
        )
    else:
        raise ValueError(f"Invalid LLM_PROVIDER: {provider}. Must be 'openai', 'azure', or 'proxy'.")

    logger.info(f"Initialized {provider} chat model: model={config.active_model}, temperature={temp}")
    return llm


def _content_to_text(content: Any) -> str:
    """Flatten message content (string or list of content parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


async def invoke_with_timeout(
    llm: Any,
    system_prompt: str,
    user_prompt: str,
    timeout_seconds: float,
) -> str:
    """
    Make one chat call, cancelled if it outlives `timeout_seconds`.

    Args:
        llm: Chat model exposing `ainvoke(messages)`
        system_prompt: System message
        user_prompt: User message
        timeout_seconds: Per-call timeout

    Returns:
        Response content as text

    Raises:
        asyncio.TimeoutError: If the call timed out
    """
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
    response = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout_seconds)
    return _content_to_text(getattr(response, "content", ""))
