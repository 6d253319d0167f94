"""Runtime infrastructure helpers for credentials, settings, tracing, and provider runnables."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import boto3
from google import genai
from langchain_core.runnables import Runnable, RunnableLambda
from langsmith import traceable
from langsmith.run_trees import get_cached_client
from openai import AsyncOpenAI

from farm_assistant.constants import (
    AWS_REGION,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_PREFERRED_PROVIDER,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    GOOGLE_API_KEY_PARAMETER_NAME,
    LANGSMITH_API_KEY_PARAMETER_NAME,
    LANGSMITH_PROJECT,
    OPENAI_API_KEY_PARAMETER_NAME,
)
from farm_assistant.provider_registry import ALLOWED_PROVIDERS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiCredentials:
    openai_api_key: str
    google_api_key: str | None
    langsmith_api_key: str | None


@dataclass(frozen=True)
class LLMSettings:
    openai_model: str
    gemini_model: str
    preferred_provider: str
    request_timeout_seconds: float
    orchestrator: str


def _get_secure_parameter(ssm_client: Any, parameter_name: str) -> str:
    result = ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
    value = result["Parameter"].get("Value")
    if not value:
        raise RuntimeError(f"SSM parameter {parameter_name} has no value")
    return value


def _get_optional_secure_parameter(ssm_client: Any, parameter_name: str) -> str | None:
    try:
        return _get_secure_parameter(ssm_client, parameter_name)
    except Exception:
        logger.warning(
            "Optional SSM parameter is unavailable; disabling dependent feature",
            extra={"parameter_name": parameter_name},
            exc_info=True,
        )
        return None


@lru_cache(maxsize=1)
def get_api_credentials() -> ApiCredentials:
    ssm_client = boto3.client("ssm", region_name=AWS_REGION)
    return ApiCredentials(
        openai_api_key=_get_secure_parameter(ssm_client, OPENAI_API_KEY_PARAMETER_NAME),
        google_api_key=_get_optional_secure_parameter(ssm_client, GOOGLE_API_KEY_PARAMETER_NAME),
        langsmith_api_key=_get_optional_secure_parameter(
            ssm_client, LANGSMITH_API_KEY_PARAMETER_NAME
        ),
    )


def _read_timeout(raw: str | None) -> float:
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid LLM_REQUEST_TIMEOUT_SECONDS", extra={"value": raw})
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    return timeout if timeout > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """Read model and failover settings from the environment."""
    preferred = os.environ.get("LLM_PREFERRED_PROVIDER", DEFAULT_PREFERRED_PROVIDER).lower()
    if preferred not in ALLOWED_PROVIDERS:
        logger.warning(
            "Unknown preferred provider; using default",
            extra={"preferred_provider": preferred},
        )
        preferred = DEFAULT_PREFERRED_PROVIDER
    return LLMSettings(
        openai_model=os.environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        gemini_model=os.environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        preferred_provider=preferred,
        request_timeout_seconds=_read_timeout(os.environ.get("LLM_REQUEST_TIMEOUT_SECONDS")),
        orchestrator=os.environ.get("CHAT_ORCHESTRATOR", "failover").lower(),
    )


def _configure_langsmith(langsmith_api_key: str | None) -> None:
    if not langsmith_api_key:
        os.environ.pop("LANGSMITH_TRACING", None)
        os.environ.pop("LANGSMITH_API_KEY", None)
        logger.info("LangSmith tracing disabled because API key is unavailable")
        return

    os.environ["LANGSMITH_TRACING"] = "true"
    os.environ["LANGSMITH_API_KEY"] = langsmith_api_key
    os.environ.setdefault("LANGSMITH_PROJECT", LANGSMITH_PROJECT)


@lru_cache(maxsize=1)
def ensure_langsmith_configured() -> None:
    """Configure LangSmith environment variables (called once via lru_cache)."""
    credentials = get_api_credentials()
    _configure_langsmith(credentials.langsmith_api_key)


def flush_langsmith_traces() -> None:
    if os.environ.get("LANGSMITH_TRACING", "").lower() != "true":
        return
    if not os.environ.get("LANGSMITH_API_KEY"):
        return
    try:
        get_cached_client().flush()
    except Exception:
        logger.warning("Failed to flush LangSmith traces", exc_info=True)


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    ensure_langsmith_configured()
    credentials = get_api_credentials()
    return AsyncOpenAI(api_key=credentials.openai_api_key)


@lru_cache(maxsize=1)
def get_gemini_client() -> genai.Client:
    ensure_langsmith_configured()
    credentials = get_api_credentials()
    if not credentials.google_api_key:
        raise RuntimeError("Google API key is not configured")
    return genai.Client(api_key=credentials.google_api_key)


@traceable(run_type="llm", name="openai.chat.completions.create")
async def _invoke_openai_chat(request_params: dict[str, Any]) -> Any:
    client = get_openai_client()
    return await client.chat.completions.create(**request_params)


@traceable(run_type="llm", name="gemini.models.generate_content")
async def _invoke_gemini(params: dict[str, Any]) -> Any:
    client = get_gemini_client()
    return await client.aio.models.generate_content(
        model=params["model"],
        contents=params["contents"],
        config=params.get("config"),
    )


@lru_cache(maxsize=1)
def get_openai_runnable() -> Runnable[dict[str, Any], Any]:
    return RunnableLambda(_invoke_openai_chat).with_config(
        {"run_name": "farm_assistant_openai_chat"}
    )


@lru_cache(maxsize=1)
def get_gemini_runnable() -> Runnable[dict[str, Any], Any]:
    return RunnableLambda(_invoke_gemini).with_config(
        {"run_name": "farm_assistant_gemini_generate"}
    )
