"""Farm assistant chat API using FastAPI + Mangum for AWS Lambda."""

import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from mangum import Mangum

from farm_assistant.constants import CHAT_RATE_LIMIT_MAX, CHAT_RATE_LIMIT_WINDOW_MS, ToolCategory
from farm_assistant.errors import BadRequestError, OrchestrationError
from farm_assistant.infra.runtime import (
    ensure_langsmith_configured,
    flush_langsmith_traces,
    get_api_credentials,
    get_gemini_runnable,
    get_llm_settings,
    get_openai_runnable,
)
from farm_assistant.orchestration.base import ChatOrchestrator
from farm_assistant.orchestration.failover import FailoverChatOrchestrator, build_provider_order
from farm_assistant.orchestration.langgraph_flow import LangGraphChatOrchestrator
from farm_assistant.providers.base import ChatProvider
from farm_assistant.providers.gemini_provider import GeminiChatProvider
from farm_assistant.providers.openai_provider import OpenAIChatProvider
from farm_assistant.rate_limit import MemoryRateLimiterStore, RateLimiter, get_client_identifier
from farm_assistant.schemas import ChatRequest, ChatResponse
from farm_assistant.services.chat_service import ChatService
from farm_assistant.services.response_validator import ResponseValidator
from farm_assistant.tools.catalog import build_default_registry
from farm_assistant.tools.dispatcher import RegistryToolDispatcher, ToolHandler

logging.getLogger().setLevel(logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI()
router = APIRouter(prefix="/api")

rate_limiter = RateLimiter(MemoryRateLimiterStore())


def get_tool_handlers() -> Mapping[str, ToolHandler]:
    """Handlers for partner integrations; deployments register theirs here."""
    return {}


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    settings = get_llm_settings()
    credentials = get_api_credentials()

    providers: dict[str, ChatProvider] = {
        "openai": OpenAIChatProvider(get_openai_runnable, model=settings.openai_model),
    }
    if credentials.google_api_key:
        providers["gemini"] = GeminiChatProvider(get_gemini_runnable, model=settings.gemini_model)
    else:
        logger.warning("Google API key unavailable; running without a fallback provider")

    primary, fallback = build_provider_order(settings.preferred_provider, providers)
    orchestrator: ChatOrchestrator
    if settings.orchestrator == "langgraph":
        orchestrator = LangGraphChatOrchestrator(primary, fallback)
    else:
        orchestrator = FailoverChatOrchestrator(primary, fallback)
    registry = build_default_registry()
    return ChatService(
        orchestrator=orchestrator,
        registry=registry,
        dispatcher=RegistryToolDispatcher(registry, get_tool_handlers()),
        validator=ResponseValidator(orchestrator),
        request_timeout_seconds=settings.request_timeout_seconds,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request) -> ChatResponse:
    """Run the tool-augmented chat loop and return the cleaned answer."""
    client_id = get_client_identifier(http_request)
    decision = await rate_limiter.allow(
        f"chat:{client_id}", CHAT_RATE_LIMIT_MAX, CHAT_RATE_LIMIT_WINDOW_MS
    )
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please try again later.",
            headers={"X-RateLimit-Remaining": str(decision.remaining)},
        )

    ensure_langsmith_configured()
    try:
        return await get_chat_service().handle_chat(request)
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except OrchestrationError as e:
        logger.exception("All LLM providers failed")
        raise HTTPException(
            status_code=503, detail="AI providers are currently unavailable"
        ) from e
    except Exception as e:
        logger.exception("Chat request failed")
        raise HTTPException(status_code=502, detail=str(e)) from e
    finally:
        flush_langsmith_traces()


@router.get("/tools")
def list_tools(category: ToolCategory | None = None) -> list[dict[str, Any]]:
    registry = build_default_registry()
    specs = registry.list_tools([category] if category else None)
    return [
        {
            "name": spec.name,
            "description": spec.description,
            "category": spec.category,
            "requiresDataSource": spec.requires_data_source,
            "parameters": spec.parameters,
        }
        for spec in specs
    ]


@router.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(router)


handler = Mangum(app)
