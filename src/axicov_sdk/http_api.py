from contextlib import asynccontextmanager
import logging
import time
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .agent import Agent, AgentParams
from .config import Settings
from .exceptions import AgentExistsError, AgentNotFoundError
from .models import ModelConfig, create_model_from_config
from .registry import RegistryLike, ToolRegistry
from .store import AgentStore

logger = logging.getLogger(__name__)

ModelFactory = Callable[[ModelConfig], BaseChatModel]

ENDPOINTS = [
    "POST /agent/create - Create a new agent",
    "POST /send - Send message to agent",
    "GET /agent/{threadId} - Get agent info",
    "GET /agents - List all agents",
    "DELETE /agent/{threadId} - Delete agent",
    "GET /tools - List registered tool factories",
    "GET /health - Health check",
]


# Pydantic models for request bodies
class CreateAgentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    thread_id: Optional[str] = Field(default=None, alias="threadId")
    llm_config: Optional[Dict[str, Any]] = Field(default=None, alias="modelConfig")
    params: Optional[Dict[str, Any]] = None
    tool_numbers: List[Union[int, str]] = Field(default_factory=list, alias="toolNumbers")
    tools: List[str] = Field(default_factory=list, description="Stable registry keys, added to toolNumbers")
    check_pointer: Literal["local", "mongo"] = Field(default="local", alias="checkPointer")
    mongo_uri: Optional[str] = Field(default=None, alias="mongoUri")
    orchestrate: Optional[bool] = None


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thread_id: Optional[str] = Field(default=None, alias="threadId")
    message: Optional[str] = None
    runtime_params: Optional[Dict[str, Any]] = Field(default=None, alias="runtimeParams")


def _registry_listing(registry: RegistryLike) -> List[Dict[str, Any]]:
    if registry is None:
        return []
    keys = registry.keys() if isinstance(registry, ToolRegistry) else [
        getattr(factory, "__name__", f"factory_{index}") for index, factory in enumerate(registry)
    ]
    return [{"index": index, "key": key} for index, key in enumerate(keys)]


def create_app(
    store: Optional[AgentStore] = None,
    core_registry: RegistryLike = None,
    all_registry: RegistryLike = None,
    model_factory: ModelFactory = create_model_from_config,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the HTTP app.

    Args:
        store: Live agent store (defaults to the process-wide instance)
        core_registry: Factories every agent gets
        all_registry: Factories selectable through toolNumbers / tools
        model_factory: Builds the chat model from a request's modelConfig
        settings: Settings (defaults to the environment)
    """
    store = store or AgentStore.get_instance()
    settings = settings or Settings.from_environment()
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await store.close_all()

    app = FastAPI(title="Axicov SDK Server", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"success": False, "error": errors or "Invalid request"})

    @app.post("/agent/create", status_code=201)
    async def create_agent(request: CreateAgentRequest):
        """Create, initialize and store an agent for a thread."""
        if not request.thread_id:
            raise HTTPException(status_code=400, detail="threadId is required")

        llm_config = request.llm_config or {}
        if not all(llm_config.get(key) for key in ("provider", "modelName", "apiKey")):
            raise HTTPException(
                status_code=400,
                detail="modelConfig with provider, modelName, and apiKey is required",
            )

        params = request.params or {}
        if not params.get("name") or not params.get("instruction"):
            raise HTTPException(status_code=400, detail="params with name and instruction are required")

        if store.has_agent(request.thread_id):
            raise HTTPException(
                status_code=409,
                detail="Agent with this threadId already exists. Use DELETE /agent/:threadId first.",
            )

        try:
            model_config = ModelConfig.model_validate(llm_config)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid modelConfig: {e.errors()[0]['msg']}")

        try:
            agent_params = AgentParams.model_validate(params)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise HTTPException(status_code=400, detail=f"Invalid params: {field}: {error['msg']}")

        agent = None
        try:
            agent = Agent(
                thread_id=request.thread_id,
                params=agent_params,
                model=model_factory(model_config),
                orchestrate=request.orchestrate,
                settings=settings,
            )
            report = await agent.initialize(
                tool_numbers=[*request.tool_numbers, *request.tools],
                core_registry=core_registry,
                all_registry=all_registry,
                check_pointer=request.check_pointer,
                mongo_uri=request.mongo_uri,
            )
            await store.register(request.thread_id, agent)
        except AgentExistsError as e:
            await agent.close()
            raise HTTPException(status_code=409, detail=str(e))
        except Exception as e:
            logger.error(f"Error creating agent: {e}")
            if agent is not None:
                await agent.close()
            raise HTTPException(status_code=500, detail=str(e) or "Failed to create agent")

        return {
            "success": True,
            "message": "Agent created successfully",
            "threadId": request.thread_id,
            "agentName": agent.name,
            "toolLoad": report.summary(),
        }

    @app.post("/send")
    async def send_message(request: SendMessageRequest):
        """Send a message to an existing agent."""
        if not request.thread_id:
            raise HTTPException(status_code=400, detail="threadId is required")
        if not request.message:
            raise HTTPException(status_code=400, detail="message is required")

        agent = store.get(request.thread_id)
        if agent is None:
            raise HTTPException(
                status_code=404,
                detail="Agent not found. Please create an agent first using POST /agent/create",
            )

        try:
            reply = await agent.send_message(request.message, request.runtime_params)
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            raise HTTPException(status_code=500, detail=str(e) or "Failed to process message")

        body: Dict[str, Any] = {
            "success": True,
            "threadId": request.thread_id,
            "response": reply.response,
            "tools": reply.tools_offered,
        }
        if reply.tool_calls:
            body["toolCalls"] = reply.tool_calls
        if reply.missing_capabilities:
            body["missingCapabilities"] = reply.missing_capabilities
        return body

    @app.get("/agent/{thread_id}")
    async def get_agent(thread_id: str, detail: Literal["minimal", "standard", "full"] = "minimal"):
        agent = store.get(thread_id)
        if agent is None:
            raise HTTPException(status_code=404, detail="Agent not found")
        return {"success": True, **agent.info(detail)}

    @app.get("/agents")
    async def list_agents():
        agents = store.list_agents()
        return {"success": True, "count": len(agents), "agents": agents}

    @app.delete("/agent/{thread_id}")
    async def delete_agent(thread_id: str):
        try:
            await store.remove(thread_id)
        except AgentNotFoundError:
            raise HTTPException(status_code=404, detail="Agent not found")
        return {"success": True, "message": "Agent deleted successfully", "threadId": thread_id}

    @app.get("/tools")
    async def list_tools():
        return {
            "success": True,
            "core": _registry_listing(core_registry),
            "all": _registry_listing(all_registry),
        }

    @app.get("/health")
    async def health():
        return {
            "success": True,
            "status": "healthy",
            "activeAgents": store.count(),
            "uptime": time.monotonic() - started_at,
        }

    return app


def _default_app() -> FastAPI:
    from .tools.builtin import CORE_REGISTRY, TOOL_REGISTRY

    return create_app(core_registry=CORE_REGISTRY, all_registry=TOOL_REGISTRY)


app = _default_app()
