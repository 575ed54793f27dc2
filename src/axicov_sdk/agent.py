"""
Agent - one conversational agent bound to one conversation thread.

Lifecycle:
1. Construct with a thread id and persistent params (name, instruction, ...)
2. initialize() once: resolve tool factories, render the system prompt,
   open the checkpoint backend
3. send_message() any number of times
4. close() to release the checkpoint backend

The reasoning/tool-calling loop is LangGraph's prebuilt ReAct agent; state
between messages lives in the checkpoint saver, keyed by thread id.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.tools import BaseTool
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.prebuilt import create_react_agent
from pydantic import BaseModel, ConfigDict, Field

from .checkpoint import CheckpointManager, CheckpointMode
from .config import Settings
from .exceptions import AgentInitializationError, CheckpointConnectionError, MessageProcessingError
from .models import default_model_from_env, message_text
from .orchestrator import OrchestrationPolicy, ToolOrchestrator, ToolSelection
from .prompt import PROMPTS
from .registry import RegistryLike, SelectionItem, ToolLoadReport, load_tools
from .tools.base import ToolDescriptor, describe

logger = logging.getLogger(__name__)


class AgentParams(BaseModel):
    """Persistent, caller-supplied agent parameters."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., min_length=1)
    instruction: str = Field(..., min_length=1)
    tool_knowledge: List[str] = Field(default_factory=list, alias="toolKnowledge")
    public_key: Optional[str] = Field(default=None, alias="publicKey")


class AgentReply(BaseModel):
    """Result of one send_message() call."""
    thread_id: str
    response: str
    tool_calls: List[Dict[str, Any]] = Field(default_factory=list)
    tools_offered: List[str] = Field(default_factory=list)
    missing_capabilities: List[str] = Field(default_factory=list)
    orchestration_degraded: bool = False


def _current_turn(messages: Sequence[BaseMessage]) -> List[BaseMessage]:
    """Messages produced after the latest human message."""
    for index in range(len(messages) - 1, -1, -1):
        if isinstance(messages[index], HumanMessage):
            return list(messages[index + 1:])
    return list(messages)


class Agent:
    """A named agent owning its tools, prompt and checkpoint backend."""

    def __init__(
        self,
        thread_id: str,
        params: Union[AgentParams, Mapping[str, Any]],
        model: Optional[BaseChatModel] = None,
        orchestrate: Optional[bool] = None,
        orchestration_policy: Optional[OrchestrationPolicy] = None,
        orchestration_model: Optional[BaseChatModel] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Create an agent. The model is resolved immediately.

        Args:
            thread_id: Conversation thread (session key)
            params: Persistent params; at least name and instruction
            model: Chat model; defaults to one built from environment credentials
            orchestrate: Narrow tools per message (defaults to settings)
            orchestration_policy: Fallback behaviour when narrowing fails
            orchestration_model: Model used for narrowing (defaults to model)
            settings: Settings; read from the environment when omitted

        Raises:
            ModelInitializationError: If no model is given and none can be built
        """
        if not thread_id:
            raise ValueError("thread_id is required")

        self.settings = settings or Settings.from_environment()
        self.thread_id = thread_id
        self.params = params if isinstance(params, AgentParams) else AgentParams.model_validate(params)
        self.runtime_params: Dict[str, Any] = {}

        self.tools: Dict[str, BaseTool] = {}
        self.tool_descriptors: Dict[str, ToolDescriptor] = {}
        self.tool_metadata = ""
        self.tool_load_report: Optional[ToolLoadReport] = None

        self.model = model if model is not None else default_model_from_env(self.settings)
        self.orchestrate = self.settings.orchestration_enabled if orchestrate is None else orchestrate
        self.orchestrator = ToolOrchestrator(orchestration_model or self.model, orchestration_policy)

        self.system_prompt: Optional[SystemMessage] = None
        self.checkpoint_manager: Optional[CheckpointManager] = None
        self.checkpointer = None
        self.executor = None
        self.config = {"configurable": {"thread_id": thread_id}}

    @property
    def name(self) -> str:
        return self.params.name

    @property
    def tool_names(self) -> List[str]:
        return list(self.tools.keys())

    @property
    def initialized(self) -> bool:
        return self.executor is not None

    async def initialize(
        self,
        tool_numbers: Sequence[SelectionItem] = (),
        core_registry: RegistryLike = None,
        all_registry: RegistryLike = None,
        check_pointer: CheckpointMode = "local",
        mongo_uri: Optional[str] = None,
    ) -> ToolLoadReport:
        """
        Load tools, build the system prompt and open the checkpoint backend.

        Calling this again adds the newly resolved tools to the existing ones
        and replaces the tool metadata. The current checkpoint backend is kept
        until the new one connects. If initialization fails, the agent is left
        uninitialized and must be initialized again before sending messages.

        Args:
            tool_numbers: Selection from all_registry (indices or keys)
            core_registry: Factories always loaded
            all_registry: Factories available for selection
            check_pointer: "local" or "mongo"
            mongo_uri: Overrides settings.mongo_uri for "mongo"

        Returns:
            ToolLoadReport; inspect report.status for partial or total failure

        Raises:
            CheckpointConnectionError: If the checkpoint backend is unreachable
            AgentInitializationError: For any other initialization failure
        """
        try:
            report = await load_tools(self, tool_numbers, core_registry, all_registry)
        except Exception as e:
            logger.error(f"Failed to load tools for thread {self.thread_id}: {e}")
            raise AgentInitializationError(f"Agent initialization failed: {e}") from e
        self.tool_load_report = report

        self.system_prompt = SystemMessage(content=self.render_system_prompt())

        try:
            manager, checkpointer = await self._open_checkpointer(check_pointer, mongo_uri)
            executor = self._build_executor(list(self.tools.values()), checkpointer)
        except CheckpointConnectionError:
            self._invalidate()
            raise
        except Exception as e:
            logger.error(f"Agent initialization error for thread {self.thread_id}: {e}")
            self._invalidate()
            raise AgentInitializationError(f"Agent initialization failed: {e}") from e

        if manager is not self.checkpoint_manager:
            if self.checkpoint_manager is not None:
                await self.checkpoint_manager.close()
            self.checkpoint_manager = manager
        self.checkpointer = checkpointer
        self.executor = executor

        logger.info(
            f"Agent '{self.name}' initialized for thread {self.thread_id} "
            f"with {len(self.tools)} tools ({report.status.value}), checkpointer={check_pointer}"
        )
        return report

    def render_system_prompt(self) -> str:
        return PROMPTS["system"].format(
            name=self.params.name,
            instruction=self.params.instruction,
            public_key=self.params.public_key or "",
            current_time=datetime.now(timezone.utc).isoformat(),
            tool_metadata=self.tool_metadata or "No tools available",
        )

    async def _open_checkpointer(
        self, mode: CheckpointMode, mongo_uri: Optional[str]
    ) -> Tuple[CheckpointManager, BaseCheckpointSaver]:
        """Connect the backend for (mode, uri) without touching the current one."""
        uri = mongo_uri or self.settings.mongo_uri
        current = self.checkpoint_manager
        if current is not None and current.mode == mode and current.mongo_uri == uri:
            return current, await current.connect()

        manager = CheckpointManager(
            mode=mode,
            mongo_uri=uri,
            db_name=self.settings.mongo_db_name,
            max_retries=self.settings.checkpoint_max_retries,
            initial_backoff=self.settings.checkpoint_initial_backoff,
            max_backoff=self.settings.checkpoint_max_backoff,
        )
        try:
            checkpointer = await manager.connect()
        except Exception:
            await manager.close()
            raise
        return manager, checkpointer

    def _invalidate(self) -> None:
        # Tools may already include this run's additions; the old executor does not
        self.executor = None
        self.checkpointer = None

    def _build_executor(self, tools: List[BaseTool], checkpointer: Optional[BaseCheckpointSaver] = None):
        if checkpointer is None:
            checkpointer = self.checkpointer
        return create_react_agent(self.model, tools, checkpointer=checkpointer)

    async def _is_new_thread(self) -> bool:
        return await self.checkpointer.aget_tuple(self.config) is None

    async def select_tools(self, message: str) -> ToolSelection:
        """Run the orchestration pass for one message."""
        return await self.orchestrator.select_tools(self.tools, message, self.params.tool_knowledge)

    async def send_message(self, message: str, runtime_params: Optional[Mapping[str, Any]] = None) -> AgentReply:
        """
        Send a user message through the execution loop.

        Args:
            message: User message text
            runtime_params: Ephemeral params merged into runtime_params (not persisted)

        Returns:
            AgentReply with the final response and the tool calls of this turn

        Raises:
            AgentInitializationError: If initialize() has not completed
            MessageProcessingError: If the execution loop fails
        """
        if not self.initialized:
            raise AgentInitializationError(f"Agent for thread {self.thread_id} has not been initialized")
        if runtime_params:
            self.runtime_params.update(runtime_params)

        selection: Optional[ToolSelection] = None
        if self.orchestrate:
            selection = await self.select_tools(message)
            executor = self._build_executor(selection.tools)
            tools_offered = selection.tool_names
        else:
            executor = self.executor
            tools_offered = self.tool_names

        try:
            messages: List[BaseMessage] = []
            if await self._is_new_thread():
                messages.append(self.system_prompt)
            messages.append(HumanMessage(content=str(message)))

            result = await executor.ainvoke({"messages": messages}, self.config)
        except Exception as e:
            logger.error(f"Error invoking agent for thread {self.thread_id}: {e}")
            raise MessageProcessingError(f"Failed to process message: {e}") from e

        turn = _current_turn(result["messages"])
        tool_calls = [
            {"name": call["name"], "args": call["args"], "id": call.get("id")}
            for msg in turn
            if isinstance(msg, AIMessage)
            for call in msg.tool_calls
        ]
        response = message_text(turn[-1].content) if turn else ""

        return AgentReply(
            thread_id=self.thread_id,
            response=response,
            tool_calls=tool_calls,
            tools_offered=tools_offered,
            missing_capabilities=selection.missing_capabilities if selection else [],
            orchestration_degraded=selection.degraded if selection else False,
        )

    def info(self, detail_level: str = "minimal") -> Dict[str, Any]:
        """Summary used by the HTTP layer."""
        info: Dict[str, Any] = {
            "threadId": self.thread_id,
            "agentName": self.name,
            "toolCount": len(self.tools),
            "tools": self.tool_names,
            "orchestrate": self.orchestrate,
        }
        if detail_level != "minimal":
            info["toolDetails"] = [
                describe(descriptor, detail_level=detail_level)
                for descriptor in self.tool_descriptors.values()
            ]
            info["toolLoad"] = self.tool_load_report.summary() if self.tool_load_report else None
            info["checkpoint"] = self.checkpoint_manager.get_connection_info() if self.checkpoint_manager else None
        return info

    async def close(self) -> None:
        """Release the checkpoint backend."""
        if self.checkpoint_manager is not None:
            await self.checkpoint_manager.close()
        self.checkpointer = None
        self.executor = None
        logger.info(f"Agent for thread {self.thread_id} closed")

    def __repr__(self) -> str:
        return f"Agent(thread_id='{self.thread_id}', name='{self.name}', tools={len(self.tools)})"
