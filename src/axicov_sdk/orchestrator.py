"""
Tool Orchestrator - narrows an agent's tools for a single message.

Before each message the model is asked, in one extra round-trip, which of the
already-loaded tools the message needs. Only those tools are handed to the
execution loop for that turn. The pass is a single-shot heuristic: there is no
retry and nothing is remembered between messages.
"""

import json
import logging
import re
from typing import List, Literal, Mapping, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel, ConfigDict, Field

from .models import message_text
from .prompt import PROMPTS

logger = logging.getLogger(__name__)

INVALID_TOOL_PREFIX = "INVALID_TOOL:"

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class OrchestrationPolicy(BaseModel):
    """What to hand the execution loop when tool selection fails."""
    on_failure: Literal["none", "all"] = Field(
        default="none",
        description="'none' runs the turn without tools, 'all' offers every loaded tool",
    )


class ToolSelection(BaseModel):
    """Outcome of one orchestration pass."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tools: List[BaseTool] = Field(default_factory=list)
    requested: List[str] = Field(default_factory=list, description="Names exactly as returned by the model")
    missing_capabilities: List[str] = Field(default_factory=list)
    unmatched: List[str] = Field(default_factory=list)
    degraded: bool = False
    error: Optional[str] = None

    @property
    def tool_names(self) -> List[str]:
        return [tool.name for tool in self.tools]


class ToolOrchestrator:
    """Asks the model which loaded tools a message needs."""

    def __init__(self, model: BaseChatModel, policy: Optional[OrchestrationPolicy] = None):
        self.model = model
        self.policy = policy or OrchestrationPolicy()

    def build_prompt(self, tools: Mapping[str, BaseTool], tool_knowledge: Sequence[str] = ()) -> str:
        tool_list = "\n".join(f"- {name}: {tool.description}" for name, tool in tools.items())
        knowledge = "\n".join(f"- {hint}" for hint in tool_knowledge)
        return PROMPTS["orchestration"].format(
            tool_list=tool_list or "(none)",
            tool_knowledge=knowledge or "(none)",
        )

    @staticmethod
    def parse_reply(text: str) -> List[str]:
        """
        Parse the model reply as a JSON array of tool names.

        Raises:
            ValueError: If the reply is not a JSON array of strings
        """
        stripped = text.strip()
        fenced = _FENCE_PATTERN.match(stripped)
        if fenced:
            stripped = fenced.group(1)

        names = json.loads(stripped)
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise ValueError(f"Expected a JSON array of tool names, got: {stripped[:200]}")
        return names

    async def select_tools(
        self,
        tools: Mapping[str, BaseTool],
        message: str,
        tool_knowledge: Sequence[str] = (),
    ) -> ToolSelection:
        """
        Resolve the tools needed for one message. Never raises.

        Args:
            tools: Loaded tools, name -> tool
            message: Incoming user message
            tool_knowledge: Caller-supplied hints about when tools apply

        Returns:
            ToolSelection; `degraded` is set when the model reply was unusable
        """
        if not tools:
            return ToolSelection()

        prompt = self.build_prompt(tools, tool_knowledge)
        try:
            reply = await self.model.ainvoke([
                SystemMessage(content=prompt),
                HumanMessage(content=message),
            ])
            requested = self.parse_reply(message_text(reply.content))
        except Exception as e:
            logger.warning(f"Tool orchestration failed, falling back to policy '{self.policy.on_failure}': {e}")
            fallback = list(tools.values()) if self.policy.on_failure == "all" else []
            return ToolSelection(tools=fallback, degraded=True, error=str(e))

        selection = ToolSelection(requested=requested)
        for name in requested:
            # Sentinels are never looked up, even if a tool happens to share the name
            if name.startswith(INVALID_TOOL_PREFIX):
                selection.missing_capabilities.append(name[len(INVALID_TOOL_PREFIX):].strip())
                continue
            tool = tools.get(name)
            if tool is None:
                selection.unmatched.append(name)
            elif name not in selection.tool_names:
                selection.tools.append(tool)

        if selection.unmatched:
            logger.warning(f"Orchestrator returned unknown tools, dropped: {selection.unmatched}")
        if selection.missing_capabilities:
            logger.info(f"Orchestrator reported missing capabilities: {selection.missing_capabilities}")
        logger.debug(f"Orchestrator selected tools: {selection.tool_names}")
        return selection
