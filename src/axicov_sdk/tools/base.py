"""
Base classes and types for agent tools.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Union
from langchain_core.tools import BaseTool
from pydantic import BaseModel, ConfigDict, Field


class ToolDescriptor(BaseModel):
    """Metadata describing a tool. Identity is the tool name."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique identifier for the tool within one agent")
    description: str = Field(..., description="Human-readable description of what the tool does")
    input_schema: Any = Field(
        default=None,
        alias="schema",
        description="Parameter schema: a pydantic model class or a JSON schema dict",
    )
    requires_approval: bool = Field(
        default=False,
        alias="requiresApproval",
        description="Whether a human has to approve calls to this tool",
    )

    def get_input_schema(self) -> Dict[str, Any]:
        """Get JSON Schema for tool input."""
        if isinstance(self.input_schema, type) and issubclass(self.input_schema, BaseModel):
            return self.input_schema.model_json_schema()
        return dict(self.input_schema or {})


class ToolBundle(BaseModel):
    """What a tool factory hands back: callable tools plus their descriptors."""
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    tools: List[BaseTool] = Field(default_factory=list)
    descriptors: Dict[str, ToolDescriptor] = Field(default_factory=dict, alias="schema")


class ToolInput(BaseModel):
    """Base class for tool input schemas."""
    pass


class ToolContext(BaseModel):
    """Context passed explicitly to every tool invocation."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    thread_id: str
    agent: Any = Field(default=None, exclude=True)  # Agent
    persistent_params: Dict[str, Any] = Field(default_factory=dict)
    runtime_params: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def for_agent(cls, agent) -> "ToolContext":
        """Snapshot the agent state a tool is allowed to see."""
        params = agent.params
        if isinstance(params, BaseModel):
            params = params.model_dump()
        return cls(
            thread_id=agent.thread_id,
            agent=agent,
            persistent_params=dict(params or {}),
            runtime_params=dict(agent.runtime_params or {}),
        )


ToolFactoryResult = Union[ToolBundle, Dict[str, Any]]
ToolFactory = Callable[[Any], Union[ToolFactoryResult, Awaitable[ToolFactoryResult]]]


class ToolBase(ABC):
    """
    Base class for class-defined tools.

    Each tool should:
    1. Define METADATA as a class attribute
    2. Define InputSchema as a nested class
    3. Implement the execute() method

    Tool classes are not registered directly; `as_factory()` turns one into a
    tool factory that the registry can resolve against an agent.
    """

    METADATA: ToolDescriptor
    InputSchema = ToolInput

    @abstractmethod
    async def execute(self, input_data: ToolInput, context: ToolContext) -> Any:
        """
        Execute the tool with validated input and the calling agent's context.

        Args:
            input_data: Validated input matching InputSchema
            context: Explicit invocation context (thread id, params)

        Returns:
            Anything the model can read; non-strings are JSON encoded
        """
        pass

    @classmethod
    def get_metadata(cls) -> ToolDescriptor:
        """Get tool metadata with the input schema attached."""
        if cls.METADATA.input_schema is None:
            return cls.METADATA.model_copy(update={"input_schema": cls.InputSchema})
        return cls.METADATA

    @classmethod
    def as_factory(cls) -> ToolFactory:
        """Wrap the tool class in a registry-compatible factory."""
        from .factory import create_tool

        metadata = cls.get_metadata()

        async def _execute(args: ToolInput, context: ToolContext) -> Any:
            return await cls().execute(args, context)

        factory = create_tool(
            name=metadata.name,
            description=metadata.description,
            schema=metadata.input_schema,
            implementation=_execute,
            requires_approval=metadata.requires_approval,
        )
        factory.__name__ = f"{cls.__name__}_factory"
        return factory


def describe(descriptor: ToolDescriptor, *, detail_level: str = "standard") -> Dict[str, Any]:
    """Render a descriptor for API responses."""
    if detail_level == "minimal":
        return {"name": descriptor.name}
    info: Dict[str, Any] = {
        "name": descriptor.name,
        "description": descriptor.description,
        "requiresApproval": descriptor.requires_approval,
    }
    if detail_level == "full":
        info["inputSchema"] = descriptor.get_input_schema()
    return info
