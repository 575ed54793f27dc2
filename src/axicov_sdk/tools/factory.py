"""
Tool factory helper - wraps a plain implementation into a registry-compatible factory.
"""

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from langchain_core.tools import StructuredTool
from pydantic import BaseModel

from .base import ToolBundle, ToolContext, ToolDescriptor, ToolFactory, ToolInput

logger = logging.getLogger(__name__)

Implementation = Callable[[Any, ToolContext], Union[Any, Awaitable[Any]]]
SchemaType = Union[Type[BaseModel], Dict[str, Any], None]


def _is_model_class(schema: SchemaType) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def _parse_args(schema: SchemaType, arguments: Dict[str, Any]) -> Any:
    """Validate raw call arguments; pydantic schemas yield a model instance."""
    if _is_model_class(schema):
        return schema(**arguments)
    return dict(arguments)


def _to_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    return json.dumps(result, default=str)


def create_tool(
    name: str,
    description: str,
    schema: SchemaType,
    implementation: Implementation,
    requires_approval: bool = False,
) -> ToolFactory:
    """
    Creates a tool factory whose tools receive an explicit ToolContext.

    Args:
        name: Tool name (unique within one agent)
        description: Description shown to the model
        schema: pydantic model class or JSON schema dict for the arguments
        implementation: Callable taking (args, context); may be async
        requires_approval: Whether calls need human approval

    Returns:
        A factory `factory(agent) -> ToolBundle` for the registry

    Example:
        class TransferInput(ToolInput):
            amount: float

        async def transfer(args: TransferInput, context: ToolContext) -> str:
            wallet = context.persistent_params.get("public_key")
            return f"Sent {args.amount} from {wallet}"

        transfer_factory = create_tool("transfer", "Send funds", TransferInput, transfer)
    """
    descriptor = ToolDescriptor(
        name=name,
        description=description,
        input_schema=schema,
        requires_approval=requires_approval,
    )
    args_schema: Optional[Any] = schema if schema is not None else ToolInput

    async def factory(agent) -> ToolBundle:
        async def _run(**kwargs: Any) -> str:
            # Context is built per call so runtime params are always current
            context = ToolContext.for_agent(agent)
            try:
                args = _parse_args(schema, kwargs)
                result = implementation(args, context)
                if inspect.isawaitable(result):
                    result = await result
                return _to_text(result)
            except Exception as e:
                logger.error(f"Error executing tool {name} for thread {context.thread_id}: {e}")
                return f"Error: {str(e) or 'Unknown error occurred'}"

        tool = StructuredTool.from_function(
            coroutine=_run,
            name=name,
            description=description,
            args_schema=args_schema,
        )
        return ToolBundle(tools=[tool], descriptors={name: descriptor})

    factory.__name__ = f"{name}_factory"
    factory.__qualname__ = factory.__name__
    return factory
