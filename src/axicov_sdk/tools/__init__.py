"""
Agent tools.

A tool factory takes an agent and returns a ToolBundle: LangChain tools plus
their descriptors. Factories are written either with `create_tool()` around a
plain function, or as a ToolBase subclass turned into a factory with
`as_factory()`. Every tool implementation receives an explicit ToolContext
carrying the thread id and the agent's params.
"""

from .base import ToolBase, ToolBundle, ToolContext, ToolDescriptor, ToolFactory, ToolInput
from .factory import create_tool

__all__ = [
    "ToolBase",
    "ToolBundle",
    "ToolContext",
    "ToolDescriptor",
    "ToolFactory",
    "ToolInput",
    "create_tool",
]
