import asyncio

from .agent import Agent, AgentParams, AgentReply
from .orchestrator import OrchestrationPolicy, ToolOrchestrator, ToolSelection
from .registry import ToolLoadReport, ToolLoadStatus, ToolRegistry, load_tools, resolve_factories
from .tools import ToolBase, ToolContext, ToolDescriptor, ToolInput, create_tool


def main():
    """Main entry point for the package."""
    # Lazy import to avoid building the HTTP app at package import time
    from . import server
    asyncio.run(server.main())


__all__ = [
    "Agent",
    "AgentParams",
    "AgentReply",
    "OrchestrationPolicy",
    "ToolBase",
    "ToolContext",
    "ToolDescriptor",
    "ToolInput",
    "ToolLoadReport",
    "ToolLoadStatus",
    "ToolOrchestrator",
    "ToolRegistry",
    "ToolSelection",
    "create_tool",
    "load_tools",
    "main",
    "resolve_factories",
]
