"""
Built-in tools and the default registries used by the HTTP server.
"""

from ...registry import ToolRegistry
from .calculator import CalculatorTool
from .clock import CurrentTimeTool
from .thread_info import ThreadInfoTool

CORE_REGISTRY = ToolRegistry({
    "current_time": CurrentTimeTool.as_factory(),
})

TOOL_REGISTRY = ToolRegistry({
    "thread_info": ThreadInfoTool.as_factory(),
    "calculator": CalculatorTool.as_factory(),
})

__all__ = [
    "CORE_REGISTRY",
    "TOOL_REGISTRY",
    "CalculatorTool",
    "CurrentTimeTool",
    "ThreadInfoTool",
]
