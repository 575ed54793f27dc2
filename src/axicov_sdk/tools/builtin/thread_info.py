"""
Thread Info Tool - Describe the conversation the agent is serving.
"""

from typing import Any, Dict

from ..base import ToolBase, ToolContext, ToolDescriptor, ToolInput


class ThreadInfoTool(ToolBase):
    """
    Reports the thread id and the agent's persistent identity.

    Reads everything from the explicit ToolContext, never from global state.
    """

    METADATA = ToolDescriptor(
        name="thread_info",
        description="Returns the current conversation thread id, the agent name and its wallet address if set.",
    )

    class InputSchema(ToolInput):
        pass

    async def execute(self, input_data: ToolInput, context: ToolContext) -> Dict[str, Any]:
        params = context.persistent_params
        return {
            "thread_id": context.thread_id,
            "agent_name": params.get("name"),
            "wallet_address": params.get("public_key"),
        }
