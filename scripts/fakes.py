"""
Shared fakes for the test scripts: a scripted chat model and an agent stand-in.
"""

import sys
import types
from pathlib import Path
from typing import Any, List

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage
from pydantic import Field

from axicov_sdk.config import Settings
from axicov_sdk.tools import ToolInput, create_tool


class ScriptedChatModel(GenericFakeChatModel):
    """Replies from a script and records every prompt it receives."""

    calls: List[Any] = Field(default_factory=list)

    def bind_tools(self, tools, **kwargs):
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.calls.append(list(messages))
        return super()._generate(messages, stop=stop, run_manager=run_manager, **kwargs)


def scripted_model(*replies) -> ScriptedChatModel:
    """Model answering with the given replies (str or AIMessage) in order."""
    return ScriptedChatModel(messages=iter(list(replies)))


def tool_call(name: str, args: dict, call_id: str = "call_1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


def make_settings() -> Settings:
    """Settings independent of the environment running the tests."""
    return Settings(checkpoint_max_retries=1, checkpoint_initial_backoff=0.0)


def stub_agent(thread_id: str = "thread-test"):
    """Minimal object with the attributes the tool registry writes to."""
    return types.SimpleNamespace(
        thread_id=thread_id,
        params={"name": "Stub", "instruction": "Test"},
        runtime_params={},
        tools={},
        tool_descriptors={},
        tool_metadata="",
    )


class EchoInput(ToolInput):
    text: str = ""


def echo_factory(name: str, description: str = "Echo the input"):
    """Factory producing one tool named `name`."""
    async def _echo(args: EchoInput, context) -> str:
        return f"{name}:{args.text}"

    return create_tool(name, description, EchoInput, _echo)


async def failing_factory(agent):
    raise RuntimeError("factory exploded")
