#!/usr/bin/env python3
"""
Test script for per-message tool orchestration.

This script tests:
1. An empty JSON array selects no tools
2. Known names resolve to the loaded tools
3. INVALID_TOOL sentinels never resolve to a tool
4. Unknown names are dropped and reported
5. Malformed replies and model errors degrade instead of raising
6. The "all" fallback policy
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from fakes import echo_factory, scripted_model, stub_agent

from langchain_core.messages import HumanMessage, SystemMessage

from axicov_sdk.orchestrator import OrchestrationPolicy, ToolOrchestrator


def build_tools(*names):
    agent = stub_agent()
    tools = {}
    for name in names:
        bundle = asyncio.run(echo_factory(name, f"{name} description")(agent))
        tools[name] = bundle.tools[0]
    return tools


def test_empty_selection():
    """Test 1: Model replies [] for a message needing no tool."""
    print("\n=== Test 1: Empty Selection ===")

    tools = build_tools("X")
    model = scripted_model("[]")
    selection = asyncio.run(ToolOrchestrator(model).select_tools(tools, "Hello there"))

    assert selection.tools == [], "No tools should be selected"
    assert selection.degraded is False
    print("✓ Empty tool subset")

    prompt, message = model.calls[0]
    assert isinstance(prompt, SystemMessage) and isinstance(message, HumanMessage)
    assert "- X: X description" in prompt.content, "Prompt should list every loaded tool"
    assert message.content == "Hello there"
    print("✓ One system + user round-trip listing the tools")


def test_known_names_resolve():
    """Test 2: Names map back to tool objects."""
    print("\n=== Test 2: Name Resolution ===")

    tools = build_tools("swap", "balance", "bridge")
    model = scripted_model('```json\n["bridge", "swap", "bridge"]\n```')
    selection = asyncio.run(
        ToolOrchestrator(model).select_tools(tools, "Move funds", tool_knowledge=["bridge moves funds across chains"])
    )

    assert selection.tool_names == ["bridge", "swap"], f"Unexpected selection: {selection.tool_names}"
    assert selection.tools[0] is tools["bridge"]
    print("✓ Names resolved in reply order, duplicates collapsed, code fence tolerated")

    assert "bridge moves funds across chains" in model.calls[0][0].content
    print("✓ Tool knowledge included in prompt")


def test_invalid_tool_sentinel():
    """Test 3: INVALID_TOOL:<name> never matches a live tool."""
    print("\n=== Test 3: INVALID_TOOL Sentinels ===")

    tools = build_tools("X")
    # A tool whose name is literally a sentinel string must still not be matched
    tools["INVALID_TOOL:X"] = tools["X"]
    model = scripted_model('["INVALID_TOOL:X", "INVALID_TOOL:weather"]')
    selection = asyncio.run(ToolOrchestrator(model).select_tools(tools, "What's the weather?"))

    assert selection.tools == [], "Sentinels must not resolve to tools"
    assert selection.missing_capabilities == ["X", "weather"]
    print("✓ Sentinels reported as missing capabilities")


def test_unmatched_names_dropped():
    """Test 4: Unknown names are reported, not passed on."""
    print("\n=== Test 4: Unmatched Names ===")

    tools = build_tools("X")
    selection = asyncio.run(ToolOrchestrator(scripted_model('["X", "Y"]')).select_tools(tools, "Use X and Y"))

    assert selection.tool_names == ["X"]
    assert selection.unmatched == ["Y"]
    assert None not in selection.tools
    print("✓ Unknown name Y dropped and recorded")


def test_malformed_reply_degrades():
    """Test 5: 'not json' and model errors never escape."""
    print("\n=== Test 5: Degraded Orchestration ===")

    tools = build_tools("X")
    selection = asyncio.run(ToolOrchestrator(scripted_model("not json")).select_tools(tools, "Hi"))
    assert selection.tools == [] and selection.degraded is True
    assert selection.error
    print("✓ Unparseable reply degrades to no tools")

    selection = asyncio.run(ToolOrchestrator(scripted_model('{"tools": ["X"]}')).select_tools(tools, "Hi"))
    assert selection.tools == [] and selection.degraded is True
    print("✓ Non-array JSON degrades to no tools")

    # Exhausted script: the model raises on the first call
    selection = asyncio.run(ToolOrchestrator(scripted_model()).select_tools(tools, "Hi"))
    assert selection.degraded is True
    print("✓ Model error degrades to no tools")


def test_fallback_all_policy():
    """Test 6: on_failure='all' offers every loaded tool."""
    print("\n=== Test 6: Fallback Policy ===")

    tools = build_tools("X", "Z")
    orchestrator = ToolOrchestrator(scripted_model("garbage"), OrchestrationPolicy(on_failure="all"))
    selection = asyncio.run(orchestrator.select_tools(tools, "Hi"))

    assert selection.tool_names == ["X", "Z"] and selection.degraded is True
    print("✓ All tools offered when parsing fails")

    model = scripted_model()
    selection = asyncio.run(ToolOrchestrator(model).select_tools({}, "Hi"))
    assert selection.tools == [] and model.calls == [], "No model call without loaded tools"
    print("✓ No round-trip when nothing is loaded")


def main():
    """Run all tests."""
    print("=" * 70)
    print("Tool Orchestrator - Comprehensive Test")
    print("=" * 70)

    try:
        test_empty_selection()
        test_known_names_resolve()
        test_invalid_tool_sentinel()
        test_unmatched_names_dropped()
        test_malformed_reply_degrades()
        test_fallback_all_policy()

        print("\n" + "=" * 70)
        print("✅ ALL TESTS PASSED")
        print("=" * 70)
        return 0

    except Exception as e:
        print("\n" + "=" * 70)
        print(f"❌ TEST FAILED: {e}")
        print("=" * 70)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
