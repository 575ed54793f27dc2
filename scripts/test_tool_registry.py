#!/usr/bin/env python3
"""
Test script for tool registry resolution and concurrent tool loading.

This script verifies that:
1. The effective factory list is core ++ selected, in registry order
2. Selections work by position and by stable key
3. A failing factory contributes nothing and does not abort its siblings
4. Tool name collisions keep exactly one entry
5. The load report names partial and total failure
6. Factories run concurrently and metadata follows settlement order
7. Registries can be imported from "module:attribute" paths
"""

import asyncio
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from fakes import echo_factory, failing_factory, stub_agent

from axicov_sdk.registry import (
    ToolLoadStatus,
    ToolRegistry,
    format_tool_metadata,
    load_tools,
    resolve_factories,
)
from axicov_sdk.tools import ToolBundle, ToolDescriptor


def test_resolution_order():
    """Test 1: core ++ filter(all, index in selection)."""
    print("\n=== Test 1: Effective Factory Order ===")

    c0, c1 = echo_factory("c0"), echo_factory("c1")
    a0, a1, a2, a3 = (echo_factory(f"a{i}") for i in range(4))

    entries = resolve_factories([c0, c1], [a0, a1, a2, a3], [3, 1])
    factories = [factory for _, factory in entries]
    assert factories == [c0, c1, a1, a3], "Selected factories should keep registry order after the core list"
    print("✓ Core factories first, selection in registry order")

    labels = [label for label, _ in entries]
    assert labels == ["core[0]", "core[1]", "all[1]", "all[3]"], f"Unexpected labels: {labels}"
    print("✓ Positional labels assigned")

    entries = resolve_factories([], [a0, a1], [1, 1, 7, -1])
    assert [factory for _, factory in entries] == [a1], "Duplicates and out-of-range indices should be ignored"
    print("✓ Duplicates and out-of-range indices ignored")


def test_selection_by_key():
    """Test 2: Stable string keys select from a ToolRegistry."""
    print("\n=== Test 2: Selection by Key ===")

    registry = ToolRegistry()
    registry.register("swap", echo_factory("swap"))
    registry.register("balance", echo_factory("balance"))
    registry.register("bridge", echo_factory("bridge"))

    selected = [key for key, _ in registry.select(["bridge", "swap", "unknown"])]
    assert selected == ["swap", "bridge"], f"Expected registry order, got {selected}"
    print("✓ Keys resolve in registry order, unknown keys skipped")

    mixed = [key for key, _ in registry.select([1, "bridge"])]
    assert mixed == ["balance", "bridge"], f"Mixed selection failed: {mixed}"
    print("✓ Positions and keys can be mixed")

    @registry.register("oracle")
    def oracle_factory(agent):
        return ToolBundle()

    assert registry.keys()[-1] == "oracle", "Decorator registration should append"
    assert registry.get("oracle") is oracle_factory
    print("✓ Decorator registration works")


def test_failing_factory_is_isolated():
    """Test 3: core=[], all=[factoryA, factoryB (throws)], selection=[0, 1]."""
    print("\n=== Test 3: Partial Failure ===")

    agent = stub_agent()
    report = asyncio.run(load_tools(agent, [0, 1], [], [echo_factory("X"), failing_factory]))

    assert list(agent.tools) == ["X"], f"Only tool X should be loaded, got {list(agent.tools)}"
    print("✓ Tool mapping holds only the successful factory's tool")

    assert "X" in agent.tool_metadata, "Metadata should mention X"
    assert agent.tool_metadata.count("Tool Name:") == 1, "Failing factory must add no metadata"
    print("✓ Metadata mentions X only")

    assert report.status == ToolLoadStatus.PARTIAL_FAILURE
    assert [o.success for o in report.outcomes] == [True, False], "Outcomes should follow factory order"
    assert report.failed[0].error == "factory exploded"
    assert report.summary()["failed"] == [{"factory": "all[1]", "error": "factory exploded"}]
    print("✓ Partial failure reported per factory")


def test_total_failure_does_not_raise():
    """Test 4: Zero successes is a named outcome, not an exception."""
    print("\n=== Test 4: Total Failure ===")

    async def returns_nothing(agent):
        return None

    agent = stub_agent()
    report = asyncio.run(load_tools(agent, [0, 1], [failing_factory], [returns_nothing, failing_factory]))

    assert report.status == ToolLoadStatus.TOTAL_FAILURE
    assert len(report.failed) == 3, "Core and both selected factories should fail"
    assert agent.tools == {} and agent.tool_metadata == ""
    print("✓ Total failure inspectable through the report")

    report = asyncio.run(load_tools(stub_agent(), [], [], []))
    assert report.status == ToolLoadStatus.EMPTY
    print("✓ Empty selection reported as empty")


def test_name_collision_last_writer_wins():
    """Test 5: Two factories declaring the same tool name."""
    print("\n=== Test 5: Name Collisions ===")

    agent = stub_agent()

    async def slow_dup(agent):
        await asyncio.sleep(0.05)
        return await echo_factory("dup", "second")(agent)

    report = asyncio.run(load_tools(agent, [0, 1], [], [echo_factory("dup", "first"), slow_dup]))

    assert report.status == ToolLoadStatus.COMPLETE
    assert list(agent.tools) == ["dup"], "Exactly one entry per tool name"
    assert agent.tools["dup"].description == "second", "Last settled registration should win"
    assert agent.tool_descriptors["dup"].description == "second"
    print("✓ Single entry, last writer wins")


def test_concurrent_loading_settlement_order():
    """Test 6: Factories run concurrently; metadata follows completion order."""
    print("\n=== Test 6: Concurrency and Settlement Order ===")

    def delayed(name, delay):
        async def factory(agent):
            await asyncio.sleep(delay)
            return await echo_factory(name)(agent)
        return factory

    factories = [delayed("a", 0.3), delayed("b", 0.1), delayed("c", 0.2)]
    agent = stub_agent()

    started = time.monotonic()
    report = asyncio.run(load_tools(agent, [0, 1, 2], [], factories))
    elapsed = time.monotonic() - started

    assert report.status == ToolLoadStatus.COMPLETE
    assert elapsed < 0.5, f"Loading took {elapsed:.2f}s; factories should not run one after another"
    print(f"✓ Three factories loaded in {elapsed:.2f}s")

    order = [line.split(": ", 1)[1] for line in agent.tool_metadata.splitlines() if "Tool Name:" in line]
    assert order == ["b", "c", "a"], f"Metadata should follow settlement order, got {order}"
    assert [o.label for o in report.outcomes] == ["all[0]", "all[1]", "all[2]"], "Report keeps factory order"
    print("✓ Metadata in settlement order, report in factory order")


def test_sync_factory_and_dict_bundle():
    """Test 7: Factories may be sync and may return plain dicts."""
    print("\n=== Test 7: Factory Return Shapes ===")

    async def build_tool_bundle(agent):
        return await echo_factory("inner")(agent)

    def dict_factory(agent):
        return {
            "tools": [],
            "schema": {
                "approval_needed": {
                    "name": "approval_needed",
                    "description": "Requires sign-off",
                    "schema": {"type": "object", "properties": {}},
                    "requiresApproval": True,
                }
            },
        }

    agent = stub_agent()
    report = asyncio.run(load_tools(agent, [], [build_tool_bundle, dict_factory], []))

    assert report.status == ToolLoadStatus.COMPLETE
    assert "inner" in agent.tools
    assert agent.tool_descriptors["approval_needed"].requires_approval is True
    assert "Requires Approval: true" in agent.tool_metadata
    print("✓ Sync factories and dict bundles accepted")


def test_metadata_format():
    """Test 8: Metadata block layout."""
    print("\n=== Test 8: Metadata Format ===")

    block = format_tool_metadata(ToolDescriptor(name="swap", description="Swap tokens"))
    assert block.splitlines() == [
        "  - Tool Name: swap",
        "  - Tool Description: Swap tokens",
        "  - Requires Approval: false",
    ], block
    print("✓ Metadata block rendered")


def test_import_path():
    """Test 9: Load the built-in registry by import path."""
    print("\n=== Test 9: Registry Import Path ===")

    registry = ToolRegistry.from_import_path("axicov_sdk.tools.builtin:TOOL_REGISTRY")
    assert registry.keys() == ["thread_info", "calculator"], registry.keys()
    print("✓ Registry imported")

    for bad_path in ("axicov_sdk.tools.builtin", "axicov_sdk.tools.builtin:MISSING"):
        try:
            ToolRegistry.from_import_path(bad_path)
        except ValueError:
            print(f"✓ Rejected '{bad_path}'")
        else:
            raise AssertionError(f"'{bad_path}' should be rejected")

    duplicate = [echo_factory("same"), echo_factory("same")]
    try:
        ToolRegistry.from_factories(duplicate)
    except ValueError:
        print("✓ Duplicate factory names rejected")
    else:
        raise AssertionError("Duplicate factory names should be rejected")


def main():
    """Run all tests."""
    print("=" * 70)
    print("Tool Registry - Comprehensive Test")
    print("=" * 70)

    try:
        test_resolution_order()
        test_selection_by_key()
        test_failing_factory_is_isolated()
        test_total_failure_does_not_raise()
        test_name_collision_last_writer_wins()
        test_concurrent_loading_settlement_order()
        test_sync_factory_and_dict_bundle()
        test_metadata_format()
        test_import_path()

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
