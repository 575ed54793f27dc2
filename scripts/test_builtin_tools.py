#!/usr/bin/env python3
"""
Test script for built-in tools and the tool factory helper.

This script verifies that:
1. The calculator evaluates arithmetic and rejects everything else
2. Tool errors come back to the model as text instead of raising
3. current_time honours timezones
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from fakes import stub_agent

from axicov_sdk.tools.builtin import CalculatorTool, CurrentTimeTool
from axicov_sdk.tools.builtin.calculator import evaluate


def load_single_tool(tool_class):
    bundle = asyncio.run(tool_class.as_factory()(stub_agent()))
    assert len(bundle.tools) == 1
    return bundle.tools[0], bundle


def test_calculator_evaluate():
    """Test 1: Safe arithmetic evaluation."""
    print("\n=== Test 1: Calculator ===")

    assert evaluate("2 + 3 * 4") == 14
    assert evaluate("(1 + 1) ** 10") == 1024
    assert evaluate("-7 // 2") == -4
    assert evaluate("7 / 2") == 3.5
    print("✓ Arithmetic evaluated")

    for expression in ("__import__('os')", "2 ** 100000", "1 +", "True + 1", "x * 2"):
        try:
            evaluate(expression)
        except ValueError:
            print(f"✓ Rejected: {expression}")
        else:
            raise AssertionError(f"'{expression}' should be rejected")


def test_tool_errors_become_text():
    """Test 2: Exceptions inside a tool are reported, not raised."""
    print("\n=== Test 2: Tool Error Reporting ===")

    tool, bundle = load_single_tool(CalculatorTool)
    assert tool.name == "calculator"
    assert bundle.descriptors["calculator"].requires_approval is False
    assert "expression" in bundle.descriptors["calculator"].get_input_schema()["properties"]
    print("✓ Bundle carries tool and descriptor")

    result = asyncio.run(tool.ainvoke({"expression": "6 * 7"}))
    assert result == "42", result
    print("✓ Tool invoked")

    result = asyncio.run(tool.ainvoke({"expression": "1 / 0"}))
    assert result.startswith("Error:"), result
    print("✓ Division by zero reported as text")


def test_current_time():
    """Test 3: current_time defaults to UTC and accepts IANA zones."""
    print("\n=== Test 3: Current Time ===")

    tool, _ = load_single_tool(CurrentTimeTool)
    assert asyncio.run(tool.ainvoke({})).endswith("+00:00")
    print("✓ UTC by default")

    assert asyncio.run(tool.ainvoke({"timezone": "Asia/Kolkata"})).endswith("+05:30")
    print("✓ Timezone applied")

    result = asyncio.run(tool.ainvoke({"timezone": "Mars/Olympus"}))
    assert result == "Error: Unknown timezone: Mars/Olympus", result
    print("✓ Unknown timezone reported")


def main():
    """Run all tests."""
    print("=" * 70)
    print("Built-in Tools - Comprehensive Test")
    print("=" * 70)

    try:
        test_calculator_evaluate()
        test_tool_errors_become_text()
        test_current_time()

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
