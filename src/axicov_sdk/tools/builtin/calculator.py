"""
Calculator Tool - Evaluate arithmetic expressions without eval().
"""

import ast
import operator
from typing import Union

from pydantic import Field

from ..base import ToolBase, ToolContext, ToolDescriptor, ToolInput

Number = Union[int, float]

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 1000


def evaluate(expression: str) -> Number:
    """
    Evaluate an arithmetic expression.

    Raises:
        ValueError: If the expression contains anything but numbers and + - * / // % **
    """
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid expression: {expression}") from e
    return _evaluate_node(tree.body)


def _evaluate_node(node: ast.AST) -> Number:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate_node(node.left)
        right = _evaluate_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError(f"Exponent too large (limit {MAX_EXPONENT})")
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate_node(node.operand))
    raise ValueError(f"Unsupported expression element: {ast.dump(node)}")


class CalculatorInput(ToolInput):
    """Input schema for the calculator tool."""
    expression: str = Field(
        ...,
        description="Arithmetic expression using numbers, parentheses and + - * / // % **"
    )


class CalculatorTool(ToolBase):
    """
    Evaluates arithmetic expressions.

    Examples:
    - 2 + 2
    - (1500 * 0.03) / 12
    - 2 ** 10
    """

    METADATA = ToolDescriptor(
        name="calculator",
        description="Evaluates an arithmetic expression and returns the numeric result",
    )

    class InputSchema(CalculatorInput):
        pass

    async def execute(self, input_data: CalculatorInput, context: ToolContext) -> str:
        return str(evaluate(input_data.expression))
