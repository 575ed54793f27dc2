"""
Clock Tool - Report the current time.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field

from ..base import ToolBase, ToolContext, ToolDescriptor, ToolInput


class CurrentTimeInput(ToolInput):
    """Input schema for the current_time tool."""
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone name, e.g. 'Europe/Berlin'. Defaults to UTC."
    )


class CurrentTimeTool(ToolBase):
    """Returns the current date and time, optionally in a given timezone."""

    METADATA = ToolDescriptor(
        name="current_time",
        description="Returns the current date and time (ISO 8601). Accepts an optional IANA timezone.",
    )

    class InputSchema(CurrentTimeInput):
        pass

    async def execute(self, input_data: CurrentTimeInput, context: ToolContext) -> str:
        if not input_data.timezone:
            return datetime.now(timezone.utc).isoformat()
        try:
            zone = ZoneInfo(input_data.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {input_data.timezone}")
        return datetime.now(zone).isoformat()
