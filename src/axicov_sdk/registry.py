"""
Tool Registry - resolves tool factories against an agent.

A registry is an ordered, name-keyed collection of tool factories. Agents are
initialized from two registries:

1. A "core" registry whose factories are always loaded
2. An "all" registry from which a selection is loaded

Selections may use stable string keys or, for compatibility with callers that
send positional tool numbers, integer indices into the "all" registry. Plain
lists of factories are accepted wherever a registry is.

Every selected factory is invoked concurrently against the same agent. A failing
factory is logged and skipped; it never aborts its siblings or the caller.
"""

import asyncio
import importlib
import inspect
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from .tools.base import ToolBundle, ToolDescriptor, ToolFactory

logger = logging.getLogger(__name__)

SelectionItem = Union[int, str]
FactoryEntry = Tuple[str, ToolFactory]
RegistryLike = Union["ToolRegistry", Sequence[ToolFactory], None]


class ToolRegistry:
    """
    Ordered registry of tool factories keyed by a stable name.

    Example Usage:
        registry = ToolRegistry()
        registry.register("swap", swap_factory)

        @registry.register("balance")
        async def balance_factory(agent):
            ...

        registry.select(["swap"])   # by key
        registry.select([1])        # by position (legacy tool numbers)
    """

    def __init__(self, factories: Optional[Mapping[str, ToolFactory]] = None):
        self._factories: Dict[str, ToolFactory] = {}
        for key, factory in (factories or {}).items():
            self.register(key, factory)

    @classmethod
    def from_factories(cls, factories: Sequence[ToolFactory]) -> "ToolRegistry":
        """
        Build a registry from a list, keyed by each factory's __name__.

        Raises:
            ValueError: If two factories share a name
        """
        registry = cls()
        for index, factory in enumerate(factories):
            key = getattr(factory, "__name__", None) or f"factory_{index}"
            if key in registry:
                raise ValueError(f"Duplicate tool factory key '{key}'")
            registry.register(key, factory)
        return registry

    @classmethod
    def from_import_path(cls, path: str) -> "ToolRegistry":
        """
        Load a registry from "package.module:attribute".

        The attribute may be a ToolRegistry, a mapping of key -> factory or a
        list of factories.
        """
        module_path, _, attribute = path.partition(":")
        if not module_path or not attribute:
            raise ValueError(f"Registry path must look like 'package.module:attribute', got '{path}'")

        module = importlib.import_module(module_path)
        try:
            target = getattr(module, attribute)
        except AttributeError as e:
            raise ValueError(f"Module '{module_path}' has no attribute '{attribute}'") from e

        if isinstance(target, ToolRegistry):
            registry = target
        elif isinstance(target, Mapping):
            registry = cls(target)
        elif isinstance(target, (list, tuple)):
            registry = cls.from_factories(target)
        else:
            raise TypeError(f"'{path}' is not a registry, mapping or list of tool factories")

        logger.info(f"Loaded tool registry '{path}' with {len(registry)} factories")
        return registry

    def register(self, key: str, factory: Optional[ToolFactory] = None):
        """
        Register a factory under a key. Without a factory, returns a decorator.

        Re-registering a key replaces the factory but keeps its position.
        """
        if not key:
            raise ValueError("Tool factory key must not be empty")

        def _register(fn: ToolFactory) -> ToolFactory:
            if not callable(fn):
                raise TypeError(f"Tool factory '{key}' is not callable")
            if key in self._factories:
                logger.debug(f"Replacing tool factory '{key}'")
            self._factories[key] = fn
            return fn

        if factory is None:
            return _register
        return _register(factory)

    def unregister(self, key: str) -> None:
        if key not in self._factories:
            logger.warning(f"Tool factory '{key}' not found, cannot unregister")
            return
        del self._factories[key]

    def get(self, key: str) -> Optional[ToolFactory]:
        return self._factories.get(key)

    def keys(self) -> List[str]:
        return list(self._factories.keys())

    def entries(self) -> List[FactoryEntry]:
        return list(self._factories.items())

    def select(self, selection: Sequence[SelectionItem]) -> List[FactoryEntry]:
        return select_factories(self, selection)

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, key: object) -> bool:
        return key in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __repr__(self) -> str:
        return f"ToolRegistry(factories={self.keys()})"


def _entries(source: RegistryLike, prefix: str) -> List[FactoryEntry]:
    if source is None:
        return []
    if isinstance(source, ToolRegistry):
        return source.entries()
    return [(f"{prefix}[{index}]", factory) for index, factory in enumerate(source)]


def select_factories(all_registry: RegistryLike, selection: Sequence[SelectionItem]) -> List[FactoryEntry]:
    """
    Filter a registry by selection, keeping registry order.

    Integers select by position, strings by key. Duplicates collapse and
    unknown entries are logged and ignored.
    """
    entries = _entries(all_registry, "all")
    indices = set()
    keys = set()
    for item in selection or ():
        if isinstance(item, bool) or not isinstance(item, (int, str)):
            logger.warning(f"Ignoring invalid tool selection entry: {item!r}")
        elif isinstance(item, int):
            if not 0 <= item < len(entries):
                logger.warning(f"Tool number {item} is out of range (registry has {len(entries)} factories)")
            indices.add(item)
        else:
            if not any(key == item for key, _ in entries):
                logger.warning(f"Tool factory '{item}' is not registered")
            keys.add(item)

    return [
        (key, factory)
        for index, (key, factory) in enumerate(entries)
        if index in indices or key in keys
    ]


def resolve_factories(
    core_registry: RegistryLike,
    all_registry: RegistryLike,
    selection: Sequence[SelectionItem],
) -> List[FactoryEntry]:
    """Effective factory list: every core factory, then the selected ones."""
    return _entries(core_registry, "core") + select_factories(all_registry, selection)


class ToolLoadStatus(str, Enum):
    """Aggregate outcome of one load_tools() run."""
    COMPLETE = "complete"
    PARTIAL_FAILURE = "partial_failure"
    TOTAL_FAILURE = "total_failure"
    EMPTY = "empty"


class FactoryOutcome(BaseModel):
    """Result of invoking one tool factory."""
    label: str = Field(..., description="Registry key or positional label of the factory")
    success: bool
    tool_names: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ToolLoadReport(BaseModel):
    """Per-factory outcomes, in effective factory order."""
    outcomes: List[FactoryOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[FactoryOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[FactoryOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def status(self) -> ToolLoadStatus:
        if not self.outcomes:
            return ToolLoadStatus.EMPTY
        if not self.failed:
            return ToolLoadStatus.COMPLETE
        if not self.succeeded:
            return ToolLoadStatus.TOTAL_FAILURE
        return ToolLoadStatus.PARTIAL_FAILURE

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "loaded": len(self.succeeded),
            "failed": [{"factory": o.label, "error": o.error} for o in self.failed],
        }


def format_tool_metadata(descriptor: ToolDescriptor) -> str:
    """Human-readable tool summary injected into the system prompt."""
    return (
        f"  - Tool Name: {descriptor.name}\n"
        f"  - Tool Description: {descriptor.description}\n"
        f"  - Requires Approval: {str(descriptor.requires_approval).lower()}"
    )


async def _call_factory(factory: ToolFactory, agent) -> ToolBundle:
    result = factory(agent)
    if inspect.isawaitable(result):
        result = await result
    if isinstance(result, ToolBundle):
        return result
    return ToolBundle.model_validate(result)


async def load_tools(
    agent,
    selection: Sequence[SelectionItem],
    core_registry: RegistryLike,
    all_registry: RegistryLike,
) -> ToolLoadReport:
    """
    Invoke every effective factory concurrently and populate the agent.

    Tools land in agent.tools (name -> tool, last registration wins) and the
    descriptor summaries, in settlement order, become agent.tool_metadata.

    Args:
        agent: Agent to resolve the factories against
        selection: Tool numbers and/or keys selecting from all_registry
        core_registry: Factories always loaded
        all_registry: Factories available for selection

    Returns:
        ToolLoadReport describing every factory call
    """
    entries = resolve_factories(core_registry, all_registry, selection)
    metadata: List[str] = []

    async def _load(label: str, factory: ToolFactory) -> FactoryOutcome:
        try:
            bundle = await _call_factory(factory, agent)
        except Exception as e:
            logger.error(f"Error loading tools from '{label}': {e}")
            return FactoryOutcome(label=label, success=False, error=str(e) or type(e).__name__)

        for tool in bundle.tools:
            if tool.name in agent.tools:
                logger.warning(f"Tool '{tool.name}' from '{label}' replaces an earlier registration")
            agent.tools[tool.name] = tool
            logger.info(f"Loaded tool: {tool.name} from {label}")

        for descriptor in bundle.descriptors.values():
            agent.tool_descriptors[descriptor.name] = descriptor
            metadata.append(format_tool_metadata(descriptor))

        return FactoryOutcome(
            label=label,
            success=True,
            tool_names=[tool.name for tool in bundle.tools],
        )

    outcomes = await asyncio.gather(*(_load(label, factory) for label, factory in entries))
    report = ToolLoadReport(outcomes=list(outcomes))

    agent.tool_metadata = "\n\n".join(metadata)

    if report.failed:
        failures = "; ".join(f"{o.label}: {o.error}" for o in report.failed)
        logger.error(f"Failed to initialize one or more tool factories: {failures}")

    if report.status == ToolLoadStatus.TOTAL_FAILURE:
        logger.warning("No tools were loaded successfully")

    logger.info(f"Tool loading finished for thread {agent.thread_id}: {report.summary()}")
    return report
