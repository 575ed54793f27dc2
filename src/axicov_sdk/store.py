"""
Agent Store - live agents keyed by thread id.

Agents are held in process memory. One store backs one HTTP app; the
singleton accessor is what the module-level app uses.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from .agent import Agent
from .exceptions import AgentExistsError, AgentNotFoundError

logger = logging.getLogger(__name__)


class AgentStore:
    """
    Registry of live agents.

    Example Usage:
        store = AgentStore.get_instance()
        await store.register(agent.thread_id, agent)
        agent = store.get("thread-1")
        await store.remove("thread-1")   # closes the agent
    """

    _instance: Optional['AgentStore'] = None

    def __init__(self):
        self._agents: Dict[str, Agent] = {}
        self._created_at: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def get_instance(cls) -> 'AgentStore':
        if cls._instance is None:
            cls._instance = AgentStore()
            logger.debug("Created new AgentStore instance")
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset the singleton instance (tests)."""
        cls._instance = None
        logger.debug("Reset AgentStore instance")

    async def register(self, thread_id: str, agent: Agent):
        """
        Register a live agent.

        Raises:
            AgentExistsError: If the thread id already has a live agent
        """
        async with self._lock:
            if thread_id in self._agents:
                raise AgentExistsError(thread_id)
            self._agents[thread_id] = agent
            self._created_at[thread_id] = datetime.now().isoformat()
            logger.info(f"Registered agent '{agent.name}' for thread '{thread_id}'")

    def get(self, thread_id: str) -> Optional[Agent]:
        return self._agents.get(thread_id)

    def require(self, thread_id: str) -> Agent:
        """
        Get an agent or raise.

        Raises:
            AgentNotFoundError: If no agent is registered for the thread id
        """
        agent = self._agents.get(thread_id)
        if agent is None:
            raise AgentNotFoundError(thread_id)
        return agent

    def has_agent(self, thread_id: str) -> bool:
        return thread_id in self._agents

    async def remove(self, thread_id: str) -> Agent:
        """
        Remove an agent and close its checkpoint backend.

        Raises:
            AgentNotFoundError: If no agent is registered for the thread id
        """
        async with self._lock:
            agent = self._agents.pop(thread_id, None)
            self._created_at.pop(thread_id, None)
        if agent is None:
            raise AgentNotFoundError(thread_id)

        try:
            await agent.close()
        except Exception as e:
            logger.error(f"Error closing agent for thread '{thread_id}': {e}")

        logger.info(f"Removed agent for thread '{thread_id}'")
        return agent

    def list_agents(self) -> List[Dict[str, Any]]:
        return [
            {
                "threadId": thread_id,
                "agentName": agent.name,
                "toolCount": len(agent.tools),
                "createdAt": self._created_at.get(thread_id),
            }
            for thread_id, agent in self._agents.items()
        ]

    def count(self) -> int:
        return len(self._agents)

    async def close_all(self):
        """Close and drop every agent (server shutdown)."""
        for thread_id in list(self._agents):
            await self.remove(thread_id)

    def __repr__(self) -> str:
        return f"AgentStore(agents={len(self._agents)})"
