"""
Checkpoint Manager
Selects the conversation checkpoint backend and handles MongoDB connection retries.
"""

import asyncio
import logging
import re
import time
from typing import Literal, Optional

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver

from .exceptions import CheckpointConnectionError

logger = logging.getLogger(__name__)

CheckpointMode = Literal["local", "mongo"]


def obfuscate_password(text: Optional[str]) -> Optional[str]:
    """
    Obfuscate credentials in any text containing a MongoDB connection string.
    Works on connection URIs and error messages.
    """
    if not text:
        return text

    url_pattern = re.compile(r"(mongodb(?:\+srv)?://[^:/@\s]+:)([^@\s]+)(@)")
    text = re.sub(url_pattern, r"\1****\3", text)

    param_pattern = re.compile(r'(password=)([^\s&;"\']+)', re.IGNORECASE)
    return re.sub(param_pattern, r"\1****", text)


class CheckpointManager:
    """Opens and closes the checkpoint saver for one agent."""

    def __init__(self, mode: CheckpointMode = "local", mongo_uri: Optional[str] = None,
                 db_name: str = "checkpointing_db", max_retries: int = 3,
                 initial_backoff: float = 1.0, max_backoff: float = 30.0):
        """
        Initialize the checkpoint manager.

        Args:
            mode: "local" for an in-process MemorySaver, "mongo" for MongoDBSaver
            mongo_uri: MongoDB connection string (required for "mongo")
            db_name: Database holding the checkpoint collections
            max_retries: Maximum number of connection attempts
            initial_backoff: Initial backoff time in seconds
            max_backoff: Maximum backoff time in seconds
        """
        if mode not in ("local", "mongo"):
            raise ValueError(f"Unsupported checkpointer '{mode}', expected 'local' or 'mongo'")

        self.mode = mode
        self.mongo_uri = mongo_uri
        self.db_name = db_name
        self.max_retries = max(1, max_retries)
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff

        self._client = None
        self._saver: Optional[BaseCheckpointSaver] = None
        self._connection_attempts = 0
        self._last_connection_time = 0.0
        self._lock = asyncio.Lock()

    @property
    def saver(self) -> Optional[BaseCheckpointSaver]:
        return self._saver

    async def connect(self) -> BaseCheckpointSaver:
        """
        Open the configured backend, reusing an already open one.

        Returns:
            Checkpoint saver instance

        Raises:
            CheckpointConnectionError: If MongoDB cannot be reached after max retries
        """
        async with self._lock:
            if self._saver is not None:
                return self._saver

            if self.mode == "local":
                self._saver = MemorySaver()
                logger.debug("Using in-memory checkpoint saver")
            else:
                self._saver = await self._connect_mongo_with_backoff()
            return self._saver

    async def _connect_mongo_with_backoff(self) -> BaseCheckpointSaver:
        if not self.mongo_uri:
            raise CheckpointConnectionError("MongoDB connection failed: no connection string configured (MONGO_URI)")

        from langgraph.checkpoint.mongodb import MongoDBSaver
        from pymongo import MongoClient

        backoff_time = self.initial_backoff

        for attempt in range(self.max_retries):
            client = None
            try:
                logger.info(f"Attempting MongoDB connection (attempt {attempt + 1}/{self.max_retries})")
                client = MongoClient(self.mongo_uri)
                # MongoClient connects lazily; ping to verify the server is reachable
                await asyncio.to_thread(client.admin.command, "ping")

                self._client = client
                self._last_connection_time = time.time()
                self._connection_attempts = 0
                logger.info("MongoDB connection established successfully")
                return MongoDBSaver(client, db_name=self.db_name)

            except Exception as e:
                self._connection_attempts += 1
                error_msg = obfuscate_password(str(e))
                if client is not None:
                    client.close()

                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"MongoDB connection attempt {attempt + 1} failed: {error_msg}. "
                        f"Retrying in {backoff_time:.1f} seconds..."
                    )
                    await asyncio.sleep(backoff_time)
                    backoff_time = min(backoff_time * 2, self.max_backoff)
                else:
                    logger.error(f"All MongoDB connection attempts failed. Last error: {error_msg}")
                    raise CheckpointConnectionError(f"MongoDB connection failed: {error_msg}") from e

        raise CheckpointConnectionError("Unexpected end of MongoDB connection loop")

    def get_connection_info(self) -> dict:
        """
        Get information about the current backend state.

        Returns:
            Dictionary with connection information
        """
        return {
            "mode": self.mode,
            "connected": self._saver is not None,
            "last_connection_time": self._last_connection_time,
            "connection_attempts": self._connection_attempts,
            "mongo_uri": obfuscate_password(self.mongo_uri),
            "database_name": self.db_name if self.mode == "mongo" else None,
        }

    async def close(self):
        """Close the MongoDB client, if one was opened."""
        async with self._lock:
            if self._client is not None:
                try:
                    self._client.close()
                    logger.info("MongoDB checkpoint connection closed")
                except Exception as e:
                    logger.warning(f"Error closing MongoDB connection: {obfuscate_password(str(e))}")
                finally:
                    self._client = None
            self._saver = None
