"""
Exception types raised by the SDK.

Recoverable failures (tool factories, orchestration, tool implementations) are
handled inside their component and never surface as exceptions; the classes
below cover the failures a caller has to react to.
"""


class AxicovError(Exception):
    """Base class for all SDK errors."""


class ModelInitializationError(AxicovError):
    """No usable chat model could be built (missing credentials, bad provider)."""


class AgentInitializationError(AxicovError):
    """Agent.initialize() could not complete."""


class CheckpointConnectionError(AxicovError, ConnectionError):
    """The durable checkpoint backend could not be reached."""


class MessageProcessingError(AxicovError):
    """The execution loop failed while handling a message."""


class AgentExistsError(AxicovError):
    """A live agent is already registered for the thread id."""

    def __init__(self, thread_id: str):
        super().__init__(f"Agent with threadId '{thread_id}' already exists")
        self.thread_id = thread_id


class AgentNotFoundError(AxicovError):
    """No live agent is registered for the thread id."""

    def __init__(self, thread_id: str):
        super().__init__(f"Agent with threadId '{thread_id}' not found")
        self.thread_id = thread_id
