# src/axicov_sdk/config.py
from dataclasses import dataclass
from typing import Optional
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """Runtime settings for agents and the HTTP server"""
    # Model providers
    anthropic_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-haiku-20240307"
    gemini_model: str = "gemini-2.5-flash"

    # Checkpoint backend
    mongo_uri: Optional[str] = None
    mongo_db_name: str = "checkpointing_db"
    checkpoint_max_retries: int = 3
    checkpoint_initial_backoff: float = 1.0
    checkpoint_max_backoff: float = 30.0

    # Agent behaviour
    orchestration_enabled: bool = False

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    def __post_init__(self):
        if self.checkpoint_max_retries < 1:
            raise ValueError("checkpoint_max_retries must be at least 1")
        if self.checkpoint_initial_backoff < 0 or self.checkpoint_max_backoff < 0:
            raise ValueError("checkpoint backoff values must not be negative")

    @classmethod
    def from_environment(cls) -> "Settings":
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None,
            anthropic_model=os.getenv("ANTHROPIC_MODEL", cls.anthropic_model),
            gemini_model=os.getenv("GEMINI_MODEL", cls.gemini_model),
            mongo_uri=os.getenv("MONGO_URI") or None,
            mongo_db_name=os.getenv("MONGO_DB_NAME", cls.mongo_db_name),
            checkpoint_max_retries=int(os.getenv("CHECKPOINT_MAX_RETRIES", "3")),
            checkpoint_initial_backoff=float(os.getenv("CHECKPOINT_INITIAL_BACKOFF", "1.0")),
            checkpoint_max_backoff=float(os.getenv("CHECKPOINT_MAX_BACKOFF", "30.0")),
            orchestration_enabled=_env_bool("AXICOV_ORCHESTRATION"),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
