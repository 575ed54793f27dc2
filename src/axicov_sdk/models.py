"""
Chat model construction for the supported providers.
"""

import logging
from typing import Any, Literal, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings
from .exceptions import ModelInitializationError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("anthropic", "gemini")


class ModelConfig(BaseModel):
    """Model selection sent by API callers."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    provider: Literal["anthropic", "gemini"]
    model_name: str = Field(..., min_length=1, alias="modelName")
    api_key: str = Field(..., min_length=1, alias="apiKey")
    temperature: Optional[float] = None


def create_model_from_config(config: ModelConfig) -> BaseChatModel:
    """
    Build a LangChain chat model from a ModelConfig.

    Raises:
        ModelInitializationError: If the provider is unsupported or the client rejects the config
    """
    try:
        if config.provider == "anthropic":
            from langchain_anthropic import ChatAnthropic

            kwargs: dict = {"model": config.model_name, "api_key": config.api_key}
            if config.temperature is not None:
                kwargs["temperature"] = config.temperature
            return ChatAnthropic(**kwargs)

        if config.provider == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI

            kwargs = {"model": config.model_name, "google_api_key": config.api_key}
            if config.temperature is not None:
                kwargs["temperature"] = config.temperature
            return ChatGoogleGenerativeAI(**kwargs)
    except Exception as e:
        logger.error(f"Error initializing {config.provider} model: {e}")
        raise ModelInitializationError(f"Failed to initialize model: {e}") from e

    raise ModelInitializationError(f"Unsupported model provider: {config.provider}")


def default_model_from_env(settings: Optional[Settings] = None) -> BaseChatModel:
    """
    Pick a model from environment credentials: Anthropic first, then Gemini.

    Raises:
        ModelInitializationError: If no provider key is configured
    """
    settings = settings or Settings.from_environment()

    if settings.anthropic_api_key:
        config = ModelConfig(
            provider="anthropic",
            model_name=settings.anthropic_model,
            api_key=settings.anthropic_api_key,
        )
    elif settings.gemini_api_key:
        config = ModelConfig(
            provider="gemini",
            model_name=settings.gemini_model,
            api_key=settings.gemini_api_key,
        )
    else:
        raise ModelInitializationError("Failed to initialize model: No valid API key found for AI models")

    model = create_model_from_config(config)
    logger.info(f"Model initialized from environment: {config.provider}/{config.model_name}")
    return model


def message_text(content: Any) -> str:
    """Flatten message content (string, list of blocks or dict) into text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            item if isinstance(item, str) else str(item.get("text", "")) if isinstance(item, dict) else ""
            for item in content
        )
    if isinstance(content, dict):
        return str(content.get("text", ""))
    return str(content)
