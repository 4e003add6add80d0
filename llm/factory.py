"""
Provider Factory - Factory for creating completion provider instances
=====================================================================

This module provides a factory pattern for creating completion
providers from the application configuration.
"""

from typing import Optional, Type, Dict, Any

from .base import BaseCompletionProvider, ProviderConfig
from .gemini import GeminiProvider
from core.exceptions import LLMError, ConfigError
from core.logging import get_logger

logger = get_logger("llm.factory")


# Registry of available providers
PROVIDERS: Dict[str, Type[BaseCompletionProvider]] = {
    "gemini": GeminiProvider,
}


class ProviderFactory:
    """
    Factory for creating completion provider instances.

    Example:
        provider = ProviderFactory.create_from_config(config)
    """

    @staticmethod
    def create(
        provider_name: str,
        config: ProviderConfig,
        **kwargs
    ) -> BaseCompletionProvider:
        """
        Create a provider instance.

        Raises:
            ConfigError: If provider is not registered
            LLMError: If provider initialization fails
        """
        provider_name = provider_name.lower()

        if provider_name not in PROVIDERS:
            raise ConfigError(
                f"Unknown LLM provider: {provider_name}",
                details={"available_providers": ", ".join(PROVIDERS.keys())}
            )

        provider_class = PROVIDERS[provider_name]

        try:
            logger.info(f"Creating {provider_name} provider")
            return provider_class(config, **kwargs)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(
                f"Failed to create {provider_name} provider: {e}",
                details={"provider": provider_name}
            )

    @staticmethod
    def create_from_config(config, **kwargs) -> BaseCompletionProvider:
        """
        Create provider from the application Config object.
        """
        provider_config = ProviderConfig(
            model=config.llm.model,
            api_key=config.llm.api_key,
            api_base=config.llm.api_base,
            timeout=config.llm.timeout,
        )

        return ProviderFactory.create(config.llm.provider, provider_config, **kwargs)


def create_provider(config: Optional[Any] = None, **kwargs) -> Optional[BaseCompletionProvider]:
    """
    Create the completion provider for the application, if possible.

    Without an API key the chat runs on canned responses alone, so no
    provider is created and None is returned.

    Args:
        config: Application config
        **kwargs: Passed to the provider constructor

    Returns:
        Configured provider, or None when no API key is set
    """
    if config is None or not config.llm.api_key:
        logger.warning("No LLM API key configured; completion fallback disabled")
        return None

    return ProviderFactory.create_from_config(config, **kwargs)
