import os
import logging
from typing import Dict, Any, Union
from openai import OpenAI, AzureOpenAI

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class LLMProvider:
    GEMINI = "gemini"
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    AZURE = "azure"
    LOCAL = "local"


def default_provider() -> str:
    return os.getenv("LLM_PROVIDER", LLMProvider.GEMINI).strip().lower()


class LLMFactory:
    """
    Builds OpenAI-compatible clients for the content generator.
    Clients are cached per effective configuration.
    """

    _instances: Dict[Any, Union[OpenAI, AzureOpenAI]] = {}

    @staticmethod
    def get_client(provider: str = None, **kwargs) -> Union[OpenAI, AzureOpenAI]:
        provider = provider or default_provider()
        api_key = kwargs.get("api_key")
        base_url = kwargs.get("base_url")
        timeout = kwargs.get("timeout", 45.0)
        api_version = kwargs.get("api_version")
        azure_endpoint = kwargs.get("azure_endpoint")
        max_retries = kwargs.get("max_retries", 2)

        if provider == LLMProvider.GEMINI:
            api_key = api_key or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY")
            base_url = base_url or GEMINI_BASE_URL
            if not api_key:
                raise ValueError("GOOGLE_GENERATIVE_AI_API_KEY not set")

        elif provider == LLMProvider.OPENROUTER:
            api_key = api_key or os.getenv("OPENROUTER_API_KEY")
            base_url = base_url or "https://openrouter.ai/api/v1"
            if not api_key:
                raise ValueError("OPENROUTER_API_KEY not set")

        elif provider == LLMProvider.OPENAI:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError("OPENAI_API_KEY not set")

        elif provider == LLMProvider.LOCAL:
            base_url = base_url or os.getenv("LOCAL_LLM_URL", "http://localhost:11434/v1")
            api_key = "ollama"  # Ollama ignores the key

        elif provider == LLMProvider.AZURE:
            api_key = api_key or os.getenv("AZURE_OPENAI_API_KEY")
            azure_endpoint = azure_endpoint or os.getenv("AZURE_OPENAI_ENDPOINT")
            api_version = api_version or os.getenv("AZURE_OPENAI_API_VERSION", "2023-05-15")
            if not api_key or not azure_endpoint:
                raise ValueError("AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT must be set")

        else:
            raise ValueError(f"Unknown LLM provider: {provider}")

        cache_key = (provider, api_key, base_url or "", azure_endpoint or "", api_version or "", float(timeout), int(max_retries))
        if cache_key in LLMFactory._instances:
            return LLMFactory._instances[cache_key]

        logger.info(f"Initializing LLM client for provider: {provider}")
        if provider == LLMProvider.AZURE:
            client = AzureOpenAI(
                api_key=api_key,
                azure_endpoint=azure_endpoint,
                api_version=api_version,
                timeout=timeout,
                max_retries=max_retries,
            )
        else:
            client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=max_retries)
        LLMFactory._instances[cache_key] = client
        return client

    @staticmethod
    def get_default_model(provider: str = None) -> str:
        provider = provider or default_provider()
        if provider == LLMProvider.GEMINI:
            return os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        elif provider == LLMProvider.OPENROUTER:
            return os.getenv("OPENROUTER_MODEL", "google/gemini-2.0-flash-exp:free")
        elif provider == LLMProvider.OPENAI:
            return os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        elif provider == LLMProvider.LOCAL:
            return os.getenv("LOCAL_MODEL", "llama3")
        elif provider == LLMProvider.AZURE:
            return os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini")
        return "gpt-4o-mini"
