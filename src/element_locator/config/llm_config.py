"""
Provider-agnostic vision LLM configuration.
Builds LangChain chat models used for structured multimodal calls.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_VISION_MODELS = {
    "openai": "gpt-4o",
    "anthropic": "claude-3-5-sonnet-20241022",
    "google": "gemini-2.0-flash",
}


class LLMConfig:
    """
    Vision LLM configuration with instance caching.
    Supports OpenAI, Anthropic and Google.

    Environment Variables:
    - VISION_LLM_PROVIDER / VISION_LLM_MODEL: Provider and model for vision calls
    - LLM_PROVIDER: Fallback provider when no vision provider is set
    - LLM_TEMPERATURE: Sampling temperature (default 0.0)
    - LLM_TIMEOUT: Request timeout in seconds (default 120)
    - LLM_MAX_RETRIES: Client-side retries of one request (default 2)
    """

    _llm_cache: dict = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear all cached LLM instances."""
        cls._llm_cache.clear()

    @staticmethod
    def get_vision_llm(provider: Optional[str] = None, model: Optional[str] = None):
        """
        Get vision-capable LangChain chat model.

        Args:
            provider: LLM provider (openai, anthropic, google)
            model: Specific vision model name

        Returns:
            LangChain chat model supporting images and structured output
        """
        provider = (
            provider
            or os.getenv("VISION_LLM_PROVIDER")
            or os.getenv("LLM_PROVIDER", "openai")
        ).lower()
        model_name = model or os.getenv("VISION_LLM_MODEL") or DEFAULT_VISION_MODELS.get(provider)

        if provider not in DEFAULT_VISION_MODELS:
            raise ValueError(
                f"Unsupported vision LLM provider: {provider}. "
                f"Supported ones: {sorted(DEFAULT_VISION_MODELS)}"
            )

        cache_key = f"{provider}:{model_name}"
        if cache_key in LLMConfig._llm_cache:
            return LLMConfig._llm_cache[cache_key]

        temperature = float(os.getenv("LLM_TEMPERATURE", "0.0"))
        timeout = int(os.getenv("LLM_TIMEOUT", "120"))
        max_retries = int(os.getenv("LLM_MAX_RETRIES", "2"))

        if provider == "openai":
            from langchain_openai import ChatOpenAI

            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OPENAI_API_KEY not found. Please set it in your .env file."
                )
            llm = ChatOpenAI(
                model=model_name,
                api_key=api_key,
                temperature=temperature,
                timeout=timeout,
                max_retries=max_retries,
            )
        elif provider == "anthropic":
            from langchain_anthropic import ChatAnthropic

            api_key = os.getenv("ANTHROPIC_API_KEY")
            if not api_key:
                raise ValueError(
                    "ANTHROPIC_API_KEY not found. Please set it in your .env file."
                )
            llm = ChatAnthropic(
                model=model_name,
                api_key=api_key,
                temperature=temperature,
                timeout=timeout,
                max_retries=max_retries,
            )
        else:
            from langchain_google_genai import ChatGoogleGenerativeAI

            api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise ValueError(
                    "GOOGLE_API_KEY or GEMINI_API_KEY not found. Please set it in your .env file."
                )
            llm = ChatGoogleGenerativeAI(
                model=model_name,
                google_api_key=api_key,
                temperature=temperature,
                timeout=timeout,
                max_retries=max_retries,
            )

        LLMConfig._llm_cache[cache_key] = llm
        return llm
