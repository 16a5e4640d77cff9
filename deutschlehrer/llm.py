#!/usr/bin/env python3
"""
Unified LLM client supporting multiple providers.
Provides a consistent interface across Google Gemini, Anthropic, and OpenAI.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, List

from .config import load_config
from .logger import get_logger

logger = get_logger(__name__)

# Seconds before a provider request is abandoned
DEFAULT_TIMEOUT = 30.0


class LLMTimeoutError(Exception):
    """Raised when a provider does not answer within the client timeout"""


@dataclass
class LLMResponse:
    """Unified response from any LLM provider"""
    content: str
    model: str
    provider: str
    usage: Optional[Dict[str, int]] = None


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients"""

    provider: str = ''
    model_name: str = ''

    @abstractmethod
    def create(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.4,
    ) -> LLMResponse:
        """Create a completion from user/assistant turns"""
        pass


class GeminiClient(BaseLLMClient):
    """Google Gemini client"""

    DEFAULT_MODEL = "gemini-2.0-flash"

    def __init__(self, api_key: str, model: str = None, timeout: float = DEFAULT_TIMEOUT):
        import google.generativeai as genai
        genai.configure(api_key=api_key)
        self._genai = genai
        self.model_name = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self.provider = "gemini"

    def _convert_messages(self, messages: List[Dict[str, str]]) -> List[Dict]:
        """Convert standard messages to Gemini format"""
        gemini_messages = []
        for msg in messages:
            role = "user" if msg["role"] == "user" else "model"
            gemini_messages.append({
                "role": role,
                "parts": [msg["content"]]
            })
        return gemini_messages

    def create(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.4,
    ) -> LLMResponse:
        # The system instruction is bound to the model object in this SDK
        model = self._genai.GenerativeModel(self.model_name, system_instruction=system)
        gemini_messages = self._convert_messages(messages)
        generation_config = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        request_options = {"timeout": self.timeout}

        from google.api_core.exceptions import DeadlineExceeded
        try:
            if len(gemini_messages) == 1:
                response = model.generate_content(
                    messages[0]["content"],
                    generation_config=generation_config,
                    request_options=request_options,
                )
            else:
                chat = model.start_chat(history=gemini_messages[:-1])
                response = chat.send_message(
                    gemini_messages[-1]["parts"][0],
                    generation_config=generation_config,
                    request_options=request_options,
                )
        except DeadlineExceeded as e:
            raise LLMTimeoutError(f"Gemini request timed out after {self.timeout}s") from e

        return LLMResponse(
            content=response.text,
            model=self.model_name,
            provider=self.provider,
        )


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude client"""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str, model: str = None, timeout: float = DEFAULT_TIMEOUT):
        from anthropic import Anthropic
        # No SDK retries: the learner retries by answering again
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.model_name = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self.provider = "anthropic"

    def create(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.4,
    ) -> LLMResponse:
        from anthropic import APITimeoutError

        kwargs = {}
        if system:
            kwargs["system"] = system
        try:
            response = self.client.messages.create(
                model=self.model_name,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
                **kwargs,
            )
        except APITimeoutError as e:
            raise LLMTimeoutError(f"Anthropic request timed out after {self.timeout}s") from e
        return LLMResponse(
            content=response.content[0].text,
            model=self.model_name,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
        )


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT client"""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, api_key: str, model: str = None, timeout: float = DEFAULT_TIMEOUT):
        from openai import OpenAI
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model_name = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self.provider = "openai"

    def create(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.4,
    ) -> LLMResponse:
        from openai import APITimeoutError

        if system:
            messages = [{"role": "system", "content": system}] + list(messages)
        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
            )
        except APITimeoutError as e:
            raise LLMTimeoutError(f"OpenAI request timed out after {self.timeout}s") from e
        return LLMResponse(
            content=response.choices[0].message.content or '',
            model=self.model_name,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            } if response.usage else None
        )


# Provider registry (Gemini first: the tutor was designed around it)
PROVIDERS = {
    "gemini": {
        "client_class": GeminiClient,
        "env_var": "GOOGLE_API_KEY",
        "config_key": "gemini_api_key",
        "key_prefix": "AI",
        "display_name": "Google (Gemini)",
        "url": "https://aistudio.google.com/app/apikey",
    },
    "anthropic": {
        "client_class": AnthropicClient,
        "env_var": "ANTHROPIC_API_KEY",
        "config_key": "anthropic_api_key",
        "key_prefix": "sk-ant-",
        "display_name": "Anthropic (Claude)",
        "url": "https://console.anthropic.com/settings/keys",
    },
    "openai": {
        "client_class": OpenAIClient,
        "env_var": "OPENAI_API_KEY",
        "config_key": "openai_api_key",
        "key_prefix": "sk-",
        "display_name": "OpenAI (GPT)",
        "url": "https://platform.openai.com/api-keys",
    },
}


def get_available_providers() -> List[str]:
    """Get list of providers with configured API keys"""
    config = load_config()
    available = []
    for provider, info in PROVIDERS.items():
        if os.getenv(info["env_var"]) or config.get(info["config_key"]):
            available.append(provider)
    return available


def get_api_key_for_provider(provider: str) -> Optional[str]:
    """Get API key for a specific provider"""
    if provider not in PROVIDERS:
        return None

    info = PROVIDERS[provider]

    # Check environment variable first
    api_key = os.getenv(info["env_var"])
    if api_key:
        return api_key

    config = load_config()
    return config.get(info["config_key"])


def get_preferred_provider() -> Optional[str]:
    """Get the user's preferred provider from config, or first available"""
    config = load_config()
    preferred = config.get("preferred_provider")

    if preferred and get_api_key_for_provider(preferred):
        return preferred

    available = get_available_providers()
    return available[0] if available else None


def create_llm_client(
    provider: str = None,
    model: str = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[BaseLLMClient]:
    """
    Create an LLM client for the specified or preferred provider.

    Args:
        provider: Provider name (gemini, anthropic, openai). If None, uses preferred.
        model: Model name override. If None, uses config value or provider default.
        timeout: Seconds before a request is abandoned with LLMTimeoutError.

    Returns:
        LLM client instance or None if no provider available.
    """
    if provider is None:
        provider = get_preferred_provider()

    if provider is None or provider not in PROVIDERS:
        return None

    api_key = get_api_key_for_provider(provider)
    if not api_key:
        logger.warning("No API key configured for %s", provider)
        return None

    info = PROVIDERS[provider]
    client_class = info["client_class"]
    model = model or load_config().get("model")

    try:
        return client_class(api_key=api_key, model=model, timeout=timeout)
    except ImportError:
        logger.warning("%s SDK not installed. Run: pip install %s", provider, _get_package_name(provider))
        return None
    except Exception as e:
        logger.warning("Failed to initialize %s client: %s", provider, e)
        return None


def _get_package_name(provider: str) -> str:
    """Get pip package name for a provider"""
    packages = {
        "anthropic": "anthropic",
        "openai": "openai",
        "gemini": "google-generativeai",
    }
    return packages.get(provider, provider)
