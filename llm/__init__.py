"""
LLM Module
抽取服务提供商抽象层 + fallback chain
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole, is_quota_error, wrap_provider_error
from .gemini_llm import GeminiLLM
from .openai_llm import OpenAICompatibleLLM
from .factory import get_llm
from .chain import ProviderChain, build_provider_chain

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "is_quota_error",
    "wrap_provider_error",
    "GeminiLLM",
    "OpenAICompatibleLLM",
    "get_llm",
    "ProviderChain",
    "build_provider_chain",
]
