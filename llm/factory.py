"""
LLM Factory
工厂函数 - 根据配置创建抽取提供商实例
"""
from typing import Optional
import logging

from config.settings import ProviderSettings
from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .gemini_llm import GeminiLLM
from .openai_llm import OpenAICompatibleLLM


logger = logging.getLogger(__name__)


SUPPORTED_PROVIDERS = ("gemini", "groq", "openrouter")


def provider_api_key(provider: str, settings: ProviderSettings) -> Optional[str]:
    """返回提供商的 API Key (空字符串视为未配置)"""
    api_keys = {
        "gemini": settings.gemini_api_key,
        "groq": settings.groq_api_key,
        "openrouter": settings.openrouter_api_key,
    }
    key = (api_keys.get(provider) or "").strip()
    return key or None


def get_llm(
    provider: str,
    settings: Optional[ProviderSettings] = None,
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    Args:
        provider: 供应商 (gemini, groq, openrouter)
        settings: 提供商配置 (不传则从环境变量读取)
        model: 模型名称 (不传则使用配置中的默认值)
        **kwargs: 额外参数 (temperature, max_tokens 等)

    Returns:
        BaseLLM 实例

    Example:
        llm = get_llm("groq")
        llm = get_llm("gemini", model="gemini-2.5-pro")
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(f"Unsupported LLM provider: {provider}")

    settings = settings or ProviderSettings()
    api_key = kwargs.pop("api_key", None) or provider_api_key(provider, settings)

    defaults = {
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
    }
    for key, value in defaults.items():
        kwargs.setdefault(key, value)

    if provider == "gemini":
        return GeminiLLM(
            model=model or settings.gemini_model,
            api_key=api_key,
            **kwargs,
        )
    if provider == "groq":
        return OpenAICompatibleLLM(
            model=model or settings.groq_model,
            api_key=api_key,
            base_url=settings.groq_base_url,
            provider_name="groq",
            **kwargs,
        )
    return OpenAICompatibleLLM(
        model=model or settings.openrouter_model,
        api_key=api_key,
        base_url=settings.openrouter_base_url,
        provider_name="openrouter",
        **kwargs,
    )
