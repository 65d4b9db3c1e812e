"""
Provider Fallback Chain
按凭据构建的有序提供商列表; 仅在配额错误时临时切换
"""
from typing import List, Optional, Sequence
import logging

from config.settings import ProviderSettings
from utils.exceptions import MissingCredentialsError, ProviderQuotaExceededError

from .base import BaseLLM, LLMResponse, Message
from .factory import get_llm, provider_api_key


logger = logging.getLogger(__name__)


DEFAULT_ORDER = ("gemini", "groq", "openrouter")
OPEN_MODELS_ORDER = ("groq", "openrouter", "gemini")


class ProviderChain:
    """
    有序提供商链

    每次调用都从主提供商开始, 只有 ProviderQuotaExceededError 才会走向下一个;
    其他错误直接抛给调用方。
    """

    def __init__(self, providers: Sequence[BaseLLM]):
        if not providers:
            raise MissingCredentialsError(
                "No extraction provider has credentials configured",
                {"expected_env": ["GEMINI_API_KEY", "GROQ_API_KEY", "OPENROUTER_API_KEY"]},
            )
        self.providers: List[BaseLLM] = list(providers)

    @property
    def primary(self) -> BaseLLM:
        return self.providers[0]

    @property
    def names(self) -> List[str]:
        return [p.provider for p in self.providers]

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """
        调用链上的提供商

        Returns:
            LLMResponse (provider 字段为实际响应的提供商)

        Raises:
            ProviderQuotaExceededError: 所有提供商均配额耗尽
            ProviderCallError: 非配额错误 (不触发 fallback)
        """
        last_error: Optional[ProviderQuotaExceededError] = None
        for index, llm in enumerate(self.providers):
            try:
                response = await llm.acomplete(messages, **kwargs)
            except ProviderQuotaExceededError as exc:
                last_error = exc
                remaining = len(self.providers) - index - 1
                logger.warning(
                    "Quota exhausted on %s, %s",
                    llm.provider,
                    f"falling back ({remaining} left)" if remaining else "no providers left",
                )
                continue

            if not response.provider:
                response.provider = llm.provider
            if index > 0:
                logger.info("Served by fallback provider %s", llm.provider)
            return response

        raise last_error

    async def aclose(self) -> None:
        for llm in self.providers:
            await llm.aclose()

    def __repr__(self) -> str:
        return f"ProviderChain({' -> '.join(self.names)})"


def build_provider_chain(settings: Optional[ProviderSettings] = None) -> ProviderChain:
    """
    根据可用凭据构建提供商链

    默认顺序 gemini → groq → openrouter;
    prefer_open_models 为真时使用 groq → openrouter → gemini。

    Raises:
        MissingCredentialsError: 没有任何提供商配置了凭据
    """
    settings = settings or ProviderSettings()
    order = OPEN_MODELS_ORDER if settings.prefer_open_models else DEFAULT_ORDER

    providers = [
        get_llm(name, settings=settings)
        for name in order
        if provider_api_key(name, settings)
    ]
    chain = ProviderChain(providers)
    logger.info("Provider chain: %s", " -> ".join(chain.names))
    return chain
