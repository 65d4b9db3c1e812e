"""
Base LLM
抽取服务提供商抽象基类
"""
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum

from utils.exceptions import LLMError, ProviderCallError, ProviderQuotaExceededError


class MessageRole(str, Enum):
    """消息角色"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """对话消息"""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典 (用于 API 调用)"""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class LLMResponse:
    """LLM 响应"""
    content: str
    model: str
    provider: str = ""
    usage: Dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


# quota markers seen in SDK error messages; a bare status code only counts as a whole number
QUOTA_MARKERS = ("quota", "rate limit", "rate_limit", "resource exhausted", "resource_exhausted")
_STATUS_429_RE = re.compile(r"(?<![\d.])429(?![\d.])")


def is_quota_error(exc: BaseException) -> bool:
    """
    判断 SDK 异常是否为配额/限流错误

    openai.RateLimitError 带 status_code=429,
    google.api_core ResourceExhausted 带 code=429
    """
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        try:
            if int(value) == 429:
                return True
        except (TypeError, ValueError):
            continue
    message = str(exc).lower()
    if _STATUS_429_RE.search(message):
        return True
    return any(marker in message for marker in QUOTA_MARKERS)


def wrap_provider_error(exc: BaseException, provider: str) -> LLMError:
    """将 SDK 异常包装为流水线异常"""
    if isinstance(exc, LLMError):
        return exc
    if is_quota_error(exc):
        return ProviderQuotaExceededError(
            f"{provider} quota exhausted: {exc}",
            provider=provider,
            error_type=type(exc).__name__,
        )
    return ProviderCallError(
        f"{provider} call failed: {exc}",
        provider=provider,
        error_type=type(exc).__name__,
    )


class BaseLLM(ABC):
    """
    LLM 抽象基类

    所有抽取服务提供商需继承此类。
    acomplete 抛出的异常必须是 ProviderQuotaExceededError 或 ProviderCallError,
    fallback chain 依此决定是否切换到下一个提供商。
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 8192,
        timeout: float = 120.0,
        **kwargs,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider(self) -> str:
        """返回供应商名称"""
        pass

    @abstractmethod
    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """
        异步生成响应

        Args:
            messages: 对话消息列表
            **kwargs: 额外参数 (temperature, max_tokens, json_mode)

        Returns:
            LLMResponse
        """
        pass

    async def aclose(self) -> None:
        """关闭底层客户端资源（默认 no-op）"""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
