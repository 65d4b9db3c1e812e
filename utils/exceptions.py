"""
Custom Exceptions
自定义异常类
"""
from typing import Optional


class PromptCuratorError(Exception):
    """Prompt 整理流水线基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(PromptCuratorError):
    """配置错误"""
    pass


class MissingCredentialsError(ConfigurationError):
    """No provider in the fallback chain has usable credentials."""
    pass


class LLMError(PromptCuratorError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class ProviderCallError(LLMError):
    """Provider call failed for a reason other than quota."""
    pass


class ProviderQuotaExceededError(ProviderCallError):
    """Provider rejected the call with a quota / rate-limit error (HTTP 429)."""
    pass


class ProcessingError(PromptCuratorError):
    """数据处理错误"""
    pass


class MalformedResponseError(ProcessingError):
    """Provider output could not be parsed into the expected structure."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class StorageError(PromptCuratorError):
    """存储错误"""
    pass


class CorpusLoadError(StorageError):
    """Existing corpus file exists but cannot be read or validated."""
    pass


class SafetyAbortError(StorageError):
    """New corpus would shrink below the allowed ratio; nothing is written."""

    def __init__(self, message: str, previous_count: int = 0, new_count: int = 0, **kwargs):
        super().__init__(message, {"previous_count": previous_count, "new_count": new_count, **kwargs})
        self.previous_count = previous_count
        self.new_count = new_count
