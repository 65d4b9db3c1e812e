"""
Utils Module
通用工具函数
"""
from .logger import console, setup_logger
from .exceptions import (
    PromptCuratorError,
    ConfigurationError,
    MissingCredentialsError,
    LLMError,
    ProviderCallError,
    ProviderQuotaExceededError,
    ProcessingError,
    MalformedResponseError,
    StorageError,
    CorpusLoadError,
    SafetyAbortError,
)

__all__ = [
    "console",
    "setup_logger",
    "PromptCuratorError",
    "ConfigurationError",
    "MissingCredentialsError",
    "LLMError",
    "ProviderCallError",
    "ProviderQuotaExceededError",
    "ProcessingError",
    "MalformedResponseError",
    "StorageError",
    "CorpusLoadError",
    "SafetyAbortError",
]
