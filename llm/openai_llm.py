"""
OpenAI-Compatible LLM
Groq / OpenRouter 等 OpenAI 兼容接口
"""
from typing import List, Optional
import logging
import inspect

from .base import BaseLLM, Message, LLMResponse, wrap_provider_error


logger = logging.getLogger(__name__)


class OpenAICompatibleLLM(BaseLLM):
    """
    OpenAI 兼容接口实现

    使用 OpenAI SDK + base_url 接入:
    - groq (llama-3.3-70b-versatile 等开源模型)
    - openrouter (网关托管模型)
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        temperature: float = 0.1,
        max_tokens: int = 8192,
        timeout: float = 120.0,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self.provider_name = provider_name
        self._async_client = None

    @property
    def provider(self) -> str:
        return self.provider_name

    def _get_async_client(self):
        """获取异步客户端"""
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._async_client

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """异步生成响应"""
        request_params = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if kwargs.get("json_mode"):
            request_params["response_format"] = {"type": "json_object"}

        try:
            client = self._get_async_client()
            response = await client.chat.completions.create(**request_params)
        except Exception as exc:
            raise wrap_provider_error(exc, self.provider) from exc

        if not response.choices:
            return LLMResponse(content="", model=self.model, provider=self.provider, raw_response=response)

        choice = response.choices[0]
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model or self.model,
            provider=self.provider,
            usage=usage,
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    async def aclose(self) -> None:
        client = self._async_client
        self._async_client = None
        if client is None:
            return
        close_fn = getattr(client, "close", None)
        if callable(close_fn):
            maybe_awaitable = close_fn()
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
