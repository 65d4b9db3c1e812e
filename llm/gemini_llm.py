"""
Google Gemini LLM
默认的主抽取提供商
"""
from typing import List, Optional
import logging

from .base import BaseLLM, Message, MessageRole, LLMResponse, wrap_provider_error


logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """
    Google Gemini LLM 实现

    支持模型:
    - gemini-2.5-flash (推荐)
    - gemini-2.5-pro
    - gemini-2.0-flash
    """

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 8192,
        timeout: float = 120.0,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key

    @property
    def provider(self) -> str:
        return "gemini"

    def _convert_messages(self, messages: List[Message]) -> tuple:
        """
        转换消息格式 (Gemini 格式)

        Returns:
            (system_instruction, history, last_message)
        """
        system_instruction = None
        history = []
        last_message = None

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_instruction = msg.content
            elif msg.role == MessageRole.USER:
                if last_message:
                    history.append({"role": "user", "parts": [last_message]})
                last_message = msg.content
            elif msg.role == MessageRole.ASSISTANT:
                if last_message:
                    history.append({"role": "user", "parts": [last_message]})
                    last_message = None
                history.append({"role": "model", "parts": [msg.content]})

        return system_instruction, history, last_message

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """异步生成响应"""
        import google.generativeai as genai

        system_instruction, history, last_message = self._convert_messages(messages)

        generation_config = {
            "temperature": kwargs.get("temperature", self.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if kwargs.get("json_mode"):
            generation_config["response_mime_type"] = "application/json"

        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(
                model_name=self.model,
                generation_config=generation_config,
                system_instruction=system_instruction,
            )
            chat = model.start_chat(history=history)
            response = await chat.send_message_async(
                last_message or "",
                request_options={"timeout": self.timeout},
            )
            # response.text raises when the candidate was blocked or empty
            content = response.text or ""
        except Exception as exc:
            raise wrap_provider_error(exc, self.provider) from exc

        usage = {}
        if getattr(response, "usage_metadata", None):
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }

        finish_reason = None
        if response.candidates:
            finish_reason = getattr(response.candidates[0].finish_reason, "name", None)

        return LLMResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            usage=usage,
            finish_reason=finish_reason,
            raw_response=response,
        )
