"""OpenAI-compatible provider (Fireworks, OpenAI, Together, etc.)."""

import json
import logging
import httpx
from typing import Optional
from .provider import (
    LLMProvider, ChatMessage, ChatResponse,
    LLMAuthError, LLMBadRequestError, LLMRateLimitError,
)

logger = logging.getLogger("nexusbot.llm.openai")


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible API provider.

    Works with any OpenAI-compatible endpoint:
    - Fireworks: https://api.fireworks.ai/inference/v1
    - OpenAI:    https://api.openai.com/v1
    - Together:  https://api.together.xyz/v1
    """

    def __init__(
        self,
        api_key: str,
        chat_model: str = "accounts/fireworks/models/kimi-k2p5",
        base_url: str = "https://api.fireworks.ai/inference/v1",
        provider_name: str = "fireworks",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.chat_model = chat_model
        self.base_url = base_url.rstrip("/")
        self._provider_name = provider_name
        self._transport = transport

    @property
    def name(self) -> str:
        return self._provider_name

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _format_messages(messages: list[ChatMessage]) -> list[dict]:
        """Convert ChatMessages to OpenAI format.

        Multimodal user content (list of parts) is passed through untouched.
        """
        formatted = []
        for msg in messages:
            if msg.role == "tool":
                tool_call_id = msg.metadata.get("tool_call_id", "") if msg.metadata else ""
                formatted.append({"role": "tool", "content": msg.content, "tool_call_id": tool_call_id})
            else:
                formatted.append({"role": msg.role, "content": msg.content})
        return formatted

    @staticmethod
    def _raise_for_status(resp: httpx.Response):
        code = resp.status_code
        if code < 400:
            return
        detail = resp.text[:200]
        if code == 429:
            raise LLMRateLimitError(f"Rate limited (429): {detail}")
        if code in (401, 403):
            raise LLMAuthError(f"Authentication failed ({code}): {detail}")
        if code == 400:
            raise LLMBadRequestError(f"Bad request (400): {detail}")
        resp.raise_for_status()

    @staticmethod
    def _parse_tool_calls(raw_calls: Optional[list]) -> Optional[list]:
        if not raw_calls:
            return None
        tool_calls = []
        for tc in raw_calls:
            fn = tc.get("function", {})
            try:
                args = json.loads(fn.get("arguments") or "{}")
            except json.JSONDecodeError:
                logger.warning(f"Unparseable arguments for tool {fn.get('name')!r}: {fn.get('arguments')!r}")
                args = {}
            tool_calls.append({
                "id": tc.get("id", ""),
                "name": fn.get("name", ""),
                "args": args if isinstance(args, dict) else {},
            })
        return tool_calls

    async def chat(
        self,
        messages: list[ChatMessage],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        tools: Optional[list[dict]] = None,
        tool_choice: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ChatResponse:
        model = model or self.chat_model

        body: dict = {
            "model": model,
            "messages": self._format_messages(messages),
            "temperature": temperature,
        }
        if max_tokens and max_tokens > 0:
            body["max_tokens"] = max_tokens
        if tools:
            body["tools"] = tools
            if tool_choice:
                body["tool_choice"] = tool_choice

        logger.debug(f"Request: model={model}, messages={len(messages)}, tools={len(tools) if tools else 0}")

        async with httpx.AsyncClient(timeout=timeout or 120, transport=self._transport) as client:
            resp = await client.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers=self._get_headers(),
            )
            self._raise_for_status(resp)
            data = resp.json()

        message = data["choices"][0]["message"]
        usage = data.get("usage") or {}

        return ChatResponse(
            content=message.get("content") or "",
            model=data.get("model", model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            tool_calls=self._parse_tool_calls(message.get("tool_calls")),
        )
