"""Chat response generation — one system turn, one user turn, at most one tool call."""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

from .abilities import Ability, EditImageAbility, GenerateImageAbility
from .flux import ImageWorkflowClient
from .llm.provider import ChatMessage, LLMProvider

logger = logging.getLogger("nexusbot.responder")

CHAT_TIMEOUT = 30.0
TEMPERATURE = 0.6
MAX_TOKENS = 512


@dataclass(frozen=True)
class TextReply:
    content: str


@dataclass(frozen=True)
class ImageReply:
    location: str              # URL or base64 image data
    caption: Optional[str] = None


ChatResult = Union[TextReply, ImageReply]


def build_user_content(user_message: str, image_base64: Optional[str] = None):
    """Plain text, or text + inline JPEG when the user attached an image."""
    if not image_base64:
        return user_message
    return [
        {"type": "text", "text": user_message},
        {
            "type": "image_url",
            "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"},
        },
    ]


class ChatResponder:
    """Turns an inbound message into a reply using a tool-augmented chat model."""

    def __init__(
        self,
        provider: LLMProvider,
        image_workflow: ImageWorkflowClient,
        model: Optional[str] = None,
    ):
        self.provider = provider
        self.model = model
        self.abilities: dict[str, Ability] = {
            a.name: a for a in (
                GenerateImageAbility(image_workflow),
                EditImageAbility(image_workflow),
            )
        }

    @property
    def tools(self) -> list[dict]:
        return [a.get_schema() for a in self.abilities.values()]

    async def generate(
        self,
        user_message: str,
        system_prompt: str,
        image_base64: Optional[str] = None,
    ) -> Optional[ChatResult]:
        """Generate a reply.

        Returns:
            TextReply or ImageReply, or None when the chat call itself failed
            (the caller sends nothing in that case).
        """
        try:
            messages = [
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=build_user_content(user_message, image_base64)),
            ]

            logger.info(f"Sending request to {self.model or self.provider.name}...")
            start = time.monotonic()
            response = await self.provider.chat(
                messages,
                model=self.model,
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
                tools=self.tools,
                tool_choice="auto",
                timeout=CHAT_TIMEOUT,
            )
            logger.info(f"Response received in {time.monotonic() - start:.2f}s")

            # Only the first tool call is honoured
            if response.tool_calls:
                call = response.tool_calls[0]
                ability = self.abilities.get(call["name"])
                if ability is not None:
                    return await self._run_tool(ability, call["args"], image_base64)
                logger.warning(f"Model requested unknown tool {call['name']!r}, replying with text")

            return TextReply(content=response.content or "")

        except Exception as e:
            logger.error(f"Error generating AI response: {type(e).__name__}: {e}", exc_info=True)
            return None

    async def _run_tool(self, ability: Ability, args: dict, image_base64: Optional[str]) -> ChatResult:
        logger.info(f"Tool triggered: {ability.name} ({args.get('prompt')!r})")
        result = await ability.execute(args, {"image_base64": image_base64})
        if result.get("success"):
            return ImageReply(location=result["media"], caption=result.get("caption"))
        return TextReply(content=result["error"])
