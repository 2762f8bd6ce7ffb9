"""Provider-agnostic LLM interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union


# ════════════════════════════════════════════════════════
# LLM errors, raised by status code. The responder
# catches them and sends no reply.
# ════════════════════════════════════════════════════════

class LLMError(Exception):
    """Base class for all LLM provider errors."""
    pass

class LLMRateLimitError(LLMError):
    """429 — rate limited."""
    pass

class LLMAuthError(LLMError):
    """401/403 — authentication or authorization failure."""
    pass

class LLMBadRequestError(LLMError):
    """400 — bad request (malformed prompt, tool schema, etc.)."""
    pass


@dataclass
class ChatMessage:
    role: str                   # 'system', 'user', 'assistant', 'tool'
    content: Union[str, list]   # list = multimodal parts (text + image_url)
    metadata: Optional[dict] = None


@dataclass
class ChatResponse:
    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    tool_calls: Optional[list] = None  # [{"id", "name", "args"}]


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
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
        """Send a chat completion request."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...
