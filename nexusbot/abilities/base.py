"""Base Ability class — all tool-callable abilities inherit from this."""

from abc import ABC, abstractmethod


class Ability(ABC):
    """Base class for abilities the chat model can invoke as tools.

    Each ability implements a standard interface for:
    - Execution with parameters and context
    - Schema generation for LLM function calling

    ``execute`` returns a result dict rather than raising:

        {"success": True, "media": <url or data>, "caption": <str>}
        {"success": False, "error": <user-facing text>}

    Context keys understood by the built-in abilities:
        image_base64: base64 image the user attached to the message (optional)
    """

    name: str
    description: str
    version: str = "1.0"

    @abstractmethod
    async def execute(self, params: dict, context: dict) -> dict:
        """Run the ability with LLM-supplied params."""
        ...

    @abstractmethod
    def get_schema(self) -> dict:
        """Return the OpenAI-compatible function schema."""
        ...
