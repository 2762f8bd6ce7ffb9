"""Tool-callable abilities exposed to the chat model."""

from .base import Ability
from .image_gen import EditImageAbility, GenerateImageAbility

__all__ = ["Ability", "EditImageAbility", "GenerateImageAbility"]
