"""Inbound message model and outbound payload builders."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class WAMessage:
    """A message as delivered in a ``messages.upsert`` batch."""

    raw: dict

    @classmethod
    def from_dict(cls, raw: dict) -> "WAMessage":
        return cls(raw=raw or {})

    @property
    def key(self) -> dict:
        return self.raw.get("key") or {}

    @property
    def content(self) -> dict:
        return self.raw.get("message") or {}

    @property
    def chat_id(self) -> Optional[str]:
        return self.key.get("remoteJid")

    @property
    def message_id(self) -> Optional[str]:
        return self.key.get("id")

    @property
    def from_me(self) -> bool:
        return bool(self.key.get("fromMe"))

    @property
    def image(self) -> Optional[dict]:
        return self.content.get("imageMessage")

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def text(self) -> Optional[str]:
        """Body text; for image messages, the caption."""
        if self.has_image:
            return self.image.get("caption") or None
        extended = self.content.get("extendedTextMessage") or {}
        return self.content.get("conversation") or extended.get("text") or None


def text_content(text: str) -> dict:
    return {"text": text}


def image_content(location: str, caption: Optional[str] = None) -> dict:
    """Image payload from a URL or base64 data (``data:`` URIs accepted)."""
    if location.startswith(("http://", "https://")):
        image = {"url": location}
    else:
        if location.startswith("data:") and "," in location:
            location = location.split(",", 1)[1]
        image = {"data": location}
    content = {"image": image}
    if caption:
        content["caption"] = caption
    return content
