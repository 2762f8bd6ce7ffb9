"""nexusbot configuration management."""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


class NexusSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Server
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3000, description="API port")
    log_file: Optional[str] = Field(default="~/nexusbot.log", description="Log file path (empty = console only)")

    # Fireworks: chat completions and the FLUX workflow share one key
    fireworks_api_key: Optional[str] = Field(default=None, description="Fireworks API key")
    chat_base_url: str = Field(
        default="https://api.fireworks.ai/inference/v1",
        description="OpenAI-compatible chat completions base URL",
    )
    chat_model: str = Field(
        default="accounts/fireworks/models/kimi-k2p5",
        description="Multimodal chat model",
    )
    image_workflow_url: str = Field(
        default="https://api.fireworks.ai/inference/v1/workflows/accounts/fireworks/models/flux-kontext-pro",
        description="FLUX workflow submission endpoint",
    )

    # WhatsApp
    auth_dir: str = Field(default="./auth_info_baileys", description="Session credentials directory")
    bridge_command: str = Field(default="node wa-bridge.js", description="Protocol sidecar command line")
    version_url: str = Field(
        default="https://raw.githubusercontent.com/WhiskeySockets/Baileys/master/src/Defaults/baileys-version.json",
        description="Where the latest WhatsApp Web version is published",
    )

    # Reconnect policy
    reconnect_base_delay: float = Field(default=1.0, description="First reconnect delay (seconds)")
    reconnect_max_delay: float = Field(default=60.0, description="Reconnect delay cap (seconds)")
    reconnect_max_attempts: int = Field(default=10, description="Reconnect attempts before giving up")

    # Assistant defaults (runtime copy is edited through POST /config)
    ai_active: bool = Field(default=True, description="Reply with AI on startup")
    system_prompt: str = Field(default="", description="Initial system prompt")

    model_config = {"env_prefix": "NEXUS_", "env_file": ".env", "extra": "ignore"}


def check_settings(settings: NexusSettings):
    """Log warnings for risky values. Call once logging is configured."""
    import logging
    logger = logging.getLogger("nexusbot.config")
    if not settings.fireworks_api_key:
        logger.warning(
            "NEXUS_FIREWORKS_API_KEY is not set, so chat and image requests will be rejected "
            "by the provider. Messages will still be counted but no replies will be sent."
        )
    if settings.reconnect_max_attempts < 1:
        logger.warning("reconnect_max_attempts < 1, dropped connections will never be retried.")

