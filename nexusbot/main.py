"""nexusbot — Main entry point."""

import asyncio
import logging
import os
from typing import Optional

import uvicorn

from .config import NexusSettings, check_settings
from .flux import ImageWorkflowClient
from .llm.openai import OpenAIProvider
from .responder import ChatResponder
from .server import create_app
from .state import RuntimeState
from .whatsapp.session import SessionManager

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("nexusbot")


def setup_logging(log_file: Optional[str], level: int = logging.INFO):
    handlers: list[logging.Handler] = [logging.StreamHandler()]  # stderr (console)
    if log_file:
        handlers.append(logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8"))
    logging.basicConfig(level=level, format=_log_format, handlers=handlers)


def build_app(settings: NexusSettings):
    """Wire state, AI clients and the session into the FastAPI app."""
    state = RuntimeState.from_settings(settings)
    api_key = settings.fireworks_api_key or ""

    provider = OpenAIProvider(
        api_key=api_key,
        chat_model=settings.chat_model,
        base_url=settings.chat_base_url,
    )
    workflow = ImageWorkflowClient(api_key=api_key, url=settings.image_workflow_url)
    responder = ChatResponder(provider, workflow)
    session = SessionManager(state, responder, settings)

    app = create_app(state, session)
    app.state.workflow = workflow
    return app


async def run(settings: NexusSettings, host: Optional[str] = None, port: Optional[int] = None):
    """Main run loop."""
    app = build_app(settings)

    config = uvicorn.Config(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,  # keep our logging setup
    )
    server = uvicorn.Server(config)

    logger.info(f"nexusbot API on http://{config.host}:{config.port}")
    try:
        await server.serve()
    finally:
        await app.state.workflow.aclose()


def main(host: Optional[str] = None, port: Optional[int] = None):
    """Entry point."""
    settings = NexusSettings()
    setup_logging(settings.log_file)
    check_settings(settings)
    try:
        asyncio.run(run(settings, host, port))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
