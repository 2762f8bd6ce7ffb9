"""Dashboard API — runtime status and assistant config."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError

from .state import RuntimeState
from .whatsapp.session import SessionManager

logger = logging.getLogger("nexusbot.server")

NO_CACHE = {"Cache-Control": "no-store, max-age=0"}


class ConfigPatch(BaseModel):
    """Any subset of the dashboard's config fields."""

    model_config = ConfigDict(extra="ignore")

    isAiActive: Optional[StrictBool] = None
    systemPrompt: Optional[StrictStr] = None

    def to_fields(self) -> dict:
        fields = {}
        data = self.model_dump(exclude_unset=True)
        if data.get("isAiActive") is not None:
            fields["ai_active"] = data["isAiActive"]
        if data.get("systemPrompt") is not None:
            fields["system_prompt"] = data["systemPrompt"]
        return fields


def _invalid_body() -> JSONResponse:
    return JSONResponse({"success": False, "error": "Invalid body"}, status_code=400)


def create_app(state: RuntimeState, session: SessionManager, start_session: bool = True) -> FastAPI:
    """Create the FastAPI application.

    The session is started once by the lifespan (not by the first status
    read); startup failures are logged and the API keeps serving so the
    dashboard can show the disconnected state and retry via /connect.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_session:
            try:
                await session.ensure_started()
            except Exception as e:
                logger.error(f"WhatsApp session failed to start: {type(e).__name__}: {e}")
        try:
            yield
        finally:
            await session.stop()

    app = FastAPI(title="nexusbot", lifespan=lifespan)
    app.state.runtime = state
    app.state.session = session

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/status")
    async def get_status():
        return JSONResponse(state.snapshot(), headers=NO_CACHE)

    @app.get("/config")
    async def get_config():
        return JSONResponse(state.config_snapshot(), headers=NO_CACHE)

    @app.post("/config")
    async def post_config(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return _invalid_body()
        if not isinstance(body, dict):
            return _invalid_body()
        try:
            patch = ConfigPatch.model_validate(body)
        except ValidationError:
            return _invalid_body()

        fields = patch.to_fields()
        if fields:
            state.patch_config(**fields)
            logger.info(f"Config updated: {sorted(fields)}")
        return {"success": True}

    @app.post("/connect")
    async def connect():
        try:
            await session.connect()
        except Exception as e:
            logger.error(f"Connect failed: {type(e).__name__}: {e}")
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)
        return {"success": True, "connectionStatus": state.status.value}

    @app.post("/logout")
    async def logout():
        await session.logout()
        return {"success": True}

    return app
