"""FLUX workflow client — submit a prompt, then poll for the finished image.

The workflow endpoint is asynchronous: the submission returns a
``request_id`` right away and the image is fetched from
``<url>/get_result`` once the job reaches a terminal status.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger("nexusbot.flux")

MODES = ("generate", "edit")

_DONE_STATUSES = ("Ready", "Complete", "Finished")
_FAILED_STATUSES = ("Failed", "Error")


class ImageWorkflowClient:
    """Generate or edit images through a submit-then-poll workflow."""

    def __init__(
        self,
        api_key: str,
        url: str,
        poll_interval: float = 1.0,
        max_attempts: int = 60,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.url = url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._client = client
        self._owns_client = client is None

    def _get_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def run(
        self,
        mode: str,
        prompt: str,
        source_image: Optional[str] = None,
    ) -> Optional[str]:
        """Run one workflow job to completion.

        Args:
            mode: "generate" or "edit"
            prompt: Image (or edit) description
            source_image: Base64 JPEG, required in edit mode

        Returns:
            A URL or opaque image data, or None on failure/timeout.

        Raises:
            ValueError: unknown mode, or edit mode without a source image.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown workflow mode: {mode!r}")

        payload = {"prompt": prompt}
        if mode == "edit":
            if not source_image:
                raise ValueError("Image required for edit mode")
            payload["input_image"] = f"data:image/jpeg;base64,{source_image}"

        request_id = await self._submit(payload)
        if not request_id:
            return None

        logger.info(f"Workflow request submitted ({mode}): {request_id}")
        return await self._poll(request_id)

    async def _submit(self, payload: dict) -> Optional[str]:
        """Step 1: submit the job. Returns the request id (None = failed, no retry)."""
        try:
            resp = await self._http().post(self.url, json=payload, headers=self._get_headers())
            result = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Workflow submission failed: {e}")
            return None

        request_id = result.get("request_id") if isinstance(result, dict) else None
        if not request_id:
            logger.error(f"Workflow error: no request id (HTTP {resp.status_code}): {str(result)[:200]}")
            return None
        return request_id

    async def _poll(self, request_id: str) -> Optional[str]:
        """Step 2: poll until a terminal status or the attempt budget runs out."""
        result_endpoint = f"{self.url}/get_result"

        for attempt in range(self.max_attempts):
            await asyncio.sleep(self.poll_interval)

            try:
                resp = await self._http().post(
                    result_endpoint,
                    json={"id": request_id},
                    headers=self._get_headers(),
                )
            except httpx.HTTPError as e:
                logger.debug(f"Poll {attempt + 1}/{self.max_attempts} transport error: {e}")
                continue
            if not resp.is_success:
                logger.debug(f"Poll {attempt + 1}/{self.max_attempts} returned HTTP {resp.status_code}")
                continue

            try:
                poll_result = resp.json()
            except ValueError:
                continue
            if not isinstance(poll_result, dict):
                logger.debug(f"Poll {attempt + 1}/{self.max_attempts} returned a non-object body")
                continue
            status = poll_result.get("status")

            if status in _DONE_STATUSES:
                result = poll_result.get("result")
                sample = result.get("sample") if isinstance(result, dict) else None
                if sample:
                    if isinstance(sample, str) and sample.startswith("http"):
                        logger.info(f"Workflow {request_id} finished after {attempt + 1} poll(s)")
                    else:
                        logger.info(f"Workflow {request_id} finished with inline data")
                    return sample

            if status in _FAILED_STATUSES:
                logger.error(f"Workflow {request_id} failed: {poll_result.get('details')}")
                return None

        logger.warning(f"Workflow {request_id} timed out after {self.max_attempts} polls")
        return None
