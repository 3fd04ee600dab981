from typing import Any, Optional

import httpx
import structlog
from core.exceptions import ProtocolError, TransportError
from domain.interfaces import ModelGenerationService

logger = structlog.get_logger()


class ModelsLabClient(ModelGenerationService):
    """
    Thin async client for the ModelsLab v6 API.
    The API key travels in the JSON body of every call, and errors are
    reported in-body, so responses are decoded regardless of HTTP status.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://modelslab.com/api/v6",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def create_text_job(self, prompt: str) -> dict[str, Any]:
        payload = {
            "prompt": prompt,
            "output_format": "glb",
            "resolution": 512,
            "num_inference_steps": 30,
            "ss_sampling_steps": 50,
            "slat_sampling_steps": 50,
            "seed": 0,
            "temp": "no",
        }
        return await self._post(f"{self.base_url}/3d/text_to_3d", payload)

    async def upload_image(self, base64_string: str) -> dict[str, Any]:
        return await self._post(
            f"{self.base_url}/base64_to_url", {"base64_string": base64_string}
        )

    async def create_image_job(self, image_url: str) -> dict[str, Any]:
        payload = {
            "init_image": image_url,
            "output_format": "glb",
            "resolution": 512,
            "seed": 0,
        }
        return await self._post(f"{self.base_url}/3d/image_to_3d", payload)

    async def fetch_status(self, fetch_url: str) -> dict[str, Any]:
        return await self._post(fetch_url, {})

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = {"key": self.api_key, **payload}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(url, json=body)
        except httpx.HTTPError as e:
            logger.error("modelslab_request_failed", url=url, error=str(e))
            raise TransportError(
                "Could not reach the generation service", original_error=e
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.error(
                "modelslab_invalid_json", url=url, status_code=resp.status_code
            )
            raise ProtocolError(
                "Generation service returned a non-JSON response",
                raw=resp.text,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise ProtocolError(
                "Generation service returned an unexpected response", raw=data
            )

        return data
