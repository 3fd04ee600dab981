import asyncio
import base64
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import structlog
from core.exceptions import (
    JobIncompleteError,
    MissingResultError,
    ProtocolError,
    UploadError,
    ValidationError,
)
from core.telemetry import tracer
from domain.interfaces import ModelGenerationService
from domain.models import (
    GenerationRequest,
    GenerationResult,
    ImageGenerationRequest,
    JobState,
    PollOutcome,
    RemoteJobResponse,
    RemoteStatus,
    TextGenerationRequest,
)

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class PollingPolicy:
    interval_seconds: float
    max_attempts: int

    @property
    def ceiling_seconds(self) -> float:
        return self.interval_seconds * self.max_attempts


TEXT_POLLING = PollingPolicy(interval_seconds=6.0, max_attempts=60)
IMAGE_POLLING = PollingPolicy(interval_seconds=8.0, max_attempts=60)


def extract_model_url(payload: Any) -> Optional[str]:
    """
    Picks the model URL out of a "success" payload.
    proxy_links (stable mirror) wins over output (may expire).
    """
    if not isinstance(payload, dict):
        return None

    for key in ("proxy_links", "output"):
        url = first_link(payload.get(key))
        if url:
            return url

    return None


def first_link(links: Any) -> Optional[str]:
    """First entry of a link list, if it is a non-empty string."""
    if isinstance(links, list) and links and isinstance(links[0], str) and links[0]:
        return links[0]
    return None


def encode_image_payload(image_data: Union[str, bytes], mime_type: str = "image/png") -> str:
    """Raw bytes become a data URL; strings are assumed to be one already."""
    if isinstance(image_data, bytes):
        encoded = base64.b64encode(image_data).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"
    return image_data


class JobOrchestrator:
    """
    Submits generation jobs to the remote service and waits for the model URL.

    Every call is independent: the orchestrator holds only read-only
    configuration, so many requests can poll their own jobs concurrently.
    The wait between status checks goes through `sleep` (asyncio.sleep by
    default), which suspends only the current request.
    """

    def __init__(
        self,
        client: ModelGenerationService,
        text_policy: PollingPolicy = TEXT_POLLING,
        image_policy: PollingPolicy = IMAGE_POLLING,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.text_policy = text_policy
        self.image_policy = image_policy
        self._sleep = sleep

    async def submit(self, request: GenerationRequest) -> GenerationResult:
        if isinstance(request, TextGenerationRequest):
            return await self.submit_text_job(request.prompt)
        if isinstance(request, ImageGenerationRequest):
            return await self.submit_image_job(request.image_data)
        raise ValidationError(f"Unsupported request type: {type(request).__name__}")

    async def submit_text_job(self, prompt: Optional[str]) -> GenerationResult:
        if not prompt or not prompt.strip():
            logger.error("text_job_rejected", reason="empty_prompt")
            raise ValidationError("Prompt is required")

        with tracer.start_as_current_span("text_to_3d"):
            logger.info("text_job_submitting", prompt=prompt)
            init = RemoteJobResponse.from_payload(await self.client.create_text_job(prompt))
            logger.info("text_job_created", status=init.raw.get("status"))

            return await self._await_result(init, self.text_policy, label="Text-to-3D")

    async def submit_image_job(self, image_data: Union[str, bytes, None]) -> GenerationResult:
        if not image_data or (isinstance(image_data, str) and not image_data.strip()):
            logger.error("image_job_rejected", reason="empty_image")
            raise ValidationError("Image is required")

        with tracer.start_as_current_span("image_to_3d"):
            payload = encode_image_payload(image_data)
            logger.info("image_upload_submitting", payload_length=len(payload))

            # 1. Upload base64 -> URL
            upload = await self.client.upload_image(payload)
            if RemoteStatus.parse(upload.get("status")) != RemoteStatus.SUCCESS:
                logger.error("image_upload_failed", raw=upload)
                raise UploadError("Failed to upload image", raw=upload)

            image_url = first_link(upload.get("output"))
            if not image_url:
                logger.error("image_upload_missing_url", raw=upload)
                raise UploadError("No URL returned from upload", raw=upload)

            logger.info("image_uploaded", image_url=image_url)

            # 2. Create the 3D job
            init = RemoteJobResponse.from_payload(await self.client.create_image_job(image_url))
            logger.info("image_job_created", status=init.raw.get("status"))

            return await self._await_result(init, self.image_policy, label="Image-to-3D")

    async def _await_result(
        self, init: RemoteJobResponse, policy: PollingPolicy, label: str
    ) -> GenerationResult:
        """Immediate result, or poll the fetch_result URL until a terminal state."""
        if init.status == RemoteStatus.SUCCESS:
            return self._normalize(init.raw, label, "No model URL returned")

        fetch_url = init.fetch_url
        if not fetch_url:
            logger.error("job_missing_fetch_url", job=label, raw=init.raw)
            raise ProtocolError(
                f"No fetch_result returned for {label} job", raw=init.raw
            )

        logger.info("job_polling", job=label, poll_url=fetch_url)
        outcome = await self.poll(fetch_url, policy, label=label)

        if outcome.state != JobState.SUCCESS:
            logger.error(
                "job_incomplete",
                job=label,
                state=outcome.state.value,
                attempts=outcome.attempts,
                raw=outcome.last_raw,
            )
            raise JobIncompleteError(
                f"{label} task did not complete", raw=outcome.last_raw
            )

        return self._normalize(
            outcome.last_raw, label, "No model URL returned after polling"
        )

    async def poll(self, fetch_url: str, policy: PollingPolicy, label: str = "job") -> PollOutcome:
        """
        Bounded polling state machine: PENDING -> SUCCESS | FAILED | EXHAUSTED.
        Waits one interval before every status check; checks never overlap.
        """
        state = JobState.PENDING
        last_raw: Optional[dict[str, Any]] = None
        attempts = 0

        while state == JobState.PENDING:
            if attempts >= policy.max_attempts:
                state = JobState.EXHAUSTED
                break

            await self._sleep(policy.interval_seconds)
            attempts += 1

            response = RemoteJobResponse.from_payload(
                await self.client.fetch_status(fetch_url)
            )
            last_raw = response.raw
            logger.info(
                "job_poll_tick",
                job=label,
                attempt=attempts,
                status=response.raw.get("status"),
            )

            if response.status == RemoteStatus.SUCCESS:
                state = JobState.SUCCESS
            elif response.status == RemoteStatus.FAILED:
                state = JobState.FAILED

        return PollOutcome(state=state, attempts=attempts, last_raw=last_raw)

    def _normalize(self, payload: Any, label: str, message: str) -> GenerationResult:
        url = extract_model_url(payload)
        if not url:
            logger.error("job_missing_model_url", job=label, raw=payload)
            raise MissingResultError(message, raw=payload)

        logger.info("job_succeeded", job=label, model_url=url)
        return GenerationResult(model_url=url)
