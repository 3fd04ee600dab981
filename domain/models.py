from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Generation Requests ---


@dataclass(frozen=True)
class TextGenerationRequest:
    prompt: str


@dataclass(frozen=True)
class ImageGenerationRequest:
    # data URL / base64 string, or raw image bytes
    image_data: Union[str, bytes]


GenerationRequest = Union[TextGenerationRequest, ImageGenerationRequest]


# --- Remote Job Status ---


class RemoteStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: Any) -> "RemoteStatus":
        """ModelsLab reports "processing", "queued", etc. while a job runs."""
        if value == cls.SUCCESS.value:
            return cls.SUCCESS
        if value == cls.FAILED.value:
            return cls.FAILED
        return cls.PENDING


@dataclass
class RemoteJobResponse:
    """A single ModelsLab response, tagged by its status."""

    status: RemoteStatus
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RemoteJobResponse":
        return cls(status=RemoteStatus.parse(payload.get("status")), raw=payload)

    @property
    def fetch_url(self) -> Optional[str]:
        fetch_url = self.raw.get("fetch_result")
        if isinstance(fetch_url, str) and fetch_url:
            return fetch_url
        return None


class JobState(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass
class PollOutcome:
    state: JobState
    attempts: int
    last_raw: Optional[dict[str, Any]] = None


# --- HTTP Bodies ---


class TextTo3DBody(BaseModel):
    prompt: Optional[str] = None


class ImageTo3DBody(BaseModel):
    image_data_url: Optional[str] = Field(default=None, alias="imageDataUrl")

    model_config = ConfigDict(populate_by_name=True)


class GenerationResult(BaseModel):
    model_url: str = Field(..., alias="modelUrl")

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class ErrorResponse(BaseModel):
    error: str
    raw: Optional[Any] = None
