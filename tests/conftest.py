from unittest.mock import AsyncMock

import pytest

from domain.interfaces import ModelGenerationService
from services.job_orchestrator import JobOrchestrator, PollingPolicy

POLL_URL = "https://modelslab.com/api/v6/3d/fetch/12345"
MODEL_URL = "https://pub-mirror.modelslab.com/models/12345.glb"
OUTPUT_URL = "https://cdn.modelslab.com/tmp/12345.glb"
IMAGE_URL = "https://pub-mirror.modelslab.com/uploads/sketch.png"
DATA_URL = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"


def pending(**extra):
    return {"status": "processing", "fetch_result": POLL_URL, **extra}


def success(**extra):
    return {"status": "success", **extra}


@pytest.fixture
def mock_client():
    """
    Stands in for ModelsLab.
    Tests script each call's response via return_value / side_effect.
    """
    client = AsyncMock(spec=ModelGenerationService)
    client.upload_image.return_value = {"status": "success", "output": [IMAGE_URL]}
    return client


@pytest.fixture
def mock_sleep():
    # Records intervals instead of waiting
    return AsyncMock()


@pytest.fixture
def orchestrator(mock_client, mock_sleep):
    return JobOrchestrator(
        client=mock_client,
        text_policy=PollingPolicy(interval_seconds=6.0, max_attempts=60),
        image_policy=PollingPolicy(interval_seconds=8.0, max_attempts=60),
        sleep=mock_sleep,
    )
