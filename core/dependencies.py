from functools import lru_cache

from connections.modelslab_connection_provider import ModelsLabClient
from core.config import settings
from domain.interfaces import ModelGenerationService
from services.job_orchestrator import JobOrchestrator, PollingPolicy


@lru_cache()
def get_generation_service() -> ModelGenerationService:
    """
    Dependency Factory: Returns the ModelsLab client.
    The API key is read once here and never mutated.
    """
    return ModelsLabClient(
        api_key=settings.MODELSLAB_API_KEY,
        base_url=settings.MODELSLAB_BASE_URL,
        timeout=settings.MODELSLAB_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_orchestrator() -> JobOrchestrator:
    """
    Dependency Factory: Returns the job orchestrator.
    Holds no per-request state, so one instance serves every request.
    """
    return JobOrchestrator(
        client=get_generation_service(),
        text_policy=PollingPolicy(
            interval_seconds=settings.TEXT_POLL_INTERVAL_SECONDS,
            max_attempts=settings.TEXT_POLL_MAX_ATTEMPTS,
        ),
        image_policy=PollingPolicy(
            interval_seconds=settings.IMAGE_POLL_INTERVAL_SECONDS,
            max_attempts=settings.IMAGE_POLL_MAX_ATTEMPTS,
        ),
    )
