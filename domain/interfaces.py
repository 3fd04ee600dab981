from abc import ABC, abstractmethod
from typing import Any


class ModelGenerationService(ABC):
    """Remote 3D generation API. Every method returns the decoded JSON body."""

    @abstractmethod
    async def create_text_job(self, prompt: str) -> dict[str, Any]:
        """Starts a text-to-3D job"""
        pass

    @abstractmethod
    async def upload_image(self, base64_string: str) -> dict[str, Any]:
        """Uploads a base64 image and returns the response holding its URL"""
        pass

    @abstractmethod
    async def create_image_job(self, image_url: str) -> dict[str, Any]:
        """Starts an image-to-3D job from an uploaded image URL"""
        pass

    @abstractmethod
    async def fetch_status(self, fetch_url: str) -> dict[str, Any]:
        """Checks a job via the fetch_result URL it was created with"""
        pass
