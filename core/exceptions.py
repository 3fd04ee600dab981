from typing import Any, Optional


class GatewayError(Exception):
    """
    Base class for all application-specific exceptions.
    captures the original exception for debugging if needed.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class GenerationError(GatewayError):
    """
    Raised when a generation request cannot produce a model URL.
    Carries the remote payload (if any) so callers can diagnose it.
    """

    status_code: int = 500
    exposes_raw: bool = True

    def __init__(
        self,
        message: str,
        raw: Any = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error)
        self.raw = raw

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.exposes_raw:
            body["raw"] = self.raw
        return body


# --- Caller Errors ---


class ValidationError(GenerationError):
    """
    Raised when the prompt or image payload is missing or empty.
    No remote call has been made.
    """

    status_code = 400
    exposes_raw = False


# --- Upstream Errors (Remote Service Failures) ---


class ProtocolError(GenerationError):
    """
    Raised when ModelsLab answered with neither a result nor a fetch_result URL,
    or with a body that is not a JSON object.
    """

    pass


class UploadError(GenerationError):
    """
    Raised when base64_to_url did not succeed or returned no URL.
    """

    pass


class MissingResultError(GenerationError):
    """
    Raised when a "success" payload has no proxy_links or output entry.
    """

    pass


class JobIncompleteError(GenerationError):
    """
    Raised when polling ended on a failed status or ran out of attempts.
    raw is the last status payload, or None if none was received.
    """

    pass


# --- Infrastructure Exceptions (System Failures) ---


class TransportError(GenerationError):
    """
    Raised when the remote service could not be reached at the network level.
    Not retried.
    """

    exposes_raw = False
