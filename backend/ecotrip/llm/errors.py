from __future__ import annotations

from enum import Enum
from typing import Optional

RATE_LIMIT_STATUS_CODES = {429}
RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}
RATE_LIMIT_MARKERS = (
    "429",
    "Quota exceeded",
    "Resource has been exhausted",
    "RESOURCE_EXHAUSTED",
)


class ErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    FATAL = "fatal"


class GenerationError(Exception):
    """Base class for failures raised by the Gemini request layer."""


class NoApiKeysError(GenerationError):
    def __init__(self, message: str = "No Gemini API keys configured.") -> None:
        super().__init__(message)


class KeysExhaustedError(GenerationError):
    def __init__(self, models: list[str], last_error: Optional[BaseException]) -> None:
        self.models = models
        self.last_error = last_error
        super().__init__(
            "All API keys and fallback models exhausted "
            f"(models tried: {', '.join(models)}). Last error: {last_error}"
        )


class DispatchTimeoutError(GenerationError):
    def __init__(self, budget: float, last_error: Optional[BaseException] = None) -> None:
        self.budget = budget
        self.last_error = last_error
        message = f"Gemini dispatch exceeded its {budget:.1f}s budget."
        if last_error is not None:
            message += f" Last error: {last_error}"
        super().__init__(message)


class DispatchCancelledError(GenerationError):
    pass


class ResponseParseError(GenerationError):
    def __init__(self, snippet: str, reason: str) -> None:
        self.snippet = snippet
        self.reason = reason
        super().__init__(f"Failed to parse model response as JSON ({reason}): {snippet!r}")


class InvalidResponseError(GenerationError):
    """Parsed payload is JSON but is missing fields the caller requires."""


def _status_code(exc: BaseException) -> Optional[int]:
    for attr in ("code", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Decide whether a failed generation attempt may be retried on another key.

    google-genai raises ``errors.APIError`` subclasses carrying the HTTP
    ``code`` and the RPC ``status``; when either is present it decides alone.
    Message sniffing is only the last resort for errors raised without
    structured fields.
    """
    code = _status_code(exc)
    status = getattr(exc, "status", None)
    if not isinstance(status, str):
        status = None
    if code is not None or status is not None:
        if code in RATE_LIMIT_STATUS_CODES or (status or "").upper() in RATE_LIMIT_STATUSES:
            return ErrorKind.RATE_LIMIT
        return ErrorKind.FATAL
    message = str(exc)
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMIT
    return ErrorKind.FATAL
