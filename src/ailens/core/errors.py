"""Error taxonomy for the AI Lens API.

Four kinds of failure are distinguished:

- :class:`ParameterValidationError`: the client omitted a required camera
  parameter or sent an unsupported lens/lighting value (HTTP 400).
- :class:`ConfigurationError`: the operator has not configured the text
  provider credential (HTTP 503).
- :class:`ProviderDegradation`: a provider call failed or was blocked.  It is
  caught where the call is made and folded into the response; it never
  reaches the client as a failure.
- anything else is unexpected (HTTP 500).  Its message is classified with
  :func:`classify_error` so the client gets a curated explanation.
"""

from __future__ import annotations

from enum import Enum


class AILensError(Exception):
    """Base class for all AI Lens errors."""


class ParameterValidationError(AILensError):
    """Required camera parameters are missing or out of range.

    Attributes:
        missing: Request field names that were absent or empty.
        invalid: Mapping of field name to the rejected value.
    """

    def __init__(
        self,
        missing: list[str] | None = None,
        invalid: dict[str, object] | None = None,
    ) -> None:
        self.missing = list(missing or [])
        self.invalid = dict(invalid or {})
        super().__init__(self.details)

    @property
    def details(self) -> str:
        parts: list[str] = []
        if self.missing:
            parts.append("Missing: " + ", ".join(self.missing))
        if self.invalid:
            parts.append(
                "Unsupported values: "
                + ", ".join(f"{name}={value!r}" for name, value in self.invalid.items())
            )
        return ". ".join(parts)


class ConfigurationError(AILensError):
    """A provider credential is absent or still set to its placeholder."""

    def __init__(self, message: str, details: str) -> None:
        self.message = message
        self.details = details
        super().__init__(f"{message}: {details}")


class ProviderDegradation(AILensError):
    """A non-fatal provider failure.

    Attributes:
        provider: ``"text"`` or ``"image"``.
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} provider degraded: {reason}")


class ErrorCategory(str, Enum):
    """Coarse classification of an unexpected error message."""

    AUTH = "auth"
    MODEL_NOT_FOUND = "model-not-found"
    GENERIC = "generic"


_AUTH_MARKERS = ("API key", "401", "403")
_MODEL_MARKERS = ("404", "not found", "not supported")

_USER_MESSAGES = {
    ErrorCategory.AUTH: (
        "Invalid or missing Gemini API key. Add GEMINI_API_KEY to the root .env file."
    ),
    ErrorCategory.MODEL_NOT_FOUND: (
        "Model not available. The Gemini API model name may have changed. "
        "Please check Google AI Studio for available models."
    ),
    ErrorCategory.GENERIC: "Failed to generate image",
}


def classify_error(exc: BaseException, credential_configured: bool = True) -> ErrorCategory:
    """Classify an unexpected exception by inspecting its message.

    Auth markers win over model markers, so a ``403 ... not found`` message is
    reported as an auth problem.

    Args:
        exc: The exception raised while serving the request.
        credential_configured: Whether the text provider credential is set.
            A missing credential always classifies as ``AUTH``.

    Returns:
        The matching :class:`ErrorCategory`.
    """
    text = str(exc)
    if not credential_configured or any(marker in text for marker in _AUTH_MARKERS):
        return ErrorCategory.AUTH
    if any(marker in text for marker in _MODEL_MARKERS):
        return ErrorCategory.MODEL_NOT_FOUND
    return ErrorCategory.GENERIC


def user_facing_message(category: ErrorCategory) -> str:
    """Return the curated client-facing message for *category*."""
    return _USER_MESSAGES[category]
