"""Provider clients for the text/vision model and the image-generation model.

Two thin wrappers isolate the third-party SDKs from the orchestrator:

- :class:`GeminiTextProvider`: Google Gemini through ``google-genai``.
  Returns the photography analysis text.
- :class:`ReplicateImageProvider`: Imagen 4 hosted on Replicate through the
  ``replicate`` SDK.  Returns a single image URL.

Both create their SDK client lazily on first use, so constructing a provider
never touches the network, and both accept a pre-built ``client`` for tests.
Each client is configured with ``provider_timeout_seconds`` as its HTTP
timeout, which bounds how long a hung provider call can hold a request.
"""

from __future__ import annotations

import io
import logging
from typing import Any

from ailens.core.image_output import classify_output
from ailens.core.models import ReferenceImage
from ailens.core.prompt_builder import REFERENCE_IMAGE_INSTRUCTION

logger = logging.getLogger(__name__)

NO_TEXT_PLACEHOLDER = (
    "Unable to get text from model. The prompt may have been blocked or returned no text."
)


def _block_reason(response: Any) -> str | None:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if not reason:
        return None
    # BlockedReason is a str enum; report its value ("SAFETY"), not its repr.
    return str(getattr(reason, "value", reason))


def _candidate_fragments(response: Any) -> list[str]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return [part.text for part in parts if getattr(part, "text", None)]


def extract_text(response: Any) -> str:
    """Extract the analysis text from a Gemini response, with fallbacks.

    The fallback order is:

    1. ``response.text`` when it is non-empty.
    2. A block-reason message when the prompt was blocked.
    3. Any text fragments in the first candidate, newline-joined.
    4. :data:`NO_TEXT_PLACEHOLDER`.

    Args:
        response: A ``GenerateContentResponse`` (or a lookalike).

    Returns:
        A non-empty string in every case.
    """
    try:
        text = response.text or ""
    except (ValueError, AttributeError) as e:
        logger.warning("Gemini response text unavailable: %s", e)
        text = ""
    if text:
        return text

    reason = _block_reason(response)
    if reason:
        return (
            f"[Content not returned: {reason}. "
            "Try a different subject or description.]"
        )

    fragments = _candidate_fragments(response)
    if fragments:
        return "\n".join(fragments)

    return NO_TEXT_PLACEHOLDER


class GeminiTextProvider:
    """Text/vision provider backed by Google Gemini.

    Attributes:
        model (str): Gemini model name, e.g. ``"gemini-2.5-flash"``.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 120.0,
        client: Any | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._timeout_seconds = timeout_seconds
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai
            from google.genai import types

            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout_seconds * 1000)),
            )
        return self._client

    def generate(self, prompt: str, reference: ReferenceImage | None = None) -> str:
        """Ask the model for a photography analysis of *prompt*.

        When *reference* is given, the reference-image instruction is appended
        to the prompt and the image bytes are attached inline.

        Exceptions from the request itself propagate to the caller.  Blocked
        or empty content does not raise: see :func:`extract_text`.
        """
        client = self._get_client()

        if reference is not None:
            from google.genai import types

            contents: Any = [
                prompt + REFERENCE_IMAGE_INSTRUCTION,
                types.Part.from_bytes(data=reference.data, mime_type=reference.mime_type),
            ]
        else:
            contents = prompt

        response = client.models.generate_content(model=self.model, contents=contents)
        return extract_text(response)


class ReplicateImageProvider:
    """Image-generation provider backed by Imagen 4 on Replicate."""

    def __init__(
        self,
        api_token: str,
        model: str = "google/imagen-4",
        aspect_ratio: str = "16:9",
        safety_filter_level: str = "block_medium_and_above",
        timeout_seconds: float = 120.0,
        client: Any | None = None,
    ) -> None:
        self._api_token = api_token
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.safety_filter_level = safety_filter_level
        self._timeout_seconds = timeout_seconds
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            import replicate

            self._client = replicate.Client(
                api_token=self._api_token,
                timeout=self._timeout_seconds,
            )
        return self._client

    def upload_reference(self, reference: ReferenceImage) -> str:
        """Upload the reference image to Replicate and return its URL.

        Raises:
            Any SDK error.  The orchestrator treats failure as non-fatal.
        """
        uploaded = self._get_client().files.create(
            io.BytesIO(reference.data),
            filename=reference.filename,
            content_type=reference.mime_type,
        )
        return uploaded.urls["get"]

    def generate(self, prompt: str, reference: ReferenceImage | None = None) -> str | None:
        """Run the image model and return the generated image URL.

        Returns:
            The URL, or ``None`` when the output shape carried no URL.
        """
        payload: dict[str, Any] = {
            "prompt": prompt,
            "aspect_ratio": self.aspect_ratio,
            "safety_filter_level": self.safety_filter_level,
        }
        if reference is not None:
            payload["image"] = io.BytesIO(reference.data)

        output = self._get_client().run(self.model, input=payload)
        decoded = classify_output(output)
        if decoded.url is None:
            logger.warning(
                "Image model returned %s output without a URL: %r", decoded.kind.value, output
            )
        return decoded.url
