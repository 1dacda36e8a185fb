"""Generation orchestration for the AI Lens API.

This module provides :class:`GenerationOrchestrator`, which turns one
``/generate`` request into a :class:`~ailens.core.models.GenerationResult`.

Request Lifecycle
-----------------
``Validating → PromptBuilt → TextCallDone → ImageCallAttempted → Merged``

1. **Configuration**: without a text provider the request fails with
   :class:`~ailens.core.errors.ConfigurationError` before anything else runs.
2. **Validation**: the five camera parameters must be present, and lens type
   and lighting must be known values.
3. **Prompt**: compiled by :func:`~ailens.core.prompt_builder.build_prompt`.
4. **Text call**: Gemini produces the analysis.  Blocked or empty content
   degrades to a fallback string; transport/API errors propagate.
5. **Image call** (only when an image provider is configured): Imagen 4
   produces the image URL.  Every failure here degrades to ``image_url=None``
   plus an explanatory note.

The two provider calls are sequential and each is attempted at most once.

Usage
-----
::

    from ailens.core.config import config
    from ailens.api.upload_store import UploadStore

    orchestrator = build_orchestrator(config, UploadStore(config.uploads_dir))
    result = orchestrator.generate(
        {"iso": "400", "aperture": "2.8", "shutterSpeed": "250",
         "lensType": "standard", "lighting": "natural"},
    )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from ailens.core.config import AILensConfig
from ailens.core.errors import ConfigurationError, ParameterValidationError, ProviderDegradation
from ailens.core.models import CameraParameters, GenerationResult, ReferenceImage
from ailens.core.prompt_builder import (
    LENS_DESCRIPTIONS,
    LIGHTING_DESCRIPTIONS,
    build_image_prompt,
    build_prompt,
)
from ailens.core.providers import GeminiTextProvider, ReplicateImageProvider

if TYPE_CHECKING:
    from ailens.api.upload_store import UploadStore

logger = logging.getLogger(__name__)

# Request field name → CameraParameters attribute, in validation order.
REQUIRED_FIELDS: dict[str, str] = {
    "iso": "iso",
    "aperture": "aperture",
    "shutterSpeed": "shutter_speed",
    "lensType": "lens_type",
    "lighting": "lighting",
}

TEXT_CREDENTIAL = "GEMINI_API_KEY"
IMAGE_CREDENTIAL = "REPLICATE_API_TOKEN"


class TextProvider(Protocol):
    def generate(self, prompt: str, reference: ReferenceImage | None = None) -> str: ...


class ImageProvider(Protocol):
    def upload_reference(self, reference: ReferenceImage) -> str: ...

    def generate(self, prompt: str, reference: ReferenceImage | None = None) -> str | None: ...


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def validate_parameters(fields: Mapping[str, Any]) -> CameraParameters:
    """Build :class:`CameraParameters` from raw request fields.

    Args:
        fields: Mapping keyed by the request's camelCase names
            (``iso``, ``aperture``, ``shutterSpeed``, ``lensType``,
            ``lighting``, ``subjectDescription``).

    Returns:
        The validated parameters.

    Raises:
        ParameterValidationError: If a required field is missing/empty, or
            lens type or lighting is not one of the known options.
    """
    values = {name: _field_text(fields.get(name)) for name in REQUIRED_FIELDS}
    missing = [name for name, value in values.items() if not value.strip()]
    if missing:
        raise ParameterValidationError(missing=missing)

    invalid: dict[str, str] = {}
    if values["lensType"] not in LENS_DESCRIPTIONS:
        invalid["lensType"] = values["lensType"]
    if values["lighting"] not in LIGHTING_DESCRIPTIONS:
        invalid["lighting"] = values["lighting"]
    if invalid:
        raise ParameterValidationError(invalid=invalid)

    subject = _field_text(fields.get("subjectDescription"))
    if not subject.strip():
        subject = None
    return CameraParameters(
        **{attr: values[name] for name, attr in REQUIRED_FIELDS.items()},
        subject_description=subject,
    )


class GenerationOrchestrator:
    """Runs the prompt → text → image pipeline for one request at a time.

    Holds no per-request state, so one instance is shared by all requests.

    Attributes:
        text_provider: Gemini wrapper, or ``None`` when not configured.
        image_provider: Replicate wrapper, or ``None`` when not configured.
    """

    def __init__(
        self,
        text_provider: TextProvider | None,
        image_provider: ImageProvider | None,
        upload_store: UploadStore | None = None,
        *,
        text_credential: str = TEXT_CREDENTIAL,
        image_credential: str = IMAGE_CREDENTIAL,
    ) -> None:
        self.text_provider = text_provider
        self.image_provider = image_provider
        self._uploads = upload_store
        self._text_credential = text_credential
        self._image_credential = image_credential

    @property
    def text_configured(self) -> bool:
        return self.text_provider is not None

    @property
    def image_unavailable_note(self) -> str:
        return f"Image generation requires {self._image_credential} in .env for Imagen 4."

    def ensure_configured(self) -> None:
        """Raise :class:`ConfigurationError` if the text provider is missing."""
        if self.text_provider is None:
            raise ConfigurationError(
                "Gemini API key not configured",
                f"Add your {self._text_credential} to the .env file in the project root. "
                "Get a key at https://aistudio.google.com/apikey",
            )

    def generate(
        self,
        fields: Mapping[str, Any],
        reference_image_id: str | None = None,
    ) -> GenerationResult:
        """Generate the analysis and (optionally) an image for one request.

        Args:
            fields: Raw request fields (see :func:`validate_parameters`).
            reference_image_id: Upload store filename of the reference image.

        Returns:
            The merged :class:`GenerationResult`.

        Raises:
            ConfigurationError: The text provider is not configured.
            ParameterValidationError: Required fields missing or invalid.
            Exception: Whatever the text provider's request raised.
        """
        self.ensure_configured()
        params = validate_parameters(fields)
        prompt = build_prompt(params)
        logger.debug("Generating with prompt:\n%s", prompt)

        reference = self._load_reference(reference_image_id)

        analysis = self.text_provider.generate(prompt, reference)

        image_url = None
        if self.image_provider is not None:
            try:
                image_url = self._generate_image(params, reference)
            except ProviderDegradation as degradation:
                logger.warning("%s", degradation)
        else:
            logger.warning("Image provider not configured; skipping image generation.")

        if image_url:
            logger.info("Image generated successfully: %s", image_url)

        return GenerationResult(
            prompt=prompt,
            analysis=analysis,
            image_url=image_url,
            note=None if image_url else self.image_unavailable_note,
        )

    # -- Internal helpers ---------------------------------------------------

    def _load_reference(self, reference_image_id: str | None) -> ReferenceImage | None:
        if not reference_image_id or self._uploads is None:
            return None
        return self._uploads.read_reference(reference_image_id)

    def _generate_image(
        self,
        params: CameraParameters,
        reference: ReferenceImage | None,
    ) -> str | None:
        """Call the image provider, converting every failure to a degradation."""
        reference_url = None
        if reference is not None:
            try:
                reference_url = self.image_provider.upload_reference(reference)
                logger.info("Reference image uploaded to image provider: %s", reference_url)
            except Exception as e:
                logger.warning("Failed to upload reference image to image provider: %s", e)

        image_prompt = build_image_prompt(
            params,
            has_reference=reference is not None,
            reference_url=reference_url,
        )

        try:
            url = self.image_provider.generate(image_prompt, reference)
        except Exception as e:
            raise ProviderDegradation("image", f"generation error: {e}") from e
        if not url:
            raise ProviderDegradation("image", "output carried no image URL")
        return url


def build_orchestrator(
    config: AILensConfig,
    upload_store: UploadStore | None = None,
) -> GenerationOrchestrator:
    """Create an orchestrator whose providers are built from *config*.

    Providers whose credential is absent are left as ``None``.
    """
    text_provider = None
    if config.text_provider_configured:
        text_provider = GeminiTextProvider(
            api_key=config.gemini_api_key,
            model=config.text_model,
            timeout_seconds=config.provider_timeout_seconds,
        )
    else:
        logger.warning("%s missing or placeholder. Set it in the root .env file.", TEXT_CREDENTIAL)

    image_provider = None
    if config.image_provider_configured:
        image_provider = ReplicateImageProvider(
            api_token=config.replicate_api_token,
            model=config.image_model,
            aspect_ratio=config.image_aspect_ratio,
            safety_filter_level=config.image_safety_filter_level,
            timeout_seconds=config.provider_timeout_seconds,
        )
    else:
        logger.warning(
            "%s missing. Add it to the root .env file for image generation.", IMAGE_CREDENTIAL
        )

    return GenerationOrchestrator(text_provider, image_provider, upload_store)
