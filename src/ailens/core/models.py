"""Value types passed between the prompt builder, providers, and orchestrator."""

from dataclasses import dataclass
from pathlib import Path

IMAGE_GENERATED_MESSAGE = "Photo generated successfully"
SPECS_GENERATED_MESSAGE = "Photography specifications generated successfully."


@dataclass(frozen=True)
class CameraParameters:
    """Photography settings for one generation request.

    Values are kept as the strings the UI sends (``"400"``, ``"2.8"``,
    ``"250"``) and are interpolated into the prompt verbatim.
    """

    iso: str
    aperture: str
    shutter_speed: str
    lens_type: str
    lighting: str
    subject_description: str | None = None


@dataclass(frozen=True)
class ReferenceImage:
    """An uploaded reference photo, loaded for a single request."""

    filename: str
    path: Path
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class GenerationResult:
    """Merged outcome of the text and image provider calls.

    ``image_url`` is set only when image generation succeeded.  ``note``
    explains its absence otherwise.
    """

    prompt: str
    analysis: str
    image_url: str | None = None
    note: str | None = None

    @property
    def message(self) -> str:
        return IMAGE_GENERATED_MESSAGE if self.image_url else SPECS_GENERATED_MESSAGE
