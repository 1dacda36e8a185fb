"""Pydantic request and response models for the AI Lens API.

These models define the JSON schema for the API endpoints.  Field names are
snake_case in Python and camelCase on the wire, matching what the browser UI
sends and expects.

Models
------
GenerateRequest
    Payload for ``POST /generate``.  Every camera field is optional at the
    schema level so that missing values are reported by the orchestrator as
    one ``400`` listing all missing fields, rather than as a ``422``.
GenerateResponse
    Successful ``POST /generate`` body.
UploadResponse
    Successful ``POST /upload`` body.
HealthResponse
    ``GET /health`` body.
OptionsResponse
    ``GET /options`` body.
ErrorResponse
    Body of every non-2xx response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Request body for the ``POST /generate`` endpoint.

    Attributes:
        iso: ISO sensitivity (e.g. ``"400"``).
        aperture: f-number without the ``f/`` prefix (e.g. ``"2.8"``).
        shutter_speed: Shutter speed denominator (``"250"`` means 1/250s).
        lens_type: One of ``wide-angle``, ``standard``, ``telephoto``, ``macro``.
        lighting: One of ``natural``, ``studio``, ``golden-hour``, ``dramatic``.
        subject_description: Optional free-text subject.
        uploaded_image: Filename returned by ``POST /upload``.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    iso: str | None = Field(default=None, description="ISO sensitivity, e.g. '400'.")
    aperture: str | None = Field(default=None, description="f-number, e.g. '2.8'.")
    shutter_speed: str | None = Field(
        default=None,
        alias="shutterSpeed",
        description="Shutter speed denominator, e.g. '250' for 1/250s.",
    )
    lens_type: str | None = Field(
        default=None,
        alias="lensType",
        description="Lens type: wide-angle, standard, telephoto, or macro.",
    )
    lighting: str | None = Field(
        default=None,
        description="Lighting: natural, studio, golden-hour, or dramatic.",
    )
    subject_description: str | None = Field(
        default=None,
        alias="subjectDescription",
        description="Optional free-text description of the subject.",
    )
    uploaded_image: str | None = Field(
        default=None,
        alias="uploadedImage",
        description="Filename of a previously uploaded reference image.",
    )

    def camera_fields(self) -> dict[str, Any]:
        """Return the camera fields keyed by their wire (camelCase) names."""
        return self.model_dump(by_alias=True, exclude={"uploaded_image"})


class GenerateResponse(BaseModel):
    """Response body for a successful ``POST /generate``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    prompt: str
    analysis: str
    image_url: str | None = Field(default=None, alias="imageUrl")
    message: str
    note: str | None = None


class UploadResponse(BaseModel):
    """Response body for a successful ``POST /upload``."""

    success: bool = True
    filename: str
    path: str
    message: str = "Image uploaded successfully"


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "AI Lens API is running"


class OptionsResponse(BaseModel):
    """Options offered by the UI for each camera parameter."""

    model_config = ConfigDict(populate_by_name=True)

    iso: list[str]
    aperture: list[str]
    shutter_speed: list[str] = Field(alias="shutterSpeed")
    lens_type: dict[str, str] = Field(alias="lensType")
    lighting: dict[str, str]


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
    details: str | None = None
    missing: list[str] | None = None
