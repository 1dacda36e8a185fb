"""Photography prompt compilation for the AI Lens API.

The prompt is a fixed multi-section template.  The camera settings are
interpolated verbatim, and the lens and lighting choices are expanded into
descriptive clauses from two closed lookup tables.

Template Structure::

    Create a professional, ultra-realistic photograph ...

    CAMERA SETTINGS:
    - ISO: [iso] ...
    - Aperture: f/[aperture] ...
    - Shutter Speed: 1/[shutter]s ...

    LENS & PERSPECTIVE:
    - [lens description]

    LIGHTING:
    - [lighting description]

    SUBJECT:
    [subject description]

    CRITICAL REQUIREMENTS:
    - ...

    [closing sentence]

Both builders are pure: the same parameters always produce the same text.
Lens and lighting values outside the tables leave an empty clause instead of
raising, so callers validate membership first (see
:func:`ailens.core.orchestrator.validate_parameters`).

Usage
-----
::

    params = CameraParameters("400", "2.8", "250", "standard", "natural")
    prompt = build_prompt(params)
"""

from __future__ import annotations

from ailens.core.models import CameraParameters

# ---------------------------------------------------------------------------
# Option tables.
# ---------------------------------------------------------------------------

LENS_DESCRIPTIONS: dict[str, str] = {
    "wide-angle": (
        "wide-angle lens (14-35mm) with expanded field of view and slight edge distortion"
    ),
    "standard": "standard lens (35-70mm) with natural perspective matching human vision",
    "telephoto": (
        "telephoto lens (70-300mm) with compressed perspective and shallow depth of field"
    ),
    "macro": "macro lens with extreme close-up detail and minimal depth of field",
}

LIGHTING_DESCRIPTIONS: dict[str, str] = {
    "natural": "natural daylight with soft shadows and balanced color temperature",
    "studio": "professional studio lighting with controlled key, fill, and rim lights",
    "golden-hour": "golden hour lighting with warm tones and long dramatic shadows",
    "dramatic": "dramatic high-contrast lighting with deep shadows and bright highlights",
}

# Values offered by the UI.  Not enforced: any string is interpolated as-is.
ISO_OPTIONS: tuple[str, ...] = ("100", "200", "400", "800", "1600", "3200", "6400")
APERTURE_OPTIONS: tuple[str, ...] = ("1.4", "1.8", "2.8", "4", "5.6", "8", "11", "16", "22")
SHUTTER_SPEED_OPTIONS: tuple[str, ...] = (
    "8000", "4000", "2000", "1000", "500", "250", "125", "60", "30", "15", "8",
)

DEFAULT_SUBJECT = "the uploaded subject"

REFERENCE_IMAGE_INSTRUCTION = (
    "\n\nUse this reference image as the subject and apply the specified camera "
    "settings to recreate it with professional photography quality:"
)

_REQUIREMENTS = (
    "The image MUST look like it was taken with a real camera, not AI-generated",
    "Apply authentic camera sensor characteristics and color science",
    "Include natural lens aberrations, chromatic aberration where appropriate",
    "Realistic depth of field based on aperture setting",
    "Natural grain/noise pattern matching the ISO setting",
    "Authentic dynamic range and highlight/shadow rolloff",
    "Professional composition and framing",
    "Sharp focus on the main subject with appropriate bokeh",
    "Natural color grading matching professional photography",
)

_CLOSING = (
    "The final result should be indistinguishable from a photograph taken by a "
    "professional photographer with the specified equipment and settings."
)


def build_prompt(params: CameraParameters) -> str:
    """Compile the photography prompt for the given camera parameters.

    Args:
        params: Camera settings, lens, lighting, and optional subject.

    Returns:
        The full multi-section prompt.  The subject defaults to
        ``"the uploaded subject"`` when no description was given.
    """
    lens = LENS_DESCRIPTIONS.get(params.lens_type, "")
    lighting = LIGHTING_DESCRIPTIONS.get(params.lighting, "")
    subject = params.subject_description or DEFAULT_SUBJECT
    requirements = "\n".join(f"- {line}" for line in _REQUIREMENTS)

    return (
        "Create a professional, ultra-realistic photograph with the following exact "
        "camera specifications:\n"
        "\n"
        "CAMERA SETTINGS:\n"
        f"- ISO: {params.iso} (grain and noise characteristics matching this ISO level)\n"
        f"- Aperture: f/{params.aperture} (depth of field corresponding to this f-stop)\n"
        f"- Shutter Speed: 1/{params.shutter_speed}s "
        "(motion blur characteristics for this speed)\n"
        "\n"
        "LENS & PERSPECTIVE:\n"
        f"- {lens}\n"
        "\n"
        "LIGHTING:\n"
        f"- {lighting}\n"
        "\n"
        "SUBJECT:\n"
        f"{subject}\n"
        "\n"
        "CRITICAL REQUIREMENTS:\n"
        f"{requirements}\n"
        "\n"
        f"{_CLOSING}"
    )


def build_image_prompt(
    params: CameraParameters,
    *,
    has_reference: bool = False,
    reference_url: str | None = None,
) -> str:
    """Compile the prompt sent to the image-generation model.

    Args:
        params: Camera parameters for the request.
        has_reference: Whether a reference image accompanies the request.
        reference_url: Provider-hosted URL of the reference image, when the
            upload to the provider succeeded.

    Returns:
        The photography prompt prefixed with ``"The photo: "``, plus a
        reference-image instruction when a reference exists.
    """
    prompt = f"The photo: {build_prompt(params)}"
    if reference_url:
        return (
            f"{prompt}\n\nIMPORTANT: Use the reference image at {reference_url} as the "
            f"subject. Apply the specified camera settings (ISO {params.iso}, "
            f"f/{params.aperture}, 1/{params.shutter_speed}s), {params.lens_type} lens "
            f"characteristics, and {params.lighting} lighting to recreate this subject "
            "with professional photography quality. Match the composition and subject "
            "from the reference image while applying the new camera settings."
        )
    if has_reference:
        return (
            f"{prompt}\n\nUse the uploaded reference image as the subject and apply the "
            "specified camera settings, lighting, and lens characteristics to recreate it "
            "with professional photography quality."
        )
    return prompt
