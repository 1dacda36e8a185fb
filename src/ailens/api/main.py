"""AI Lens: FastAPI Application.

This module is the single entry point for the web application.  It defines
the application factory, all REST API routes, the error-to-response mapping,
and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application follows a stateless REST pattern:

- **Configuration** is read once into :class:`~ailens.core.config.AILensConfig`
  and passed explicitly to the orchestrator when the app starts.
- **Generation** is delegated to
  :class:`~ailens.core.orchestrator.GenerationOrchestrator`, which calls
  Gemini for the analysis and Imagen 4 (Replicate) for the image.
- **Uploads** live in a disk-backed
  :class:`~ailens.api.upload_store.UploadStore`.  An
  :class:`~ailens.api.upload_store.UploadJanitor` deletes old files on a
  fixed schedule for as long as the app is running.

Endpoints
---------
Every route is served both at the root and under ``/api`` (the prefix the
browser UI uses).

========  ==============  ==========================================
Method    Path            Purpose
========  ==============  ==========================================
GET       ``/health``     Liveness check
GET       ``/options``    Camera parameter options for the UI
POST      ``/upload``     Store a reference image (multipart ``image``)
POST      ``/generate``   Build the prompt and run both providers
========  ==============  ==========================================

Usage
-----
CLI (installed entry point)::

    ailens

Direct invocation::

    python -m ailens.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ailens import __version__
from ailens.api.models import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    OptionsResponse,
    UploadResponse,
)
from ailens.api.upload_store import UploadJanitor, UploadStore
from ailens.core.config import AILensConfig, config
from ailens.core.errors import (
    AILensError,
    ConfigurationError,
    ParameterValidationError,
    classify_error,
    user_facing_message,
)
from ailens.core.orchestrator import GenerationOrchestrator, build_orchestrator
from ailens.core.prompt_builder import (
    APERTURE_OPTIONS,
    ISO_OPTIONS,
    LENS_DESCRIPTIONS,
    LIGHTING_DESCRIPTIONS,
    SHUTTER_SPEED_OPTIONS,
)

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[AILensConfig, UploadStore], GenerationOrchestrator]

router = APIRouter()


# ---------------------------------------------------------------------------
# Error responses.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, error: str, details: str | None = None, **extra) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body)


async def _handle_validation_error(request: Request, exc: ParameterValidationError) -> JSONResponse:
    logger.warning("Rejected generate request: %s", exc.details)
    error = (
        "Missing required camera parameters"
        if exc.missing
        else "Unsupported camera parameters"
    )
    return _error_response(400, error, exc.details, missing=exc.missing or None)


async def _handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error: %s", exc)
    return _error_response(503, exc.message, exc.details)


async def _handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies.  A generate request on an unconfigured server still
    # answers 503 first.
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is not None and request.url.path.endswith("/generate"):
        try:
            orchestrator.ensure_configured()
        except ConfigurationError as e:
            return await _handle_configuration_error(request, e)
    details = "; ".join(str(err.get("msg", "")) for err in exc.errors())
    logger.warning("Rejected malformed request to %s: %s", request.url.path, details)
    return _error_response(400, "Invalid request body", details or None)


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Bad request"},
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
}


def _parse_generate_request(payload: Any) -> GenerateRequest:
    """Validate a raw generate body, mapping schema errors to a 400.

    A missing or non-object body is treated as an empty one, so every
    required field is reported as missing.
    """
    if not isinstance(payload, dict):
        payload = {}
    try:
        return GenerateRequest.model_validate(payload)
    except ValidationError as e:
        invalid = {
            ".".join(str(part) for part in err["loc"]) or "body": err.get("input")
            for err in e.errors()
        }
        raise ParameterValidationError(invalid=invalid) from e


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Report that the API is running.  Always 200."""
    return HealthResponse()


@router.get("/options", response_model=OptionsResponse)
def options() -> OptionsResponse:
    """Return the camera parameter options the UI offers.

    Lens and lighting options are returned as value → description mappings,
    the same clauses that end up in the compiled prompt.
    """
    return OptionsResponse(
        iso=list(ISO_OPTIONS),
        aperture=list(APERTURE_OPTIONS),
        shutter_speed=list(SHUTTER_SPEED_OPTIONS),
        lens_type=dict(LENS_DESCRIPTIONS),
        lighting=dict(LIGHTING_DESCRIPTIONS),
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={**_ERROR_RESPONSES, 413: {"model": ErrorResponse, "description": "File too large"}},
)
def upload_image(request: Request, image: UploadFile | str | None = File(default=None)):
    """Store an uploaded reference image.

    Args:
        image: The multipart ``image`` field.  A plain form value in its
            place counts as no file.

    Returns:
        :class:`UploadResponse` with the stored filename and path, or an
        error body: 400 when no file was attached, 413 when the file exceeds
        ``max_upload_bytes``, 500 when it could not be written.
    """
    if image is None or isinstance(image, str) or not image.filename:
        return _error_response(400, "No file uploaded")

    settings: AILensConfig = request.app.state.config
    store: UploadStore = request.app.state.upload_store

    data = image.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        return _error_response(
            413,
            "File too large",
            f"Uploads are limited to {settings.max_upload_bytes // (1024 * 1024)}MB.",
        )

    try:
        path = store.save(data, image.filename)
    except OSError:
        logger.exception("Upload error.")
        return _error_response(500, "Failed to upload image")

    return UploadResponse(filename=path.name, path=str(path))


@router.post(
    "/generate",
    response_model=GenerateResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    responses={**_ERROR_RESPONSES, 503: {"model": ErrorResponse, "description": "Not configured"}},
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": GenerateRequest.model_json_schema()}},
        }
    },
)
def generate(request: Request, payload: Any = Body(default=None)):
    """Compile the photography prompt and run both providers.

    The body is validated here rather than by FastAPI, so that the
    credential check comes first and schema problems answer 400 instead of
    422.  Configuration and validation errors propagate to the registered
    exception handlers (503 and 400).  Image-provider failures never fail the
    request; they only leave ``imageUrl`` out and add a ``note``.  Anything
    else is logged and reported as a 500 with a classified message.
    """
    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    orchestrator.ensure_configured()
    req = _parse_generate_request(payload)

    try:
        result = orchestrator.generate(req.camera_fields(), req.uploaded_image)
    except AILensError:
        raise
    except Exception as e:
        logger.exception("Generation error.")
        category = classify_error(e, orchestrator.text_configured)
        return _error_response(500, user_facing_message(category), str(e))

    return GenerateResponse(
        prompt=result.prompt,
        analysis=result.analysis,
        image_url=result.image_url,
        message=result.message,
        note=result.note,
    )


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    settings: AILensConfig | None = None,
    orchestrator_factory: OrchestratorFactory = build_orchestrator,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration to use.  Defaults to the global ``config``.
        orchestrator_factory: Builds the orchestrator from the settings and
            upload store at startup.  Tests pass a factory with fake providers.

    Returns:
        The configured application.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the upload store and orchestrator; run the janitor."""
        # --- Startup -------------------------------------------------------
        store = UploadStore(settings.uploads_dir, settings.upload_retention_seconds)
        app.state.upload_store = store
        app.state.orchestrator = orchestrator_factory(settings, store)
        app.state.janitor = UploadJanitor(store, settings.cleanup_interval_seconds)
        app.state.janitor.start()
        logger.info("AI Lens API ready (uploads in %s).", store.directory)

        yield

        # --- Shutdown ------------------------------------------------------
        await app.state.janitor.stop()

    app = FastAPI(
        title="AI Lens",
        description="Professional photography prompt builder backed by Gemini and Imagen 4.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ParameterValidationError, _handle_validation_error)
    app.add_exception_handler(ConfigurationError, _handle_configuration_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)

    app.include_router(router)
    app.include_router(router, prefix="/api", include_in_schema=False)

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port, and log level from :data:`~ailens.core.config.config`
    (``AILENS_SERVER_HOST``, ``AILENS_SERVER_PORT``, ``AILENS_LOG_LEVEL``).
    Defaults to ``0.0.0.0:3001``.

    This function is registered as the ``ailens`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "ailens.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
