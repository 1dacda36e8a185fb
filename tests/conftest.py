"""Shared pytest fixtures for AI Lens tests."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from ailens.api.main import create_app
from ailens.api.upload_store import UploadStore
from ailens.core.config import AILensConfig
from ailens.core.orchestrator import GenerationOrchestrator


class FakeTextProvider:
    """Stand-in for GeminiTextProvider that records its calls."""

    def __init__(self, analysis: str = "A crisp portrait analysis.", error: Exception | None = None):
        self.analysis = analysis
        self.error = error
        self.calls: list[tuple] = []

    def generate(self, prompt, reference=None):
        self.calls.append((prompt, reference))
        if self.error is not None:
            raise self.error
        return self.analysis


class FakeImageProvider:
    """Stand-in for ReplicateImageProvider that records its calls."""

    def __init__(
        self,
        url: str | None = "https://replicate.delivery/pbxt/out.png",
        error: Exception | None = None,
        upload_error: Exception | None = None,
        reference_url: str = "https://api.replicate.com/v1/files/ref-123",
    ):
        self.url = url
        self.error = error
        self.upload_error = upload_error
        self.reference_url = reference_url
        self.calls: list[tuple] = []
        self.uploads: list = []

    def upload_reference(self, reference):
        self.uploads.append(reference)
        if self.upload_error is not None:
            raise self.upload_error
        return self.reference_url

    def generate(self, prompt, reference=None):
        self.calls.append((prompt, reference))
        if self.error is not None:
            raise self.error
        return self.url


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider credentials and AILENS_* overrides from the environment."""
    for name in ("GEMINI_API_KEY", "REPLICATE_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.upper().startswith("AILENS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_config(temp_dir: Path, clean_env) -> AILensConfig:
    """Create a test configuration with both credentials and a temp upload dir.

    Returns:
        AILensConfig instance for testing
    """
    return AILensConfig(
        _env_file=None,
        gemini_api_key="test-gemini-key",
        replicate_api_token="r8_test_token",
        uploads_dir=temp_dir / "uploads",
    )


@pytest.fixture
def upload_store(temp_dir: Path) -> UploadStore:
    """Upload store rooted in the temporary directory."""
    return UploadStore(temp_dir / "uploads", retention_seconds=3600)


@pytest.fixture
def text_provider() -> FakeTextProvider:
    return FakeTextProvider()


@pytest.fixture
def image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def camera_fields() -> dict:
    """Valid /generate camera fields (the UI defaults)."""
    return {
        "iso": "400",
        "aperture": "2.8",
        "shutterSpeed": "250",
        "lensType": "standard",
        "lighting": "natural",
    }


@pytest.fixture
def make_client(test_config: AILensConfig):
    """Factory producing a TestClient whose orchestrator uses the given fakes.

    Usage::

        client = make_client(text=FakeTextProvider(), image=None)
    """
    clients: list[TestClient] = []

    def _make(text=None, image=None, settings: AILensConfig | None = None) -> TestClient:
        def factory(cfg, store):
            return GenerationOrchestrator(text, image, store)

        app = create_app(settings or test_config, orchestrator_factory=factory)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def test_client(make_client, text_provider, image_provider) -> TestClient:
    """TestClient with both fake providers configured."""
    return make_client(text=text_provider, image=image_provider)
