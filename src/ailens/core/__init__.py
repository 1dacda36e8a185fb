"""Core functionality for the AI Lens API.

- **config**: Configuration management using Pydantic Settings
- **errors**: Error taxonomy and error-message classification
- **models**: Value types (camera parameters, reference image, result)
- **prompt_builder**: Photography prompt compilation
- **image_output**: Normalisation of image provider output to a URL
- **providers**: Gemini text provider and Replicate image provider
- **orchestrator**: The per-request generation pipeline
"""

from ailens.core.config import AILensConfig, config
from ailens.core.orchestrator import GenerationOrchestrator, build_orchestrator
from ailens.core.prompt_builder import build_image_prompt, build_prompt

__all__ = [
    "AILensConfig",
    "config",
    "GenerationOrchestrator",
    "build_orchestrator",
    "build_image_prompt",
    "build_prompt",
]
