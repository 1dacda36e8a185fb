"""AI Lens - professional photography prompts and generation via Gemini and Imagen 4."""

__version__ = "0.1.0"
