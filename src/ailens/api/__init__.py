"""AI Lens: FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the upload store.

Modules
-------
main
    FastAPI application factory with all route handlers and the ``main()``
    CLI entry point.
models
    Pydantic models for API request and response validation.
upload_store
    Disk-backed reference image storage, leases, and the periodic janitor.
"""
