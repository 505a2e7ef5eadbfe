"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from voice_pipeline.services import Services


def get_services(request: Request) -> Services:
    """Services built by the app lifespan."""
    return request.app.state.services
