"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/config", status_code=status.HTTP_200_OK)
def health_config() -> dict:
    """Report the evaluation defaults and whether the elasticity table is reachable."""
    return {
        "elasticities_file": str(settings.elasticities_file),
        "elasticities_file_exists": settings.elasticities_file.exists(),
        "elasticities_segment": settings.elasticities_segment,
        "delta_t_policy": settings.delta_t_policy,
        "thread_count": settings.thread_count,
    }
