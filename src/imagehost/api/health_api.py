"""Liveness endpoint."""

from fastapi import APIRouter

from ..utils.clock import utcnow

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": utcnow().isoformat()}
