"""Manual trigger for a reconciliation sweep."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..exceptions import StoreUnavailableError
from ..expiry.sweeper import ReconciliationSweeper
from .dependencies import get_sweeper, store_unavailable
from .schemas import CleanupResponse

router = APIRouter(tags=["cleanup"])
logger = logging.getLogger(__name__)


@router.post("/cleanup-expired", response_model=CleanupResponse)
async def cleanup_expired(sweeper: ReconciliationSweeper = Depends(get_sweeper)) -> CleanupResponse:
    """Run one full sweep synchronously and report what it removed."""
    try:
        summary = await sweeper.run_pass()
    except StoreUnavailableError as exc:
        logger.warning("cleanup.store_unavailable")
        raise store_unavailable() from exc
    return CleanupResponse(
        deleted=summary.deleted,
        storage_failures=summary.storage_failures,
        ms=summary.elapsed_ms,
    )
