"""
Free Time API Router - REST endpoints for free-time ledgers and reminder reservations.

Provides endpoints for:
- Computing free time from a window and busy intervals (stateless)
- Syncing a user's ledger from busy intervals the caller already holds
- Reading and deleting a user's ledger
- Reserving reminder slots against a user's ledger
"""

import logging
from datetime import timedelta
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from api.response_models import (
    FreeTimeRequest,
    FreeTimeResponse,
    MutationResponse,
    ReservationRequest,
    ReservationResponse,
    intervals_out,
)
from studytime.contracts import InvariantViolation
from studytime.free_time import FreeTimeError, NoFreeTimeError, get_free_time_frames
from studytime.free_time_store import FreeTimeStoreError
from studytime.sync import FreeTimeSync

logger = logging.getLogger(__name__)

free_time_router = APIRouter(tags=["Free Time"])


@lru_cache(maxsize=1)
def get_sync() -> FreeTimeSync:
    """Process-wide sync service (overridden in tests)."""
    return FreeTimeSync()


def _busy_and_window(body: FreeTimeRequest):
    try:
        busy = [b.to_interval() for b in body.busy]
    except FreeTimeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return body.window_start, busy, body.window_end


@free_time_router.post("/free-time/compute", response_model=FreeTimeResponse)
def compute_free_time(body: FreeTimeRequest, sync: FreeTimeSync = Depends(get_sync)) -> FreeTimeResponse:
    """
    Compute free time without persisting it.
    """
    window_start, busy, window_end = _busy_and_window(body)
    min_keep = (
        timedelta(minutes=body.min_keep_minutes)
        if body.min_keep_minutes
        else sync.settings.min_keep
    )
    try:
        free_time = get_free_time_frames(window_start, busy, window_end, min_keep)
    except FreeTimeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return FreeTimeResponse.build(free_time)


@free_time_router.put("/users/{user_id}/free-time", response_model=FreeTimeResponse)
def sync_free_time(
    user_id: str, body: FreeTimeRequest, sync: FreeTimeSync = Depends(get_sync)
) -> FreeTimeResponse:
    """
    Regenerate and persist a user's free time from busy intervals.

    Overwrites any previous ledger for the user.
    """
    window_start, busy, window_end = _busy_and_window(body)
    try:
        result = sync.sync_from_busy(user_id, window_start, window_end, busy)
    except FreeTimeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except FreeTimeStoreError as e:
        logger.error(f"Error saving free time for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    return FreeTimeResponse.build(result.free_time, user_id=user_id)


@free_time_router.get("/users/{user_id}/free-time", response_model=FreeTimeResponse)
def get_free_time(user_id: str, sync: FreeTimeSync = Depends(get_sync)) -> FreeTimeResponse:
    try:
        free_time = sync.store.load(user_id)
    except (FreeTimeStoreError, InvariantViolation) as e:
        logger.error(f"Error loading free time for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    if free_time is None:
        raise HTTPException(status_code=404, detail="No free time stored for this user")
    return FreeTimeResponse.build(free_time, user_id=user_id)


@free_time_router.delete("/users/{user_id}/free-time", response_model=MutationResponse)
def delete_free_time(user_id: str, sync: FreeTimeSync = Depends(get_sync)) -> dict:
    try:
        with sync.store.user_lock(user_id):
            deleted = sync.store.delete(user_id)
    except FreeTimeStoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="No free time stored for this user")
    return {"success": True, "user_id": user_id}


@free_time_router.post("/users/{user_id}/reservations", response_model=ReservationResponse)
def reserve_slots(
    user_id: str, body: ReservationRequest, sync: FreeTimeSync = Depends(get_sync)
) -> ReservationResponse:
    """
    Schedule reminders across the user's free time and consume their blocks.

    Slots are consumed immediately; there is no rollback if delivery fails.
    An empty ledger yields an empty schedule, not an error.
    """
    num_events = body.num_events if body.num_events is not None else sync.settings.reminders_per_batch
    block = timedelta(minutes=body.block_minutes) if body.block_minutes else None
    try:
        reservation = sync.reserve(user_id, num_events, block)
    except NoFreeTimeError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except FreeTimeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except (FreeTimeStoreError, InvariantViolation) as e:
        logger.error(f"Error reserving slots for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return ReservationResponse(
        user_id=user_id,
        requested=num_events,
        scheduled=list(reservation.scheduled),
        free_time=intervals_out(reservation.free_time),
    )
