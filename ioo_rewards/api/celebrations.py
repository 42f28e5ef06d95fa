"""Celebration queue endpoints and the SSE stream that mirrors it."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ioo_rewards.api.deps import get_event_manager, get_scheduler
from ioo_rewards.services.celebrations import CelebrationScheduler, CelebrationType
from ioo_rewards.services.events import EventManager

router = APIRouter(prefix="/celebrations", tags=["celebrations"])


class CelebrationRequest(BaseModel):
    """A reward notification to queue."""
    type: CelebrationType
    title: str = Field(min_length=1, max_length=200)
    subtitle: str | None = None
    value: int | str | None = None
    icon: str | None = None


class CelebrationResponse(BaseModel):
    """A queued or displayed celebration with its display settings."""
    id: str
    type: str
    title: str
    subtitle: str | None
    value: int | str | None
    icon: str | None
    priority: int
    duration_ms: int
    display_style: str
    show_confetti: bool
    sound_cue: str
    haptic_pattern: str


class QueueStateResponse(BaseModel):
    current: CelebrationResponse | None
    pending: list[CelebrationResponse]
    is_displaying: bool


class DismissRequest(BaseModel):
    id: str | None = Field(default=None, description="Only dismiss if this celebration is still showing")


class DismissResponse(BaseModel):
    dismissed: bool
    state: QueueStateResponse


@router.post("", response_model=CelebrationResponse)
async def submit_celebration(
    request: CelebrationRequest,
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """Queue a celebration; it shows once everything of higher priority is done."""
    event = scheduler.celebrate(
        request.type,
        request.title,
        subtitle=request.subtitle,
        value=request.value,
        icon=request.icon,
    )
    return event.to_dict()


@router.get("/current", response_model=QueueStateResponse)
async def get_current_celebration(
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """The celebration on screen (if any) and what is waiting behind it."""
    return scheduler.snapshot()


@router.post("/dismiss", response_model=DismissResponse)
async def dismiss_celebration(
    request: DismissRequest | None = None,
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """Dismiss the current celebration; the next one is promoted immediately."""
    dismissed = scheduler.dismiss(request.id if request else None)
    return {"dismissed": dismissed, "state": scheduler.snapshot()}


@router.get("/stream")
async def stream_celebrations(
    events: EventManager = Depends(get_event_manager),
) -> StreamingResponse:
    """Server-Sent Events feed of display and dismiss notifications."""
    return StreamingResponse(
        events.subscribe(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
