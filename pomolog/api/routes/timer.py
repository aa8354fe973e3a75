from __future__ import annotations

import json
import queue
from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..deps import get_service
from ..schemas import TimerCommand, TimerStateOut
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["timer"])


@router.post("/timer/start", response_model=TimerStateOut)
def start_timer(payload: TimerCommand, service: TimerService = Depends(get_service)) -> TimerStateOut:
    return TimerStateOut(**service.start(payload.user_id).to_dict())


@router.post("/timer/pause", response_model=TimerStateOut)
def pause_timer(payload: TimerCommand, service: TimerService = Depends(get_service)) -> TimerStateOut:
    return TimerStateOut(**service.pause(payload.user_id).to_dict())


@router.post("/timer/reset", response_model=TimerStateOut)
def reset_timer(payload: TimerCommand, service: TimerService = Depends(get_service)) -> TimerStateOut:
    return TimerStateOut(**service.reset(payload.user_id).to_dict())


@router.get("/timer/state", response_model=TimerStateOut)
def timer_state(user_id: int = 1, service: TimerService = Depends(get_service)) -> TimerStateOut:
    return TimerStateOut(**service.state(user_id).to_dict())


@router.get("/timer/stream")
def timer_stream(service: TimerService = Depends(get_service)) -> StreamingResponse:
    subscriber = service.subscribe()

    def event_iter() -> Iterator[str]:
        try:
            while True:
                try:
                    event = subscriber.get(timeout=10)
                    yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            service.unsubscribe(subscriber)

    return StreamingResponse(event_iter(), media_type="text/event-stream")
