from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_service
from ..schemas import SessionOut
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["sessions"])


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(
    user_id: int | None = None,
    day: date | None = Query(default=None, alias="date"),
    service: TimerService = Depends(get_service),
) -> list[SessionOut]:
    if day is not None:
        items = service.session_log.sessions_for_day(user_id, day)
    else:
        items = service.session_log.list_sessions(user_id)
    return [SessionOut(**item.to_dict()) for item in items]


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: int, service: TimerService = Depends(get_service)) -> SessionOut:
    item = service.session_log.get_session(session_id)
    if item is not None:
        return SessionOut(**item.to_dict())
    raise HTTPException(status_code=404, detail="session not found")


@router.put("/sessions/{session_id}/complete", response_model=SessionOut)
def complete_session(session_id: int, service: TimerService = Depends(get_service)) -> SessionOut:
    item = service.session_log.close_session(session_id, completed=True)
    if item is None:
        raise HTTPException(status_code=404, detail="session not found")
    return SessionOut(**item.to_dict())
