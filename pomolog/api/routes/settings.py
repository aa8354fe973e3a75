from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_service
from ..schemas import SettingsOut, SettingsUpdate
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["settings"])


@router.get("/settings", response_model=SettingsOut)
def get_settings(user_id: int = 1, service: TimerService = Depends(get_service)) -> SettingsOut:
    return SettingsOut(**service.get_settings(user_id).to_dict())


@router.put("/settings", response_model=SettingsOut)
def update_settings(payload: SettingsUpdate, service: TimerService = Depends(get_service)) -> SettingsOut:
    changes = payload.model_dump(exclude={"user_id"}, exclude_none=True)
    updated = service.update_settings(payload.user_id, changes)
    return SettingsOut(**updated.to_dict())
