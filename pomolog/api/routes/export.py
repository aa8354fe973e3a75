from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...exporting import export_sessions_csv
from ..deps import get_service
from ..schemas import FileResult
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["export"])


class ExportCsvRequest(BaseModel):
    out_dir: str | None = None
    user_id: int | None = None


@router.post("/export/csv", response_model=FileResult)
def export_csv(payload: ExportCsvRequest, service: TimerService = Depends(get_service)) -> FileResult:
    out_dir = Path(payload.out_dir) if payload.out_dir else Path(__file__).resolve().parents[2] / "out"
    csv_path = export_sessions_csv(service.storage, out_dir, user_id=payload.user_id)
    return FileResult(path=str(csv_path))
