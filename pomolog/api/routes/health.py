from __future__ import annotations

from fastapi import APIRouter

from ... import __version__
from ..schemas import HealthOut

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut(version=__version__)
