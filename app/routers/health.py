from datetime import datetime, timezone

from fastapi import APIRouter

from app.database import database_is_up
from app.schemas.health import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        database="up" if database_is_up() else "down",
        timestamp=datetime.now(timezone.utc),
    )
