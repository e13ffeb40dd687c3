from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    success: bool = True
    service: str = "api"
    status: Literal["ok"] = "ok"
    database: Literal["up", "down"]
    timestamp: datetime
