"""
Pydantic schemas for learning sessions
"""
from datetime import datetime
from typing import Optional

from roadmap_tracker.schemas.common import CamelModel


class SessionRead(CamelModel):
    id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int
    is_active: bool
    device_type: str
    browser: Optional[str] = None
    os: Optional[str] = None
