"""Pydantic schemas for the audit log"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ActionLogResponse(BaseModel):
    id: int
    user_id: str
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class ActionLogListResponse(BaseModel):
    logs: List[ActionLogResponse]
    total: int
    page: int
    page_size: int
