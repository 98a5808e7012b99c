from pydantic import BaseModel
from typing import Dict, Any
from datetime import datetime


class InstagramAccountCreate(BaseModel):
    username: str
    instagram_user_id: str
    access_token: str


class InstagramAccountResponse(BaseModel):
    id: int
    username: str
    instagram_user_id: str
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class WebhookEventResponse(BaseModel):
    id: int
    account_id: int | None = None
    event_type: str
    payload: Dict[str, Any]
    processed: bool
    created_at: datetime

    class Config:
        from_attributes = True
