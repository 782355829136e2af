from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class EventUserTarget(BaseModel):
    client_id: str = Field(..., min_length=1)
    event_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class WhitelistData(BaseModel):
    email: EmailStr
    access_tier: str = "standard"
    company: Optional[str] = None
    locked_fields: Optional[List[str]] = None


class EventUserReactivate(EventUserTarget):
    whitelist_data: WhitelistData


class EventUserActionResponse(BaseModel):
    success: bool = True
