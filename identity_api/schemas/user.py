# identity_api/schemas/user.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    name: str
    username: str
    email: str
    mobile_no: str
    role: str
    email_verified_at: Optional[datetime] = None
    mobile_verified_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
