from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class OptOutRequest(BaseModel):
    token: str = Field(min_length=1)


class OptOutResponse(BaseModel):
    success: bool = True
    message: str


class OptOutStatusResponse(BaseModel):
    success: bool = True
    opted_out: bool
    phone: str
    opted_out_at: Optional[datetime] = None
