# src/channel/models.py
from pydantic import BaseModel, Field
from typing import Any, Dict


class BusRequest(BaseModel):
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Dict[str, Any] = Field(default_factory=dict)


class BusReply(BaseModel):
    body: Any = None


class BusFailure(BaseModel):
    failureCode: int
    message: str
