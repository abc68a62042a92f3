"""Voice command request/response schemas."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class CommandRequest(BaseModel):
    transcript: str = Field(..., min_length=1)
    is_admin: bool = False


class CommandResponse(BaseModel):
    kind: str
    feedback: str
    preference: Optional[str] = None
    arguments: Dict[str, str] = Field(default_factory=dict)
