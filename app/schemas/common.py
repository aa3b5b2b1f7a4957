"""Small response envelopes shared across routers."""

from __future__ import annotations

from pydantic import BaseModel


class DeleteResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    db: bool
