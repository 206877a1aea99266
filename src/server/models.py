"""
Pydantic models for the preview server.

These models define the messages pushed to live-reload clients and the
build status returned by the status endpoint.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MessageType(str, Enum):
    """Live-reload message kinds."""
    RELOAD = "reload"
    CSS = "css"
    ERROR = "error"


class ReloadMessage(BaseModel):
    """A message pushed to every connected browser."""
    type: MessageType = MessageType.RELOAD
    stage: Optional[str] = None
    paths: list[str] = []
    message: Optional[str] = None


class StageStatus(str, Enum):
    """Outcome of the last run of a stage."""
    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"


class StageRecord(BaseModel):
    """Last known outcome of a stage in watch mode."""
    stage: str
    status: StageStatus
    finished_at: datetime = Field(default_factory=datetime.now)
    duration: float = 0.0
    outputs: list[str] = []
    message: Optional[str] = None


class StatusResponse(BaseModel):
    """Body of GET /__status."""
    state: str
    clients: int
    stages: list[StageRecord] = []
