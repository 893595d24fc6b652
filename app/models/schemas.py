from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    message: str
    time: datetime


class FaultResponse(BaseModel):
    error: bool = True
    type: Literal["timeout", "invalid_data", "service_unavailable", "internal_error"]
    message: str


class MemoryLeakResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    leaked_mb: int = Field(alias="leakedMB")
    time: datetime


class CpuResponse(BaseModel):
    message: str
    duration: float
    time: datetime


class HealthResponse(BaseModel):
    status: str = "ok"
    uptime: float


class EndpointInfo(BaseModel):
    path: str
    description: str


class ServiceInfo(BaseModel):
    name: str
    version: str
    endpoints: list[EndpointInfo]
