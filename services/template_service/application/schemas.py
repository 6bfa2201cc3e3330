from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    name: str
    version: str
    documentation_url: str


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)


class TemplateRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime


class ProblemDetail(BaseModel):
    """RFC 7807 error body."""

    type: str = "about:blank"
    title: str
    status: int
    detail: Optional[str] = None
    instance: str
    trace_id: Optional[str] = Field(default=None, serialization_alias="traceId")
    errors: Optional[list[dict[str, Any]]] = None
