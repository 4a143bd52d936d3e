"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.migration import MigrationStatus


# Request Models
class MigrationRequest(BaseModel):
    config: Dict[str, Any]


# Response Models
class ColumnResponse(BaseModel):
    name: str
    type_name: str


class ValidationResponse(BaseModel):
    valid: bool
    kind: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class MigrationRunResponse(BaseModel):
    id: str
    name: str
    kind: Optional[str] = None
    status: MigrationStatus
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    columns: List[str] = Field(default_factory=list)
    records_migrated: int = 0
    batches_flushed: int = 0
    batches_failed: int = 0
    table_created: bool = False
    error: Optional[str] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class MigrationListResponse(BaseModel):
    migrations: List[MigrationRunResponse]
    total: int
