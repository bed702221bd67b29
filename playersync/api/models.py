"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime


class MigrationStatusEnum(str, Enum):
    PENDING = "pending"
    WIPING = "wiping"
    CONNECTING = "connecting"
    EXTRACTING = "extracting"
    STAGED = "staged"
    LOADING = "loading"
    COMPLETED = "completed"
    FAILED = "failed"


# Request Models
class ParameterUpdate(BaseModel):
    name: str
    value: str


# Response Models
class MigrationStepResponse(BaseModel):
    id: str
    name: str
    phase: Optional[MigrationStatusEnum] = None
    status: MigrationStatusEnum
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class MigrationRunResponse(BaseModel):
    id: str
    migrator: str
    status: MigrationStatusEnum
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    steps: List[MigrationStepResponse] = Field(default_factory=list)
    total_records_staged: int = 0
    total_records_processed: int = 0
    total_records_succeeded: int = 0
    total_records_failed: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class MigratorSummary(BaseModel):
    identifier: str
    name: str
    running: bool = False


class MigratorListResponse(BaseModel):
    migrators: List[MigratorSummary]
    total: int


class MigratorResponse(MigratorSummary):
    help_text: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    last_run: Optional[MigrationRunResponse] = None


class CommandResponse(BaseModel):
    success: bool
    message: str
