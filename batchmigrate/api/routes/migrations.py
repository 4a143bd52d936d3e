"""Migration validation, execution and history endpoints."""

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from ..models import (
    ColumnResponse,
    MigrationRequest,
    MigrationRunResponse,
    MigrationListResponse,
    ValidationResponse,
)
from ..storage import run_storage
from ...exceptions import ConfigurationError, MigrationError
from ...models.config import MigrationConfig
from ...models.migration import MigrationRun
from ...orchestrator import MigrationEngine
from ...services.validator import ConfigValidator

logger = logging.getLogger(__name__)

router = APIRouter()


def to_response(run: MigrationRun) -> MigrationRunResponse:
    return MigrationRunResponse(**run.to_dict())


@router.post("/validate", response_model=ValidationResponse)
def validate_migration(request: MigrationRequest):
    """Validate a migration config without running it."""
    try:
        config = MigrationConfig.from_dict(request.config)
        problems = ConfigValidator().validate(config)
        descriptor = config.to_descriptor()
    except ConfigurationError as e:
        return ValidationResponse(valid=False, errors=[e.message])

    if problems:
        return ValidationResponse(valid=False, errors=problems)

    return ValidationResponse(
        valid=True,
        kind=descriptor.kind.value,
        source=descriptor.source.describe(),
        target=descriptor.target.describe(),
    )


@router.post("/discover", response_model=List[ColumnResponse])
def discover_columns(request: MigrationRequest):
    """Discover the source columns and their type names."""
    try:
        config = MigrationConfig.from_dict(request.config)
        ConfigValidator().validate_or_raise(config)
        descriptor = config.to_descriptor()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    try:
        descriptors = MigrationEngine(descriptor).discover()
    except MigrationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return [ColumnResponse(**d.to_dict()) for d in descriptors]


@router.post("/run", response_model=MigrationRunResponse)
def run_migration(request: MigrationRequest):
    """Run a migration synchronously and return its summary."""
    try:
        config = MigrationConfig.from_dict(request.config)
        ConfigValidator().validate_or_raise(config)
        descriptor = config.to_descriptor()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    run = MigrationEngine(descriptor).run()
    run_storage.add(run)
    logger.info(f"Migration run {run.id} finished with status {run.status.value}")
    return to_response(run)


@router.get("", response_model=MigrationListResponse)
def list_migrations():
    """List all migration runs."""
    runs = run_storage.list_all()
    return MigrationListResponse(migrations=[to_response(r) for r in runs], total=len(runs))


@router.get("/{run_id}", response_model=MigrationRunResponse)
def get_migration(run_id: str):
    """Get a specific migration run."""
    run = run_storage.get(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Migration run not found")
    return to_response(run)
