"""Migrator configuration and execution endpoints."""

import logging
from typing import Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from ..models import (
    CommandResponse,
    MigrationRunResponse,
    MigratorListResponse,
    MigratorResponse,
    MigratorSummary,
    ParameterUpdate,
)
from ...migrators import Migrator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_migrators(request: Request) -> Dict[str, Migrator]:
    return request.app.state.migrators


def get_migrator(migrator_id: str, migrators: Dict[str, Migrator] = Depends(get_migrators)) -> Migrator:
    migrator = migrators.get(migrator_id.lower())
    if migrator is None:
        raise HTTPException(status_code=404, detail="Migrator not found")
    return migrator


def _describe(migrator: Migrator) -> MigratorResponse:
    return MigratorResponse(
        identifier=migrator.identifier,
        name=migrator.name,
        running=migrator.is_running,
        help_text=migrator.help_text(),
        parameters=migrator.redacted_parameters(),
        last_run=MigrationRunResponse(**migrator.last_run.to_dict()) if migrator.last_run else None,
    )


@router.get("", response_model=MigratorListResponse)
async def list_migrators(migrators: Dict[str, Migrator] = Depends(get_migrators)):
    """List all migrators."""
    summaries = [
        MigratorSummary(identifier=m.identifier, name=m.name, running=m.is_running)
        for m in migrators.values()
    ]
    return MigratorListResponse(migrators=summaries, total=len(summaries))


@router.get("/{migrator_id}", response_model=MigratorResponse)
async def get_migrator_details(migrator: Migrator = Depends(get_migrator)):
    """Get a migrator's guide, its redacted parameters and its last run."""
    return _describe(migrator)


@router.put("/{migrator_id}/parameters", response_model=CommandResponse)
async def set_parameter(data: ParameterUpdate, migrator: Migrator = Depends(get_migrator)):
    """Set one source parameter."""
    if migrator.is_running:
        raise HTTPException(status_code=409, detail="Cannot change parameters while migrating")

    result = migrator.handle_configuration_command([data.name, data.value])
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return CommandResponse(success=result.success, message=result.message)


@router.post("/{migrator_id}/start")
async def start_migration(background_tasks: BackgroundTasks, migrator: Migrator = Depends(get_migrator)):
    """Start a migration run in the background."""
    if not migrator.reserve():
        raise HTTPException(status_code=409, detail=f"{migrator.name} is already running")

    background_tasks.add_task(run_migration_task, migrator)
    return {"status": "started", "migrator": migrator.identifier}


@router.get("/{migrator_id}/runs/latest", response_model=MigrationRunResponse)
async def get_latest_run(migrator: Migrator = Depends(get_migrator)):
    """Get the most recent run of a migrator."""
    if migrator.last_run is None:
        raise HTTPException(status_code=404, detail="Migrator has not been run")
    return MigrationRunResponse(**migrator.last_run.to_dict())


async def run_migration_task(migrator: Migrator):
    """Background task to run a migration reserved by the request."""
    succeeded = await migrator.start(reserved=True)
    logger.info(f"Background migration {migrator.identifier} finished (succeeded={succeeded})")
