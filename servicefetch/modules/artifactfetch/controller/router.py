"""FastAPI routes for resolving and installing artifacts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from servicefetch.modules.artifactfetch.domain import ArtifactCoordinate
from servicefetch.modules.artifactfetch.service import ServiceInstallService
from servicefetch.modules.artifactfetch.util.exceptions import (
    ArtifactFetchError,
    ArtifactNotFoundError,
    FetchTimeoutError,
    FilesystemError,
)

router = APIRouter(prefix="/servicefetch", tags=["service-fetch"])
log = logging.getLogger(__name__)


def get_service(request: Request) -> ServiceInstallService:
    container = getattr(request.app.state, "container", None)
    if not container or not getattr(container, "install_service", None):
        raise HTTPException(status_code=500, detail="Install service not initialized.")
    return container.install_service


def _status_for(exc: ArtifactFetchError) -> int:
    if isinstance(exc, ArtifactNotFoundError):
        return 404
    if isinstance(exc, FetchTimeoutError):
        return 504
    if isinstance(exc, FilesystemError):
        return 500
    return 502


def _install_target(install_dir: str, artifact: str, output_dir: Optional[str]) -> Path:
    """Resolve where an install goes; it must stay below ``install_dir``."""
    if artifact in (".", "..") or "/" in artifact or "\\" in artifact:
        raise HTTPException(status_code=400, detail=f"invalid artifact name: {artifact}")
    if output_dir is not None and not isinstance(output_dir, str):
        raise HTTPException(status_code=400, detail="output_dir must be a string")
    root = Path(install_dir)
    target = root / output_dir if output_dir else root / artifact
    if root.resolve() not in target.resolve().parents:
        raise HTTPException(status_code=400, detail=f"output_dir must be inside {root}")
    return target


@router.get("/latest/{group}/{artifact}")
def latest_version(
    group: str,
    artifact: str,
    variant: str | None = None,
    svc: ServiceInstallService = Depends(get_service),
) -> Dict[str, Any]:
    coordinate = ArtifactCoordinate(group=group.strip(), artifact=artifact.strip())
    try:
        metadata = svc.resolve(coordinate, variant)
    except ArtifactFetchError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return metadata.as_dict()


@router.post("/install")
def install(payload: Dict[str, Any], svc: ServiceInstallService = Depends(get_service)) -> Dict[str, Any]:
    for key in ("group", "artifact"):
        if not isinstance(payload.get(key), str) or not payload[key].strip():
            raise HTTPException(status_code=400, detail=f"{key} is required")

    coordinate = ArtifactCoordinate(group=payload["group"].strip(), artifact=payload["artifact"].strip())
    output_dir = _install_target(svc.settings.install_dir, coordinate.artifact, payload.get("output_dir"))
    try:
        result = svc.install(
            coordinate,
            output_dir,
            variant=payload.get("variant"),
            version=payload.get("version"),
            use_latest=bool(payload.get("use_latest", False)),
            expected_service_dir=payload.get("expected_service_dir"),
        )
    except ArtifactFetchError as exc:
        log.warning("Install of %s failed: %s", coordinate, exc)
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return result.as_dict()
