from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, HTTPException

from . import __version__
from .sbom_loader import SbomLoadError
from .service import ComplianceService


def build_app() -> FastAPI:
    app = FastAPI(title="SBOM compliance API", version=__version__)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/compliance/ntia", response_model=dict)
    def ntia_report(
        sbom: dict[str, Any] = Body(...),
        file_name: str = "sbom.json",
    ) -> dict:
        try:
            return ComplianceService.json_report(sbom, file_name)
        except SbomLoadError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    return app
