from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from installwizard.core.service import WizardService


def _service(request: Request) -> WizardService:
    return request.app.state.wizard_service


def mount_spec(app: FastAPI) -> None:
    @app.get("/api/spec/unified", response_model=None)
    def get_unified(request: Request) -> dict[str, Any] | JSONResponse:
        out = _service(request).unified()
        if "error" in out:
            return JSONResponse(status_code=500, content=out)
        return out

    @app.get("/api/spec/diagnostics", response_model=None)
    def get_diagnostics(request: Request) -> dict[str, Any] | JSONResponse:
        out = _service(request).diagnostics()
        if "error" in out:
            return JSONResponse(status_code=500, content=out)
        return out

    @app.post("/api/spec/reload")
    def reload_specs(request: Request) -> dict[str, str]:
        return _service(request).reload()
