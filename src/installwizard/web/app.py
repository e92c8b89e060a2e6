from __future__ import annotations

import logging
import time
from contextlib import suppress
from typing import Any

from fastapi import FastAPI, Request

from installwizard.core.events import emit_diagnostic
from installwizard.core.logging import get_logger
from installwizard.core.service import WizardService

from .api.spec import mount_spec
from .api.wizard import mount_wizard


def _uvicorn_log_settings(verbosity: int) -> tuple[str, bool]:
    """Map verbosity to uvicorn (log_level, access_log)."""
    if verbosity <= 0:
        return ("error", False)
    if verbosity <= 2:
        return ("info", False)
    return ("debug", False)


def _silence_uvicorn_loggers() -> None:
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(logging.ERROR)


def create_app(service: WizardService, *, verbosity: int = 1) -> FastAPI:
    app = FastAPI(title="Install Wizard")

    app.state.wizard_service = service
    app.state.verbosity = int(verbosity)
    app.state.web_logger = get_logger("installwizard.web")

    @app.middleware("http")
    async def _emit_route_boundary(request: Request, call_next: Any) -> Any:
        op = f"{request.method} {request.url.path}"
        logger = request.app.state.web_logger

        emit_diagnostic(
            "boundary.start",
            component="web",
            operation=op,
            data={"path": request.url.path, "method": request.method},
        )
        logger.debug(f"{op}: start")

        t0 = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.monotonic() - t0) * 1000)
            emit_diagnostic(
                "boundary.end",
                component="web",
                operation=op,
                data={
                    "status": "failed",
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": dur_ms,
                },
            )
            with suppress(Exception):
                logger.error(f"{op}: failed {type(e).__name__}: {e}")
            raise

        dur_ms = int((time.monotonic() - t0) * 1000)
        emit_diagnostic(
            "boundary.end",
            component="web",
            operation=op,
            data={
                "status": "succeeded",
                "status_code": int(getattr(response, "status_code", 200)),
                "duration_ms": dur_ms,
            },
        )
        logger.debug(f"{op}: end {response.status_code} ({dur_ms} ms)")
        return response

    mount_spec(app)
    mount_wizard(app)

    @app.get("/api/health")
    def api_health() -> dict[str, Any]:
        return {"ok": True}

    return app


def run(service: WizardService, host: str, port: int, *, verbosity: int = 1) -> None:
    """Run the web server in a standalone (non-async) context."""
    try:
        import uvicorn
    except ModuleNotFoundError as e:
        raise RuntimeError("Missing dependency: uvicorn. Install in venv: pip install uvicorn") from e

    app = create_app(service, verbosity=verbosity)
    log_level, access_log = _uvicorn_log_settings(int(verbosity))
    if int(verbosity) <= 0:
        _silence_uvicorn_loggers()
    uvicorn.run(app, host=host, port=port, log_level=log_level, access_log=access_log)
