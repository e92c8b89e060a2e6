from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from installwizard.core.errors import PersistenceError
from installwizard.core.models import WizardState
from installwizard.core.service import WizardService


class WizardStateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    values: dict[str, Any] = Field(default_factory=dict)
    page_feature_enabled: dict[str, bool] = Field(
        default_factory=dict, alias="pageFeatureEnabled"
    )
    current_page: int = Field(default=0, alias="currentPage")

    def to_state(self) -> WizardState:
        return WizardState(
            values=dict(self.values),
            page_feature_enabled=dict(self.page_feature_enabled),
            current_page=self.current_page,
        )


class GenerateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    values: dict[str, Any] = Field(default_factory=dict)
    pages: list[dict[str, Any]] = Field(default_factory=list)
    output_template: Any = Field(default=None, alias="outputTemplate")


def _service(request: Request) -> WizardService:
    return request.app.state.wizard_service


def _failed(request: Request, what: str, e: PersistenceError) -> JSONResponse:
    request.app.state.web_logger.error(f"Failed to {what}: {e.message}")
    return JSONResponse(status_code=500, content={"error": e.message})


def mount_wizard(app: FastAPI) -> None:
    @app.get("/api/wizard/state")
    def get_state(request: Request) -> dict[str, Any]:
        return _service(request).load_state()

    @app.post("/api/wizard/state", response_model=None)
    def save_state(request: Request, body: WizardStateBody) -> dict[str, str] | JSONResponse:
        try:
            return _service(request).save_state(body.to_state())
        except PersistenceError as e:
            return _failed(request, "save wizard state", e)

    @app.delete("/api/wizard/state", response_model=None)
    def clear_state(request: Request) -> dict[str, str] | JSONResponse:
        try:
            return _service(request).clear_state()
        except PersistenceError as e:
            return _failed(request, "clear wizard state", e)

    @app.post("/api/wizard/generate", response_model=None)
    def generate(request: Request, body: GenerateBody) -> dict[str, Any] | JSONResponse:
        try:
            return _service(request).generate(body.values, body.pages, body.output_template)
        except PersistenceError as e:
            return _failed(request, "generate output", e)
