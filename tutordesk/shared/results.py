"""Uniform success/failure envelope for lifecycle actions."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tutordesk.core.enums import TutoringStatusEnum
from tutordesk.shared.exceptions import AppException, status_code_for


class ActionResult(BaseModel):
    """Outcome of a state-changing operation, never raised."""

    success: bool
    message: str
    code: str | None = None
    tutoring_id: UUID | None = None
    status: TutoringStatusEnum | None = None

    @classmethod
    def ok(cls, message: str, tutoring: Any | None = None) -> "ActionResult":
        if tutoring is None:
            return cls(success=True, message=message)
        return cls(
            success=True,
            message=message,
            tutoring_id=tutoring.id,
            status=tutoring.status,
        )

    @classmethod
    def failed(cls, exc: AppException) -> "ActionResult":
        return cls(success=False, message=exc.message, code=exc.code)


def action_response(result: ActionResult, success_status: int = 200) -> JSONResponse:
    """Render a result with the HTTP status derived from its failure code."""
    return JSONResponse(
        status_code=success_status if result.success else status_code_for(result.code),
        content=result.model_dump(mode="json"),
    )
