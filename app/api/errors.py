"""
Outcome -> HTTP translation shared by the routers.
Plain endpoints answer {"detail": message}; envelope endpoints answer {success: false, message}.
"""
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.schemas.common import ApiResponse
from app.services.outcome import Outcome


def raise_for_outcome(outcome: Outcome) -> None:
    if not outcome.ok:
        raise HTTPException(status_code=outcome.http_status, detail=outcome.message)


def envelope_error(outcome: Outcome) -> JSONResponse:
    body = ApiResponse(success=False, message=outcome.message)
    return JSONResponse(
        status_code=outcome.http_status,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
