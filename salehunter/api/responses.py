"""
ServiceResult -> HTTP envelope.
"""

from typing import Any, Callable, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from salehunter.errors import exception_for
from salehunter.services.result import ServiceResult


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return jsonable_encoder(value)


def respond(result: ServiceResult, build: Optional[Callable[[Any], Any]] = None) -> JSONResponse:
    """
    Render a service result.

    Success: envelope with HTTP status equal to result.code; `build`
    maps the result data (an entity, or each entity of a list) to its
    response model. Failure: raised as the matching SaleHunterException
    so the exception handlers render it.
    """
    if not result.succeeded:
        raise exception_for(result)

    data = result.data
    if build is not None and data is not None:
        data = [build(item) for item in data] if isinstance(data, list) else build(data)

    return JSONResponse(
        status_code=result.code,
        content={
            "code": result.code,
            "message": result.message,
            "data": _serialize(data),
        },
    )
