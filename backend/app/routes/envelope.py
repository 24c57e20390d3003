"""
Training Record Backend: Response Envelope
===========================================

What:  Builds every JSON response the endpoint returns.
How:   Success → 200 with the serialized payload; errors → status code with
       {"error": ...} plus optional stage/details/request_id.
       Both carry Access-Control-Allow-Origin from Settings, so the header is
       present even on responses produced outside the middleware stack
       (unexpected exceptions).
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _cors_origin(request: Request) -> Dict[str, str]:
    return {"Access-Control-Allow-Origin": request.app.state.settings.cors_allow_origin}


def success_response(request: Request, payload: Any) -> JSONResponse:
    """200 with the payload serialized using its camelCase aliases."""
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder(payload, by_alias=True),
        headers=_cors_origin(request),
    )


def error_response(
    request: Request,
    status_code: int,
    message: str,
    request_id: str = "",
    stage: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Error envelope: only non-empty optional fields are included."""
    content: Dict[str, Any] = {"error": message}
    if stage:
        content["stage"] = stage
    if details:
        content["details"] = details
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=_cors_origin(request),
    )
