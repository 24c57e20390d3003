"""
Training Record Backend: Path-Suffix Router and Handlers
=========================================================

What:  The single endpoint of the service. Any request path is dispatched on
       its last non-empty segment to one of nine handlers.
How:   One catch-all FastAPI route resolves the segment, looks it up in
       HANDLERS, runs the handler with the request session, and wraps the
       result in the success envelope.
Who:   Called by the tracking client, typically under a prefix such as
       /functions/v1/training_record/<handler>.

Route Inventory:
    fetchPart        all parts                     ReferenceService
    fetchMenu        all menus                     ReferenceService
    fetchRecords     records with part/menu/sets   RecordService
    insertRecord     record + set details          RecordService
    insertMenu       one menu                      ReferenceService
    deleteRecord     set details + record          RecordService
    fetchOldPart     archival parts                ReferenceService
    fetchOldMenu     archival menus                ReferenceService
    fetchOldRecords  archival records              RecordService

Dispatch rules:
    - exact, case-sensitive match of the last non-empty segment
    - query strings never take part in routing
    - no match → NotFoundError → 404 {"error": "Not Found"}
    - OPTIONS never reaches this module (answered by CORSPreflightMiddleware)
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import NotFoundError, ValidationError
from app.routes.envelope import success_response
from app.schemas.training import (
    ErrorResponse,
    MenuCreate,
    RecordCreate,
    RecordDelete,
)
from app.services.record_service import RecordService
from app.services.reference_service import ReferenceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Training Record"])

Handler = Callable[[Request, AsyncSession], Awaitable[Any]]
ModelT = TypeVar("ModelT", bound=BaseModel)


# ══════════════════════════════════════════════════════════════════════════
# Request helpers
# ══════════════════════════════════════════════════════════════════════════

def resolve_route_name(path: str) -> str:
    """Last non-empty segment of a URL path ('' for '/')."""
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON, or raise ValidationError."""
    raw = await request.body()
    if not raw.strip():
        raise ValidationError(message="Request body is required", field="body")
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(
            message=f"Request body is not valid JSON: {e}",
            field="body",
        ) from e


def parse_body(model: Type[ModelT], body: Any) -> ModelT:
    """
    Validate a decoded body against a request schema.

    The first Pydantic error becomes the message; all errors go to details.
    """
    try:
        return model.model_validate(body)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"])
        message = f"{field}: {first['msg']}" if field else first["msg"]
        raise ValidationError(
            message=f"Invalid request body: {message}",
            field=field or None,
            context={"errors": errors},
        ) from e


def _references(request: Request) -> ReferenceService:
    return request.app.state.reference_service


def _records(request: Request) -> RecordService:
    return request.app.state.record_service


# ══════════════════════════════════════════════════════════════════════════
# Handlers
# ══════════════════════════════════════════════════════════════════════════

async def fetch_part(request: Request, db: AsyncSession):
    return await _references(request).list_parts(db)


async def fetch_menu(request: Request, db: AsyncSession):
    return await _references(request).list_menus(db)


async def fetch_records(request: Request, db: AsyncSession):
    return await _records(request).list_records(db)


async def fetch_old_part(request: Request, db: AsyncSession):
    return await _references(request).list_old_parts(db)


async def fetch_old_menu(request: Request, db: AsyncSession):
    return await _references(request).list_old_menus(db)


async def fetch_old_records(request: Request, db: AsyncSession):
    return await _records(request).list_old_records(db)


async def insert_record(request: Request, db: AsyncSession):
    payload = parse_body(RecordCreate, await read_json_body(request))
    logger.info(
        "insertRecord: part_id=%s menu=%r sets=%d date=%s",
        payload.part_id, payload.menu_name, len(payload.weight), payload.create_date,
    )
    return await _records(request).create_record(db, payload)


async def insert_menu(request: Request, db: AsyncSession):
    payload = parse_body(MenuCreate, await read_json_body(request))
    return await _references(request).create_menu(db, payload)


async def delete_record(request: Request, db: AsyncSession):
    payload = parse_body(RecordDelete, await read_json_body(request))
    return await _records(request).delete_record(db, payload.record_id)


HANDLERS: Dict[str, Handler] = {
    "fetchPart": fetch_part,
    "fetchMenu": fetch_menu,
    "fetchRecords": fetch_records,
    "insertRecord": insert_record,
    "insertMenu": insert_menu,
    "deleteRecord": delete_record,
    "fetchOldPart": fetch_old_part,
    "fetchOldMenu": fetch_old_menu,
    "fetchOldRecords": fetch_old_records,
}


# ══════════════════════════════════════════════════════════════════════════
# Entry point
# ══════════════════════════════════════════════════════════════════════════

@router.api_route(
    "/{route_path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    responses={
        200: {"description": "Handler result (array or {message})"},
        400: {"description": "Malformed request body", "model": ErrorResponse},
        404: {"description": "Unknown handler name", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Dispatch to a training record handler",
    description=(
        "Routes on the last path segment: fetchPart, fetchMenu, fetchRecords, "
        "insertRecord, insertMenu, deleteRecord, fetchOldPart, fetchOldMenu, "
        "fetchOldRecords."
    ),
)
async def dispatch(
    route_path: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    name = resolve_route_name(request.url.path)
    handler = HANDLERS.get(name)
    if handler is None:
        raise NotFoundError(context={"path": request.url.path})

    result = await handler(request, db)
    return success_response(request, result)
