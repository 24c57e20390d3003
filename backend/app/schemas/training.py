"""
Training Record Backend: Pydantic Request/Response Schemas
===========================================================

What:  Pydantic models defining the JSON contract with the tracking client.
How:   Response models read ORM objects (from_attributes) and serialize with
       camelCase aliases (partId, setIndex, createDate, ...). Request models
       accept both camelCase and snake_case keys.
Who:   Built by the services, validated by the router.

Legacy request encoding:
    Older clients JSON-encode values a second time before putting them in the
    body, e.g.

        {"record": "{\"partId\": 1, \"menuName\": \"Squat\", ...}"}
        {"partId": "2", "menuName": "\"Bench Press\""}

    Each write schema accepts that shape and the plain one
    ({"partId": 2, "menuName": "Bench Press"}); the embedded text is decoded
    exactly once, here, and nothing downstream sees strings-inside-JSON.
"""

import json
from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def decode_embedded_json(value: Any) -> Any:
    """Decode JSON text nested inside a JSON body; other values pass through."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _decode_embedded_str(value: Any) -> Any:
    # '"Bench Press"' -> 'Bench Press', while 'Bench Press' and '123' stay as sent
    decoded = decode_embedded_json(value)
    return decoded if isinstance(decoded, str) else value


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════

_RESPONSE_CONFIG = {
    "from_attributes": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class PartResponse(BaseModel):
    """Returned by fetchPart / fetchOldPart, ordered by partId."""
    part_id: int = Field(description="Body part identifier")
    part_name: str = Field(description="Display name of the body part")
    part_color: Optional[str] = Field(default=None, description="Display color")

    model_config = _RESPONSE_CONFIG


class MenuResponse(BaseModel):
    """Returned by fetchMenu / fetchOldMenu, ordered by menuId."""
    menu_id: int = Field(description="Exercise menu identifier")
    part_id: int = Field(description="Body part the menu belongs to")
    menu_name: str = Field(description="Exercise name")

    model_config = _RESPONSE_CONFIG


class PartSummary(BaseModel):
    """Denormalized part info embedded in a record."""
    part_name: str
    part_color: Optional[str] = None

    model_config = _RESPONSE_CONFIG


class MenuSummary(BaseModel):
    """Denormalized menu info embedded in a record."""
    menu_name: str

    model_config = _RESPONSE_CONFIG


class SetDetailResponse(BaseModel):
    set_index: int = Field(description="1-based position of the set in the record")
    weight: float
    reps: int

    model_config = _RESPONSE_CONFIG


class RecordResponse(BaseModel):
    """
    What:  One workout entry with its part, menu and sets.
    Who:   Returned by fetchRecords / fetchOldRecords, ordered by recordId.

    menu is null when the record was stored without a resolvable menu.
    setDetails are ordered by setIndex.
    """
    record_id: int
    part_id: int
    menu_id: Optional[int] = None
    part: Optional[PartSummary] = None
    menu: Optional[MenuSummary] = None
    set_count: int
    set_details: List[SetDetailResponse] = Field(default_factory=list)
    note: Optional[str] = None
    create_date: date

    model_config = _RESPONSE_CONFIG


class MessageResponse(BaseModel):
    """Generic success body for write handlers (no generated IDs echoed)."""
    message: str = Field(description="Human-readable success message")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════

_REQUEST_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    # 1e999 and NaN decode to floats that can be stored but never serialized
    "allow_inf_nan": False,
}


class RecordCreate(BaseModel):
    """
    What:  Body of insertRecord.
    How:   Accepts {"record": "<json text>"} (legacy) or the flat object.

    Validation:
        - every field except note must be present
        - weight and reps must have the same length; setIndex is assigned
          from their positions, so a mismatch cannot be paired
        - createDate may be a date or an ISO datetime (time part dropped)
    """
    part_id: int
    menu_name: str
    set_count: int
    create_date: date
    note: Optional[str] = None
    weight: List[float]
    reps: List[int]

    model_config = _REQUEST_CONFIG

    @model_validator(mode="before")
    @classmethod
    def unwrap_legacy_record(cls, data: Any) -> Any:
        """Unwraps {"record": ...}, decoding the value if it is JSON text."""
        if isinstance(data, dict) and "record" in data:
            return decode_embedded_json(data["record"])
        return data

    @field_validator("create_date", mode="before")
    @classmethod
    def strip_time_component(cls, v: Any) -> Any:
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @model_validator(mode="after")
    def check_sets_are_paired(self) -> "RecordCreate":
        if len(self.weight) != len(self.reps):
            raise ValueError(
                f"weight and reps must have the same length "
                f"({len(self.weight)} != {len(self.reps)})"
            )
        return self


class MenuCreate(BaseModel):
    """Body of insertMenu. Values may be JSON-encoded text (legacy)."""
    part_id: int
    menu_name: str = Field(min_length=1)

    model_config = _REQUEST_CONFIG

    @field_validator("part_id", mode="before")
    @classmethod
    def decode_part_id(cls, v: Any) -> Any:
        return decode_embedded_json(v)

    @field_validator("menu_name", mode="before")
    @classmethod
    def decode_menu_name(cls, v: Any) -> Any:
        return _decode_embedded_str(v)


class RecordDelete(BaseModel):
    """Body of deleteRecord."""
    record_id: int

    model_config = _REQUEST_CONFIG

    @field_validator("record_id", mode="before")
    @classmethod
    def decode_record_id(cls, v: Any) -> Any:
        return decode_embedded_json(v)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error envelope shared by every failure.

    Example:
        {
            "error": "set_detail_insert: UNIQUE constraint failed: ...",
            "stage": "set_detail_insert",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Error message (store message passed through)")
    stage: Optional[str] = Field(default=None, description="Failing store stage")
    details: Optional[dict] = Field(default=None, description="Validation details")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
