"""Pydantic schemas for Gemina API responses."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
)

from gemina_client.core.exceptions import DecodeError

T = TypeVar("T")

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# pydantic error type -> human readable expected type
_EXPECTED_TYPES = {
    "missing": "a value",
    "json_invalid": "valid JSON",
    "json_type": "valid JSON",
    "model_type": "a JSON object",
    "model_attributes_type": "a JSON object",
    "dict_type": "a JSON object",
    "string_type": "str",
    "int_type": "int",
    "int_from_float": "int",
    "int_parsing": "int",
    "float_type": "float",
    "float_parsing": "float",
    "list_type": "array",
    "tuple_type": "array",
    "too_short": "a pair",
    "too_long": "a pair",
    "datetime_type": "datetime",
    "datetime_parsing": "datetime",
    "datetime_from_date_parsing": "datetime",
    "greater_than_equal": "int within range",
    "less_than_equal": "int within range",
}


def _to_decode_error(exc: ValidationError) -> DecodeError:
    """Report the first validation problem as a DecodeError."""
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err["loc"]) or "<root>"
    expected = _EXPECTED_TYPES.get(err["type"], err["type"])
    return DecodeError(field, expected, err["msg"])


# ──────────────────────────────────────────────
# Value envelopes
# ──────────────────────────────────────────────
class Coordinates(BaseModel):
    """Bounding region of a field in three parallel representations."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    original: list[tuple[StrictInt, StrictInt]] | None = None
    normalized: list[tuple[StrictInt, StrictInt]] | None = None
    relative: list[tuple[StrictFloat, StrictFloat]] | None = None


class FieldValue(BaseModel, Generic[T]):
    """Extracted value with its confidence and location on the page.

    The type argument decides how ``value`` validates; the aliases below use
    strict types so a string is never coerced into a number.
    """
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    value: T
    confidence: str | None = None
    coordinates: Coordinates | None = None


Int32 = Annotated[StrictInt, Field(ge=INT32_MIN, le=INT32_MAX)]
Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]

StringValue = FieldValue[StrictStr]
IntValue = FieldValue[Int32]
LongValue = FieldValue[Int64]
FloatValue = FieldValue[StrictFloat]


# ──────────────────────────────────────────────
# Prediction
# ──────────────────────────────────────────────
class Prediction(BaseModel):
    """Structured data extracted from one business document.

    Every field is optional: the extraction engine may not find it.
    Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    external_id: str | None = None
    created: datetime | None = None
    timestamp: StrictFloat | None = None

    total_amount: FloatValue | None = None
    vat_amount: FloatValue | None = None
    net_amount: FloatValue | None = None
    primary_document_type: StringValue | None = None
    document_type: StringValue | None = None
    expense_type: StringValue | None = None
    currency: StringValue | None = None
    business_number: IntValue | None = None
    issue_date: StringValue | None = None
    payment_method: StringValue | None = None
    document_number: LongValue | None = None
    supplier_name: StringValue | None = None

    def to_json(self) -> str:
        """Serialize back to the wire format, omitting absent fields."""
        return self.model_dump_json(exclude_none=True)


def decode(data: bytes | str) -> Prediction:
    """Decode a JSON object into a Prediction.

    Raises DecodeError naming the offending field when the shape does not match.
    """
    try:
        return Prediction.model_validate_json(data)
    except ValidationError as exc:
        raise _to_decode_error(exc) from exc


def decode_mapping(data: dict[str, Any]) -> Prediction:
    """Same as ``decode`` for an already-parsed JSON object."""
    try:
        return Prediction.model_validate(data)
    except ValidationError as exc:
        raise _to_decode_error(exc) from exc


# ──────────────────────────────────────────────
# HTTP response wrapper
# ──────────────────────────────────────────────
class WebResponse(BaseModel):
    """Result of one HTTP call: status code, raw JSON and decoded prediction."""
    model_config = ConfigDict(frozen=True)

    status_code: int
    raw_data: dict[str, Any] | None = None
    prediction: Prediction | None = None
    text: str = ""

    @classmethod
    def from_http(cls, status_code: int, body: str) -> WebResponse:
        """Build a WebResponse from a status code and body text.

        Error bodies that are not JSON objects are kept as text only; on a
        2xx status they raise DecodeError.
        """
        success = 200 <= status_code < 300
        if not body.strip():
            return cls(status_code=status_code, text=body)

        try:
            parsed = json.loads(body)
        except ValueError as exc:
            if success:
                raise DecodeError("<root>", "valid JSON", str(exc)) from exc
            return cls(status_code=status_code, text=body)

        if not isinstance(parsed, dict):
            if success:
                raise DecodeError("<root>", "a JSON object", type(parsed).__name__)
            return cls(status_code=status_code, text=body)

        prediction = decode_mapping(parsed) if success else None
        return cls(
            status_code=status_code,
            raw_data=parsed,
            prediction=prediction,
            text=body,
        )


# ──────────────────────────────────────────────
# Polling outcomes
# ──────────────────────────────────────────────
class UploadOutcome(str, Enum):
    CREATED = "created"
    ALREADY_QUEUED = "already_queued"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"

    @property
    def proceeds(self) -> bool:
        """Whether polling should follow this upload outcome."""
        return self is not UploadOutcome.FAILED


class PollState(str, Enum):
    PROCESSING = "processing"
    NOT_FOUND = "not_found"
    DONE = "done"
    FAILED = "failed"
    EXHAUSTED = "exhausted"  # only reachable when max_attempts / timeout is set

    @property
    def terminal(self) -> bool:
        return self in (PollState.DONE, PollState.FAILED, PollState.EXHAUSTED)


class Phase(str, Enum):
    UPLOAD = "upload"
    POLL = "poll"


class UpstreamFailure(BaseModel):
    """Unexpected status from the API, with the raw body for diagnostics."""
    model_config = ConfigDict(frozen=True)

    phase: Phase
    status_code: int
    raw_data: dict[str, Any] | None = None
    text: str = ""

    @classmethod
    def from_response(cls, phase: Phase, response: WebResponse) -> UpstreamFailure:
        return cls(
            phase=phase,
            status_code=response.status_code,
            raw_data=response.raw_data,
            text=response.text,
        )


class PollResult(BaseModel):
    """Terminal result of an upload + poll run."""
    model_config = ConfigDict(frozen=True)

    external_id: str
    state: PollState
    attempts: int = 0
    prediction: Prediction | None = None
    response: WebResponse | None = None
    failure: UpstreamFailure | None = None

    @property
    def ok(self) -> bool:
        return self.state is PollState.DONE


class PollEvent(BaseModel):
    """Progress notification passed to the poller's observer."""
    model_config = ConfigDict(frozen=True)

    external_id: str
    phase: Phase
    status_code: int
    message: str
    attempt: int = 0
