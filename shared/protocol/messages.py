from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.utils.common import generate_message_id, utc_timestamp

from .commands import CommandName, normalize_command
from .constants import DEFAULT_VERSION
from .errors import ErrorCode, ProtocolError, StatusCode


def _default_headers() -> Dict[str, Any]:
    return {"version": DEFAULT_VERSION}


class BaseMsg(BaseModel):
    """Base envelope shared by requests and responses."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=generate_message_id, description="Unique identifier")
    type: Literal["request", "response"] = Field(..., description="request / response")
    timestamp: int = Field(default_factory=utc_timestamp, description="Unix timestamp (seconds)")
    command: Union[CommandName, str] = Field(..., description="Command name such as show")
    headers: Dict[str, Any] = Field(default_factory=_default_headers, description="Metadata such as version")

    @property
    def command_text(self) -> str:
        return normalize_command(self.command)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseMsg":
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Message validation failed: {exc}") from exc


class Product(BaseModel):
    """Element of the server-held collection."""

    id: Optional[int] = Field(default=None, gt=0)
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    part_number: str = Field(min_length=1, max_length=64)
    unit_of_measure: Optional[str] = None
    creation_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.INVALID_PRODUCT, f"Invalid product: {exc}") from exc


class RequestPayload(BaseModel):
    args: List[str] = Field(default_factory=list)
    product: Optional[Product] = None


class Request(BaseMsg):
    type: Literal["request"] = "request"
    payload: RequestPayload = Field(default_factory=RequestPayload)


class ResponsePayload(BaseModel):
    status: int = int(StatusCode.OK)
    message: str = ""
    data: Any = None


class Response(BaseMsg):
    type: Literal["response"] = "response"
    payload: ResponsePayload = Field(default_factory=ResponsePayload)

    @property
    def status(self) -> int:
        return self.payload.status

    @property
    def ok(self) -> bool:
        return self.payload.status == int(StatusCode.OK)


def make_response(
    request: Request,
    status: StatusCode = StatusCode.OK,
    message: str = "",
    data: Any = None,
) -> Response:
    """Build a response echoing the request id/command/headers."""
    headers = dict(request.headers or {})
    headers.setdefault("version", DEFAULT_VERSION)
    return Response(
        id=request.id,
        command=request.command_text,
        headers=headers,
        payload=ResponsePayload(status=int(status), message=message, data=data),
    )


__all__ = [
    "BaseMsg",
    "Product",
    "RequestPayload",
    "Request",
    "ResponsePayload",
    "Response",
    "make_response",
]
