"""Data model shared by the StudyHub API clients.

Result envelopes, the canonical error value, request descriptors and the
pydantic models for the backend payloads the clients interpret.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")

DEFAULT_ERROR_MESSAGE = "An error occurred"


class ErrorKind(str, Enum):
    """Terminal failure categories surfaced to callers."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    PARSE = "parse"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class ApiError:
    """Canonical error value returned by every client verb.

    Args:
        kind: Failure category
        message: Human-readable description
        status: HTTP status observed, 0 when no response was received
        code: Machine-readable backend error code, if the backend sent one
    """

    kind: ErrorKind
    message: str
    status: int = 0
    code: Optional[str] = None

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Result envelope: exactly one of ``data`` or ``error`` is meaningful."""

    data: Optional[T] = None
    error: Optional[ApiError] = None

    def __post_init__(self):
        if self.data is not None and self.error is not None:
            raise ValueError("ApiResult cannot carry both data and an error")

    @classmethod
    def success(cls, data: T) -> "ApiResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: ApiError) -> "ApiResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


# (filename, content, content type) as accepted by httpx ``files=``
UploadFile = Tuple[str, bytes, str]


@dataclass
class RequestDescriptor:
    """Everything needed to issue (and re-issue) one API call."""

    endpoint: str
    method: str = "GET"
    json_body: Any = None
    params: Optional[List[Tuple[str, str]]] = None
    upload: Optional[UploadFile] = None
    form_fields: Dict[str, str] = field(default_factory=dict)
    is_retry: bool = False
    timeout: Optional[float] = None
    # False for calls that must rely on the cookie session only (token refresh)
    authenticated: bool = True

    @property
    def is_multipart(self) -> bool:
        return self.upload is not None


class SearchFilters(BaseModel):
    """Optional filters narrowing a search request."""

    subject_id: Optional[str] = None
    type: Optional[Literal["all", "documents", "subjects"]] = None
    mime_type: Optional[str] = None
    exact: Optional[bool] = None
    category: Optional[str] = None


class User(BaseModel):
    """Authenticated account as returned by the backend."""

    id: str
    email: str
    role: Literal["student", "admin"] = "student"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthResponse(BaseModel):
    """Login/register response: the user plus its token pair."""

    user: User
    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None


class SearchResult(BaseModel):
    """One search hit, normalized across documents and subjects."""

    type: Literal["document", "subject", "comment"]
    id: str
    title: str
    description: str = ""
    score: float = 0.0
    highlight: Optional[str] = None
    subject_id: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: Optional[str] = None
    code: Optional[str] = None
    credits: Optional[int] = None

    @field_validator("file_size")
    @classmethod
    def file_size_must_be_non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("file_size must be non-negative")
        return v


def unwrap_envelope(data: Any) -> Any:
    """Return the payload of a ``{"success": ..., "data": ...}`` body.

    Bodies that do not follow the convention are returned unchanged.
    """
    if isinstance(data, dict) and "success" in data and "data" in data:
        return data["data"]
    return data
