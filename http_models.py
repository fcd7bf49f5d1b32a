from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

DEFAULT_CONTENT_TYPE = "application/json"


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text: str) -> "HttpMethod":
        try:
            return cls(str(text).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {text!r}") from None


# -------------------- Auth variants --------------------
@dataclass(frozen=True)
class NoAuth:
    pass


@dataclass(frozen=True)
class BasicAuth:
    username: str = ""
    password: str = ""


@dataclass(frozen=True)
class BearerAuth:
    token: str = ""


Auth = Union[NoAuth, BasicAuth, BearerAuth]


# -------------------- Request side --------------------
@dataclass(frozen=True)
class RequestDescription:
    """What the user asked for, before any wire-level shaping."""
    url: str
    method: HttpMethod = HttpMethod.GET
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Tuple[Tuple[str, str], ...] = ()
    auth: Auth = field(default_factory=NoAuth)
    body: Optional[str] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.method, HttpMethod):
            object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "headers", dict(self.headers or {}))
        object.__setattr__(self, "query_params", tuple((k, v) for k, v in (self.query_params or ())))


@dataclass(frozen=True)
class WireRequest:
    final_url: str
    method: HttpMethod
    headers: Dict[str, str] = field(default_factory=dict)
    body_bytes: Optional[bytes] = None
    effective_content_type: Optional[str] = None


# -------------------- Response side --------------------
@dataclass(frozen=True)
class WireResponse:
    """Raw response as handed over by the transport. status_code 0 means nothing was received."""
    status_code: int
    status_message: str = ""
    headers: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    body_bytes: bytes = b""
    elapsed_millis: int = 0

    def __post_init__(self):
        object.__setattr__(self, "headers", freeze_headers(self.headers))
        object.__setattr__(self, "elapsed_millis", max(0, int(self.elapsed_millis)))


@dataclass(frozen=True)
class Response:
    status_code: int
    status_message: str
    headers: Mapping[str, Tuple[str, ...]]
    body: str
    elapsed_millis: int

    def __post_init__(self):
        object.__setattr__(self, "headers", freeze_headers(self.headers))

    @property
    def is_successful(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def size_bytes(self) -> int:
        return len(self.body.encode("utf-8"))

    def first_header(self, name: str) -> Optional[str]:
        return first_header(self.headers, name)


def freeze_headers(headers) -> Mapping[str, Tuple[str, ...]]:
    """Read-only copy of a header mapping with every value as a tuple of strings."""
    return MappingProxyType({k: (v,) if isinstance(v, str) else tuple(v) for k, v in (headers or {}).items()})


def first_header(headers: Mapping[str, Tuple[str, ...]], name: str) -> Optional[str]:
    wanted = name.lower()
    for k, values in headers.items():
        if k.lower() == wanted and values:
            return values[0]
    return None
