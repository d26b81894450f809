from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Generic, List, Mapping, Optional, TypeVar
from urllib.parse import urlparse

from .body import RequestBody
from .content_type import MediaType
from .exceptions import APIError, AuthenticationError, RateLimitError, ServerError

if TYPE_CHECKING:
    from .client import HTTPClient
    from .endpoint import Endpoint
    from .parsers import ResponseParser

T = TypeVar('T')


class RequestMethod(Enum):
    """HTTP verbs and whether they may carry a request body."""
    HEAD = "HEAD"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def permits_body(self) -> bool:
        return self in (RequestMethod.POST, RequestMethod.PUT, RequestMethod.PATCH)


# Request/Response Models
@dataclass(frozen=True)
class Request:
    """Represents an HTTP request. Immutable once built."""
    method: RequestMethod
    endpoint: 'Endpoint'
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[RequestBody] = None

    def __post_init__(self):
        # detached from the builder and read-only
        object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))
        if self.body is not None and not self.method.permits_body:
            raise ValueError(f"{self.method.value} requests cannot carry a body")

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def parsed_url(self):
        return urlparse(self.url)

    def with_header(self, name: str, value: str) -> 'Request':
        """Return a copy of this request with ``name`` set to ``value``."""
        headers = dict(self.headers)
        headers[name] = value
        return replace(self, headers=headers)

    def execute(self, client: 'HTTPClient', parser: 'ResponseParser[T]') -> 'Response[T]':
        return client.execute(self, parser)


@dataclass
class Response(Generic[T]):
    """Represents an HTTP response with its body already run through a parser."""
    status_code: int
    headers: Dict[str, List[str]]
    body: T
    request: Request
    media_type: MediaType = field(default_factory=lambda: MediaType("", None))
    elapsed: float = 0.0

    def header(self, name: str) -> Optional[str]:
        """First value of header ``name``, matched case-insensitively."""
        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted and values:
                return values[0]
        return None

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        """Raise an APIError subclass for 4xx and 5xx status codes."""
        if self.ok:
            return

        status_code = self.status_code
        body = self.body if isinstance(self.body, str) else None
        if isinstance(self.body, bytes):
            body = self.body.decode('utf-8', errors='ignore')

        if status_code == 401:
            error_cls, message = AuthenticationError, "Authentication failed"
        elif status_code == 429:
            error_cls, message = RateLimitError, "Rate limit exceeded"
        elif status_code >= 500:
            error_cls, message = ServerError, "Server error"
        else:
            error_cls, message = APIError, "HTTP error"

        raise error_cls(
            f"{message}: {status_code}",
            status_code=status_code,
            headers=self.headers,
            body=body
        )

    def __repr__(self) -> str:
        return f"Response(status_code={self.status_code}, url={self.request.url!r})"
