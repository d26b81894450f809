from typing import TYPE_CHECKING, Dict, Mapping, Optional, TypeVar

from .body import RequestBody
from .models import Request, RequestMethod, Response
from .multipart import FormDataParameter, MultipartFormBody

if TYPE_CHECKING:
    from .client import HTTPClient
    from .endpoint import Endpoint
    from .parsers import ResponseParser

T = TypeVar('T')


class RequestBuilder:
    """Fluent accumulation of headers and an optional body for one request.

    A single builder serves every verb; ``body`` and ``form_data`` raise
    ValueError for methods that do not permit a body (HEAD, GET, DELETE).
    """

    def __init__(self, endpoint: 'Endpoint', method: RequestMethod):
        self.endpoint = endpoint
        self.method = method
        self._headers: Dict[str, str] = {}
        self._body: Optional[RequestBody] = None

    def header(self, name: str, value: str) -> 'RequestBuilder':
        self._headers[name] = value
        return self

    def headers(self, headers: Mapping[str, str]) -> 'RequestBuilder':
        self._headers.update(headers)
        return self

    def body(self, body: RequestBody) -> 'RequestBuilder':
        if not self.method.permits_body:
            raise ValueError(f"{self.method.value} requests cannot carry a body")
        if not isinstance(body, RequestBody):
            raise TypeError(f"Expected RequestBody, got {type(body).__name__}")
        self._body = body
        return self

    def form_data(self, *parameters: FormDataParameter, boundary: Optional[str] = None) -> 'RequestBuilder':
        """Use a multipart/form-data body made of ``parameters`` in order."""
        return self.body(MultipartFormBody(parameters, boundary=boundary))

    def build(self) -> Request:
        return Request(self.method, self.endpoint, self._headers, self._body)

    def execute(self, client: 'HTTPClient', parser: 'ResponseParser[T]') -> Response[T]:
        return self.build().execute(client, parser)

    def __repr__(self) -> str:
        return f"RequestBuilder({self.method.value} {self.endpoint.url})"
