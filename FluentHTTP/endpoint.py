from dataclasses import dataclass
from typing import ClassVar, Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

from .builder import RequestBuilder
from .exceptions import EncodingError, MalformedEndpointError
from .models import RequestMethod
from .utils import DEFAULT_CHARSET, encode_text


@dataclass(frozen=True)
class Endpoint:
    """An immutable absolute http(s) URL that request builders start from."""
    url: str

    HTTP: ClassVar[str] = "http"
    HTTPS: ClassVar[str] = "https"

    def __post_init__(self):
        try:
            parts = urlsplit(self.url)
            # accessing .port validates the port number
            parts.port
        except ValueError as e:
            raise MalformedEndpointError(f"Invalid URL '{self.url}': {e}") from e

        if parts.scheme not in (self.HTTP, self.HTTPS):
            raise MalformedEndpointError(f"Unsupported protocol '{parts.scheme}' in '{self.url}'")
        if not parts.hostname:
            raise MalformedEndpointError(f"Missing host in '{self.url}'")

    @classmethod
    def for_host(cls, host: str, protocol: str = "https") -> 'Endpoint':
        return cls.for_host_and_port(protocol, host, None)

    @classmethod
    def for_host_and_port(cls, protocol: str, host: str, port: Optional[Union[int, str]]) -> 'Endpoint':
        if not host or any(char in host for char in "/?#@ "):
            raise MalformedEndpointError(f"Invalid host {host!r}")
        netloc = host if port is None else f"{host}:{port}"
        return cls(f"{protocol}://{netloc}")

    @property
    def parsed_url(self):
        return urlsplit(self.url)

    def resolve(self, *segments: str, charset: str = DEFAULT_CHARSET) -> 'Endpoint':
        """Return a new endpoint with ``segments`` appended to the path.

        Each segment is encoded with ``charset`` and percent-encoded on its
        own, so ``/`` inside a segment is escaped rather than treated as a
        separator. The query string and fragment are kept unchanged.
        """
        parts = urlsplit(self.url)
        encoded = []
        for segment in segments:
            try:
                encoded.append(quote(encode_text(segment, charset), safe=''))
            except EncodingError as e:
                raise EncodingError(f"Cannot encode path segment {segment!r}: {e}", charset=charset) from e

        path = parts.path
        if not path.endswith('/'):
            path += '/'
        path += '/'.join(encoded)

        return Endpoint(urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment)))

    def request(self, method: Union[RequestMethod, str]) -> RequestBuilder:
        if isinstance(method, str):
            method = RequestMethod(method.upper())
        return RequestBuilder(self, method)

    def head(self) -> RequestBuilder:
        return self.request(RequestMethod.HEAD)

    def get(self) -> RequestBuilder:
        return self.request(RequestMethod.GET)

    def post(self) -> RequestBuilder:
        return self.request(RequestMethod.POST)

    def put(self) -> RequestBuilder:
        return self.request(RequestMethod.PUT)

    def patch(self) -> RequestBuilder:
        return self.request(RequestMethod.PATCH)

    def delete(self) -> RequestBuilder:
        return self.request(RequestMethod.DELETE)

    def __str__(self) -> str:
        return self.url
