import http.client, io, logging, socket, ssl, time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import BinaryIO, ContextManager, Dict, Iterator, List, Mapping, Optional, TypeVar
from urllib.parse import urlsplit

from .body import RequestBody
from .config import ClientConfig
from .content_type import parse_content_type
from .exceptions import *
from .middlewares import *  # this also imports models
from .parsers import ResponseParser
from .utils import DEFAULT_CHARSET, DEFAULT_CHUNK_SIZE, validate_charset

logger = logging.getLogger(__name__)

T = TypeVar('T')

EMPTY_BODY_LENGTH_METHODS = ("POST", "PUT", "PATCH")

# the transport computes message framing itself
FRAMING_HEADERS = ("content-length", "transfer-encoding")


def _transport_error(error: OSError) -> TransportError:
    if isinstance(error, socket.timeout):
        return TimeoutError(f"Request timed out: {error}")
    return ConnectionError(f"Connection error: {error}")


def _set_header(headers: Dict[str, str], name: str, value: str):
    # header names are case-insensitive; the latest spelling wins
    for key in [key for key in headers if key.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


@dataclass
class RawResponse:
    """Status, multi-valued headers and unread body stream of a response."""
    status_code: int
    headers: Dict[str, List[str]]
    stream: BinaryIO

    @property
    def content_type(self) -> Optional[str]:
        for name, values in self.headers.items():
            if name.lower() == 'content-type' and values:
                return values[0]
        return None


class HTTPClient(ABC):
    """Executes requests through a transport and hands responses to a parser.

    Subclasses implement ``send``. Default headers are copied at
    construction and never modified by executing requests. ``charset``
    decodes responses that declare none.
    """

    def __init__(self, default_headers: Optional[Mapping[str, str]] = None,
                 middleware: Optional[List[BaseMiddleware]] = None,
                 charset: str = DEFAULT_CHARSET):
        self._default_headers = dict(default_headers or {})
        self.middleware = list(middleware or [])
        self.charset = validate_charset(charset)

    @property
    def default_headers(self) -> Mapping[str, str]:
        return MappingProxyType(self._default_headers)

    def prepare_headers(self, request: Request) -> Dict[str, str]:
        """Client defaults, then the body Content-Type, then request headers."""
        headers: Dict[str, str] = {}
        for name, value in self._default_headers.items():
            _set_header(headers, name, value)
        if request.body is not None:
            _set_header(headers, 'Content-Type', request.body.content_type)
        for name, value in request.headers.items():
            _set_header(headers, name, value)
        return headers

    @abstractmethod
    def send(self, method: str, url: str, headers: Dict[str, str],
             body: Optional[RequestBody]) -> ContextManager[RawResponse]:
        """Context manager exchanging one request for a RawResponse.

        The response stream is only readable inside the context.
        """

    def execute(self, request: Request, parser: ResponseParser[T]) -> Response[T]:
        """Execute an HTTP request and parse the response."""
        start_time = time.time()
        try:
            # Process request through middleware
            for middleware in self.middleware:
                request = middleware.process_request(request)

            headers = self.prepare_headers(request)
            with self.send(request.method.value, request.url, headers, request.body) as raw:
                media_type = parse_content_type(raw.content_type)
                try:
                    body = parser.parse(raw.status_code, raw.headers, media_type.type,
                                        media_type.charset or self.charset, raw.stream)
                except HTTPClientError:
                    raise
                except OSError as e:
                    raise _transport_error(e) from e

            response = Response(
                status_code=raw.status_code,
                headers=raw.headers,
                body=body,
                request=request,
                media_type=media_type,
                elapsed=time.time() - start_time
            )
        except Exception as error:
            # Process error through middleware
            for middleware in self.middleware:
                error = middleware.process_error(error, request)
            raise error

        # Process response through middleware
        for middleware in reversed(self.middleware):
            response = middleware.process_response(response)

        return response


class _ChunkedSink:
    """Writable that frames everything written to it as HTTP/1.1 chunks."""

    def __init__(self, connection: http.client.HTTPConnection, chunk_size: int):
        self._connection = connection
        self._chunk_size = chunk_size
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer += data
        while len(self._buffer) >= self._chunk_size:
            self._send_chunk(bytes(self._buffer[:self._chunk_size]))
            del self._buffer[:self._chunk_size]
        return len(data)

    def _send_chunk(self, chunk: bytes):
        self._connection.send(b"%X\r\n" % len(chunk) + chunk + b"\r\n")

    def close(self):
        if self._buffer:
            self._send_chunk(bytes(self._buffer))
            self._buffer.clear()
        self._connection.send(b"0\r\n\r\n")


# Synchronous Client
class SimpleHTTPClient(HTTPClient):
    """HTTP client over ``http.client`` with one connection per request.

    With ``chunked=False`` the body is written into memory first and sent
    with a Content-Length header; with ``chunked=True`` it is streamed to
    the socket using chunked transfer encoding. No retries are performed.
    """

    def __init__(self, default_headers: Optional[Mapping[str, str]] = None,
                 timeout: Optional[float] = 30.0, chunked: bool = False,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 middleware: Optional[List[BaseMiddleware]] = None,
                 charset: str = DEFAULT_CHARSET):
        super().__init__(default_headers, middleware, charset)
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.timeout = timeout
        self.chunked = chunked
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls, config: ClientConfig,
                    middleware: Optional[List[BaseMiddleware]] = None) -> 'SimpleHTTPClient':
        middleware = list(middleware or [])
        if config.user_agent:
            middleware.insert(0, UserAgentMiddleware(config.user_agent))
        return cls(config.default_headers, config.timeout, config.chunked,
                   config.chunk_size, middleware, config.charset)

    def _create_connection(self, parsed_url) -> http.client.HTTPConnection:
        """Create a new connection for the given URL."""
        if parsed_url.scheme == 'https':
            conn = http.client.HTTPSConnection(
                parsed_url.hostname,
                parsed_url.port,
                timeout=self.timeout,
                context=ssl.create_default_context()
            )
        else:
            conn = http.client.HTTPConnection(
                parsed_url.hostname,
                parsed_url.port,
                timeout=self.timeout
            )
        return conn

    def _buffer_body(self, body: RequestBody) -> bytes:
        buffer = io.BytesIO()
        try:
            body.write(buffer)
        except BodyWriteError:
            raise
        except OSError as e:
            raise BodyWriteError(f"Could not write request body: {e}") from e
        return buffer.getvalue()

    def _stream_body(self, conn: http.client.HTTPConnection, body: RequestBody):
        sink = _ChunkedSink(conn, self.chunk_size)
        try:
            body.write(sink)
            sink.close()
        except BodyWriteError:
            raise
        except OSError as e:
            raise BodyWriteError(f"Could not stream request body: {e}") from e

    @contextmanager
    def send(self, method: str, url: str, headers: Dict[str, str],
             body: Optional[RequestBody]) -> Iterator[RawResponse]:
        parsed_url = urlsplit(url)
        path = parsed_url.path or '/'
        if parsed_url.query:
            path += '?' + parsed_url.query

        # a buffered body is fully written before any socket is opened
        payload = self._buffer_body(body) if body is not None and not self.chunked else None

        conn = self._create_connection(parsed_url)
        try:
            try:
                conn.connect()
                conn.putrequest(method, path, skip_accept_encoding=True)

                # Send headers
                for header_name, header_value in headers.items():
                    if header_name.lower() in FRAMING_HEADERS:
                        logger.debug(f"Dropping {header_name} header, framing is set by the transport")
                        continue
                    conn.putheader(header_name, header_value)

                # End headers and send body if present
                if body is None:
                    if method in EMPTY_BODY_LENGTH_METHODS:
                        conn.putheader('Content-Length', '0')
                    conn.endheaders()
                elif payload is not None:
                    conn.putheader('Content-Length', str(len(payload)))
                    conn.endheaders(payload)
                else:
                    conn.putheader('Transfer-Encoding', 'chunked')
                    conn.endheaders()
                    self._stream_body(conn, body)

                logger.debug(f"Sent {method} {url}")
                response = conn.getresponse()
            except HTTPClientError:
                raise
            except OSError as e:
                raise _transport_error(e) from e
            except http.client.HTTPException as e:
                raise ConnectionError(f"Invalid HTTP exchange: {e!r}") from e

            headers_out: Dict[str, List[str]] = {}
            for name, value in response.getheaders():
                headers_out.setdefault(name, []).append(value)

            yield RawResponse(response.status, headers_out, response)
        finally:
            conn.close()
