"""FluentHTTP - Fluent HTTP requests with streaming and multipart/form-data bodies."""

# Import key classes for easier access
from .body import RequestBody, StreamingRequestBody, for_bytes, for_file, for_json, for_text
from .builder import RequestBuilder
from .client import HTTPClient, RawResponse, SimpleHTTPClient
from .config import ClientConfig, load_client_config
from .content_type import MediaType, parse_content_type
from .endpoint import Endpoint
from .exceptions import (
    APIError,
    AuthenticationError,
    BodyWriteError,
    EncodingError,
    HTTPClientError,
    MalformedEndpointError,
    RateLimitError,
    ResponseParseError,
    ServerError,
    TransportError,
)
from .middlewares import AuthenticationMiddleware, BaseMiddleware, LoggingMiddleware, UserAgentMiddleware
from .models import Request, RequestMethod, Response
from .multipart import FormDataParameter, MultipartFormBody
from .parsers import (
    BytesResponseParser,
    JsonResponseParser,
    NoOpResponseParser,
    ResponseParser,
    StringResponseParser,
)

__version__ = "0.1.0"
