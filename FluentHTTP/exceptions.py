from typing import Dict, List, Optional, Union

# Exceptions
class HTTPClientError(Exception):
    """Base exception for everything raised by FluentHTTP."""
    pass

class MalformedEndpointError(HTTPClientError, ValueError):
    """Raised when an endpoint URL has an invalid protocol, host or layout."""
    pass

class EncodingError(HTTPClientError, ValueError):
    """Raised when a charset is unknown or cannot encode the given text."""

    def __init__(self, message: str, charset: Optional[str] = None):
        super().__init__(message)
        self.charset = charset

class BodyWriteError(HTTPClientError, OSError):
    """Raised when a request body cannot be opened, read or written to its sink."""
    pass

class TransportError(HTTPClientError):
    """Raised by the transport when the request could not be exchanged."""
    pass

class TimeoutError(TransportError):
    """Raised when request times out."""
    pass

class ConnectionError(TransportError):
    """Raised when connection fails."""
    pass

class ResponseParseError(HTTPClientError):
    """Raised when a response parser cannot decode the response body."""
    pass

class APIError(HTTPClientError):
    """Raised by Response.raise_for_status() for 4xx and 5xx responses."""
    def __init__(self, message: str, status_code: Optional[int] = None,
                 headers: Optional[Dict[str, Union[str, List[str]]]] = None,
                 body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body
        self.retry_after = self._parse_retry_after()

    def _parse_retry_after(self) -> Optional[float]:
        """Parse Retry-After header."""
        retry_after = self.headers.get('retry-after') or self.headers.get('Retry-After')
        if isinstance(retry_after, list):
            retry_after = retry_after[0] if retry_after else None
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return None
        return None

class AuthenticationError(APIError):
    """Raised when authentication fails."""
    pass

class RateLimitError(APIError):
    """Raised when rate limit is exceeded."""
    pass

class ServerError(APIError):
    """Raised for 5xx responses."""
    pass
