import logging
# Configure logging
logger = logging.getLogger(__name__)

from typing import Optional

from .models import Request, Response

# Middleware System
class BaseMiddleware:
    """Base class for HTTP middleware.

    Hooks return the (possibly replaced) object; requests are immutable so
    a middleware that adds headers returns ``request.with_header(...)``.
    """

    def process_request(self, request: Request) -> Request:
        """Process the request before it's sent."""
        return request

    def process_response(self, response: Response) -> Response:
        """Process the response after it's parsed."""
        return response

    def process_error(self, error: Exception, request: Request) -> Exception:
        """Process an error that occurred during the request."""
        return error

class LoggingMiddleware(BaseMiddleware):
    """Middleware for logging requests and responses."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def process_request(self, request: Request) -> Request:
        self.logger.debug(f"Request: {request.method.value} {request.url}")
        return request

    def process_response(self, response: Response) -> Response:
        self.logger.debug(f"Response: {response.status_code} ({response.elapsed:.3f}s)")
        return response

    def process_error(self, error: Exception, request: Request) -> Exception:
        self.logger.error(f"Request failed: {request.method.value} {request.url} - {error}")
        return error

class AuthenticationMiddleware(BaseMiddleware):
    """Middleware for adding authentication headers."""

    def __init__(self, token: str, auth_type: str = "Bearer"):
        self.token = token
        self.auth_type = auth_type

    def process_request(self, request: Request) -> Request:
        if 'Authorization' not in request.headers:
            return request.with_header('Authorization', f"{self.auth_type} {self.token}")
        return request

class UserAgentMiddleware(BaseMiddleware):
    """Middleware for adding User-Agent header."""

    def __init__(self, user_agent: str):
        self.user_agent = user_agent

    def process_request(self, request: Request) -> Request:
        if 'User-Agent' not in request.headers:
            return request.with_header('User-Agent', self.user_agent)
        return request
