import json
import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, Generic, List, Optional, TypeVar

from .exceptions import ResponseParseError
from .utils import DEFAULT_CHARSET, validate_charset

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ResponseParser(ABC, Generic[T]):
    """Turns a raw response into a typed value.

    ``media_type`` and ``charset`` come from the response Content-Type
    header; ``charset`` is None when the server did not declare one.
    """

    @abstractmethod
    def parse(self, status_code: int, headers: Dict[str, List[str]],
              media_type: str, charset: Optional[str], stream: BinaryIO) -> T:
        ...


class NoOpResponseParser(ResponseParser[None]):
    """Ignores the response body."""

    def parse(self, status_code, headers, media_type, charset, stream) -> None:
        return None


class BytesResponseParser(ResponseParser[bytes]):
    def parse(self, status_code, headers, media_type, charset, stream) -> bytes:
        return stream.read()


class StringResponseParser(ResponseParser[str]):
    """Decodes the body with the response charset, or ``default_charset`` when absent."""

    def __init__(self, default_charset: str = DEFAULT_CHARSET):
        self.default_charset = validate_charset(default_charset)

    def parse(self, status_code, headers, media_type, charset, stream) -> str:
        data = stream.read()
        encoding = charset or self.default_charset
        try:
            return data.decode(encoding)
        except LookupError as e:
            raise ResponseParseError(f"Unknown response charset '{encoding}'") from e
        except UnicodeDecodeError as e:
            raise ResponseParseError(f"Response body is not valid {encoding}: {e}") from e


class JsonResponseParser(ResponseParser[Any]):
    """Decodes the body as text, then as JSON. An empty body yields None."""

    def __init__(self, default_charset: str = DEFAULT_CHARSET):
        self._text_parser = StringResponseParser(default_charset)

    def parse(self, status_code, headers, media_type, charset, stream) -> Any:
        text = self._text_parser.parse(status_code, headers, media_type, charset, stream)
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Failed to parse JSON response ({media_type}): {text[:200]!r}")
            raise ResponseParseError(f"Invalid JSON response: {e}") from e
