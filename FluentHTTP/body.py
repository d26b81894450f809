"""Request bodies: anything with a content type that can stream its bytes into a sink."""

import io
import json
import logging
import os
from abc import ABC, abstractmethod
from contextlib import closing
from typing import Any, BinaryIO, Callable, Union

from .content_type import format_content_type
from .exceptions import BodyWriteError
from .utils import DEFAULT_CHARSET, DEFAULT_CHUNK_SIZE, copy_stream, encode_text

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"

SourceFactory = Callable[[], BinaryIO]


class RequestBody(ABC):
    """Base class for request bodies.

    A body reports the value of its ``Content-Type`` header and writes its
    bytes into a binary sink (anything with ``write(bytes)``). Bodies carry
    no length; the client either buffers them or uses chunked transfer.
    """

    @property
    @abstractmethod
    def content_type(self) -> str:
        ...

    @abstractmethod
    def write(self, sink: BinaryIO) -> None:
        ...


class StreamingRequestBody(RequestBody):
    """A body backed by a byte source that is only opened when written.

    ``source_factory`` is called once per ``write``, never at construction,
    and the source it returns is closed before ``write`` returns or raises.
    """

    def __init__(self, content_type: str, source_factory: SourceFactory,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._content_type = content_type
        self._source_factory = source_factory
        self.chunk_size = chunk_size

    @property
    def content_type(self) -> str:
        return self._content_type

    def write(self, sink: BinaryIO) -> None:
        try:
            source = self._source_factory()
        except OSError as e:
            raise BodyWriteError(f"Could not open body source: {e}") from e

        with closing(source):
            try:
                written = copy_stream(source, sink, self.chunk_size)
            except BodyWriteError:
                raise
            except OSError as e:
                raise BodyWriteError(f"Could not stream body: {e}") from e

        logger.debug(f"Streamed {written} bytes of {self._content_type}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(content_type={self._content_type!r})"


def for_file(path: Union[str, os.PathLike], content_type: str = OCTET_STREAM) -> RequestBody:
    """Body streaming the file at ``path``; the file is opened at write time."""
    return StreamingRequestBody(content_type, lambda: open(path, 'rb'))


def for_bytes(data: bytes, content_type: str = OCTET_STREAM) -> RequestBody:
    data = bytes(data)
    return StreamingRequestBody(content_type, lambda: io.BytesIO(data))


def for_text(text: str, charset: str = DEFAULT_CHARSET, media_type: str = "text/plain") -> RequestBody:
    """Body holding ``text`` encoded eagerly with ``charset``.

    Raises EncodingError when the charset is unknown or cannot represent the text.
    """
    data = encode_text(text, charset)
    return for_bytes(data, format_content_type(media_type, charset))


def for_json(value: Any, charset: str = DEFAULT_CHARSET) -> RequestBody:
    """Body holding a JSON document.

    Strings are sent as-is (already serialized JSON); any other value goes
    through ``json.dumps``.
    """
    text = value if isinstance(value, str) else json.dumps(value)
    return for_text(text, charset, media_type="application/json")
