"""multipart/form-data encoding.

Wire format for a body with boundary ``B``::

    --B\\r\\n
    Content-Disposition: form-data; name="NAME"[; filename="FILENAME"]\\r\\n
    Content-Type: TYPE\\r\\n
    \\r\\n
    <part bytes>\\r\\n
    ... one block per part ...
    --B--\\r\\n

Part bytes are streamed straight into the sink by each part's own body, so
file uploads are never held in memory. The boundary is not checked against
the part payloads; it is 48 random hex digits, which makes a collision
astronomically unlikely.
"""

import logging
import os
import re
import secrets
from typing import Any, BinaryIO, Iterable, List, Optional, Union

from . import body as bodies
from .body import OCTET_STREAM, RequestBody
from .exceptions import BodyWriteError
from .utils import DEFAULT_CHARSET

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
BOUNDARY_PREFIX = "FluentHTTPBoundary"

# RFC 2046 section 5.1.1: 1 to 70 bchars, not ending in a space
_BOUNDARY_RE = re.compile(r"^[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]$")

# HTML form submission escaping for names inside quoted-strings
_ESCAPES = {'"': '%22', '\r': '%0D', '\n': '%0A'}


def generate_boundary() -> str:
    return BOUNDARY_PREFIX + secrets.token_hex(24)


def validate_boundary(boundary: str) -> str:
    if not isinstance(boundary, str) or not _BOUNDARY_RE.match(boundary):
        raise ValueError(f"Invalid multipart boundary {boundary!r}")
    return boundary


def _quote(value: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in value)


class FormDataParameter(RequestBody):
    """A named multipart/form-data part wrapping another RequestBody.

    Binary parts (files and raw bytes) are announced with a ``filename``
    attribute in their Content-Disposition, defaulting to the part name.
    Text parts carry no filename unless one is given explicitly.
    """

    def __init__(self, name: str, body: RequestBody,
                 is_binary_transfer_encoding: bool = True,
                 filename: Optional[str] = None):
        if not name:
            raise ValueError("Form data parameter name cannot be empty")
        self.name = name
        self.body = body
        self.is_binary_transfer_encoding = is_binary_transfer_encoding
        self._filename = filename

    @property
    def content_type(self) -> str:
        return self.body.content_type

    @property
    def filename(self) -> Optional[str]:
        if self._filename is not None:
            return self._filename
        return self.name if self.is_binary_transfer_encoding else None

    def write(self, sink: BinaryIO) -> None:
        self.body.write(sink)

    def content_disposition(self) -> str:
        disposition = f'form-data; name="{_quote(self.name)}"'
        filename = self.filename
        if filename is not None:
            disposition += f'; filename="{_quote(filename)}"'
        return disposition

    @classmethod
    def for_file(cls, name: str, path: Union[str, os.PathLike],
                 content_type: str = OCTET_STREAM,
                 filename: Optional[str] = None) -> "FormDataParameter":
        return cls(name, bodies.for_file(path, content_type), True, filename)

    @classmethod
    def for_bytes(cls, name: str, data: bytes,
                  content_type: str = OCTET_STREAM,
                  filename: Optional[str] = None) -> "FormDataParameter":
        return cls(name, bodies.for_bytes(data, content_type), True, filename)

    @classmethod
    def for_text(cls, name: str, text: str, charset: str = DEFAULT_CHARSET,
                 media_type: str = "text/plain",
                 filename: Optional[str] = None) -> "FormDataParameter":
        # an explicit filename turns the field into a file upload
        return cls(name, bodies.for_text(text, charset, media_type),
                   filename is not None, filename)

    @classmethod
    def for_json(cls, name: str, value: Any, charset: str = DEFAULT_CHARSET,
                 filename: Optional[str] = None) -> "FormDataParameter":
        return cls(name, bodies.for_json(value, charset), filename is not None, filename)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(name={self.name!r}, content_type={self.content_type!r}, "
                f"binary={self.is_binary_transfer_encoding})")


class MultipartFormBody(RequestBody):
    """A multipart/form-data body made of ordered FormDataParameter parts."""

    def __init__(self, parameters: Iterable[FormDataParameter], boundary: Optional[str] = None):
        self.parameters: List[FormDataParameter] = list(parameters)
        if not self.parameters:
            raise ValueError("A multipart body needs at least one part")
        for parameter in self.parameters:
            if not isinstance(parameter, FormDataParameter):
                raise TypeError(f"Expected FormDataParameter, got {type(parameter).__name__}")
        self.boundary = validate_boundary(boundary) if boundary is not None else generate_boundary()

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def _part_headers(self, parameter: FormDataParameter) -> bytes:
        lines = [
            f"--{self.boundary}",
            f"Content-Disposition: {parameter.content_disposition()}",
            f"Content-Type: {parameter.content_type}",
            "",
            "",
        ]
        return "\r\n".join(lines).encode('utf-8')

    def write(self, sink: BinaryIO) -> None:
        try:
            for parameter in self.parameters:
                sink.write(self._part_headers(parameter))
                parameter.write(sink)
                sink.write(CRLF)
                logger.debug(f"Wrote multipart part '{parameter.name}' ({parameter.content_type})")
            sink.write(f"--{self.boundary}--".encode('ascii') + CRLF)
        except BodyWriteError:
            raise
        except OSError as e:
            raise BodyWriteError(f"Could not write multipart body: {e}") from e

    def __repr__(self) -> str:
        names = [parameter.name for parameter in self.parameters]
        return f"{type(self).__name__}(boundary={self.boundary!r}, parts={names!r})"
