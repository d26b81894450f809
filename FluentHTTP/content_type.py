"""Content-Type header parsing.

``parse_content_type`` never raises: a malformed header degrades to a
best-effort media type with no charset.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

CHARSET_PREFIX = "charset="


@dataclass(frozen=True)
class MediaType:
    """A parsed Content-Type value: the media type and its optional charset."""
    type: str
    charset: Optional[str] = None

    def __iter__(self) -> Iterator[Optional[str]]:
        # allows ``media_type, charset = parse_content_type(...)``
        yield self.type
        yield self.charset

    def __getitem__(self, index: int) -> Optional[str]:
        return (self.type, self.charset)[index]

    def __len__(self) -> int:
        return 2

    def __str__(self) -> str:
        return format_content_type(self.type, self.charset)


def _unquote(value: str) -> str:
    # a lone quote on either side stays part of the value
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_content_type(value: Optional[str]) -> MediaType:
    """Split a Content-Type header value into media type and charset.

    The first ``;``-separated segment is the media type. The first later
    segment starting with ``charset=`` supplies the charset, with
    surrounding double quotes removed. Every other parameter is ignored.
    """
    if not value:
        return MediaType("", None)

    segments = [segment.strip() for segment in value.split(";")]
    media_type = segments[0]

    for segment in segments[1:]:
        if segment.startswith(CHARSET_PREFIX):
            # an empty value counts as no charset
            return MediaType(media_type, _unquote(segment[len(CHARSET_PREFIX):]) or None)

    return MediaType(media_type, None)


def format_content_type(media_type: str, charset: Optional[str] = None) -> str:
    """Build a Content-Type header value, quoting the charset."""
    if charset is None:
        return media_type
    return f'{media_type}; charset="{charset}"'
