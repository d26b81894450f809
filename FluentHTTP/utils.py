import codecs
from typing import BinaryIO

from .exceptions import EncodingError

DEFAULT_CHARSET = "UTF-8"
DEFAULT_CHUNK_SIZE = 8192


def validate_charset(charset: str) -> str:
  # Returns the charset unchanged so the caller's spelling reaches the wire
  if not charset or not isinstance(charset, str):
      raise EncodingError(f"Charset must be a non-empty string, got {charset!r}", charset=charset)
  try:
      codecs.lookup(charset)
  except LookupError as e:
      raise EncodingError(f"Unsupported charset '{charset}'", charset=charset) from e
  return charset


def encode_text(text: str, charset: str) -> bytes:
  validate_charset(charset)
  try:
      return text.encode(charset)
  except UnicodeEncodeError as e:
      raise EncodingError(f"Text cannot be encoded as '{charset}': {e}", charset=charset) from e


def copy_stream(source: BinaryIO, sink: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
  """Copy ``source`` into ``sink`` chunk by chunk and return the byte count."""
  total = 0
  while True:
      chunk = source.read(chunk_size)
      if not chunk:
          break
      sink.write(chunk)
      total += len(chunk)
  return total
