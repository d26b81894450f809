""" Client configuration """

import json
import os
from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Union

from .utils import DEFAULT_CHARSET, DEFAULT_CHUNK_SIZE, validate_charset


@dataclass
class ClientConfig:
    """Settings for SimpleHTTPClient.

    ``charset`` is the explicit fallback used wherever text has to be
    encoded or decoded without a declared charset; the client decodes
    responses with it when their Content-Type names none.
    """
    default_headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = 30.0
    chunked: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    charset: str = DEFAULT_CHARSET
    user_agent: Optional[str] = None

    def __post_init__(self):
        """Validate settings."""
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in self.default_headers.items()):
            raise ValueError("default_headers must map header names to string values")
        validate_charset(self.charset)


def load_client_config(path: Union[str, os.PathLike]) -> ClientConfig:
    """Load a ClientConfig from a JSON file."""
    try:
        with open(path, 'r', encoding='utf-8') as f: raw_config = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Client configuration file not found at {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in client configuration file: {e}")

    if not isinstance(raw_config, dict):
        raise ValueError(f"Client configuration must be a JSON object, got {type(raw_config).__name__}")

    known = {f.name for f in fields(ClientConfig)}
    unknown = sorted(set(raw_config) - known)
    if unknown:
        raise ValueError(f"Unknown client configuration keys: {', '.join(unknown)}")

    return ClientConfig(**raw_config)
