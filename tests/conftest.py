"""Test fixtures: a local HTTP server that records requests and replies with a stub."""

import threading
from dataclasses import dataclass, field
from email.message import Message
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Tuple

import pytest

from FluentHTTP import Endpoint, NoOpResponseParser, SimpleHTTPClient


# -----------------------------------------------------------------------------
# Recording server
# -----------------------------------------------------------------------------


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Message
    body: bytes


@dataclass
class Stub:
    status: int = 200
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""


class _RecordingHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _read_chunked(self) -> bytes:
        chunks = []
        while True:
            size_line = self.rfile.readline().strip()
            size = int(size_line.split(b";")[0], 16)
            if size == 0:
                # skip trailers up to the terminating blank line
                while self.rfile.readline() not in (b"\r\n", b"\n", b""):
                    pass
                break
            chunks.append(self.rfile.read(size))
            self.rfile.readline()
        return b"".join(chunks)

    def _read_body(self) -> bytes:
        if self.headers.get("Transfer-Encoding", "").lower() == "chunked":
            return self._read_chunked()
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length else b""

    def _handle(self):
        body = self._read_body()
        self.server.requests.append(RecordedRequest(self.command, self.path, self.headers, body))

        stub: Stub = self.server.stub
        self.send_response(stub.status)
        for name, value in stub.headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(stub.body)))
        self.send_header("Connection", "close")
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(stub.body)

    do_HEAD = do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _handle

    def log_message(self, format, *args):
        pass


class MockServer:
    def __init__(self):
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _RecordingHandler)
        self._server.daemon_threads = True
        self._server.requests = []
        self._server.stub = Stub()
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def requests(self) -> List[RecordedRequest]:
        return self._server.requests

    def stub(self, status: int = 200, headers: List[Tuple[str, str]] = (), body: bytes = b""):
        self._server.stub = Stub(status, list(headers), body)

    def requested(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    def start(self):
        self._thread.start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()


@pytest.fixture
def mock_server():
    server = MockServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def base_endpoint(mock_server) -> Endpoint:
    return Endpoint.for_host_and_port(Endpoint.HTTP, "127.0.0.1", mock_server.port)


@pytest.fixture
def client() -> SimpleHTTPClient:
    return SimpleHTTPClient(timeout=5.0)


@pytest.fixture
def parser() -> NoOpResponseParser:
    return NoOpResponseParser()


# -----------------------------------------------------------------------------
# Multipart decoding with python-multipart
# -----------------------------------------------------------------------------


@dataclass
class DecodedPart:
    headers: Dict[str, str]
    data: bytes


def decode_multipart(body: bytes, boundary: str) -> List[DecodedPart]:
    from python_multipart.multipart import MultipartParser

    parts: List[DecodedPart] = []
    state = {"field": bytearray(), "value": bytearray()}

    def on_part_begin():
        parts.append(DecodedPart({}, b""))

    def on_header_field(data, start, end):
        state["field"] += data[start:end]

    def on_header_value(data, start, end):
        state["value"] += data[start:end]

    def on_header_end():
        parts[-1].headers[state["field"].decode().lower()] = state["value"].decode()
        state["field"] = bytearray()
        state["value"] = bytearray()

    def on_part_data(data, start, end):
        parts[-1].data += data[start:end]

    parser = MultipartParser(boundary, callbacks={
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
    })
    parser.write(body)
    parser.finalize()
    return parts


@pytest.fixture
def multipart_decoder():
    return decode_multipart
