import io

import pytest

from FluentHTTP.body import StreamingRequestBody
from FluentHTTP.exceptions import BodyWriteError, EncodingError
from FluentHTTP.multipart import (
    BOUNDARY_PREFIX,
    FormDataParameter,
    MultipartFormBody,
    generate_boundary,
    validate_boundary,
)

BINARY = bytes([0x80, 0x0C, 0x00, 0x45, 0x7D])


def encode(body: MultipartFormBody) -> bytes:
    sink = io.BytesIO()
    body.write(sink)
    return sink.getvalue()


def test_exact_wire_format():
    body = MultipartFormBody([
        FormDataParameter.for_text("field", "hello"),
        FormDataParameter.for_bytes("file", BINARY),
    ], boundary="xyz")

    assert body.content_type == "multipart/form-data; boundary=xyz"
    assert encode(body) == (
        b"--xyz\r\n"
        b'Content-Disposition: form-data; name="field"\r\n'
        b'Content-Type: text/plain; charset="UTF-8"\r\n'
        b"\r\n"
        b"hello\r\n"
        b"--xyz\r\n"
        b'Content-Disposition: form-data; name="file"; filename="file"\r\n'
        b"Content-Type: application/octet-stream\r\n"
        b"\r\n" + BINARY + b"\r\n"
        b"--xyz--\r\n"
    )


def test_parts_keep_their_order(multipart_decoder):
    names = ["c", "a", "b", "d"]
    body = MultipartFormBody([FormDataParameter.for_text(n, n * 3) for n in names])

    parts = multipart_decoder(encode(body), body.boundary)

    assert [p.data for p in parts] == [b"ccc", b"aaa", b"bbb", b"ddd"]
    assert [p.headers["content-disposition"] for p in parts] == [
        f'form-data; name="{n}"' for n in names
    ]


def test_single_boundary_token_and_closing_delimiter():
    body = MultipartFormBody([
        FormDataParameter.for_text("one", "1"),
        FormDataParameter.for_text("two", "2"),
        FormDataParameter.for_text("three", "3"),
    ])
    data = encode(body)
    delimiter = b"--" + body.boundary.encode()

    assert data.count(delimiter + b"\r\n") == 3
    assert data.endswith(delimiter + b"--\r\n")
    assert data.count(delimiter) == 4


def test_binary_payload_survives_decoding(multipart_decoder):
    payload = bytes(range(256)) * 4 + b"\r\n--not-a-boundary\r\n"
    body = MultipartFormBody([FormDataParameter.for_bytes("blob", payload, "image/png")])

    parts = multipart_decoder(encode(body), body.boundary)

    assert len(parts) == 1
    assert parts[0].data == payload
    assert parts[0].headers["content-type"] == "image/png"


def test_binary_parts_carry_filename():
    parameter = FormDataParameter.for_bytes("upload", b"x")
    assert parameter.is_binary_transfer_encoding
    assert parameter.content_disposition() == 'form-data; name="upload"; filename="upload"'


def test_explicit_filename_on_binary_part():
    parameter = FormDataParameter.for_bytes("upload", b"x", filename="report.pdf")
    assert parameter.content_disposition() == 'form-data; name="upload"; filename="report.pdf"'


def test_text_parts_have_no_filename():
    text = FormDataParameter.for_text("comment", "hi")
    json_part = FormDataParameter.for_json("meta", {"k": "v"})

    assert not text.is_binary_transfer_encoding
    assert text.filename is None
    assert text.content_disposition() == 'form-data; name="comment"'
    assert json_part.content_disposition() == 'form-data; name="meta"'
    assert json_part.content_type == 'application/json; charset="UTF-8"'


def test_text_part_with_filename_is_a_file_upload():
    parameter = FormDataParameter.for_text("notes", "hi", filename="notes.txt")
    assert parameter.is_binary_transfer_encoding
    assert parameter.content_disposition() == 'form-data; name="notes"; filename="notes.txt"'


def test_text_part_charset():
    parameter = FormDataParameter.for_text("name", "Zoë", charset="ISO-8859-1")
    body = MultipartFormBody([parameter], boundary="b")

    assert parameter.content_type == 'text/plain; charset="ISO-8859-1"'
    assert b"\r\n\r\nZo\xeb\r\n" in encode(body)


def test_text_part_unknown_charset():
    with pytest.raises(EncodingError):
        FormDataParameter.for_text("name", "value", charset="klingon")


def test_file_part_streams_from_disk(tmp_path, multipart_decoder):
    path = tmp_path / "data.bin"
    path.write_bytes(BINARY * 1000)
    body = MultipartFormBody([FormDataParameter.for_file("file", path)])

    parts = multipart_decoder(encode(body), body.boundary)
    assert parts[0].data == BINARY * 1000
    assert parts[0].headers["content-disposition"] == 'form-data; name="file"; filename="file"'


def test_quotes_and_newlines_in_names_are_escaped():
    parameter = FormDataParameter.for_bytes('a"b\r\nc', b"", filename='x".txt')
    assert parameter.content_disposition() == 'form-data; name="a%22b%0D%0Ac"; filename="x%22.txt"'


def test_failing_part_aborts_the_whole_body():
    def broken():
        raise PermissionError("denied")

    body = MultipartFormBody([
        FormDataParameter.for_text("first", "ok"),
        FormDataParameter("second", StreamingRequestBody("text/plain", broken)),
        FormDataParameter.for_text("third", "never"),
    ], boundary="stop")

    sink = io.BytesIO()
    with pytest.raises(BodyWriteError):
        body.write(sink)

    written = sink.getvalue()
    assert b"never" not in written
    assert b"--stop--" not in written


def test_sink_failure_is_a_body_write_error():
    class ClosedSink:
        def write(self, data):
            raise ConnectionResetError("reset")

    body = MultipartFormBody([FormDataParameter.for_text("a", "b")])
    with pytest.raises(BodyWriteError):
        body.write(ClosedSink())


def test_generated_boundaries_are_unique_and_valid():
    boundaries = {generate_boundary() for _ in range(100)}
    assert len(boundaries) == 100
    for boundary in boundaries:
        assert boundary.startswith(BOUNDARY_PREFIX)
        assert validate_boundary(boundary) == boundary


def test_each_body_gets_its_own_boundary():
    parts = [FormDataParameter.for_text("a", "b")]
    assert MultipartFormBody(parts).boundary != MultipartFormBody(parts).boundary


@pytest.mark.parametrize("boundary", ["", "x" * 71, "ends with space ", "semi;colon", "quo\"te"])
def test_invalid_boundary(boundary):
    with pytest.raises(ValueError):
        MultipartFormBody([FormDataParameter.for_text("a", "b")], boundary=boundary)


def test_empty_body_is_rejected():
    with pytest.raises(ValueError):
        MultipartFormBody([])


def test_parts_must_be_form_data_parameters():
    with pytest.raises(TypeError):
        MultipartFormBody([StreamingRequestBody("text/plain", io.BytesIO)])


def test_empty_parameter_name():
    with pytest.raises(ValueError):
        FormDataParameter.for_text("", "value")
