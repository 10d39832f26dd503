"""Low-level socket read/write utilities."""

from __future__ import annotations

import socket

from config import (
    BUFFER_SIZE,
    MAX_BODY_BYTES,
    MAX_HEADER_BYTES,
    MAX_REQUEST_BYTES,
    READ_CHUNK_SIZE,
)
from response import HTTPResponse


class HTTPReadError(Exception):
    """Raised when a client request cannot be safely read from the socket."""

    status_code = 400


class MalformedRequestError(HTTPReadError):
    """Raised when socket bytes do not form a complete HTTP request."""


class HeaderTooLargeError(HTTPReadError):
    """Raised when HTTP headers exceed configured maximum size."""

    status_code = 431


class PayloadTooLargeError(HTTPReadError):
    """Raised when request body exceeds configured maximum size."""

    status_code = 413


class SocketTimeoutError(HTTPReadError):
    """Raised when a client times out while sending request bytes."""

    status_code = 408


def _header_value(header_bytes: bytes, wanted: str) -> str | None:
    lines = header_bytes.decode("iso-8859-1").split("\r\n")
    for line in lines[1:]:
        if not line:
            continue
        if ":" not in line:
            raise MalformedRequestError("Malformed header while reading request")
        name, value = line.split(":", 1)
        if name.strip().lower() == wanted:
            return value.strip()
    return None


def _expected_body_length(header_bytes: bytes) -> int:
    raw_length = _header_value(header_bytes, "content-length")
    if raw_length is None:
        return 0
    try:
        parsed_length = int(raw_length)
    except ValueError as exc:
        raise MalformedRequestError("Invalid Content-Length header") from exc
    if parsed_length < 0:
        raise MalformedRequestError("Negative Content-Length header")
    if parsed_length > MAX_BODY_BYTES:
        raise PayloadTooLargeError("Body exceeded MAX_BODY_BYTES")
    return parsed_length


def scan_chunked_body(encoded_body: bytes) -> tuple[bytes, int] | None:
    """Decode a chunked body.

    Returns ``(decoded, consumed)`` where ``consumed`` is the encoded length up
    to and including the final CRLF, or None while the body is still partial.
    Trailer fields are skipped.
    """
    position = 0
    decoded = bytearray()
    while True:
        line_end = encoded_body.find(b"\r\n", position)
        if line_end == -1:
            return None
        size_token = encoded_body[position:line_end].split(b";", 1)[0].strip()
        if not size_token:
            raise MalformedRequestError("Missing chunk size")
        try:
            chunk_size = int(size_token, 16)
        except ValueError as exc:
            raise MalformedRequestError("Malformed chunk size") from exc
        position = line_end + 2

        if chunk_size == 0:
            while True:
                trailer_end = encoded_body.find(b"\r\n", position)
                if trailer_end == -1:
                    return None
                if trailer_end == position:
                    return bytes(decoded), trailer_end + 2
                if b":" not in encoded_body[position:trailer_end]:
                    raise MalformedRequestError("Malformed chunked trailer")
                position = trailer_end + 2

        chunk_end = position + chunk_size
        if len(encoded_body) < chunk_end + 2:
            return None
        if len(decoded) + chunk_size > MAX_BODY_BYTES:
            raise PayloadTooLargeError("Decoded chunked body exceeded MAX_BODY_BYTES")
        if encoded_body[chunk_end : chunk_end + 2] != b"\r\n":
            raise MalformedRequestError("Chunk missing CRLF terminator")
        decoded.extend(encoded_body[position:chunk_end])
        position = chunk_end + 2


def extract_http_request_message(buffer: bytes) -> bytes | None:
    """Return one complete HTTP request from the buffer, or None if more bytes are needed."""
    if len(buffer) > MAX_REQUEST_BYTES:
        raise PayloadTooLargeError("Request exceeded MAX_REQUEST_BYTES")

    header_end_index = buffer.find(b"\r\n\r\n")
    if header_end_index == -1:
        if len(buffer) > MAX_HEADER_BYTES:
            raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")
        return None
    if header_end_index + 4 > MAX_HEADER_BYTES:
        raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")

    header_bytes = buffer[:header_end_index]
    body_start = header_end_index + 4
    transfer_encoding = _header_value(header_bytes, "transfer-encoding")
    if transfer_encoding and "chunked" in transfer_encoding.lower():
        scanned = scan_chunked_body(buffer[body_start:])
        if scanned is None:
            return None
        _decoded, consumed = scanned
        return buffer[: body_start + consumed]

    request_length = body_start + _expected_body_length(header_bytes)
    if len(buffer) < request_length:
        return None
    return buffer[:request_length]


def read_http_request(client_socket: socket.socket) -> bytes:
    """Read one HTTP request; returns b"" if the client closed without sending anything."""
    buffer = bytearray()
    while True:
        extracted = extract_http_request_message(bytes(buffer))
        if extracted is not None:
            return extracted

        try:
            chunk = client_socket.recv(max(BUFFER_SIZE, READ_CHUNK_SIZE))
        except socket.timeout as exc:
            raise SocketTimeoutError("Timed out waiting for request bytes") from exc

        if not chunk:
            if not buffer:
                return b""
            raise MalformedRequestError("Connection closed before request completed")

        buffer.extend(chunk)


def write_http_response_message(client_socket: socket.socket, response: HTTPResponse) -> int:
    """Write a complete response and return the number of bytes sent.

    Error responses half-close the socket once written; successful ones leave
    the socket to the caller's scope.
    """
    if response.is_error:
        response.headers["Connection"] = "close"
    else:
        response.headers.setdefault("Connection", "close")

    head = response.head_bytes()
    client_socket.sendall(head)
    bytes_sent = len(head)
    if response.body:
        client_socket.sendall(response.body)
        bytes_sent += len(response.body)

    if response.is_error:
        try:
            client_socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass
    return bytes_sent
