"""HTTP request model and parser."""

import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from config import MAX_BODY_BYTES, MAX_TARGET_LENGTH
from socket_handler import HTTPReadError, scan_chunked_body

HTTP_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
METHOD_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class HTTPRequestParseError(ValueError):
    """Request parse error carrying an HTTP status code."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HTTPRequest:
    method: str
    path: str
    http_version: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        return f"http://{self.headers.get('host', 'localhost')}{self.path}"

    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "HTTPRequest":
        """Parse one framed request.

        Any syntactically valid method token is accepted; deciding which
        methods are served is left to the router.
        """
        head, separator, payload = raw.partition(b"\r\n\r\n")
        if not separator:
            raise HTTPRequestParseError("Request head is not terminated by a blank line")

        request_line, *header_lines = head.decode("iso-8859-1").split("\r\n")
        method, path, http_version = _parse_request_line(request_line)
        headers = _parse_headers(header_lines)

        if http_version == "HTTP/1.1" and "host" not in headers:
            raise HTTPRequestParseError("Host header required for HTTP/1.1")

        body = _read_body(headers, payload)
        if len(body) > MAX_BODY_BYTES:
            raise HTTPRequestParseError("Body exceeded MAX_BODY_BYTES", status_code=413)

        return cls(
            method=method,
            path=path,
            http_version=http_version,
            headers=headers,
            body=body,
        )


def _parse_request_line(line: str) -> tuple[str, str, str]:
    parts = line.split(" ")
    if len(parts) != 3 or not all(parts):
        raise HTTPRequestParseError(f"Invalid request line: {line!r}")

    method, target, http_version = parts
    if not METHOD_TOKEN.match(method):
        raise HTTPRequestParseError(f"Invalid method token: {method!r}")
    if http_version not in HTTP_VERSIONS:
        raise HTTPRequestParseError("Unsupported HTTP version", status_code=505)
    if len(target) > MAX_TARGET_LENGTH:
        raise HTTPRequestParseError("Request target too long", status_code=414)

    # Routing only looks at the absolute path; the query string is dropped.
    return method, urlsplit(target).path or "/", http_version


def _parse_headers(lines: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        name, colon, value = line.partition(":")
        if not colon or not name.strip():
            raise HTTPRequestParseError(f"Malformed header line: {line!r}")
        headers[name.strip().lower()] = value.strip()
    return headers


def _read_body(headers: dict[str, str], payload: bytes) -> bytes:
    chunked = "chunked" in headers.get("transfer-encoding", "").lower()
    declared = headers.get("content-length")
    if chunked and declared is not None:
        raise HTTPRequestParseError("Content-Length cannot be combined with chunked transfer")

    if chunked:
        try:
            scanned = scan_chunked_body(payload)
        except HTTPReadError as exc:
            raise HTTPRequestParseError(str(exc), status_code=exc.status_code) from exc
        if scanned is None:
            raise HTTPRequestParseError("Chunked body is incomplete")
        return scanned[0]

    if declared is None:
        return payload
    if not declared.isdigit():
        raise HTTPRequestParseError(f"Invalid Content-Length: {declared!r}")
    if len(payload) != int(declared):
        raise HTTPRequestParseError("Body length does not match Content-Length")
    return payload
