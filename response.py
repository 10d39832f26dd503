"""HTTP response model and serializer."""

from collections.abc import Callable
from dataclasses import dataclass, field
from email.utils import formatdate

from config import SERVER_NAME

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    431: "Request Header Fields Too Large",
    500: "Internal Server Error",
    503: "Service Unavailable",
    505: "HTTP Version Not Supported",
}

HTML_CONTENT_TYPE = "text/html"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    reason_phrase: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str = b""
    # Runs once the whole response has been written to the client.
    after_send: Callable[[], None] | None = None
    log_sent: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def head_bytes(self) -> bytes:
        reason = self.reason_phrase or REASON_PHRASES.get(self.status_code, "Unknown")
        normalized_headers = dict(self.headers)
        normalized_headers.setdefault(
            "Date",
            formatdate(timeval=None, localtime=False, usegmt=True),
        )
        normalized_headers.setdefault("Server", SERVER_NAME)
        normalized_headers.setdefault("Content-Type", TEXT_CONTENT_TYPE)
        normalized_headers["Content-Length"] = str(len(self.body))

        header_lines = [f"HTTP/1.1 {self.status_code} {reason}"]
        header_lines.extend(f"{key}: {value}" for key, value in normalized_headers.items())
        return "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"

    def to_bytes(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes."""
        return self.head_bytes() + bytes(self.body)


def html_response(page: str, status_code: int = 200) -> HTTPResponse:
    return HTTPResponse(
        status_code=status_code,
        headers={"Content-Type": HTML_CONTENT_TYPE},
        body=page,
    )
