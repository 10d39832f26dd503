"""End-to-end tests over real sockets for the public HTTP surface."""

from __future__ import annotations

import json
import socket
import threading
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

from server import HTTPServer


@dataclass
class RawResponse:
    status_code: int
    headers: dict[str, str]
    body: bytes


def _start_server(tmp_path: Path, **kwargs: object) -> tuple[HTTPServer, threading.Thread]:
    server = HTTPServer(port=0, log_path=str(tmp_path / "webserver.log"), echo_log=False, **kwargs)
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()

    deadline = time.time() + 3
    while server.port == 0 and time.time() < deadline:
        time.sleep(0.01)

    if server.port == 0:
        raise RuntimeError("Server did not bind to a port")
    assert server.port != 80
    return server, thread


def _stop_server(server: HTTPServer, thread: threading.Thread) -> None:
    server.stop()
    thread.join(timeout=3)
    server.close()


def _send_raw(server: HTTPServer, payload: bytes) -> RawResponse:
    with socket.create_connection((server.host, server.port), timeout=3) as sock:
        sock.sendall(payload)
        buffer = bytearray()
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            buffer.extend(chunk)

    head, _, body = bytes(buffer).partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        key, value = line.split(":", 1)
        headers[key.strip().lower()] = value.strip()
    return RawResponse(status_code=int(lines[0].split(" ")[1]), headers=headers, body=body)


def _request(
    server: HTTPServer,
    method: str,
    path: str,
    body: bytes = b"",
    content_type: str | None = None,
) -> RawResponse:
    head = f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n"
    if content_type is not None:
        head += f"Content-Type: {content_type}\r\n"
    if body or method == "POST":
        head += f"Content-Length: {len(body)}\r\n"
    return _send_raw(server, head.encode("ascii") + b"\r\n" + body)


@pytest.fixture
def running_server(tmp_path: Path):
    server, thread = _start_server(tmp_path)
    try:
        yield server
    finally:
        _stop_server(server, thread)


@pytest.mark.parametrize(
    ("path", "marker"),
    [
        ("/", b"Home Page"),
        ("/about", b"About Page"),
        ("/contact", b"enctype='multipart/form-data'"),
        ("/admin", b"Admin Dashboard"),
    ],
)
def test_get_pages_return_html(running_server: HTTPServer, path: str, marker: bytes) -> None:
    response = _request(running_server, "GET", path)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/html"
    assert marker in response.body
    assert int(response.headers["content-length"]) == len(response.body)


def test_logs_route_returns_raw_log_text(running_server: HTTPServer) -> None:
    response = _request(running_server, "GET", "/logs")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert b"Received GET request for: /logs" in response.body
    assert int(response.headers["content-length"]) == len(response.body)


@pytest.mark.parametrize("path", ["/missing", "/admin/action", "/about/team"])
def test_unknown_get_paths_are_404(running_server: HTTPServer, path: str) -> None:
    response = _request(running_server, "GET", path)

    assert response.status_code == 404
    assert b"404 - Page Not Found" in response.body
    assert response.headers["connection"] == "close"


@pytest.mark.parametrize("method", ["PUT", "DELETE", "HEAD", "PATCH"])
@pytest.mark.parametrize("path", ["/", "/contact", "/nowhere"])
def test_other_methods_are_405(running_server: HTTPServer, method: str, path: str) -> None:
    response = _request(running_server, method, path)

    assert response.status_code == 405
    assert response.headers["allow"] == "GET, POST"


def test_json_contact_is_echoed_pretty_printed(running_server: HTTPServer) -> None:
    payload = json.dumps({"name": "a", "msg": "b"}, separators=(",", ":")).encode()

    response = _request(running_server, "POST", "/contact", payload, "application/json")

    assert response.status_code == 200
    assert b'"name": "a"' in response.body
    assert b'"msg": "b"' in response.body
    assert b"<pre>{\n" in response.body
    assert int(response.headers["content-length"]) == len(response.body)


@pytest.mark.parametrize("payload", [b'{"a":', b'{"a": 1}', b"[]"])
def test_bad_json_contact_is_500(running_server: HTTPServer, payload: bytes) -> None:
    response = _request(running_server, "POST", "/contact", payload, "application/json")

    assert response.status_code == 500
    assert b"500 - Internal Server Error" in response.body
    assert b"Traceback" not in response.body


def test_multipart_contact_echoes_raw_body(running_server: HTTPServer) -> None:
    body = (
        b"--b1\r\n"
        b'Content-Disposition: form-data; name="message"\r\n'
        b"\r\n"
        b"hi\r\n"
        b"--b1--\r\n"
    )

    response = _request(
        running_server,
        "POST",
        "/contact",
        body,
        "multipart/form-data; boundary=b1",
    )

    assert response.status_code == 200
    assert b"Form Data Received" in response.body
    assert b'name="message"' in response.body
    assert b"--b1--" in response.body
    log_text = running_server.log.read()
    assert "Multipart parts (1): message=2" in log_text


def test_multipart_without_boundary_is_500(running_server: HTTPServer) -> None:
    response = _request(running_server, "POST", "/contact", b"raw", "multipart/form-data")

    assert response.status_code == 500
    assert "Boundary not found in content-type header." in running_server.log.read()


def test_urlencoded_contact_echoes_raw_body(running_server: HTTPServer) -> None:
    body = b"name=Ada+L&msg=hi%21"

    response = _request(
        running_server,
        "POST",
        "/contact",
        body,
        "application/x-www-form-urlencoded",
    )

    assert response.status_code == 200
    assert b"<pre>name=Ada+L&amp;msg=hi%21</pre>" in response.body
    assert "'name': ['Ada L']" in running_server.log.read()


@pytest.mark.parametrize(
    "content_type",
    [None, "text/plain", "application/json; charset=utf-8"],
)
def test_other_contact_content_types_are_415(
    running_server: HTTPServer, content_type: str | None
) -> None:
    response = _request(running_server, "POST", "/contact", b"{}", content_type)

    assert response.status_code == 415


def test_post_to_other_paths_is_404(running_server: HTTPServer) -> None:
    response = _request(running_server, "POST", "/about", b"{}", "application/json")

    assert response.status_code == 404


def test_malformed_request_line_is_400(running_server: HTTPServer) -> None:
    response = _send_raw(running_server, b"GET\r\nHost: localhost\r\n\r\n")

    assert response.status_code == 400


def test_request_is_logged_with_details_and_send_confirmation(running_server: HTTPServer) -> None:
    _request(running_server, "GET", "/about")

    deadline = time.time() + 2
    log_text = running_server.log.read()
    while "Sent GET response for /about" not in log_text and time.time() < deadline:
        time.sleep(0.01)
        log_text = running_server.log.read()

    assert "Received GET request for: /about" in log_text
    assert "--- Request Details ---" in log_text
    assert "URL: http://localhost/about" in log_text
    assert "host: localhost" in log_text
    assert "Sent GET response for /about" in log_text


def test_concurrent_requests_keep_log_lines_whole(running_server: HTTPServer) -> None:
    def hit(index: int) -> None:
        _request(running_server, "GET", f"/missing-{index}")

    threads = [threading.Thread(target=hit, args=(index,)) for index in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    log_text = running_server.log.read()
    for index in range(16):
        assert f"Received GET request for: /missing-{index}\n" in log_text
