"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import logging
import selectors
import socket
import threading
import time
from collections.abc import Sequence
from contextlib import ExitStack
from dataclasses import dataclass
from urllib.parse import urlsplit

from config import (
    DRAIN_TIMEOUT_SECS,
    ENABLE_ADMIN,
    HOST,
    LOG_FILE_PATH,
    PORT,
    REQUEST_QUEUE_SIZE,
    SELECT_TIMEOUT_SECS,
    SOCKET_TIMEOUT_SECS,
    WORKER_COUNT,
)
from context import ServerContext
from errors import ErrorKind, Failure
from log_sink import LogSink
from pages import PageRenderer
from request import HTTPRequest, HTTPRequestParseError
from response import REASON_PHRASES, HTTPResponse, html_response
from router import route
from socket_handler import HTTPReadError, read_http_request, write_http_response_message
from thread_pool import ThreadPool

logger = logging.getLogger(__name__)

WILDCARD_HOSTS = {"+", "*"}


@dataclass(frozen=True, slots=True)
class ListenerPrefix:
    """One ``http://host:port/path/`` prefix the server accepts requests on."""

    host: str
    port: int
    path: str = "/"

    @classmethod
    def parse(cls, prefix: str) -> "ListenerPrefix":
        # urlsplit rejects "+" and "*" as hostnames, so swap them out first.
        scheme, _, rest = prefix.partition("://")
        wildcard = rest[:1] in WILDCARD_HOSTS
        parsed = urlsplit(f"{scheme}://0.0.0.0{rest[1:]}" if wildcard else prefix)
        if parsed.scheme != "http":
            raise ValueError(f"Only http:// prefixes are supported: {prefix!r}")
        if not parsed.hostname:
            raise ValueError(f"Prefix has no host: {prefix!r}")
        path = parsed.path or "/"
        if not path.endswith("/"):
            raise ValueError(f"Prefix path must end with '/': {prefix!r}")
        port = parsed.port if parsed.port is not None else 80
        return cls(host=parsed.hostname, port=port, path=path)

    def matches(self, request_path: str) -> bool:
        return self.path == "/" or request_path.startswith(self.path) or (
            request_path + "/" == self.path
        )


class HTTPServer:
    def __init__(
        self,
        prefixes: Sequence[str] | None = None,
        *,
        host: str = HOST,
        port: int = PORT,
        log_path: str = LOG_FILE_PATH,
        extended: bool = ENABLE_ADMIN,
        worker_count: int = WORKER_COUNT,
        request_queue_size: int = REQUEST_QUEUE_SIZE,
        drain_timeout_secs: float = DRAIN_TIMEOUT_SECS,
        echo_log: bool = True,
    ) -> None:
        if not prefixes:
            prefixes = [f"http://{host}:{port}/"]
        self.prefixes = [ListenerPrefix.parse(prefix) for prefix in prefixes]
        self.host = self.prefixes[0].host
        self.port = 0
        self.bound_addresses: list[tuple[str, int]] = []
        self.extended = extended
        self.worker_count = worker_count
        self.request_queue_size = request_queue_size
        self.drain_timeout_secs = drain_timeout_secs

        self.log = LogSink(log_path, echo=echo_log)
        self.context = ServerContext(
            log=self.log,
            renderer=PageRenderer(),
            request_stop=self.stop,
            extended=extended,
        )

        self._pool: ThreadPool | None = None
        self._prefixes_by_address: dict[tuple[str, int], list[ListenerPrefix]] = {}
        self._stop_requested = threading.Event()
        self._stopped = threading.Event()

    def __enter__(self) -> "HTTPServer":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.stop()
        self.close()

    @property
    def stopped(self) -> threading.Event:
        return self._stopped

    def start(self) -> None:
        """Bind every prefix and serve until ``stop`` is called."""
        with ExitStack() as stack:
            selector = stack.enter_context(selectors.DefaultSelector())
            for bind_host, bind_port, group in self._listener_groups():
                server_socket = stack.enter_context(
                    socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                )
                server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                server_socket.bind((bind_host, bind_port))
                server_socket.listen(128)
                server_socket.setblocking(False)
                bound_host, bound_port = server_socket.getsockname()[:2]
                self._prefixes_by_address[(bound_host, bound_port)] = group
                self.bound_addresses.append((bind_host, bound_port))
                selector.register(server_socket, selectors.EVENT_READ)

            self._pool = ThreadPool(
                worker_count=self.worker_count,
                queue_size=self.request_queue_size,
                handler=self._handle_client,
            )
            self._pool.start()
            self.port = self.bound_addresses[0][1]
            self.log.write("Web server started... Listening for connections...")

            try:
                while not self._stop_requested.is_set():
                    for key, _mask in selector.select(timeout=SELECT_TIMEOUT_SECS):
                        self._accept_clients(key.fileobj)
            finally:
                for key in list(selector.get_map().values()):
                    selector.unregister(key.fileobj)
                    key.fileobj.close()
                self._shutdown_pool()
                self.log.write("Web server stopped.")
                self._stopped.set()

    def stop(self) -> None:
        """Ask the accept loop to exit. Safe to call from any thread, including workers."""
        self._stop_requested.set()

    def close(self) -> None:
        self.log.close()

    def _listener_groups(self) -> list[tuple[str, int, list[ListenerPrefix]]]:
        groups: dict[tuple[str, int], list[ListenerPrefix]] = {}
        ephemeral: list[tuple[str, int, list[ListenerPrefix]]] = []
        for prefix in self.prefixes:
            if prefix.port == 0:
                ephemeral.append((prefix.host, 0, [prefix]))
                continue
            groups.setdefault((prefix.host, prefix.port), []).append(prefix)
        return [(host, port, group) for (host, port), group in groups.items()] + ephemeral

    def _accept_clients(self, server_socket: socket.socket) -> None:
        while True:
            try:
                client_socket, address = server_socket.accept()
            except BlockingIOError:
                return
            except OSError as exc:
                if not self._stop_requested.is_set():
                    logger.warning("Could not accept connection: %s", exc)
                return

            client_socket.setblocking(True)
            if self._pool is None or not self._pool.submit(client_socket, address):
                self._send_queue_full_response(client_socket)

    def _shutdown_pool(self) -> None:
        if self._pool is None:
            return
        drained = self._pool.shutdown(graceful=True, timeout=self.drain_timeout_secs)
        if not drained:
            logger.warning("Worker pool did not drain within %.1fs", self.drain_timeout_secs)
        for client_socket, _address in self._pool.discard_pending():
            client_socket.close()
        self._pool = None

    def _send_queue_full_response(self, client_socket: socket.socket) -> None:
        with client_socket:
            try:
                rejection = self._error_response(503, "Service Unavailable")
                self._respond(client_socket, None, rejection)
            except OSError as exc:
                logger.warning("Could not send 503 to rejected client: %s", exc)

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(SOCKET_TIMEOUT_SECS)
            try:
                local_address = client_socket.getsockname()[:2]
                raw_request = read_http_request(client_socket)
                if not raw_request:
                    return
                try:
                    request = HTTPRequest.from_bytes(raw_request)
                except HTTPRequestParseError as exc:
                    self.log.write(f"Rejected request from {address[0]}: {exc}")
                    self._respond(client_socket, None, self._error_response(exc.status_code))
                    return
            except HTTPReadError as exc:
                self.log.write(f"Rejected request from {address[0]}: {exc}")
                try:
                    self._respond(client_socket, None, self._error_response(exc.status_code))
                except OSError as write_exc:
                    logger.warning("Could not report read error to client: %s", write_exc)
                return
            except OSError as exc:
                logger.warning("Connection from %s failed while reading: %s", address[0], exc)
                return

            response = self._dispatch(request, self._prefixes_for(local_address))
            try:
                self._respond(client_socket, request, response)
            except OSError as exc:
                self.log.write(f"Exception: {exc}")
                logger.warning("Connection from %s failed while writing: %s", address[0], exc)
                return

        if response.after_send is not None:
            try:
                response.after_send()
            except Exception as exc:
                logger.exception("Post-response hook failed for %s", request.path)
                self.log.write(f"Exception: {exc}")

    def _prefixes_for(self, local_address: tuple[str, int]) -> list[ListenerPrefix]:
        """Prefixes of the listener that accepted a connection on ``local_address``."""
        prefixes = self._prefixes_by_address.get(local_address)
        if prefixes is None:
            prefixes = self._prefixes_by_address.get(("0.0.0.0", local_address[1]), [])
        return prefixes

    def _dispatch(self, request: HTTPRequest, prefixes: Sequence[ListenerPrefix]) -> HTTPResponse:
        try:
            self.log.write(f"Received {request.method} request for: {request.path}")
            self.log.write(_request_details(request))
            if prefixes and not any(prefix.matches(request.path) for prefix in prefixes):
                outcome: HTTPResponse | Failure = Failure(
                    ErrorKind.NOT_FOUND, f"{request.path} is outside the listener prefixes"
                )
            else:
                target = route(
                    request.method,
                    request.path,
                    request.content_type,
                    extended=self.extended,
                )
                outcome = target if isinstance(target, Failure) else target(request, self.context)
        except Exception as exc:
            logger.exception("Unhandled error in route handler")
            self.log.write(f"Exception: {exc}")
            outcome = Failure(ErrorKind.INTERNAL_ERROR, str(exc))

        if isinstance(outcome, Failure):
            if outcome.message:
                self.log.write(f"{outcome.kind.name}: {outcome.message}")
            response = self._error_response(outcome.status_code, outcome.kind.phrase)
            if outcome.kind is ErrorKind.METHOD_NOT_ALLOWED:
                response.headers["Allow"] = "GET, POST"
            return response
        return outcome

    def _error_response(self, status_code: int, message: str | None = None) -> HTTPResponse:
        message = message or REASON_PHRASES.get(status_code, "Error")
        page = self.context.renderer.render(
            "error", {"status_code": status_code, "message": message}
        )
        response = html_response(page, status_code=status_code)
        response.reason_phrase = REASON_PHRASES.get(status_code)
        return response

    def _respond(
        self,
        client_socket: socket.socket,
        request: HTTPRequest | None,
        response: HTTPResponse,
    ) -> None:
        started_at = time.perf_counter()
        bytes_sent = write_http_response_message(client_socket, response)
        if response.is_error:
            self.log.write(
                f"Sent error response: {response.status_code} - "
                f"{response.reason_phrase or REASON_PHRASES.get(response.status_code, 'Error')}"
            )
        elif response.log_sent and request is not None:
            self.log.write(f"Sent {request.method} response for {request.path}")
        logger.debug(
            "status=%s bytes_out=%s duration_ms=%.2f",
            response.status_code,
            bytes_sent,
            (time.perf_counter() - started_at) * 1000,
        )


def _request_details(request: HTTPRequest) -> str:
    lines = [
        "--- Request Details ---",
        f"URL: {request.url}",
        f"Method: {request.method}",
        "Headers: ",
    ]
    lines.extend(f"{name}: {value}" for name, value in request.headers.items())
    return "\n".join(lines)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the ArcadiaWaves HTTP server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument(
        "--prefix",
        action="append",
        dest="prefixes",
        help="http://host:port/path/ prefix to listen on; repeatable, overrides --host/--port",
    )
    parser.add_argument("--log-file", default=LOG_FILE_PATH)
    parser.add_argument("--workers", type=int, default=WORKER_COUNT)
    parser.add_argument("--queue-size", type=int, default=REQUEST_QUEUE_SIZE)
    parser.add_argument("--drain-timeout", type=float, default=DRAIN_TIMEOUT_SECS)
    parser.add_argument(
        "--basic",
        action="store_true",
        help="serve only the public pages, without /admin and /logs",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    logging.basicConfig(level=logging.INFO)
    with HTTPServer(
        args.prefixes,
        host=args.host,
        port=args.port,
        log_path=args.log_file,
        extended=not args.basic,
        worker_count=args.workers,
        request_queue_size=args.queue_size,
        drain_timeout_secs=args.drain_timeout,
    ) as server:
        try:
            server.start()
        except KeyboardInterrupt:
            server.stop()
