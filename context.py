"""Per-server state shared with request handlers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from log_sink import LogSink
from pages import PageRenderer


@dataclass(slots=True)
class ServerContext:
    log: LogSink
    renderer: PageRenderer
    request_stop: Callable[[], None]
    extended: bool = True
