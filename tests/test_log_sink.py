"""Unit tests for the append-only request log."""

import re
import threading
from pathlib import Path

from log_sink import LogSink

LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3}: (?P<message>.*)$")


def test_lines_are_timestamped_and_appended(tmp_path: Path) -> None:
    path = tmp_path / "webserver.log"
    sink = LogSink(path, echo=False)
    try:
        sink.write("first")
        sink.write("second")
    finally:
        sink.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [LINE.match(line).group("message") for line in lines] == ["first", "second"]


def test_reopening_appends_instead_of_truncating(tmp_path: Path) -> None:
    path = tmp_path / "webserver.log"
    for message in ("one", "two"):
        sink = LogSink(path, echo=False)
        sink.write(message)
        sink.close()

    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_concurrent_writes_never_interleave(tmp_path: Path) -> None:
    path = tmp_path / "webserver.log"
    sink = LogSink(path, echo=False)
    writers = 8
    per_writer = 200

    def write_many(tag: str) -> None:
        for index in range(per_writer):
            sink.write(f"{tag}-{index:04d}-" + tag * 64)

    threads = [
        threading.Thread(target=write_many, args=(chr(ord("a") + n),)) for n in range(writers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    sink.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == writers * per_writer
    for line in lines:
        match = LINE.match(line)
        assert match is not None
        tag, _index, payload = match.group("message").split("-")
        assert payload == tag * 64


def test_clear_truncates_but_keeps_the_file(tmp_path: Path) -> None:
    path = tmp_path / "webserver.log"
    sink = LogSink(path, echo=False)
    try:
        sink.write("before clear")
        sink.clear()

        assert path.exists()
        assert path.stat().st_size == 0
        assert sink.read() == ""

        sink.write("after clear")
        content = sink.read()
    finally:
        sink.close()

    assert content.endswith(": after clear\n")
    assert "before clear" not in content
