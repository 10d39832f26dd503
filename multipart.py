"""Splitter for multipart/form-data bodies."""

from __future__ import annotations

from dataclasses import dataclass, field

from errors import Decoded


@dataclass(slots=True)
class FormPart:
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def disposition_params(self) -> dict[str, str]:
        return _header_params(self.headers.get("content-disposition", ""))

    @property
    def name(self) -> str | None:
        return self.disposition_params.get("name")

    @property
    def filename(self) -> str | None:
        return self.disposition_params.get("filename")


def split_multipart(body: bytes, delimiter: str) -> Decoded[list[FormPart]]:
    """Split a multipart body on ``delimiter`` (the boundary with its leading ``--``)."""
    marker = delimiter.encode("iso-8859-1")
    if body.startswith(marker):
        position = len(marker)
    else:
        first = body.find(b"\r\n" + marker)
        if first == -1:
            return Decoded.error("Multipart body does not contain the boundary delimiter")
        position = first + 2 + len(marker)

    parts: list[FormPart] = []
    separator = b"\r\n" + marker
    while True:
        if body.startswith(b"--", position):
            return Decoded.success(parts)
        if not body.startswith(b"\r\n", position):
            return Decoded.error("Boundary delimiter is not followed by CRLF")
        position += 2

        end = body.find(separator, position)
        if end == -1:
            return Decoded.error("Multipart body is missing its closing delimiter")

        part = _parse_part(body[position:end])
        if not part.ok:
            return Decoded(failure=part.failure)
        parts.append(part.value)
        position = end + len(separator)


def _parse_part(raw: bytes) -> Decoded[FormPart]:
    if raw.startswith(b"\r\n"):
        return Decoded.success(FormPart(body=raw[2:]))

    head, sep, content = raw.partition(b"\r\n\r\n")
    if not sep:
        return Decoded.error("Multipart part has no header/body separator")

    headers: dict[str, str] = {}
    for line in head.decode("utf-8", errors="replace").split("\r\n"):
        name, colon, value = line.partition(":")
        if not colon or not name.strip():
            return Decoded.error(f"Malformed multipart header line: {line!r}")
        headers[name.strip().lower()] = value.strip()
    return Decoded.success(FormPart(headers=headers, body=content))


def _header_params(value: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in value.split(";")[1:]:
        key, eq, raw = item.partition("=")
        if not eq:
            continue
        raw = raw.strip()
        if len(raw) >= 2 and raw[0] == raw[-1] == '"':
            raw = raw[1:-1]
        params[key.strip().lower()] = raw
    return params
