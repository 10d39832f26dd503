"""Body decoders for the POST content types served on /contact."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

from errors import Decoded


def decode_flat_json(body: bytes) -> Decoded[dict[str, str]]:
    """Decode a JSON object whose values are all strings."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as exc:
        return Decoded.error(f"JSON body is not valid UTF-8: {exc}")
    except json.JSONDecodeError as exc:
        return Decoded.error(f"Malformed JSON body: {exc}")

    if not isinstance(payload, dict):
        return Decoded.error("JSON body must be an object of string values")
    for key, value in payload.items():
        if not isinstance(value, str):
            return Decoded.error(f"JSON value for {key!r} is not a string")
    return Decoded.success(payload)


def decode_form_urlencoded(body: bytes) -> Decoded[dict[str, list[str]]]:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        return Decoded.error(f"Form body is not valid UTF-8: {exc}")
    return Decoded.success(parse_qs(text, keep_blank_values=True))


def extract_boundary(content_type: str) -> Decoded[str]:
    """Return the ``--``-prefixed delimiter declared by a multipart content type."""
    _, marker, token = content_type.partition("boundary=")
    token = token.split(";", 1)[0].strip().strip('"')
    if not marker or not token:
        return Decoded.error("Boundary not found in content-type header.")
    return Decoded.success("--" + token)
