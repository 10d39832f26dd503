"""Public page and /contact submission handlers."""

import json

from config import JSON_INDENT
from context import ServerContext
from decoders import decode_flat_json, decode_form_urlencoded, extract_boundary
from errors import Failure
from multipart import split_multipart
from request import HTTPRequest
from response import HTTPResponse, html_response


def home(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    _ = request
    return html_response(context.renderer.render("home"))


def about(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    _ = request
    return html_response(context.renderer.render("about"))


def contact_form(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    _ = request
    return html_response(context.renderer.render("contact"))


def contact_json(request: HTTPRequest, context: ServerContext) -> HTTPResponse | Failure:
    body = request.body_text()
    context.log.write(f"Received JSON data: {body}")

    decoded = decode_flat_json(request.body)
    if not decoded.ok:
        return decoded.failure

    pretty = json.dumps(decoded.value, indent=JSON_INDENT, ensure_ascii=False)
    return html_response(context.renderer.render("json_received", {"json": pretty}))


def contact_multipart(request: HTTPRequest, context: ServerContext) -> HTTPResponse | Failure:
    """Echo a multipart submission verbatim.

    The parts are split only to log what arrived; the response body is the
    raw request body.
    """
    boundary = extract_boundary(request.content_type or "")
    if not boundary.ok:
        return boundary.failure

    raw_body = request.body_text()
    context.log.write(f"Received multipart form-data: {raw_body}")

    parts = split_multipart(request.body, boundary.value)
    if parts.ok:
        summary = ", ".join(
            f"{part.name}={part.filename or len(part.body)}" for part in parts.value
        )
        context.log.write(f"Multipart parts ({len(parts.value)}): {summary}")
    else:
        context.log.write(f"Multipart body could not be split: {parts.failure.message}")

    return html_response(context.renderer.render("form_received", {"body": raw_body}))


def contact_form_urlencoded(
    request: HTTPRequest, context: ServerContext
) -> HTTPResponse | Failure:
    raw_body = request.body_text()
    context.log.write(f"Received form-urlencoded data: {raw_body}")

    fields = decode_form_urlencoded(request.body)
    if not fields.ok:
        return fields.failure
    context.log.write(f"Parsed form fields: {fields.value}")

    return html_response(context.renderer.render("form_received", {"body": raw_body}))
