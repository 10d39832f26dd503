"""Method, path and content-type dispatch for the site's fixed set of pages."""

from collections.abc import Callable

from context import ServerContext
from errors import ErrorKind, Failure
from handlers.admin_handlers import admin_action, dashboard, raw_logs
from handlers.site_handlers import (
    about,
    contact_form,
    contact_form_urlencoded,
    contact_json,
    contact_multipart,
    home,
)
from request import HTTPRequest
from response import HTTPResponse

Handler = Callable[[HTTPRequest, ServerContext], HTTPResponse | Failure]

JSON_TYPE = "application/json"
MULTIPART_TYPE = "multipart/form-data"
FORM_TYPE = "application/x-www-form-urlencoded"


def route(
    method: str,
    path: str,
    content_type: str | None,
    *,
    extended: bool = True,
) -> Handler | Failure:
    """Pick the handler for a request, or the failure to answer with."""
    if method == "GET":
        return _route_get(path, extended=extended)
    if method == "POST":
        return _route_post(path, content_type, extended=extended)
    return Failure(ErrorKind.METHOD_NOT_ALLOWED, f"{method} is not served")


def _route_get(path: str, *, extended: bool) -> Handler | Failure:
    if path == "/":
        return home
    if path == "/about":
        return about
    if path == "/contact":
        return contact_form
    if extended and path == "/admin":
        return dashboard
    if extended and path == "/logs":
        return raw_logs
    return Failure(ErrorKind.NOT_FOUND, f"No page at {path}")


def _route_post(path: str, content_type: str | None, *, extended: bool) -> Handler | Failure:
    if extended and path == "/admin/action":
        return admin_action
    if path != "/contact":
        return Failure(ErrorKind.NOT_FOUND, f"No POST handler at {path}")

    # JSON and urlencoded match the whole header value, so parameters such as
    # charset are not accepted. Multipart always carries a boundary parameter.
    if content_type == JSON_TYPE:
        return contact_json
    if content_type is not None and MULTIPART_TYPE in content_type:
        return contact_multipart
    if content_type == FORM_TYPE:
        return contact_form_urlencoded
    return Failure(
        ErrorKind.UNSUPPORTED_MEDIA_TYPE,
        f"Unsupported content type on /contact: {content_type!r}",
    )
