"""Admin dashboard and control actions."""

from context import ServerContext
from decoders import decode_form_urlencoded
from errors import ErrorKind, Failure
from request import HTTPRequest
from response import TEXT_CONTENT_TYPE, HTTPResponse, html_response

STOP_SERVER = "stop_server"
CLEAR_LOGS = "clear_logs"


def dashboard(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    _ = request
    return html_response(context.renderer.render("dashboard", {"logs": context.log.read()}))


def raw_logs(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    _ = request
    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": TEXT_CONTENT_TYPE},
        body=context.log.read(),
    )


def admin_action(request: HTTPRequest, context: ServerContext) -> HTTPResponse | Failure:
    fields = decode_form_urlencoded(request.body)
    if not fields.ok:
        return fields.failure

    action = fields.value.get("action", [""])[0]
    if action == STOP_SERVER:
        context.log.write("Stop requested from admin dashboard")
        response = html_response(
            context.renderer.render("admin_result", {"message": "Server is stopping..."})
        )
        response.after_send = context.request_stop
        return response

    if action == CLEAR_LOGS:
        context.log.clear()
        response = html_response(
            context.renderer.render("admin_result", {"message": "Logs cleared."})
        )
        response.log_sent = False
        return response

    return Failure(ErrorKind.BAD_REQUEST, f"Unknown admin action: {action!r}")
