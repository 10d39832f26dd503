"""HTML pages served by the site and admin handlers."""

from __future__ import annotations

import html
from collections.abc import Callable, Mapping
from typing import Any

PageBuilder = Callable[[Mapping[str, Any]], str]


def _escape(value: object) -> str:
    return html.escape(str(value), quote=False)


def _home(_params: Mapping[str, Any]) -> str:
    return "<html><body><h1>Home Page - Welcome to ArcadiaWaves! </h1></body></html>"


def _about(_params: Mapping[str, Any]) -> str:
    return "<html><body><h1>About Page - GET</h1></body></html>"


def _contact(_params: Mapping[str, Any]) -> str:
    return (
        "<html><body><h1>Contact Page - GET</h1>"
        "<form method='post' action='/contact' enctype='multipart/form-data'>"
        "<input type='text' name='message' placeholder='Enter your message'/><br/>"
        "<input type='file' name='file'/><br/>"
        "<input type='submit' value='Submit'/>"
        "</form></body></html>"
    )


def _json_received(params: Mapping[str, Any]) -> str:
    return (
        "<html><body><h1>Received JSON data</h1>"
        f"<pre>{_escape(params['json'])}</pre></body></html>"
    )


def _form_received(params: Mapping[str, Any]) -> str:
    return (
        "<html><body><h1>Form Data Received</h1>"
        f"<pre>{_escape(params['body'])}</pre></body></html>"
    )


def _dashboard(params: Mapping[str, Any]) -> str:
    return (
        "<html><body><h1>Admin Dashboard</h1>"
        "<h2>Server Logs</h2>"
        f"<pre>{_escape(params['logs'])}</pre>"
        "<form method='post' action='/admin/action'>"
        "<input type='hidden' name='action' value='stop_server'/>"
        "<input type='submit' value='Stop Server'/>"
        "</form>"
        "<form method='post' action='/admin/action'>"
        "<input type='hidden' name='action' value='clear_logs'/>"
        "<input type='submit' value='Clear Logs'/>"
        "</form>"
        "</body></html>"
    )


def _admin_result(params: Mapping[str, Any]) -> str:
    return (
        f"<html><body><h1>{_escape(params['message'])}</h1>"
        "<a href='/admin'>Back to dashboard</a></body></html>"
    )


def _error(params: Mapping[str, Any]) -> str:
    return (
        f"<html><body><h1>{params['status_code']} - {_escape(params['message'])}</h1>"
        "</body></html>"
    )


class PageRenderer:
    """Builds named HTML pages; an unknown page name raises KeyError."""

    def __init__(self) -> None:
        self._pages: dict[str, PageBuilder] = {
            "home": _home,
            "about": _about,
            "contact": _contact,
            "json_received": _json_received,
            "form_received": _form_received,
            "dashboard": _dashboard,
            "admin_result": _admin_result,
            "error": _error,
        }

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._pages)

    def render(self, name: str, params: Mapping[str, Any] | None = None) -> str:
        builder = self._pages[name]
        return builder(params or {})
