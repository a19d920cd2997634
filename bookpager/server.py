"""
HTTP front end for bookpager.

Clients issue ``GET /book/<command>?bookindex=<n>`` and receive the page as
plain text after the response headers.
"""

import logging
import re
import urllib.parse
from functools import partial
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from . import __version__
from .errors import (
    BookPagerError,
    InvalidIndex,
    ResourceUnavailable,
    StateStoreFailure,
    UnknownCommand,
)
from .pager import Pager, parse_command

logger = logging.getLogger(__name__)

INDEX_PARAM = "bookindex"
PATH_PREFIX = "book"
_INDEX_PATTERN = re.compile(r"[0-9]+")

ERROR_STATUS: dict[type[BookPagerError], HTTPStatus] = {
    InvalidIndex: HTTPStatus.BAD_REQUEST,
    UnknownCommand: HTTPStatus.NOT_FOUND,
    ResourceUnavailable: HTTPStatus.INTERNAL_SERVER_ERROR,
    StateStoreFailure: HTTPStatus.SERVICE_UNAVAILABLE,
}


def parse_index(raw: Optional[str]) -> int:
    """
    Parse the book index request parameter.

    Args:
        raw: Parameter value, or None when the request has none

    Returns:
        The index, 0 when the parameter is absent

    Raises:
        InvalidIndex: If the value is present but not a non-negative integer
    """
    if raw is None:
        return 0
    value = raw.strip()
    if not _INDEX_PATTERN.fullmatch(value):
        raise InvalidIndex(f"Invalid book index: {raw!r}")
    return int(value)


class Router:
    """Maps request commands onto the pager and renders the result."""

    def __init__(self, pager: Pager) -> None:
        self.pager = pager

    def handle(self, command: str, bookindex: Optional[str] = None) -> str:
        """
        Run a command for the addressed book and return the response body.

        Raises:
            BookPagerError: Subclass describing why the request failed
        """
        cmd = parse_command(command)
        index = parse_index(bookindex)
        return self.pager.apply(index, cmd).text

    def dispatch(self, target: str) -> tuple[HTTPStatus, str]:
        """Handle a raw request target such as ``/book/next?bookindex=2``."""
        url = urllib.parse.urlsplit(target)
        parts = [p for p in urllib.parse.unquote(url.path).split("/") if p]
        if parts and parts[0] == PATH_PREFIX:
            parts = parts[1:]
        if len(parts) > 1:
            return HTTPStatus.NOT_FOUND, f"Error: Unknown path: {url.path}"
        command = parts[0] if parts else "list"

        query = urllib.parse.parse_qs(url.query, keep_blank_values=True)
        values = query.get(INDEX_PARAM)
        bookindex = values[0] if values else None

        try:
            return HTTPStatus.OK, self.handle(command, bookindex)
        except BookPagerError as e:
            status = next(
                (s for cls, s in ERROR_STATUS.items() if isinstance(e, cls)),
                HTTPStatus.INTERNAL_SERVER_ERROR,
            )
            logger.warning("%s %s failed: %s", command, bookindex, e)
            return status, f"Error: {e}"


class BookRequestHandler(BaseHTTPRequestHandler):
    """Serves pages from a Router."""

    server_version = f"bookpager/{__version__}"
    protocol_version = "HTTP/1.1"

    def __init__(self, *args, router: Router, **kwargs) -> None:
        self.router = router
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        status, body = self.router.dispatch(self.path)
        payload = (body + "\n").encode("utf-8") if body else b""
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(payload)
        self.close_connection = True

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.info("%s - %s", self.address_string(), format % args)


def make_server(router: Router, host: str, port: int) -> ThreadingHTTPServer:
    """Create a threaded HTTP server bound to ``host:port``."""
    handler = partial(BookRequestHandler, router=router)
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def serve(router: Router, host: str, port: int) -> None:
    """Serve requests until interrupted."""
    server = make_server(router, host, port)
    bound_host, bound_port = server.server_address[:2]
    logger.info("Serving books on http://%s:%s/", bound_host, bound_port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
