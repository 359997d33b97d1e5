"""HTTP front end for the snapper operations.

Read-only endpoints answer GET; endpoints that change snapshots only answer
POST, and any other method is rejected before snapper is touched. Parameters
come from the query string, merged with a JSON object body on POST.

Usage:
    console = WebConsole(Snapper(), AssetProvider(), port=8888)
    console.start()          # background thread, or serve_forever() to block
    ...
    console.stop()
"""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

from rich.console import Console
from rich.markup import escape

from snapdeck import __version__
from snapdeck.assets import AssetProvider
from snapdeck.errors import InvalidRequest, SnapdeckError, SnapperError
from snapdeck.log import write_log

_console = Console(stderr=True)

_MAX_BODY = 1024 * 1024

# path → handler method name
QUERY_ROUTES = {
    "/api/configs": "_configs",
    "/api/get-config": "_get_config",
    "/api/snapshots": "_snapshots",
    "/api/status": "_status",
}

MUTATION_ROUTES = {
    "/api/undochange": "_undochange",
    "/api/rollback": "_rollback",
    "/api/create": "_create",
    "/api/delete": "_delete",
}

# Query parameters that may repeat
_LIST_PARAMS = {"paths"}


def _write_audit(entry):
    try:
        write_log(entry)
    except OSError as e:
        _console.print(f"[yellow]Warning: could not write audit log: {escape(str(e))}[/yellow]")


def _require(params, name):
    value = params.get(name)
    if value is None or value == "":
        raise InvalidRequest(f"Missing parameter: {name}")
    return value


class _ConsoleHandler(BaseHTTPRequestHandler):
    """Request handler for the web console. One thread per request."""

    server_version = f"snapdeck/{__version__}"

    def log_message(self, fmt, *args):
        if not self.server.quiet:
            _console.print(f"[dim]{self.address_string()} {escape(fmt % args)}[/dim]", highlight=False)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self):
        url = urlsplit(self.path)
        path = url.path.rstrip("/") or "/"

        if path in MUTATION_ROUTES:
            route, allowed = MUTATION_ROUTES[path], "POST"
        elif path in QUERY_ROUTES:
            route, allowed = QUERY_ROUTES[path], "GET"
        elif path.startswith("/api/"):
            self._send_json(404, {"error": f"Unknown endpoint: {path}"})
            return
        else:
            self._static(url.path)
            return

        if self.command != allowed:
            self._send_json(
                405,
                {"error": f"{path} requires {allowed}"},
                headers={"Allow": allowed},
            )
            return

        try:
            params = self._params(url.query)
            status, body = getattr(self, route)(params)
        except InvalidRequest as e:
            status, body = 400, {"error": str(e)}
        except SnapperError as e:
            status, body = 502, {"error": str(e)}
        except Exception as e:
            _console.print(f"[red]Unhandled error in {self.command} {escape(path)}: {escape(repr(e))}[/red]")
            status, body = 500, {"error": "Internal server error"}
        self._send_json(status, body)

    do_GET = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch
    do_PATCH = _dispatch

    def _params(self, query):
        params = {}
        for key, values in parse_qs(query, keep_blank_values=True).items():
            params[key] = values if key in _LIST_PARAMS else values[-1]

        if self.command != "POST":
            return params

        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            raise InvalidRequest("Invalid Content-Length header")
        if length < 0:
            raise InvalidRequest("Invalid Content-Length header")
        if length > _MAX_BODY:
            raise InvalidRequest("Request body too large")
        raw = self.rfile.read(length) if length else b""
        if raw.strip():
            try:
                body = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidRequest(f"Invalid JSON body: {e}")
            if not isinstance(body, dict):
                raise InvalidRequest("JSON body must be an object")
            params.update(body)
        return params

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _send_json(self, status, body, headers=None):
        data = json.dumps(body).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        for k, v in (headers or {}).items():
            self.send_header(k, v)
        self.end_headers()
        self.wfile.write(data)

    def _static(self, path):
        if self.command != "GET":
            self._send_json(405, {"error": "Static assets require GET"}, headers={"Allow": "GET"})
            return
        asset = self.server.assets.get(path)
        if asset is None:
            self._send_json(404, {"error": f"Not found: {path}"})
            return
        content, content_type = asset
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _configs(self, params):
        return 200, self.server.snapper.list_configs()

    def _get_config(self, params):
        return 200, self.server.snapper.get_settings(_require(params, "config"))

    def _snapshots(self, params):
        snapshots = self.server.snapper.list_snapshots(_require(params, "config"))
        return 200, [s.to_dict() for s in snapshots]

    def _status(self, params):
        changes = self.server.snapper.status(
            _require(params, "config"), _require(params, "range")
        )
        return 200, [c.to_dict() for c in changes]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _audited(self, event, params, action):
        """Run a mutation and record the attempt in the audit log."""
        entry = {"event": event, "source": "web", "client": self.client_address[0]}
        entry.update({k: v for k, v in params.items() if k in (
            "config", "id", "range", "paths", "description", "userdata", "cleanup",
        )})
        try:
            result = action()
        except InvalidRequest as e:
            _write_audit({**entry, "result": "rejected", "error": str(e)})
            raise
        except SnapdeckError as e:
            _write_audit({**entry, "result": "failed", "error": str(e)})
            raise
        _write_audit({**entry, "result": "ok"})
        return result

    def _undochange(self, params):
        output = self._audited("undochange", params, lambda: self.server.snapper.undo_change(
            _require(params, "config"), _require(params, "range"), _require(params, "paths"),
        ))
        return 200, {"ok": True, "output": output}

    def _rollback(self, params):
        output = self._audited("rollback", params, lambda: self.server.snapper.rollback(
            _require(params, "config"), _require(params, "id"), params.get("description"),
        ))
        return 200, {"ok": True, "output": output}

    def _create(self, params):
        number = self._audited("create", params, lambda: self.server.snapper.create(
            _require(params, "config"),
            _require(params, "description"),
            userdata=params.get("userdata"),
            cleanup=params.get("cleanup"),
        ))
        return 201, {"ok": True, "id": number}

    def _delete(self, params):
        self._audited("delete", params, lambda: self.server.snapper.delete(
            _require(params, "config"), _require(params, "id"),
        ))
        return 200, {"ok": True}


class _ConsoleServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, *args, snapper, assets, quiet=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.snapper = snapper
        self.assets = assets
        self.quiet = quiet

    def handle_error(self, request, client_address):
        # Client went away mid-response; the next request is unaffected
        if not self.quiet:
            _console.print(f"[dim]Connection error from {client_address[0]}[/dim]")


class WebConsole:
    """Threaded HTTP server exposing snapper operations as a JSON API plus static UI."""

    def __init__(self, snapper, assets=None, host="127.0.0.1", port=8888, quiet=False):
        """
        Args:
            snapper: Snapper instance shared by all request threads
            assets:  AssetProvider for "/" (defaults to the bundled UI)
            port:    0 picks a free port; read it back from .port after start
        """
        self.snapper = snapper
        self.assets = assets or AssetProvider()
        self.host = host
        self.port = port
        self.quiet = quiet
        self._server = None
        self._thread = None

    @property
    def url(self):
        return f"http://{self.host}:{self.port}"

    def _bind(self):
        self._server = _ConsoleServer(
            (self.host, self.port),
            _ConsoleHandler,
            snapper=self.snapper,
            assets=self.assets,
            quiet=self.quiet,
        )
        self.port = self._server.server_address[1]

    def start(self):
        """Start serving in a background daemon thread."""
        self._bind()
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="snapdeck-http",
        )
        self._thread.start()

    def serve_forever(self):
        """Serve in the calling thread until stop() or KeyboardInterrupt."""
        self._bind()
        server = self._server
        try:
            server.serve_forever()
        finally:
            server.server_close()
            self._server = None

    def stop(self):
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
