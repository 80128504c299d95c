"""
Minimal embedded HTTP server for the label-printing browser client.

Serves the live export document at /specimens.json plus the bundled page,
stylesheet and script. Built directly on sockets: one background thread
accepts connections and every connection is handled on its own thread.
Each exchange is a single request followed by a response and a close.
"""

import os
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .config import ServerConfig
from .exporter import ExportError
from .logging_setup import get_logger

logger = get_logger(__name__)

BUNDLED_ASSETS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "assets")

ACCEPT_POLL_INTERVAL = 0.5

REASONS = {
    200: "OK",
    404: "Not Found",
    500: "Internal Server Error",
}

FALLBACK_HTML = """<!DOCTYPE html>
<html>
<head><title>Photos</title></head>
<body>
    <h1>Photo Viewer</h1>
    <p>Loading...</p>
    <script>
        fetch('/specimens.json').then(r => r.json()).then(data => {
            document.body.innerHTML = '<h1>Photos Loaded</h1><pre>' + JSON.stringify(data, null, 2) + '</pre>';
        }).catch(e => {
            document.body.innerHTML = '<h1>Error</h1><p>' + e.message + '</p>';
        });
    </script>
</body>
</html>
"""

# path -> (asset file, content type)
STATIC_ROUTES: Dict[str, Tuple[str, str]] = {
    "/styles.css": ("styles.css", "text/css"),
    "/script.js": ("script.js", "application/javascript"),
}
JSON_ROUTE = "/specimens.json"
HTML_SHELL = "index.html"


class ServerError(Exception):
    """Raised when the server cannot bind or listen."""


@dataclass(frozen=True)
class HttpRequest:
    method: str
    path: str


@dataclass(frozen=True)
class HttpResponse:
    status: int
    content_type: str
    body: bytes
    cors: bool = False

    @classmethod
    def text(cls, status: int, content_type: str, text: str, cors: bool = False) -> 'HttpResponse':
        return cls(status, content_type, text.encode("utf-8"), cors)

    @classmethod
    def error(cls, status: int) -> 'HttpResponse':
        reason = REASONS.get(status, "Error")
        return cls.text(status, "text/html", f"<html><body><h1>{status} {reason}</h1></body></html>")

    def to_bytes(self) -> bytes:
        """Serialize status line, headers, blank line and body."""
        reason = REASONS.get(self.status, "Error")
        lines = [
            f"HTTP/1.1 {self.status} {reason}",
            f"Content-Type: {self.content_type}; charset=utf-8",
            f"Content-Length: {len(self.body)}",
            "Connection: close",
        ]
        if self.cors:
            lines.append("Access-Control-Allow-Origin: *")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + self.body


class RequestLineParser:
    """
    Reads just the request line: method and path.

    Headers and bodies are ignored; this server has nothing to do with them.
    """

    def parse(self, data: bytes) -> Optional[HttpRequest]:
        """
        Parse raw request bytes.

        Returns:
            HttpRequest, or None for empty or malformed requests
        """
        if not data:
            return None
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return None

        first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
        parts = first_line.split()
        if len(parts) < 2:
            return None

        method, target = parts[0], parts[1]
        if not target.startswith("/"):
            return None
        path = target.split("?", 1)[0].split("#", 1)[0]
        return HttpRequest(method=method.upper(), path=path)


class StaticAssets:
    """Read-only access to the bundled page, stylesheet and script."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = os.path.abspath(directory or BUNDLED_ASSETS_DIR)

    def load(self, name: str) -> Optional[str]:
        """Return the text of an asset, or None if it is missing or unreadable."""
        path = os.path.join(self.directory, name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            logger.warning(f"Asset not found: {path}")
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read asset {path}: {str(e)}")
            return None


class Router:
    """Maps request paths to responses. The method is ignored."""

    def __init__(self, snapshot_provider: Optional[Callable[[], bytes]], assets: StaticAssets):
        self.snapshot_provider = snapshot_provider
        self.assets = assets

    def route(self, request: HttpRequest) -> HttpResponse:
        if request.path == JSON_ROUTE:
            return self._specimens()

        if request.path in STATIC_ROUTES:
            name, content_type = STATIC_ROUTES[request.path]
            content = self.assets.load(name)
            if content is None:
                return HttpResponse.error(404)
            return HttpResponse.text(200, content_type, content, cors=True)

        html = self.assets.load(HTML_SHELL)
        if html is None:
            html = FALLBACK_HTML
        return HttpResponse.text(200, "text/html", html, cors=True)

    def _specimens(self) -> HttpResponse:
        if self.snapshot_provider is None:
            return HttpResponse(200, "application/json", b"[]", cors=True)
        try:
            body = self.snapshot_provider()
        except ExportError as e:
            logger.error(f"Export for /specimens.json failed: {str(e)}")
            return HttpResponse.error(500)
        logger.debug(f"Serving fresh JSON data ({len(body)} bytes)")
        return HttpResponse(200, "application/json", body, cors=True)


class SpecimenServer:
    """Socket server exposing the live export to a browser."""

    def __init__(
        self,
        config: ServerConfig,
        snapshot_provider: Optional[Callable[[], bytes]] = None,
        parser: Optional[RequestLineParser] = None,
        router: Optional[Router] = None,
    ):
        """
        Initialize the server.

        Args:
            config: Server configuration
            snapshot_provider: Callable returning the encoded export document
            parser: Request parser; the request-line parser by default
            router: Router; built from the provider and configured assets by default
        """
        self.config = config
        self.parser = parser or RequestLineParser()
        self.router = router or Router(snapshot_provider, StaticAssets(config.assets_dir))

        self._socket: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._lock = threading.Lock()
        self._port: Optional[int] = None

    @property
    def port(self) -> Optional[int]:
        """Bound port, or None before start()."""
        return self._port

    @property
    def url(self) -> Optional[str]:
        if self._port is None:
            return None
        host = self.config.host if self.config.host not in ("", "0.0.0.0") else "localhost"
        return f"http://{host}:{self._port}"

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    def start(self) -> str:
        """
        Bind, listen and start the accept loop in the background.

        Returns:
            URL the server is reachable at

        Raises:
            ServerError: If the socket cannot be bound or put into listening mode
        """
        with self._lock:
            if self._running.is_set():
                return self.url

            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.config.host, self.config.port))
                sock.listen(self.config.backlog)
                sock.settimeout(ACCEPT_POLL_INTERVAL)
            except OSError as e:
                sock.close()
                logger.error(f"Failed to start server on {self.config.host}:{self.config.port}: {str(e)}")
                raise ServerError(f"Cannot listen on {self.config.host}:{self.config.port}: {e}") from e

            self._socket = sock
            self._port = sock.getsockname()[1]
            self._running.set()
            self._accept_thread = threading.Thread(
                target=self._accept_loop,
                args=(sock,),
                name="HTTPAccept",
                daemon=True,
            )
            self._accept_thread.start()

        logger.info(f"Listening on {self.url}")
        return self.url

    def stop(self) -> None:
        """Close the listening socket and halt the accept loop. Safe to call repeatedly."""
        with self._lock:
            if not self._running.is_set() and self._socket is None:
                return
            self._running.clear()
            sock, self._socket = self._socket, None
            thread, self._accept_thread = self._accept_thread, None

        if sock is not None:
            sock.close()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=ACCEPT_POLL_INTERVAL * 4)
        logger.info("Server stopped")

    def _accept_loop(self, sock: socket.socket) -> None:
        while self._running.is_set():
            try:
                conn, addr = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running.is_set():
                    logger.error(f"Accept failed: {str(e)}")
                    self._running.clear()
                break

            handler = threading.Thread(
                target=self.handle_connection,
                args=(conn, addr),
                name=f"HTTPConn-{addr[1]}",
                daemon=True,
            )
            handler.start()
        logger.debug("Accept loop finished")

    def handle_connection(self, conn: socket.socket, addr: Tuple[str, int] = ("", 0)) -> None:
        """Read one request, write one response, close the connection."""
        with conn:
            try:
                conn.settimeout(self.config.client_timeout)
                data = conn.recv(self.config.read_buffer_size)
            except OSError as e:
                logger.debug(f"Read from {addr[0]} failed: {str(e)}")
                return

            request = self.parser.parse(data)
            if request is None:
                logger.debug(f"Dropping empty or malformed request from {addr[0]}")
                return

            logger.debug(f"{request.method} {request.path} from {addr[0]}")
            try:
                response = self.router.route(request)
            except Exception as e:
                logger.error(f"Error handling {request.path} for {addr[0]}: {str(e)}")
                response = HttpResponse.error(500)
            try:
                conn.sendall(response.to_bytes())
            except OSError as e:
                logger.debug(f"Write to {addr[0]} failed: {str(e)}")
