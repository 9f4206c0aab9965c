# aasdiscovery/server.py
"""
HTTP server for the discovery index.

Endpoints:
    POST   /lookup/shells/:b64id         - Create or replace asset links
    GET    /lookup/shells/:b64id         - Get asset links of an AAS
    DELETE /lookup/shells/:b64id         - Delete asset links of an AAS
    POST   /lookup/shellsByAssetLink     - Search (?limit=&cursor=, body: links)
    POST   /lookup/shells/search         - Search (body: assetLinks, limit, cursor)
    GET    /health                       - Liveness check

AAS ids in paths are unpadded base64url.
"""

import json
import logging
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from . import codec
from .config import DiscoveryConfig
from .errors import InvalidInputError, NotFoundError, PayloadTooLargeError, StorageError
from .links import parse_pairs, reject_encoded_pairs
from .service import DiscoveryService
from .store import create_store

logger = logging.getLogger(__name__)

SHELLS_PREFIX = "/lookup/shells/"
SEARCH_BODY_KEYS = {"assetLinks", "limit", "cursor"}


def _error_body(message: str, status: int) -> Dict[str, Any]:
    return {"messages": [{"code": str(status), "messageType": "Error", "text": message}]}


def _parse_limit(raw: Any) -> Optional[int]:
    """Accept an int from a JSON body or a decimal string from a query parameter."""
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError as e:
            raise InvalidInputError(f"Limit must be an integer, got {raw!r}") from e
    raise InvalidInputError(f"Limit must be an integer, got {raw!r}")


class DiscoveryServer:
    """
    HTTP server for the discovery service.

    Usage:
        server = DiscoveryServer(service, port=8080)
        server.start()  # Blocking
    """

    def __init__(
        self,
        service: DiscoveryService,
        host: str = "127.0.0.1",
        port: int = 8080,
        max_body_bytes: int = 1024 * 1024,
    ):
        self.service = service
        self.host = host
        self.port = port
        self.max_body_bytes = max_body_bytes
        self._httpd: Optional[ThreadingHTTPServer] = None

    @property
    def server_address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once bound to port 0."""
        if self._httpd is None:
            return self.host, self.port
        return self._httpd.server_address[:2]

    @property
    def url(self) -> str:
        host, port = self.server_address
        return f"http://{host}:{port}"

    def _create_handler(server_instance):
        """Create request handler with access to server instance."""

        class RequestHandler(BaseHTTPRequestHandler):
            server_ref = server_instance

            def log_message(self, format, *args):
                logger.debug(format % args)

            def _send_json(self, data: Any, status: int = 200):
                body = json.dumps(data).encode()
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _send_empty(self, status: int = 204):
                self.send_response(status)
                self.send_header("Content-Length", "0")
                self.end_headers()

            def _send_error(self, message: str, status: int = 400):
                self._send_json(_error_body(message, status), status)

            def _read_json(self) -> Any:
                raw_length = self.headers.get("Content-Length") or "0"
                try:
                    content_length = int(raw_length)
                except ValueError as e:
                    self.close_connection = True
                    raise InvalidInputError(f"Invalid Content-Length: {raw_length!r}") from e
                if content_length <= 0:
                    raise InvalidInputError("Request body is required")
                max_body = self.server_ref.max_body_bytes
                if content_length > max_body:
                    # Unread body bytes would be parsed as the next request
                    self.close_connection = True
                    raise PayloadTooLargeError(
                        f"Request body of {content_length} bytes exceeds {max_body}"
                    )
                try:
                    body = self.rfile.read(content_length).decode("utf-8")
                except UnicodeDecodeError as e:
                    raise InvalidInputError(f"Request body is not valid UTF-8: {e}") from e
                try:
                    return json.loads(body)
                except json.JSONDecodeError as e:
                    raise InvalidInputError(f"Invalid JSON: {e}") from e

            def _aas_id_from_path(self, path: str) -> str:
                encoded = path[len(SHELLS_PREFIX):]
                if not encoded or "/" in encoded:
                    raise InvalidInputError(f"Expected a single encoded AAS id in {path}")
                return codec.decode_id(encoded)

            def _dispatch(self, handler):
                try:
                    handler()
                except PayloadTooLargeError as e:
                    logger.warning(f"Rejected {self.command} {self.path}: {e}")
                    self._send_error(str(e), 413)
                except InvalidInputError as e:
                    logger.warning(f"Bad request {self.command} {self.path}: {e}")
                    self._send_error(str(e), 400)
                except NotFoundError as e:
                    self._send_error(str(e), 404)
                except StorageError as e:
                    logger.error(f"Storage failure on {self.command} {self.path}: {e}")
                    self._send_error(str(e), 500)
                except Exception as e:
                    logger.exception(f"Unhandled error on {self.command} {self.path}")
                    self._send_error(str(e), 500)

            def do_GET(self):
                self._dispatch(self._handle_get)

            def do_POST(self):
                self._dispatch(self._handle_post)

            def do_DELETE(self):
                self._dispatch(self._handle_delete)

            def _handle_get(self):
                path = urlparse(self.path).path

                if path == "/health":
                    self._send_json({"status": "ok"})

                elif path.startswith(SHELLS_PREFIX):
                    aas_id = self._aas_id_from_path(path)
                    pairs = self.server_ref.service.fetch(aas_id)
                    self._send_json([p.to_dict() for p in pairs])

                else:
                    self._send_error("Not found", 404)

            def _handle_post(self):
                parsed = urlparse(self.path)
                path = parsed.path

                if path == "/lookup/shellsByAssetLink":
                    query = parse_qs(parsed.query)
                    limit = _parse_limit(query.get("limit", [None])[0])
                    cursor = query.get("cursor", [None])[0]
                    pairs = parse_pairs(self._read_json())
                    page = self.server_ref.service.search(pairs, limit, cursor)
                    self._send_json(page.to_dict())

                elif path == "/lookup/shells/search":
                    data = self._read_json()
                    if not isinstance(data, dict):
                        raise InvalidInputError("Search request must be a JSON object")
                    unknown = sorted(set(data) - SEARCH_BODY_KEYS)
                    if unknown:
                        raise InvalidInputError(f"Unknown search fields: {', '.join(unknown)}")
                    if "assetLinks" not in data:
                        raise InvalidInputError("Search request requires assetLinks")
                    cursor = data.get("cursor")
                    if cursor is not None and not isinstance(cursor, str):
                        raise InvalidInputError("Cursor must be a string")
                    pairs = parse_pairs(data["assetLinks"])
                    reject_encoded_pairs(pairs)
                    page = self.server_ref.service.search(
                        pairs, _parse_limit(data.get("limit")), cursor
                    )
                    self._send_json(page.to_dict())

                elif path.startswith(SHELLS_PREFIX):
                    aas_id = self._aas_id_from_path(path)
                    pairs = parse_pairs(self._read_json())
                    outcome = self.server_ref.service.register(aas_id, pairs)
                    logger.debug(f"POST {aas_id}: {outcome.value}")
                    stored = sorted(set(pairs))
                    self._send_json([p.to_dict() for p in stored], 201)

                else:
                    self._send_error("Not found", 404)

            def _handle_delete(self):
                path = urlparse(self.path).path

                if path.startswith(SHELLS_PREFIX):
                    aas_id = self._aas_id_from_path(path)
                    self.server_ref.service.delete(aas_id)
                    self._send_empty(204)
                else:
                    self._send_error("Not found", 404)

        return RequestHandler

    def bind(self) -> ThreadingHTTPServer:
        """Bind the listening socket (idempotent)."""
        if self._httpd is None:
            handler = self._create_handler()
            self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
            self._httpd.daemon_threads = True
        return self._httpd

    def start(self):
        """Start the HTTP server (blocking)."""
        httpd = self.bind()
        logger.info(f"Discovery server starting on {self.url}")
        print(f"Discovery server running on {self.url}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nShutting down...")
        finally:
            httpd.server_close()

    def start_background(self) -> threading.Thread:
        """Start the server in a background thread."""
        httpd = self.bind()
        logger.info(f"Discovery server starting on {self.url}")
        thread = threading.Thread(target=httpd.serve_forever)
        thread.daemon = True
        thread.start()
        return thread

    def shutdown(self):
        """Stop a server started with start_background()."""
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None


def build_server(config: DiscoveryConfig) -> DiscoveryServer:
    """Wire store, service and server from configuration."""
    store = create_store(config)
    service = DiscoveryService(
        store,
        default_limit=config.default_limit,
        max_limit=config.max_limit,
    )
    return DiscoveryServer(
        service,
        host=config.host,
        port=config.port,
        max_body_bytes=config.max_body_bytes,
    )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None):
    """Entry point for `python -m aasdiscovery.server`; same flags as `aasdiscovery serve`."""
    from .cli import main as cli_main

    cli_main(["serve", *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    main()
